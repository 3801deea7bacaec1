"""Tests for grouping-key construction and group iteration."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd
import pytest

from Aggregation.errors import AggregationError, InvalidCriterion, InvalidMotifSize
from Aggregation.grouping import (
    GroupingCriterion,
    build_grouping_columns,
    distance_columns,
    identity_columns,
    iter_groups,
    position_columns,
)


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

class TestColumnHelpers:
    def test_identity_columns(self):
        assert identity_columns(3) == ["m1", "m2", "m3"]

    def test_position_columns(self):
        assert position_columns(2) == ["m1_position", "m2_position"]

    def test_distance_columns(self):
        assert distance_columns(3) == ["d12", "d23"]
        assert distance_columns(1) == []

    @pytest.mark.parametrize("bad", [0, -1, 2.0, True, None])
    def test_invalid_size(self, bad):
        with pytest.raises(InvalidMotifSize):
            identity_columns(bad)


# ---------------------------------------------------------------------------
# build_grouping_columns
# ---------------------------------------------------------------------------

class TestBuildGroupingColumns:
    def test_by_identity(self):
        assert build_grouping_columns(GroupingCriterion.BY_IDENTITY, 2) == ["m1", "m2"]

    def test_by_position(self):
        assert build_grouping_columns(GroupingCriterion.BY_POSITION, 2) == ["m1_position", "m2_position"]

    def test_by_distance(self):
        assert build_grouping_columns(GroupingCriterion.BY_DISTANCE, 3) == ["d12", "d23"]

    def test_identity_and_distance(self):
        assert build_grouping_columns(GroupingCriterion.BY_IDENTITY_AND_DISTANCE, 2) == ["m1", "m2", "d12"]

    def test_complete(self):
        assert build_grouping_columns(GroupingCriterion.COMPLETE, 2) == [
            "m1", "m2", "d12", "m1_position", "m2_position"
        ]

    def test_complete_single_motif(self):
        assert build_grouping_columns(GroupingCriterion.COMPLETE, 1) == ["m1", "m1_position"]

    def test_singleton_criteria_need_no_size(self):
        assert build_grouping_columns(GroupingCriterion.FILTER_INDEX) == ["filter_index"]
        assert build_grouping_columns(GroupingCriterion.FILTER_AND_POSITION) == ["filter_index", "position"]

    def test_string_criterion(self):
        assert build_grouping_columns("motifs", motif_size=2) == ["m1", "m2"]

    def test_missing_size_raises(self):
        with pytest.raises(InvalidCriterion):
            build_grouping_columns(GroupingCriterion.BY_IDENTITY)

    def test_unknown_criterion_raises(self):
        with pytest.raises(InvalidCriterion):
            build_grouping_columns("by_colour", motif_size=2)

    def test_errors_share_base_class(self):
        with pytest.raises(AggregationError):
            build_grouping_columns(GroupingCriterion.COMPLETE, motif_size=0)

    def test_every_criterion_handled(self):
        for criterion in GroupingCriterion:
            assert len(build_grouping_columns(criterion, motif_size=2)) >= 1


# ---------------------------------------------------------------------------
# iter_groups
# ---------------------------------------------------------------------------

class TestIterGroups:
    def test_single_column_keys_are_tuples(self):
        df = pd.DataFrame({"filter_index": [3, 1, 3], "contribution": [0.1, 0.2, 0.3]})
        keys = [k for k, _ in iter_groups(df, ["filter_index"])]
        assert keys == [(1,), (3,)]
        assert all(type(k[0]) is int for k in keys)

    def test_rows_keep_table_order(self):
        df = pd.DataFrame({"m1": [5, 5, 5], "seq_index": [2, 0, 1]})
        (_, frame), = list(iter_groups(df, ["m1"]))
        assert frame["seq_index"].tolist() == [2, 0, 1]

    def test_empty_table(self):
        assert list(iter_groups(pd.DataFrame(), ["m1"])) == []
        assert list(iter_groups(None, ["m1"])) == []
