"""Grouping-key builder: which event-table columns define a motif group.

Public interface
----------------
    cols = build_grouping_columns(GroupingCriterion.COMPLETE, motif_size=2)
    # ['m1', 'm2', 'd12', 'm1_position', 'm2_position']
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

import pandas as pd

from Aggregation.errors import InvalidCriterion, InvalidMotifSize

# Event-table columns shared by every analysis
SEQ_INDEX_COLUMN = "seq_index"
CONTRIBUTION_COLUMN = "contribution"
FILTER_INDEX_COLUMN = "filter_index"
POSITION_COLUMN = "position"
WINDOW_START_COLUMN = "start"
WINDOW_END_COLUMN = "end"


class GroupingCriterion(Enum):
    """Analysis criteria; each maps to a fixed, ordered list of key columns."""
    FILTER_INDEX = "filter_index"                    # singletons: which filter fired
    FILTER_AND_POSITION = "filter_and_position"      # singletons: filter and where
    BY_IDENTITY = "motifs"                           # m1..mn
    BY_POSITION = "motif_positions"                  # m1_position..mn_position
    BY_DISTANCE = "distances"                        # d12..d(n-1)n
    BY_IDENTITY_AND_DISTANCE = "motif_identity_and_distance"
    COMPLETE = "complete"                            # identities + distances + positions


def _check_motif_size(n) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise InvalidMotifSize(f"motif size must be a positive integer, got {n!r}")
    return n


def identity_columns(n: int) -> List[str]:
    """``['m1', ..., 'mn']``"""
    n = _check_motif_size(n)
    return [f"m{i}" for i in range(1, n + 1)]


def position_columns(n: int) -> List[str]:
    """``['m1_position', ..., 'mn_position']``"""
    n = _check_motif_size(n)
    return [f"m{i}_position" for i in range(1, n + 1)]


def distance_columns(n: int) -> List[str]:
    """
    ``['d12', 'd23', ...]``: one gap per consecutive pair, empty for ``n == 1``.
    """
    n = _check_motif_size(n)
    return [f"d{i}{i + 1}" for i in range(1, n)]


def build_grouping_columns(
    criterion: Union[GroupingCriterion, str],
    motif_size: Optional[int] = None,
) -> List[str]:
    """
    Build the ordered list of columns that define a group.

    Args:
        criterion:  A ``GroupingCriterion`` or its string value.
        motif_size: Number of constituent motifs; required by every
                    criterion except the two singleton ones.

    Returns:
        Column names to pass to ``DataFrame.groupby``.

    Raises:
        InvalidCriterion: Unknown criterion, or *motif_size* omitted where required.
        InvalidMotifSize: *motif_size* is not a positive integer.

    Examples:
        >>> build_grouping_columns(GroupingCriterion.FILTER_AND_POSITION)
        ['filter_index', 'position']
        >>> build_grouping_columns("motif_identity_and_distance", motif_size=2)
        ['m1', 'm2', 'd12']
    """
    if not isinstance(criterion, GroupingCriterion):
        try:
            criterion = GroupingCriterion(criterion)
        except ValueError:
            raise InvalidCriterion(
                f"Unknown grouping criterion: {criterion!r}. "
                f"Valid options: {[c.value for c in GroupingCriterion]}"
            ) from None

    if criterion is GroupingCriterion.FILTER_INDEX:
        return [FILTER_INDEX_COLUMN]
    if criterion is GroupingCriterion.FILTER_AND_POSITION:
        return [FILTER_INDEX_COLUMN, POSITION_COLUMN]

    if motif_size is None:
        raise InvalidCriterion(f"motif_size required for criterion '{criterion.value}'")

    if criterion is GroupingCriterion.BY_IDENTITY:
        return identity_columns(motif_size)
    if criterion is GroupingCriterion.BY_POSITION:
        return position_columns(motif_size)
    if criterion is GroupingCriterion.BY_DISTANCE:
        return distance_columns(motif_size)
    if criterion is GroupingCriterion.BY_IDENTITY_AND_DISTANCE:
        return identity_columns(motif_size) + distance_columns(motif_size)
    if criterion is GroupingCriterion.COMPLETE:
        return (
            identity_columns(motif_size)
            + distance_columns(motif_size)
            + position_columns(motif_size)
        )

    raise InvalidCriterion(f"Unhandled grouping criterion: {criterion!r}")


def _plain(value):
    """numpy scalar -> Python scalar so keys hash and print cleanly."""
    return value.item() if hasattr(value, "item") else value


def iter_groups(events: pd.DataFrame, columns: List[str], sort: bool = True):
    """
    Yield ``(key_tuple, frame)`` for every group of *events*.

    Keys are always tuples in *columns* order, even for a single column,
    and rows inside each frame keep their original table order.
    """
    if events is None or len(events) == 0:
        return
    for key, frame in events.groupby(columns, sort=sort):
        if not isinstance(key, tuple):
            key = (key,)
        yield tuple(_plain(k) for k in key), frame
