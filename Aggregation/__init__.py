"""Aggregation: motif-group count matrices, alignment, ranking and display order.

Turns per-occurrence motif contribution events into ranked, aligned and
merged frequency windows for a rendering layer.

Workflow
--------
1. build_grouping_columns picks the key columns for an analysis criterion.
2. Each group's windows are folded out of the one-hot tensor into count
   matrices (caller-owned scratch buffer per group).
3. Each matrix is shifted to its best reference start within +/- radius.
4. Overlapping or touching windows of one group are merged.
5. Median / mean / count summarise each group's contributions.
6. Groups are ordered by sign, structural tier, Pareto rank, magnitude.

Nothing here writes files; rendering happens in a caller-supplied callback.

Quick-start
-----------
    from Aggregation import aggregate_motif_groups
    from Utilities.core import OnehotDataset

    dataset = OnehotDataset.from_sequences(sequences, consensus=consensus)
    records, next_idx = aggregate_motif_groups(singletons_df, [pairs_df], dataset)
"""

from __future__ import annotations

import logging
from time import perf_counter
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from Aggregation.accumulator import (
    accumulate_motif_counts,
    accumulate_window,
    build_motif_windows,
    make_highlighted_region,
    normalize_countmat,
)
from Aggregation.aligner import find_best_reference_position
from Aggregation.convolution import collect_multi_motif_groups, collect_singleton_groups
from Aggregation.errors import (
    AggregationError,
    EmptyGroup,
    InvalidCriterion,
    InvalidMotifSize,
    OutOfBoundsAlignment,
    RenderFailure,
    WindowOutOfBounds,
)
from Aggregation.grouping import GroupingCriterion, build_grouping_columns
from Aggregation.merging import merge_overlapping_windows
from Aggregation.pareto import compute_pareto_ranks, filter_pareto_rank
from Aggregation.pipeline import (
    RenderCallback,
    collect_group_metadata,
    prepare_and_collect_metadata,
    register_metadata,
)
from Aggregation.records import (
    AggregationConfig,
    DisplayRecord,
    GroupSummary,
    MotifMetadata,
    MultiMotifGroup,
)
from Aggregation.sorting import order_metadata, sort_by_group_and_pareto, sort_by_magnitude
from Aggregation.summary import summarize_groups
from Utilities.core.onehot_dataset import OnehotDataset

logger = logging.getLogger(__name__)


def aggregate_motif_groups(
    singleton_events: Optional[pd.DataFrame],
    multi_events: Sequence[pd.DataFrame],
    dataset: OnehotDataset,
    config: Optional[AggregationConfig] = None,
    start_idx: int = 1,
    render: Optional[RenderCallback] = None,
    monitor=None,
) -> Tuple[List[DisplayRecord], int]:
    """
    Run a full region analysis and return the registered display records.

    Args:
        singleton_events: ``filter_index`` / ``position`` activation table.
        multi_events:     Multi-motif tables, pairs first.
        dataset:          Read-only one-hot tensor and reference.
        config:           Analysis parameters (defaults from ``AGGREGATION_CONFIG``).
        start_idx:        First display index.
        render:           Optional per-record callback.
        monitor:          Optional ``PerformanceMonitor``.

    Returns:
        ``(records, next_idx)``
    """
    config = config or AggregationConfig()
    if monitor is not None:
        monitor.start()

    metadata = prepare_and_collect_metadata(
        singleton_events, multi_events, dataset, config, monitor=monitor
    )

    t0 = perf_counter()
    records, next_idx = register_metadata(metadata, config, start_idx=start_idx, render=render)
    if monitor is not None:
        monitor.record_stage("ordering", perf_counter() - t0)
        logger.info("\n" + monitor.format_summary())
    return records, next_idx


__all__ = [
    "aggregate_motif_groups",
    "AggregationConfig",
    "GroupSummary",
    "MotifMetadata",
    "DisplayRecord",
    "MultiMotifGroup",
    "GroupingCriterion",
    "build_grouping_columns",
    "accumulate_window",
    "accumulate_motif_counts",
    "normalize_countmat",
    "make_highlighted_region",
    "build_motif_windows",
    "find_best_reference_position",
    "merge_overlapping_windows",
    "compute_pareto_ranks",
    "filter_pareto_rank",
    "summarize_groups",
    "sort_by_group_and_pareto",
    "sort_by_magnitude",
    "order_metadata",
    "collect_group_metadata",
    "prepare_and_collect_metadata",
    "register_metadata",
    "collect_singleton_groups",
    "collect_multi_motif_groups",
    "AggregationError",
    "InvalidCriterion",
    "InvalidMotifSize",
    "EmptyGroup",
    "WindowOutOfBounds",
    "OutOfBoundsAlignment",
    "RenderFailure",
]
