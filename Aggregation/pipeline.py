"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Aggregation Pipeline - Event Table -> Ordered Display Metadata               │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Orchestrates one region analysis run:

      event table --group--> accumulate per motif position
                  --align--> best reference start (+/- search radius)
                  --merge--> contiguous pieces
                  --stats--> median / mean / count
                  --label--> fragment count, span, group id
                  --order--> sign, tier, Pareto rank, magnitude
                  --register--> sequential display indices

    Groups are independent: a group that fails (empty, window outside the
    tensor, render error) is skipped and logged, the rest of the batch
    continues.  With ``max_workers > 1`` groups are built in a thread pool;
    each worker owns its matrices and scratch buffer while the one-hot
    tensor and reference matrix are shared read-only.

USAGE::

    from Aggregation.pipeline import prepare_and_collect_metadata, register_metadata

    metadata = prepare_and_collect_metadata(singletons_df, [pairs_df], dataset, config)
    records, next_idx = register_metadata(metadata, config, start_idx=1)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from time import perf_counter
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from Aggregation.accumulator import accumulate_motif_counts
from Aggregation.aligner import find_best_reference_position, reference_window
from Aggregation.errors import EmptyGroup, OutOfBoundsAlignment
from Aggregation.grouping import (
    CONTRIBUTION_COLUMN,
    FILTER_INDEX_COLUMN,
    POSITION_COLUMN,
    SEQ_INDEX_COLUMN,
    GroupingCriterion,
    build_grouping_columns,
    iter_groups,
    position_columns,
)
from Aggregation.merging import merge_overlapping_windows
from Aggregation.pareto import filter_pareto_rank
from Aggregation.records import AggregationConfig, DisplayRecord, GroupSummary, MotifMetadata
from Aggregation.sorting import fragment_button_text, fragment_group_id, order_metadata
from Utilities.core.onehot_dataset import OnehotDataset

logger = logging.getLogger(__name__)

RenderCallback = Callable[[DisplayRecord], None]


class FragmentInfo(NamedTuple):
    fragment_count: int
    span: str
    group_id: str
    button_text: str


# =============================================================================
# PER-GROUP BUILD
# =============================================================================

def _reference_windows(reference: Optional[np.ndarray], pieces) -> List[Optional[np.ndarray]]:
    if reference is None:
        return [None] * len(pieces)
    windows = []
    for mat, start in pieces:
        try:
            windows.append(reference_window(reference, start, mat.shape[1]))
        except OutOfBoundsAlignment:
            windows.append(None)
    return windows


def build_group_summary(
    key: tuple,
    key_columns: List[str],
    frame: pd.DataFrame,
    dataset: OnehotDataset,
    config: AggregationConfig,
    motif_size: int,
) -> GroupSummary:
    """
    Count matrices, reference starts and statistics of one group.

    For every constituent position the group's windows are folded into a
    fresh ``(alphabet, window_length)`` matrix, then (with
    ``off_region_search``) shifted to the best-matching reference start.
    Multi-position groups are then merged into contiguous pieces.

    Raises:
        EmptyGroup:        *frame* has no rows.
        WindowOutOfBounds: A window does not fit inside the one-hot tensor.
    """
    if frame is None or len(frame) == 0:
        raise EmptyGroup(f"group {key} has no events")

    L = config.window_length
    onehot = dataset.onehot
    reference = dataset.reference
    seq_indices = frame[SEQ_INDEX_COLUMN].to_numpy()
    align = config.off_region_search and reference is not None

    pieces = []
    buf = None
    for col in position_columns(motif_size):
        s_raw = int(frame[col].iloc[0])
        mat = np.zeros((onehot.shape[0], L), dtype=config.dtype)
        buf = accumulate_motif_counts(mat, onehot, s_raw, seq_indices, buf)

        s_ref = s_raw + dataset.prefix_offset
        if align:
            s_ref = find_best_reference_position(
                mat, reference, s_ref, L, search_radius=config.search_radius
            )
        pieces.append((mat, s_ref))

    if config.off_region_search and motif_size > 1:
        merged = merge_overlapping_windows(pieces)
        logger.debug(f"Group {key}: {len(pieces)} windows merged into {len(merged)}")
        pieces = merged

    contributions = frame[CONTRIBUTION_COLUMN].astype(float)
    return GroupSummary(
        key=key,
        key_columns=list(key_columns),
        count_matrices=[mat for mat, _ in pieces],
        positions=[int(s) for _, s in pieces],
        references=_reference_windows(reference, pieces),
        highlighted=[(int(s), int(s) + mat.shape[1] - 1) for mat, s in pieces],
        median=float(contributions.median()),
        mean=float(contributions.mean()),
        count=len(frame),
        contributions=contributions.tolist(),
        events=frame,
    )


def fragment_info(count_matrices: Sequence[np.ndarray], positions: Sequence[int], motif_size: int) -> FragmentInfo:
    """
    Fragment count, span string and display labels of one group.

    Multi-motif groups always count ``motif_size`` fragments, singleton
    groups count their matrices.  The span lists every piece as ``s:e``.

    >>> fragment_info([np.zeros((4, 17))], [41], 2).span
    '41:57'
    """
    spans = [f"{pos}:{pos + mat.shape[1] - 1}" for pos, mat in zip(positions, count_matrices)]
    fragment_count = motif_size if motif_size > 1 else len(count_matrices)
    return FragmentInfo(
        fragment_count=fragment_count,
        span=", ".join(spans),
        group_id=fragment_group_id(fragment_count),
        button_text=fragment_button_text(fragment_count),
    )


# =============================================================================
# PER-SIZE COLLECTION
# =============================================================================

def collect_group_metadata(
    events: pd.DataFrame,
    dataset: OnehotDataset,
    config: AggregationConfig,
    motif_size: int,
    motif_type: str = "mutation_regions",
    monitor=None,
) -> List[MotifMetadata]:
    """
    Build one ``MotifMetadata`` per complete-key group of *events*.

    Groups are returned by descending median (ties keep key order).
    Empty groups are skipped silently; groups with bad windows are
    skipped with a warning.
    """
    key_columns = build_grouping_columns(GroupingCriterion.COMPLETE, motif_size)
    if events is None or len(events) == 0:
        logger.info(f"No events for {motif_type} (motif size {motif_size})")
        return []

    t0 = perf_counter()
    groups = list(iter_groups(events, key_columns))
    logger.info(f"Collecting {motif_type}: {len(groups)} groups, motif size {motif_size}")

    def build(key, frame) -> Optional[GroupSummary]:
        start = perf_counter()
        try:
            summary = build_group_summary(key, key_columns, frame, dataset, config, motif_size)
        except EmptyGroup:
            logger.debug(f"Skipping empty group {key}")
            return None
        except (ValueError, IndexError) as e:
            logger.warning(f"Skipping group {key} ({motif_type}): {e}")
            return None
        if monitor is not None:
            monitor.record_group(str(key), perf_counter() - start, len(frame))
        return summary

    if config.max_workers > 1 and len(groups) > 1:
        results = {}
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            future_to_index = {
                executor.submit(build, key, frame): i for i, (key, frame) in enumerate(groups)
            }
            for future in as_completed(future_to_index):
                results[future_to_index[future]] = future.result()
        summaries = [results[i] for i in range(len(groups))]
    else:
        summaries = [build(key, frame) for key, frame in groups]

    summaries = [s for s in summaries if s is not None]
    summaries.sort(key=lambda s: -s.median)

    metadata = []
    for summary in summaries:
        info = fragment_info(summary.count_matrices, summary.positions, motif_size)
        metadata.append(
            MotifMetadata(
                summary=summary,
                config=config,
                motif_type=motif_type,
                motif_size=motif_size,
                fragment_count=info.fragment_count,
                span=info.span,
                group_id=info.group_id,
                button_text=info.button_text,
            )
        )

    elapsed = perf_counter() - t0
    if monitor is not None:
        monitor.record_stage("accumulation", elapsed)
        monitor.snapshot_memory()
    logger.info(f"Collected {len(metadata)}/{len(groups)} groups for {motif_type} in {elapsed:.3f}s")
    return metadata


def _restrict_to_indices(events: pd.DataFrame, dataset: OnehotDataset) -> pd.DataFrame:
    if dataset.most_common_length_indices is None:
        return events
    return events[events[SEQ_INDEX_COLUMN].isin(dataset.most_common_length_indices)]


def prepare_singletons_for_regions(
    events: pd.DataFrame,
    dataset: OnehotDataset,
    config: AggregationConfig,
) -> pd.DataFrame:
    """
    Singleton table ready for region analysis.

    Keeps the retained sequences, drops (filter, position) groups beyond
    ``config.singleton_pareto_rank`` and renames ``filter_index`` /
    ``position`` to ``m1`` / ``m1_position``.
    """
    events = _restrict_to_indices(events, dataset)
    events = filter_pareto_rank(
        events,
        build_grouping_columns(GroupingCriterion.FILTER_AND_POSITION),
        max_rank=config.singleton_pareto_rank,
        split_by_sign=config.split_by_sign,
    )
    return events.rename(columns={FILTER_INDEX_COLUMN: "m1", POSITION_COLUMN: "m1_position"})


def prepare_and_collect_metadata(
    singleton_events: Optional[pd.DataFrame],
    multi_events: Sequence[pd.DataFrame],
    dataset: OnehotDataset,
    config: AggregationConfig,
    motif_sizes: Optional[Sequence[int]] = None,
    motif_type_prefix: str = "mutation_regions",
    monitor=None,
) -> List[List[MotifMetadata]]:
    """
    Collect metadata for singletons and every multi-motif size.

    ``multi_events[0]`` holds pairs, ``multi_events[1]`` triplets and so
    on.  *motif_sizes* defaults to ``1..len(multi_events) + 1``; a
    requested size without a table is skipped with a warning.

    Returns:
        One metadata list per processed size, in *motif_sizes* order.
    """
    if motif_sizes is None:
        motif_sizes = [1] + list(range(2, len(multi_events) + 2))

    all_metadata: List[List[MotifMetadata]] = []
    for motif_size in motif_sizes:
        if motif_size == 1:
            if singleton_events is None:
                logger.warning("Skipping motif_size=1: no singleton table")
                continue
            events = prepare_singletons_for_regions(singleton_events, dataset, config)
        else:
            table_idx = motif_size - 2
            if table_idx < 0 or table_idx >= len(multi_events):
                logger.warning(f"Skipping motif_size={motif_size}: not available in multi-motif tables")
                continue
            events = _restrict_to_indices(multi_events[table_idx], dataset)

        all_metadata.append(
            collect_group_metadata(
                events, dataset, config, motif_size,
                motif_type=f"{motif_type_prefix}_{motif_size}",
                monitor=monitor,
            )
        )
    return all_metadata


# =============================================================================
# REGISTRATION
# =============================================================================

def _flatten(metadata) -> List[MotifMetadata]:
    if len(metadata) > 0 and isinstance(metadata[0], (list, tuple)):
        return [m for sub in metadata for m in sub]
    return list(metadata)


def register_metadata(
    metadata,
    config: AggregationConfig,
    start_idx: int = 1,
    render: Optional[RenderCallback] = None,
) -> Tuple[List[DisplayRecord], int]:
    """
    Order metadata and assign sequential display indices.

    Args:
        metadata:  A list of ``MotifMetadata`` or a list of such lists.
        config:    Supplies ``sort_globally`` / ``sort_by_pareto``.
        start_idx: First display index.
        render:    Optional callback invoked with each ``DisplayRecord``;
                   a record whose callback raises is logged and dropped
                   without consuming an index.

    Returns:
        ``(records, next_idx)``
    """
    t0 = perf_counter()
    ordered = order_metadata(
        _flatten(metadata),
        sort_globally=config.sort_globally,
        sort_by_pareto=config.sort_by_pareto,
    )

    records: List[DisplayRecord] = []
    current_idx = start_idx
    for meta in ordered:
        record = DisplayRecord(
            metadata=meta,
            display_index=current_idx,
            mode=f"mode_{meta.group_id}_{current_idx}",
        )
        if render is not None:
            try:
                render(record)
            except Exception as e:
                logger.warning(f"Failed to render group {meta.key} ({meta.motif_type}, span {meta.span}): {e}")
                continue
        records.append(record)
        current_idx += 1

    logger.info(
        f"Registered {len(records)}/{len(ordered)} groups "
        f"(indices {start_idx}..{current_idx - 1}) in {perf_counter() - t0:.3f}s"
    )
    return records, current_idx
