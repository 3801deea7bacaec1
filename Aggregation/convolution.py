"""Convolution-path aggregation: singleton filters and multi-motif distance variants.

Singleton tables carry one row per filter activation (``filter_index``,
``position``); every activation contributes the window starting at its
own position.  Multi-motif tables carry per-event ``start``/``end``
columns spanning all constituent windows plus the gaps between them.

Public interface
----------------
    singles = collect_singleton_groups(events, dataset, config)
    pairs = collect_multi_motif_groups(pair_events, dataset, config, motif_size=2)
"""

from __future__ import annotations

import logging
from typing import List, Optional

import pandas as pd

from Aggregation.accumulator import (
    build_count_matrices_and_highlight,
    build_singleton_count_matrices,
)
from Aggregation.grouping import (
    CONTRIBUTION_COLUMN,
    GroupingCriterion,
    build_grouping_columns,
    iter_groups,
)
from Aggregation.pareto import filter_pareto_rank
from Aggregation.records import AggregationConfig, GroupSummary, MultiMotifGroup
from Aggregation.summary import build_sorted_keys_and_maps
from Utilities.core.onehot_dataset import OnehotDataset

logger = logging.getLogger(__name__)


def collect_singleton_groups(
    events: pd.DataFrame,
    dataset: OnehotDataset,
    config: AggregationConfig,
    pareto_rank: Optional[int] = None,
) -> List[GroupSummary]:
    """
    One ``GroupSummary`` per filter index, by descending median.

    With *pareto_rank* set, filters beyond that rank (split by sign) are
    dropped first.
    """
    key_columns = build_grouping_columns(GroupingCriterion.FILTER_INDEX)
    if events is None or len(events) == 0:
        return []
    if pareto_rank is not None:
        events = filter_pareto_rank(events, key_columns, max_rank=pareto_rank, split_by_sign=True)

    sorted_keys, median_map, mean_map, count_map, contributions = build_sorted_keys_and_maps(
        events, key_columns
    )
    matrices = build_singleton_count_matrices(
        events, dataset.onehot, config.window_length, dtype=config.dtype
    )
    frames = dict(iter_groups(events, key_columns))

    return [
        GroupSummary(
            key=k,
            key_columns=key_columns,
            count_matrices=[matrices[k]],
            positions=[0],
            references=[None],
            highlighted=[],
            median=median_map[k],
            mean=mean_map[k],
            count=count_map[k],
            contributions=contributions[k],
            events=frames[k],
        )
        for k in sorted_keys
    ]


def collect_multi_motif_groups(
    events: pd.DataFrame,
    dataset: OnehotDataset,
    config: AggregationConfig,
    motif_size: int = 2,
) -> List[MultiMotifGroup]:
    """
    Identity groups with their distance variants, by descending median.

    Each variant's matrix spans ``sum(distances) + motif_size *
    window_length`` columns; its highlighted intervals mark the
    constituent windows.  Variants are ordered by distance tuple.
    """
    key_columns = build_grouping_columns(GroupingCriterion.BY_IDENTITY, motif_size)
    dist_columns = build_grouping_columns(GroupingCriterion.BY_DISTANCE, motif_size)
    if events is None or len(events) == 0:
        return []

    sorted_keys, median_map, _, count_map, _ = build_sorted_keys_and_maps(events, key_columns)
    frames = dict(iter_groups(events, key_columns))
    logger.info(f"Collecting {len(sorted_keys)} multi-motif groups (motif size {motif_size})")

    groups: List[MultiMotifGroup] = []
    for k in sorted_keys:
        frame = frames[k]
        matrices, highlighted = build_count_matrices_and_highlight(
            frame, dataset.onehot, motif_size, config.window_length, dtype=config.dtype
        )
        variant_frames = dict(iter_groups(frame, dist_columns))

        variants = {}
        for d_key in sorted(matrices):
            d_frame = variant_frames[d_key]
            contributions = d_frame[CONTRIBUTION_COLUMN].astype(float)
            variants[d_key] = GroupSummary(
                key=k + d_key,
                key_columns=key_columns + dist_columns,
                count_matrices=[matrices[d_key]],
                positions=[0],
                references=[None],
                highlighted=highlighted[d_key],
                median=float(contributions.median()),
                mean=float(contributions.mean()),
                count=len(d_frame),
                contributions=contributions.tolist(),
                events=d_frame,
            )
        logger.debug(f"Group {k}: {len(variants)} distance variants")

        groups.append(
            MultiMotifGroup(
                key=k,
                key_columns=key_columns,
                relaxed_median=median_map[k],
                count=count_map[k],
                variants=variants,
            )
        )
    return groups
