"""Per-group summary statistics of the contribution column."""

from __future__ import annotations

from typing import Dict, List, Tuple

import pandas as pd

from Aggregation.grouping import CONTRIBUTION_COLUMN, iter_groups

SUMMARY_COLUMNS = ["median", "mean", "count", "abs_median"]


def summarize_groups(
    events: pd.DataFrame,
    key_columns: List[str],
    descending: bool = True,
) -> pd.DataFrame:
    """
    One row per group: key columns plus ``median``, ``mean``, ``count``, ``abs_median``.

    Rows are sorted by median (descending by default); groups with equal
    medians keep their key order.
    """
    if events is None or len(events) == 0:
        return pd.DataFrame(columns=list(key_columns) + SUMMARY_COLUMNS)

    summary = (
        events.groupby(key_columns, sort=True)[CONTRIBUTION_COLUMN]
        .agg(median="median", mean="mean", count="size")
        .reset_index()
    )
    summary["abs_median"] = summary["median"].abs()
    return summary.sort_values(
        "median", ascending=not descending, kind="mergesort"
    ).reset_index(drop=True)


def build_sorted_keys_and_maps(
    events: pd.DataFrame,
    key_columns: List[str],
    descending: bool = True,
) -> Tuple[List[tuple], Dict[tuple, float], Dict[tuple, float], Dict[tuple, int], Dict[tuple, List[float]]]:
    """
    Sorted group keys with their median / mean / count / contribution lookups.

    Returns:
        ``(sorted_keys, median_map, mean_map, count_map, contributions_map)``
    """
    summary = summarize_groups(events, key_columns, descending=descending)
    sorted_keys = [
        tuple(v.item() if hasattr(v, "item") else v for v in row)
        for row in summary[key_columns].itertuples(index=False, name=None)
    ]
    median_map = dict(zip(sorted_keys, summary["median"].astype(float).tolist()))
    mean_map = dict(zip(sorted_keys, summary["mean"].astype(float).tolist()))
    count_map = dict(zip(sorted_keys, summary["count"].astype(int).tolist()))
    contributions_map = {
        key: frame[CONTRIBUTION_COLUMN].astype(float).tolist()
        for key, frame in iter_groups(events, key_columns)
    }
    return sorted_keys, median_map, mean_map, count_map, contributions_map
