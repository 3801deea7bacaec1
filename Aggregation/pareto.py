"""Pareto ranking of motif groups over (|median contribution|, event count).

Both objectives are maximised.  Group A dominates group B when A is at
least as good on both objectives and strictly better on one.  Ranks are
assigned by layered peeling: rank 1 is the non-dominated set, rank 2 the
non-dominated set of what remains, and so on.

Public interface
----------------
    ranks = compute_pareto_ranks([(0.8, 10), (0.3, 40), (0.2, 5)])
    # {0: 1, 1: 1, 2: 2}
    ranked = rank_groups(summary_df, max_rank=2)
    kept = filter_pareto_rank(events, ["filter_index", "position"], max_rank=1)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from Aggregation.summary import summarize_groups

logger = logging.getLogger(__name__)

PARETO_RANK_COLUMN = "pareto_rank"
OBJECTIVE_COLUMNS = ["abs_median", "count"]


def dominates(a: Sequence[float], b: Sequence[float]) -> bool:
    """True when objective vector *a* dominates *b* (all maximised)."""
    return all(x >= y for x, y in zip(a, b)) and any(x > y for x, y in zip(a, b))


def compute_pareto_ranks(
    objectives: Sequence[Tuple[float, float]],
    max_rank: Optional[int] = None,
) -> Dict[int, int]:
    """
    Layered non-dominated ranks of objective vectors.

    Args:
        objectives: One ``(abs_median, count)`` pair per group.
        max_rank:   Stop after this rank; groups not ranked by then are
                    left out of the result.  ``None`` ranks everything.

    Returns:
        ``{position in objectives: rank}`` with ranks starting at 1.

    Complexity is O(rank * n^2), fine for the tens to hundreds of groups
    produced by one analysis.
    """
    if max_rank is not None and max_rank < 1:
        raise ValueError(f"max_rank must be >= 1, got {max_rank}")

    values = np.asarray(objectives, dtype=np.float64).reshape(-1, 2)
    n = values.shape[0]
    ranks: Dict[int, int] = {}
    available = np.ones(n, dtype=bool)

    current_rank = 1
    while available.any():
        if max_rank is not None and current_rank > max_rank:
            break
        pool = values[available]
        front: List[int] = []
        for i in np.nonzero(available)[0]:
            geq = (pool >= values[i]).all(axis=1)
            gt = (pool > values[i]).any(axis=1)
            if not (geq & gt).any():
                front.append(int(i))
        for i in front:
            ranks[i] = current_rank
            available[i] = False
        current_rank += 1

    if available.any():
        logger.debug(f"Pareto ranking stopped at rank {max_rank}: {int(available.sum())} groups excluded")
    return ranks


def _rank_partition(summary: pd.DataFrame, max_rank: Optional[int]) -> pd.DataFrame:
    if len(summary) == 0:
        return summary.assign(**{PARETO_RANK_COLUMN: pd.Series(dtype=int)})
    ranks = compute_pareto_ranks(
        list(summary[OBJECTIVE_COLUMNS].itertuples(index=False, name=None)), max_rank
    )
    ranked = summary.iloc[sorted(ranks)].copy()
    ranked[PARETO_RANK_COLUMN] = [ranks[i] for i in sorted(ranks)]
    return ranked


def rank_groups(
    summary: pd.DataFrame,
    max_rank: Optional[int] = None,
    split_by_sign: bool = True,
) -> pd.DataFrame:
    """
    Add a ``pareto_rank`` column to a ``summarize_groups`` table.

    With *split_by_sign* the positive-median and negative-median groups
    are ranked independently and a group whose median is exactly zero
    belongs to neither partition.  Groups ranked beyond *max_rank* are
    dropped.  The result keeps the row order of *summary*.
    """
    if split_by_sign:
        parts = [
            _rank_partition(summary[summary["median"] > 0], max_rank),
            _rank_partition(summary[summary["median"] < 0], max_rank),
        ]
        logger.debug(
            f"Pareto partitions: {len(summary[summary['median'] > 0])} positive, "
            f"{len(summary[summary['median'] < 0])} negative"
        )
        ranked = pd.concat(parts)
    else:
        ranked = _rank_partition(summary, max_rank)
    return ranked.sort_index(kind="mergesort")


def filter_pareto_rank(
    events: pd.DataFrame,
    key_columns: List[str],
    max_rank: int = 1,
    split_by_sign: bool = True,
) -> pd.DataFrame:
    """
    Keep only the event rows of groups whose Pareto rank is ``<= max_rank``.

    Row order of *events* is preserved.

    Example:
        >>> kept = filter_pareto_rank(events, ["filter_index", "position"], max_rank=1)
    """
    if max_rank < 1:
        raise ValueError(f"Pareto rank must be >= 1, got {max_rank}")
    if events is None or len(events) == 0:
        return events

    ranked = rank_groups(
        summarize_groups(events, key_columns), max_rank=max_rank, split_by_sign=split_by_sign
    )
    kept_keys = pd.MultiIndex.from_frame(ranked[key_columns])
    mask = pd.MultiIndex.from_frame(events[key_columns]).isin(kept_keys)
    result = events[mask]

    logger.info(
        f"Pareto filter (rank <= {max_rank}): kept {len(ranked)} groups, "
        f"{len(result)}/{len(events)} events"
    )
    return result
