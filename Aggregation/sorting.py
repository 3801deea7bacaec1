"""Display ordering of motif groups.

Hierarchy
---------
1. Sign of the median contribution: positive first, then zero/negative.
2. Structural tier: ``single_region`` is tier 0, ``<n>_regions`` is tier n.
3. Pareto rank over (|median|, count), computed per (sign, tier) partition.
4. Magnitude: descending |median| for positives, ascending for negatives.

Groups that are still tied keep a deterministic order through their size
and group key, so the result never depends on input order.
"""

from __future__ import annotations

import logging
from itertools import groupby
from typing import Any, Dict, List, Sequence, Tuple

from Aggregation.pareto import compute_pareto_ranks

logger = logging.getLogger(__name__)

SINGLE_REGION = "single_region"


def fragment_group_id(fragment_count: int) -> str:
    """``single_region`` for one fragment, ``<n>_regions`` otherwise."""
    return SINGLE_REGION if fragment_count == 1 else f"{fragment_count}_regions"


def fragment_button_text(fragment_count: int) -> str:
    return "Single Regions" if fragment_count == 1 else f"{fragment_count} Regions"


def structural_tier(group_id: str) -> int:
    """
    Integer tier of a group label.

    >>> structural_tier("single_region"), structural_tier("3_regions")
    (0, 3)
    """
    if group_id == SINGLE_REGION:
        return 0
    try:
        return int(group_id.split("_")[0])
    except ValueError:
        raise ValueError(f"Unrecognised group id: {group_id!r}") from None


def sign_order(median: float) -> int:
    """0 for a positive median, 1 otherwise."""
    return 0 if median > 0 else 1


def signed_magnitude(median: float) -> float:
    """Sort value that puts large positives and mild negatives first."""
    return -abs(median) if median > 0 else abs(median)


def _tie_break(record) -> Tuple[int, tuple]:
    key = tuple(getattr(record, "key", ()))
    return len(key), key


def sort_by_group_and_pareto(metadata: Sequence[Any]) -> List[Any]:
    """
    Order records by sign, tier, per-partition Pareto rank and magnitude.

    *metadata* items need ``median``, ``count`` and ``group_id`` attributes
    (``key`` is used for the final tie-break when present).
    """
    if len(metadata) == 0:
        return []

    def partition_key(m):
        return sign_order(m.median), structural_tier(m.group_id)

    ranks: Dict[int, int] = {}
    ordered = sorted(metadata, key=partition_key)
    for part, members in groupby(ordered, key=partition_key):
        members = list(members)
        part_ranks = compute_pareto_ranks([(abs(m.median), m.count) for m in members])
        for i, m in enumerate(members):
            ranks[id(m)] = part_ranks[i]
        logger.debug(
            f"Partition sign={part[0]} tier={part[1]}: {len(members)} groups, "
            f"{max(part_ranks.values())} Pareto ranks"
        )

    return sorted(
        metadata,
        key=lambda m: (
            sign_order(m.median),
            structural_tier(m.group_id),
            ranks[id(m)],
            signed_magnitude(m.median),
            _tie_break(m),
        ),
    )


def sort_by_magnitude(metadata: Sequence[Any]) -> List[Any]:
    """Simple mode: sign, tier and magnitude only, no Pareto ranking."""
    return sorted(
        metadata,
        key=lambda m: (
            sign_order(m.median),
            structural_tier(m.group_id),
            signed_magnitude(m.median),
            _tie_break(m),
        ),
    )


def order_metadata(
    metadata: Sequence[Any],
    sort_globally: bool = True,
    sort_by_pareto: bool = True,
) -> List[Any]:
    """Apply the configured ordering; ``sort_globally=False`` keeps input order."""
    if not sort_globally:
        return list(metadata)
    if sort_by_pareto:
        return sort_by_group_and_pareto(metadata)
    return sort_by_magnitude(metadata)
