"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ Aggregation Records - Config, Group Summaries and Display Metadata           │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Plain dataclasses passed between the aggregation stages and handed to
    rendering collaborators.  Records hold explicit references to their
    group summary and originating configuration; every accessor is an
    ordinary attribute read.

RECORD TABLE:
┌──────────────────┬─────────────────────────────────────────────────────────┐
│ Record           │ Holds                                                   │
├──────────────────┼─────────────────────────────────────────────────────────┤
│ AggregationConfig│ Window length, pseudocount, alignment and sort switches │
│ GroupSummary     │ Raw count matrices, starts, stats of one group          │
│ MotifMetadata    │ GroupSummary + config + fragment/display labels         │
│ DisplayRecord    │ MotifMetadata + display index + mode string             │
│ MultiMotifGroup  │ One identity group with its distance variants           │
└──────────────────┴─────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from Aggregation.accumulator import normalize_countmat
from Utilities.config.analysis import AGGREGATION_CONFIG
from Utilities.core.consensus import relaxed_consensus


@dataclass
class AggregationConfig:
    """Analysis parameters; defaults come from ``AGGREGATION_CONFIG``."""
    window_length: int = AGGREGATION_CONFIG['window_length']
    pseudocount: float = AGGREGATION_CONFIG['pseudocount']
    off_region_search: bool = AGGREGATION_CONFIG['off_region_search']
    search_radius: int = AGGREGATION_CONFIG['search_radius']
    singleton_pareto_rank: int = AGGREGATION_CONFIG['singleton_pareto_rank']
    split_by_sign: bool = AGGREGATION_CONFIG['split_by_sign']
    sort_globally: bool = AGGREGATION_CONFIG['sort_globally']
    sort_by_pareto: bool = AGGREGATION_CONFIG['sort_by_pareto']
    float_dtype: str = AGGREGATION_CONFIG['float_dtype']
    max_workers: int = AGGREGATION_CONFIG['max_workers']

    def __post_init__(self):
        if self.window_length <= 0:
            raise ValueError(f"window_length must be positive, got {self.window_length}")
        if self.search_radius < 0:
            raise ValueError(f"search_radius must be >= 0, got {self.search_radius}")
        if self.pseudocount < 0:
            raise ValueError(f"pseudocount must be >= 0, got {self.pseudocount}")
        if self.singleton_pareto_rank < 1:
            raise ValueError(f"singleton_pareto_rank must be >= 1, got {self.singleton_pareto_rank}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        try:
            dtype = np.dtype(self.float_dtype)
        except TypeError:
            raise ValueError(f"Unknown float_dtype: {self.float_dtype!r}") from None
        if not np.issubdtype(dtype, np.floating):
            raise ValueError(f"float_dtype must be a floating type, got {self.float_dtype!r}")

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.float_dtype)

    @classmethod
    def from_dict(cls, overrides: Optional[Dict[str, Any]] = None) -> "AggregationConfig":
        """Defaults with *overrides* applied; unknown keys raise ``ValueError``."""
        overrides = dict(overrides or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown aggregation config keys: {unknown}")
        return cls(**overrides)


@dataclass(eq=False)
class GroupSummary:
    """Aggregated count matrices and statistics of one motif group."""
    key: tuple
    key_columns: List[str]
    count_matrices: List[np.ndarray]
    positions: List[int]
    references: List[Optional[np.ndarray]]
    highlighted: List[Tuple[int, int]]
    median: float
    mean: float
    count: int
    contributions: List[float]
    events: pd.DataFrame = field(default=None, repr=False)

    def key_fields(self) -> Dict[str, Any]:
        """Group key as ``{column: value}``."""
        return dict(zip(self.key_columns, self.key))

    def frequency_matrices(self, pseudocount: float = AGGREGATION_CONFIG['pseudocount']) -> List[np.ndarray]:
        return [normalize_countmat(m, pseudocount) for m in self.count_matrices]


@dataclass(eq=False)
class MotifMetadata:
    """A group summary labelled for display."""
    summary: GroupSummary
    config: AggregationConfig
    motif_type: str
    motif_size: int
    fragment_count: int
    span: str
    group_id: str
    button_text: str

    @property
    def key(self) -> tuple:
        return self.summary.key

    @property
    def median(self) -> float:
        return self.summary.median

    @property
    def mean(self) -> float:
        return self.summary.mean

    @property
    def count(self) -> int:
        return self.summary.count

    def frequency_matrices(self) -> List[np.ndarray]:
        return self.summary.frequency_matrices(self.config.pseudocount)

    def consensus(self, rna: bool = False) -> List[str]:
        """One consensus string per surviving matrix."""
        return [relaxed_consensus(pfm, rna=rna) for pfm in self.frequency_matrices()]


@dataclass(eq=False)
class DisplayRecord:
    """A registered record: its metadata plus the assigned display slot."""
    metadata: MotifMetadata
    display_index: int
    mode: str


@dataclass(eq=False)
class MultiMotifGroup:
    """
    One identity group of a convolution multi-motif table.

    ``variants`` maps each distance tuple to its ``GroupSummary``; keys are
    in ascending lexicographic order.  ``relaxed_median`` is the median
    over every event of every variant.
    """
    key: tuple
    key_columns: List[str]
    relaxed_median: float
    count: int
    variants: Dict[tuple, GroupSummary] = field(default_factory=dict)
