"""Interval merging of aligned count-matrix windows.

No third-party dependencies beyond NumPy.

Public interface
----------------
    merged = merge_overlapping_windows([(mat_a, 41), (mat_b, 49)])
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

Window = Tuple[np.ndarray, int]


def window_span(windows: Sequence[Window]) -> Tuple[int, int]:
    """``(leftmost start, rightmost end)`` of a set of windows, end-inclusive."""
    starts = [int(s) for _, s in windows]
    ends = [int(s) + mat.shape[1] - 1 for mat, s in windows]
    return min(starts), max(ends)


def merge_overlapping_windows(windows: Sequence[Window]) -> List[Window]:
    """
    Merge windows that overlap or touch into wider contiguous matrices.

    Algorithm
    ---------
    1. Sort windows by start position (stable).
    2. Walk left to right; the next window joins the current run when its
       start is ``<= current_end + 1``.
    3. A joining window contributes only its columns past the overlap; a
       window fully covered by the run is dropped.

    Parameters
    ----------
    windows : sequence of (matrix, start)
        Count matrices of shape ``(alphabet, width)`` with their 0-based
        start in a shared coordinate frame.

    Returns
    -------
    list of (matrix, start)
        Merged windows sorted by start.  Each start is the start of the
        leftmost constituent.  Empty list if *windows* is empty.

    Example
    -------
    Starts 41 and 49 with width 9 cover 41..49 and 49..57; the result is
    one 17-column matrix starting at 41.
    """
    if len(windows) == 0:
        return []

    ordered = sorted(windows, key=lambda w: int(w[1]))

    merged: List[Window] = []
    current_mat, current_start = ordered[0]
    current_start = int(current_start)
    current_end = current_start + current_mat.shape[1] - 1

    for next_mat, next_start in ordered[1:]:
        next_start = int(next_start)
        if next_start <= current_end + 1:
            overlap_cols = current_end - next_start + 1
            if overlap_cols < next_mat.shape[1]:
                current_mat = np.concatenate((current_mat, next_mat[:, overlap_cols:]), axis=1)
                current_end = next_start + next_mat.shape[1] - 1
        else:
            merged.append((current_mat, current_start))
            current_mat, current_start = next_mat, next_start
            current_end = current_start + current_mat.shape[1] - 1

    merged.append((current_mat, current_start))

    logger.debug(f"merge_overlapping_windows: {len(windows)} windows -> {len(merged)}")
    return merged
