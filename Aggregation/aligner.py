"""Reference alignment: greedy local search for the best reference offset.

For a single accumulated count matrix, every candidate start in
``center - radius .. center + radius`` is scored against the reference
one-hot matrix by element-wise dot product.  Candidates whose window
would leave the reference are ineligible.  Candidates are evaluated in
increasing offset order and only a strictly higher score replaces the
current best, so ties resolve to the leftmost candidate.

Public interface
----------------
    score = dotproduct_score(mat, ref_window)
    s_best = find_best_reference_position(mat, reference, center, search_radius=3)
    window = reference_window(reference, start, length)
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from Aggregation.errors import OutOfBoundsAlignment

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RADIUS = 3


def dotproduct_score(mat: np.ndarray, ref_window: np.ndarray) -> float:
    """Sum of element-wise products between a count matrix and a reference window."""
    return float(np.sum(mat * ref_window))


def reference_window(reference: np.ndarray, start: int, length: int) -> np.ndarray:
    """
    Read-only view ``reference[:, start:start + length]``.

    Raises:
        OutOfBoundsAlignment: The window does not lie fully inside the reference.
    """
    start, length = int(start), int(length)
    if start < 0 or length < 1 or start + length > reference.shape[1]:
        raise OutOfBoundsAlignment(
            f"reference window [{start}, {start + length - 1}] outside reference "
            f"of length {reference.shape[1]}"
        )
    view = reference[:, start:start + length]
    view.flags.writeable = False
    return view


def find_best_reference_position(
    mat: np.ndarray,
    reference: np.ndarray,
    center: int,
    window_length: Optional[int] = None,
    search_radius: int = DEFAULT_SEARCH_RADIUS,
) -> int:
    """
    Start position in *reference* that best matches *mat*.

    Args:
        mat:           ``(alphabet, window_length)`` count matrix.
        reference:     ``(alphabet, reference_length)`` boolean matrix.
        center:        Nominal reference start of the window.
        window_length: Window width; defaults to ``mat.shape[1]``.
        search_radius: Offsets ``-search_radius..search_radius`` are tried.

    Returns:
        The best-scoring start, or *center* when no candidate is eligible.
    """
    if search_radius < 0:
        raise ValueError(f"search_radius must be >= 0, got {search_radius}")
    center = int(center)
    window_length = mat.shape[1] if window_length is None else int(window_length)
    ref_cols = reference.shape[1]

    best_score = -np.inf
    s_best = center
    for delta in range(-search_radius, search_radius + 1):
        s_candidate = center + delta
        if s_candidate < 0 or s_candidate + window_length > ref_cols:
            continue
        score = dotproduct_score(mat, reference[:, s_candidate:s_candidate + window_length])
        if score > best_score:
            best_score = score
            s_best = s_candidate

    if s_best != center:
        logger.debug(f"Reference alignment shifted window {center} -> {s_best}")
    return s_best
