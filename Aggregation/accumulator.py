"""Window accumulation: fold event windows of a one-hot tensor into count matrices.

All coordinates are 0-based and end-inclusive, matching the rest of the
package.  The tensor layout is ``(alphabet, position, sequence)``.

Public interface
----------------
    buf = accumulate_window(dest, onehot, start, end, seq_index, buf)
    buf = accumulate_motif_counts(dest, onehot, starts, seq_indices, buf)
    pfm = normalize_countmat(countmat, pseudocount=1e-3)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from Aggregation.errors import InvalidMotifSize, WindowOutOfBounds
from Aggregation.grouping import (
    FILTER_INDEX_COLUMN,
    POSITION_COLUMN,
    SEQ_INDEX_COLUMN,
    WINDOW_END_COLUMN,
    WINDOW_START_COLUMN,
    distance_columns,
    iter_groups,
    position_columns,
)

logger = logging.getLogger(__name__)

DEFAULT_PSEUDOCOUNT = 1e-3


def accumulate_window(
    dest: np.ndarray,
    onehot: np.ndarray,
    start: int,
    end: int,
    seq_index: int,
    buf: Optional[np.ndarray] = None,
) -> Optional[np.ndarray]:
    """
    Add ``onehot[:, start:end + 1, seq_index]`` into *dest* in place.

    When the tensor dtype differs from ``dest.dtype`` the slice is converted
    through *buf*, which is allocated on first use and must be passed back
    in on the next call.

    Args:
        dest:      ``(alphabet, end - start + 1)`` float matrix, updated in place.
        onehot:    ``(alphabet, length, n_sequences)`` tensor.
        start:     First column of the window.
        end:       Last column of the window (inclusive).
        seq_index: Sequence (third-axis) index.
        buf:       Scratch conversion buffer owned by the caller.

    Returns:
        The scratch buffer (``None`` while no conversion has been needed).

    Raises:
        WindowOutOfBounds: The window does not fit inside the tensor or its
            width does not match *dest*.
    """
    start, end, seq_index = int(start), int(end), int(seq_index)
    if start < 0 or end >= onehot.shape[1] or not 0 <= seq_index < onehot.shape[2]:
        raise WindowOutOfBounds(
            f"window [{start}, {end}] of sequence {seq_index} outside tensor of shape {onehot.shape}"
        )
    if end - start + 1 != dest.shape[1]:
        raise WindowOutOfBounds(
            f"window width {end - start + 1} does not match destination width {dest.shape[1]}"
        )

    window = onehot[:, start:end + 1, seq_index]
    if onehot.dtype == dest.dtype:
        dest += window
        return buf

    if buf is None or buf.shape != dest.shape or buf.dtype != dest.dtype:
        buf = np.empty_like(dest)
    np.copyto(buf, window, casting="unsafe")
    dest += buf
    return buf


def accumulate_motif_counts(
    dest: np.ndarray,
    onehot: np.ndarray,
    starts,
    seq_indices,
    buf: Optional[np.ndarray] = None,
) -> Optional[np.ndarray]:
    """
    Fold every event window into *dest*, in table order.

    *starts* may be a scalar (one shared start for the whole group) or one
    start per event.  The window width is ``dest.shape[1]``.
    """
    seq_indices = np.asarray(seq_indices)
    starts = np.broadcast_to(np.asarray(starts), seq_indices.shape)
    width = dest.shape[1]
    for start, seq_index in zip(starts, seq_indices):
        buf = accumulate_window(dest, onehot, start, start + width - 1, seq_index, buf)
    return buf


def normalize_countmat(
    countmat: np.ndarray,
    pseudocount: float = DEFAULT_PSEUDOCOUNT,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Turn a count matrix into a column-stochastic frequency matrix.

    Adds *pseudocount* to every cell, then divides each column by its sum
    clamped to machine epsilon, so an all-zero column never divides by zero.
    Integer input is promoted to ``float32``.
    """
    countmat = np.asarray(countmat)
    dtype = countmat.dtype if np.issubdtype(countmat.dtype, np.floating) else np.dtype(np.float32)
    if out is None:
        out = np.empty(countmat.shape, dtype=dtype)

    np.copyto(out, countmat, casting="unsafe")
    out += out.dtype.type(pseudocount)
    sums = out.sum(axis=0, keepdims=True)
    np.maximum(sums, np.finfo(out.dtype).eps, out=sums)
    out /= sums
    return out


def make_highlighted_region(
    motif_size: int,
    distances,
    window_length: int,
) -> List[Tuple[int, int]]:
    """
    Column intervals of each constituent window inside a multi-motif span.

    Consecutive windows are separated by the gap ``distances[i]``.

    Example:
        >>> make_highlighted_region(2, (3,), 5)
        [(0, 4), (8, 12)]
    """
    regions: List[Tuple[int, int]] = []
    f_start = 0
    for idx in range(motif_size):
        f_end = f_start + window_length - 1
        regions.append((f_start, f_end))
        if idx != motif_size - 1:
            f_start = f_end + int(distances[idx]) + 1
    return regions


def build_motif_windows(
    events: pd.DataFrame,
    motif_size: int,
    window_length: int,
    offset: int = 0,
) -> List[Tuple[int, int, int, int]]:
    """
    Flat positional records, one per event per constituent motif.

    Each tuple is ``(seq_index, start, end, is_reverse_complement)`` with
    *offset* added to the start; strand is always forward (``0``).
    """
    pos_cols = position_columns(motif_size)
    seq_col = events[SEQ_INDEX_COLUMN].to_numpy()
    pos_arrays = [events[c].to_numpy() for c in pos_cols]

    windows: List[Tuple[int, int, int, int]] = []
    for i in range(len(events)):
        seq_index = int(seq_col[i])
        for arr in pos_arrays:
            pos = int(arr[i]) + offset
            windows.append((seq_index, pos, pos + window_length - 1, 0))
    return windows


def build_singleton_count_matrices(
    events: pd.DataFrame,
    onehot: np.ndarray,
    window_length: int,
    dtype=np.float32,
) -> Dict[tuple, np.ndarray]:
    """
    One ``(alphabet, window_length)`` count matrix per filter index.

    Every event contributes the window starting at its own ``position``.
    """
    result: Dict[tuple, np.ndarray] = {}
    groups = list(iter_groups(events, [FILTER_INDEX_COLUMN]))
    logger.info(f"Building singleton count matrices for {len(groups)} filters...")

    for key, frame in groups:
        mat = np.zeros((onehot.shape[0], window_length), dtype=dtype)
        accumulate_motif_counts(
            mat, onehot, frame[POSITION_COLUMN].to_numpy(), frame[SEQ_INDEX_COLUMN].to_numpy()
        )
        result[key] = mat
    return result


def build_count_matrices_and_highlight(
    events: pd.DataFrame,
    onehot: np.ndarray,
    motif_size: int,
    window_length: int,
    dtype=np.float32,
) -> Tuple[Dict[tuple, np.ndarray], Dict[tuple, List[Tuple[int, int]]]]:
    """
    Count matrix and highlighted windows for every distance variant.

    *events* holds one identity group; it is split further by its distance
    columns.  Each variant's matrix spans ``sum(distances) +
    motif_size * window_length`` columns and accumulates every event's
    ``start``..``end`` window.

    Returns:
        ``(matrices, highlighted)`` keyed by the distance tuple.
    """
    if motif_size < 2:
        raise InvalidMotifSize(f"distance variants need motif_size >= 2, got {motif_size}")

    matrices: Dict[tuple, np.ndarray] = {}
    highlighted: Dict[tuple, List[Tuple[int, int]]] = {}

    for d_key, frame in iter_groups(events, distance_columns(motif_size)):
        cols = int(sum(d_key)) + motif_size * window_length
        mat = np.zeros((onehot.shape[0], cols), dtype=dtype)
        buf = None
        for start, end, seq_index in zip(
            frame[WINDOW_START_COLUMN].to_numpy(),
            frame[WINDOW_END_COLUMN].to_numpy(),
            frame[SEQ_INDEX_COLUMN].to_numpy(),
        ):
            buf = accumulate_window(mat, onehot, start, end, seq_index, buf)
        matrices[d_key] = mat
        highlighted[d_key] = make_highlighted_region(motif_size, d_key, window_length)

    return matrices, highlighted
