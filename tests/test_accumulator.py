"""Tests for window accumulation, normalisation and convolution-path matrices."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pandas as pd
import pytest

from Aggregation.accumulator import (
    accumulate_motif_counts,
    accumulate_window,
    build_count_matrices_and_highlight,
    build_motif_windows,
    build_singleton_count_matrices,
    make_highlighted_region,
    normalize_countmat,
)
from Aggregation.errors import InvalidMotifSize, WindowOutOfBounds
from Utilities.core.onehot_dataset import sequences_to_onehot


def _random_tensor(n_seq=6, length=30, seed=0, dtype=np.float32):
    rng = np.random.default_rng(seed)
    seqs = ["".join(rng.choice(list("ACGT"), size=length)) for _ in range(n_seq)]
    return sequences_to_onehot(seqs, dtype=dtype)


# ---------------------------------------------------------------------------
# accumulate_window / accumulate_motif_counts
# ---------------------------------------------------------------------------

class TestAccumulateWindow:
    def test_adds_slice_in_place(self):
        onehot = sequences_to_onehot(["ACGTACGT"])
        dest = np.zeros((4, 3), dtype=np.float32)
        accumulate_window(dest, onehot, 2, 4, 0)
        np.testing.assert_array_equal(dest, onehot[:, 2:5, 0])

    def test_same_dtype_needs_no_buffer(self):
        onehot = sequences_to_onehot(["ACGTA"], dtype=np.float32)
        dest = np.zeros((4, 5), dtype=np.float32)
        assert accumulate_window(dest, onehot, 0, 4, 0) is None

    def test_conversion_buffer_reused(self):
        onehot = sequences_to_onehot(["ACGTA", "ACGTT"], dtype=np.uint8)
        dest = np.zeros((4, 5), dtype=np.float32)
        buf = accumulate_window(dest, onehot, 0, 4, 0)
        assert buf is not None and buf.dtype == np.float32
        buf2 = accumulate_window(dest, onehot, 0, 4, 1, buf)
        assert buf2 is buf
        np.testing.assert_array_equal(dest.sum(axis=0), np.full(5, 2.0))

    def test_out_of_bounds_raises(self):
        onehot = sequences_to_onehot(["ACGTA"])
        dest = np.zeros((4, 3), dtype=np.float32)
        with pytest.raises(WindowOutOfBounds):
            accumulate_window(dest, onehot, 3, 5, 0)
        with pytest.raises(WindowOutOfBounds):
            accumulate_window(dest, onehot, 0, 2, 1)

    def test_width_mismatch_raises(self):
        onehot = sequences_to_onehot(["ACGTA"])
        dest = np.zeros((4, 3), dtype=np.float32)
        with pytest.raises(WindowOutOfBounds):
            accumulate_window(dest, onehot, 0, 3, 0)


class TestAccumulationConservation:
    @pytest.mark.parametrize("dtype", [np.float32, np.float64, np.uint8, bool])
    def test_column_sums_equal_event_count(self, dtype):
        onehot = _random_tensor(dtype=dtype)
        seq_indices = [0, 3, 3, 5, 1, 2, 4]
        dest = np.zeros((4, 9), dtype=np.float32)
        accumulate_motif_counts(dest, onehot, 7, seq_indices)
        np.testing.assert_array_equal(dest.sum(axis=0), np.full(9, len(seq_indices)))

    def test_per_event_starts(self):
        onehot = _random_tensor()
        dest = np.zeros((4, 5), dtype=np.float64)
        accumulate_motif_counts(dest, onehot, [0, 10, 20], [0, 1, 2])
        expected = onehot[:, 0:5, 0] + onehot[:, 10:15, 1] + onehot[:, 20:25, 2]
        np.testing.assert_allclose(dest, expected)

    def test_empty_event_set_gives_zero_matrix(self):
        onehot = _random_tensor()
        dest = np.zeros((4, 5), dtype=np.float32)
        accumulate_motif_counts(dest, onehot, 0, [])
        assert not dest.any()


# ---------------------------------------------------------------------------
# normalize_countmat
# ---------------------------------------------------------------------------

class TestNormalize:
    def test_columns_sum_to_one_and_positive(self):
        counts = np.array([[3, 0], [1, 0], [0, 0], [0, 0]], dtype=np.float32)
        pfm = normalize_countmat(counts)
        np.testing.assert_allclose(pfm.sum(axis=0), 1.0, rtol=1e-6)
        assert (pfm > 0).all()

    def test_all_zero_column_is_uniform(self):
        pfm = normalize_countmat(np.zeros((4, 3), dtype=np.float64))
        np.testing.assert_allclose(pfm, 0.25)

    def test_zero_pseudocount_zero_column_stays_finite(self):
        pfm = normalize_countmat(np.zeros((4, 2)), pseudocount=0.0)
        assert np.isfinite(pfm).all()

    def test_integer_input_promoted(self):
        pfm = normalize_countmat(np.array([[2], [2], [0], [0]]))
        assert pfm.dtype == np.float32

    def test_input_not_modified(self):
        counts = np.ones((4, 2), dtype=np.float32)
        normalize_countmat(counts)
        np.testing.assert_array_equal(counts, 1.0)


class TestEndToEndScenario:
    def test_ten_identical_events(self):
        seq = "T" * 20 + "ACGTA" + "T" * 5
        onehot = sequences_to_onehot([seq] * 10)
        dest = np.zeros((4, 5), dtype=np.float32)
        accumulate_motif_counts(dest, onehot, 20, list(range(10)))
        np.testing.assert_array_equal(dest.sum(axis=0), [10, 10, 10, 10, 10])

        pfm = normalize_countmat(dest, pseudocount=1e-3)
        dominant = (10 + 1e-3) / (10 + 4e-3)
        minor = 1e-3 / (10 + 4e-3)
        # A, C, G, T, A
        for col, row in enumerate([0, 1, 2, 3, 0]):
            assert pfm[row, col] == pytest.approx(dominant, rel=1e-5)
            others = np.delete(pfm[:, col], row)
            np.testing.assert_allclose(others, minor, rtol=1e-4)


# ---------------------------------------------------------------------------
# Convolution-path helpers
# ---------------------------------------------------------------------------

class TestHighlightedRegion:
    def test_pair(self):
        assert make_highlighted_region(2, (3,), 5) == [(0, 4), (8, 12)]

    def test_triplet(self):
        assert make_highlighted_region(3, (0, 2), 4) == [(0, 3), (4, 7), (10, 13)]

    def test_single(self):
        assert make_highlighted_region(1, (), 7) == [(0, 6)]


class TestMotifWindows:
    def test_one_tuple_per_event_per_motif(self):
        events = pd.DataFrame({
            "seq_index": [0, 4],
            "m1_position": [2, 5],
            "m2_position": [10, 12],
        })
        windows = build_motif_windows(events, 2, 7, offset=3)
        assert windows == [
            (0, 5, 11, 0), (0, 13, 19, 0),
            (4, 8, 14, 0), (4, 15, 21, 0),
        ]


class TestSingletonMatrices:
    def test_one_matrix_per_filter(self):
        onehot = _random_tensor(n_seq=4, length=20)
        events = pd.DataFrame({
            "filter_index": [2, 1, 2],
            "position": [0, 5, 10],
            "seq_index": [0, 1, 3],
            "contribution": [0.1, 0.2, 0.3],
        })
        mats = build_singleton_count_matrices(events, onehot, 6)
        assert set(mats) == {(1,), (2,)}
        np.testing.assert_array_equal(mats[(2,)], onehot[:, 0:6, 0] + onehot[:, 10:16, 3])
        np.testing.assert_array_equal(mats[(1,)].sum(axis=0), np.ones(6))


class TestDistanceVariants:
    def test_span_width_and_conservation(self):
        onehot = _random_tensor(n_seq=5, length=40)
        L = 4
        events = pd.DataFrame({
            "m1": [1, 1, 1],
            "m2": [2, 2, 2],
            "d12": [3, 3, 0],
            "start": [0, 5, 10],
            "end": [10, 15, 17],
            "seq_index": [0, 1, 2],
            "contribution": [0.5, 0.1, -0.2],
        })
        mats, highlighted = build_count_matrices_and_highlight(events, onehot, 2, L)
        assert sorted(mats) == [(0,), (3,)]
        assert mats[(3,)].shape == (4, 3 + 2 * L)
        assert mats[(0,)].shape == (4, 2 * L)
        np.testing.assert_array_equal(mats[(3,)].sum(axis=0), np.full(11, 2.0))
        assert highlighted[(3,)] == [(0, 3), (7, 10)]
        assert highlighted[(0,)] == [(0, 3), (4, 7)]

    def test_singleton_size_rejected(self):
        with pytest.raises(InvalidMotifSize):
            build_count_matrices_and_highlight(pd.DataFrame(), np.zeros((4, 5, 1)), 1, 5)
