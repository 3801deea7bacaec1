"""Tests for the reference aligner."""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
import pytest

from Aggregation.aligner import dotproduct_score, find_best_reference_position, reference_window
from Aggregation.errors import OutOfBoundsAlignment
from Utilities.core.onehot_dataset import consensus_to_onehot


REFERENCE = "TTTTTACGGATCCTTTTTTT"


class TestDotproductScore:
    def test_counts_matching_cells(self):
        ref = consensus_to_onehot("ACGT")
        mat = np.eye(4, dtype=np.float32) * 3
        assert dotproduct_score(mat, ref) == 12.0

    def test_no_overlap_scores_zero(self):
        ref = consensus_to_onehot("AAAA")
        mat = np.zeros((4, 4))
        mat[1, :] = 5
        assert dotproduct_score(mat, ref) == 0.0


class TestFindBestReferencePosition:
    def test_prefers_shift_by_one(self):
        reference = consensus_to_onehot(REFERENCE)
        motif = REFERENCE[6:12]
        mat = consensus_to_onehot(motif).astype(np.float32) * 10
        assert find_best_reference_position(mat, reference, center=5, search_radius=1) == 6

    def test_exact_center_kept(self):
        reference = consensus_to_onehot(REFERENCE)
        mat = consensus_to_onehot(REFERENCE[5:11]).astype(np.float32)
        assert find_best_reference_position(mat, reference, center=5) == 5

    def test_radius_zero_returns_center(self):
        reference = consensus_to_onehot(REFERENCE)
        mat = consensus_to_onehot(REFERENCE[6:12]).astype(np.float32)
        assert find_best_reference_position(mat, reference, center=5, search_radius=0) == 5

    def test_ties_resolve_to_leftmost(self):
        reference = consensus_to_onehot(REFERENCE)
        mat = np.zeros((4, 4), dtype=np.float32)
        assert find_best_reference_position(mat, reference, center=8, search_radius=3) == 5

    def test_out_of_bounds_candidates_skipped(self):
        reference = consensus_to_onehot("ACGTACGT")
        mat = np.zeros((4, 4), dtype=np.float32)
        # Candidates -2..4; only 0..4 fit inside the 8-column reference.
        assert find_best_reference_position(mat, reference, center=1, search_radius=3) == 0

    def test_falls_back_to_center_when_nothing_fits(self):
        reference = consensus_to_onehot("ACG")
        mat = np.ones((4, 6), dtype=np.float32)
        assert find_best_reference_position(mat, reference, center=2, search_radius=2) == 2

    def test_result_stays_inside_reference(self):
        reference = consensus_to_onehot(REFERENCE)
        mat = np.ones((4, 6), dtype=np.float32)
        for center in range(len(REFERENCE) - 6 + 1):
            s = find_best_reference_position(mat, reference, center, search_radius=3)
            assert 0 <= s <= len(REFERENCE) - 6

    def test_negative_radius_rejected(self):
        with pytest.raises(ValueError):
            find_best_reference_position(np.zeros((4, 2)), consensus_to_onehot("ACGT"), 0, search_radius=-1)


class TestReferenceWindow:
    def test_view_is_read_only(self):
        reference = consensus_to_onehot(REFERENCE)
        window = reference_window(reference, 5, 6)
        assert window.shape == (4, 6)
        with pytest.raises(ValueError):
            window[0, 0] = True

    def test_out_of_bounds_raises(self):
        reference = consensus_to_onehot("ACGT")
        with pytest.raises(OutOfBoundsAlignment):
            reference_window(reference, 2, 3)
        with pytest.raises(OutOfBoundsAlignment):
            reference_window(reference, -1, 2)
