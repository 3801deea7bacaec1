"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ OnehotDataset - Read-Only Sequence Tensor + Reference for Aggregation        │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Encapsulates the inputs that every aggregation run reads but never
    mutates: the one-hot encoded sequence tensor, the boolean reference
    matrix and the coordinate offset that maps tensor positions onto the
    reference.

    Tensor layout is ``(alphabet, position, sequence)``.  The reference
    matrix is ``(alphabet, reference_length)`` with ``dtype=bool``.

    Because both arrays are read-only for the lifetime of a run, a single
    ``OnehotDataset`` can be shared by any number of worker threads.

USAGE::

    from Utilities.core.onehot_dataset import OnehotDataset

    data = OnehotDataset.from_sequences(["ACGTA", "ACGTT"], consensus="ACGTA")
    print(data.onehot.shape)     # (4, 5, 2)
    print(data.reference.shape)  # (4, 5)
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

import numpy as np

from Utilities.config.analysis import ALPHABETS


def _alphabet_letters(alphabet: str) -> str:
    try:
        return ALPHABETS[alphabet]
    except KeyError:
        raise ValueError(
            f"Unknown alphabet '{alphabet}'. Valid alphabets: {sorted(ALPHABETS)}"
        ) from None


def _encode_codes(sequence: str, letters: str) -> np.ndarray:
    """Map each character to its row index (``-1`` for characters outside the alphabet)."""
    lut = np.full(256, -1, dtype=np.int16)
    for i, ch in enumerate(letters):
        lut[ord(ch)] = i
        lut[ord(ch.lower())] = i
    raw = np.frombuffer(sequence.encode("ascii"), dtype=np.uint8)
    return lut[raw]


def consensus_to_onehot(consensus: str, alphabet: str = "dna") -> np.ndarray:
    """
    Encode a reference/consensus string as a boolean one-hot matrix.

    Characters outside the alphabet (``N``, gaps) produce an all-``False``
    column, so they never contribute to an alignment score.

    Args:
        consensus: Reference sequence (any case).
        alphabet:  Key of ``ALPHABETS`` (``"dna"``, ``"rna"``, ``"protein"``).

    Returns:
        ``np.ndarray`` of shape ``(len(alphabet), len(consensus))``, dtype bool.
    """
    letters = _alphabet_letters(alphabet)
    codes = _encode_codes(consensus.strip(), letters)
    mat = np.zeros((len(letters), codes.size), dtype=bool)
    valid = codes >= 0
    mat[codes[valid], np.nonzero(valid)[0]] = True
    return mat


def sequences_to_onehot(
    sequences: Sequence[str],
    alphabet: str = "dna",
    dtype=np.float32,
) -> np.ndarray:
    """
    Stack equal-length sequences into a ``(alphabet, length, n_sequences)`` tensor.

    Raises:
        ValueError: If *sequences* is empty or the lengths differ.
    """
    if len(sequences) == 0:
        raise ValueError("At least one sequence is required")
    lengths = {len(s.strip()) for s in sequences}
    if len(lengths) != 1:
        raise ValueError(f"Sequences must share one length, got lengths {sorted(lengths)}")

    letters = _alphabet_letters(alphabet)
    length = lengths.pop()
    tensor = np.zeros((len(letters), length, len(sequences)), dtype=dtype)
    for j, seq in enumerate(sequences):
        codes = _encode_codes(seq.strip(), letters)
        valid = codes >= 0
        tensor[codes[valid], np.nonzero(valid)[0], j] = 1
    return tensor


class OnehotDataset:
    """
    Read-only inputs shared by every aggregation run.

    Parameters
    ----------
    onehot : np.ndarray
        One-hot tensor of shape ``(alphabet, length, n_sequences)``; any
        numeric dtype.
    reference : np.ndarray, optional
        Boolean reference matrix ``(alphabet, reference_length)``.  Built
        from *consensus* when omitted.
    consensus : str, optional
        Reference sequence string.
    prefix_offset : int
        Added to a tensor position to obtain the matching reference
        position.
    most_common_length_indices : iterable of int, optional
        Sequence indices retained for region analysis.  ``None`` keeps all.
    alphabet : str
        Key of ``ALPHABETS``.
    """

    __slots__ = (
        "onehot",
        "reference",
        "consensus",
        "prefix_offset",
        "most_common_length_indices",
        "alphabet",
    )

    def __init__(
        self,
        onehot: np.ndarray,
        reference: Optional[np.ndarray] = None,
        consensus: Optional[str] = None,
        prefix_offset: int = 0,
        most_common_length_indices: Optional[Iterable[int]] = None,
        alphabet: str = "dna",
    ) -> None:
        onehot = np.asarray(onehot)
        if onehot.ndim != 3:
            raise ValueError(
                f"onehot tensor must be 3-D (alphabet, position, sequence), got shape {onehot.shape}"
            )
        if reference is None and consensus is not None:
            reference = consensus_to_onehot(consensus, alphabet)
        if reference is not None:
            reference = np.asarray(reference, dtype=bool)
            if reference.ndim != 2 or reference.shape[0] != onehot.shape[0]:
                raise ValueError(
                    f"reference must be ({onehot.shape[0]}, L), got shape {reference.shape}"
                )

        self.onehot: np.ndarray = onehot
        self.reference: Optional[np.ndarray] = reference
        self.consensus: Optional[str] = consensus
        self.prefix_offset: int = int(prefix_offset)
        self.most_common_length_indices = (
            None if most_common_length_indices is None
            else frozenset(int(i) for i in most_common_length_indices)
        )
        self.alphabet: str = alphabet

    @classmethod
    def from_sequences(
        cls,
        sequences: Sequence[str],
        consensus: Optional[str] = None,
        alphabet: str = "dna",
        dtype=np.float32,
        **kwargs,
    ) -> "OnehotDataset":
        """Build the tensor from raw sequence strings."""
        tensor = sequences_to_onehot(sequences, alphabet=alphabet, dtype=dtype)
        return cls(tensor, consensus=consensus, alphabet=alphabet, **kwargs)

    # ------------------------------------------------------------------
    # Shape helpers
    # ------------------------------------------------------------------

    @property
    def alphabet_size(self) -> int:
        return self.onehot.shape[0]

    @property
    def length(self) -> int:
        return self.onehot.shape[1]

    @property
    def n_sequences(self) -> int:
        return self.onehot.shape[2]

    @property
    def reference_length(self) -> int:
        return 0 if self.reference is None else self.reference.shape[1]

    def __repr__(self) -> str:
        return (
            f"OnehotDataset(alphabet={self.alphabet!r}, shape={self.onehot.shape}, "
            f"reference_length={self.reference_length}, prefix_offset={self.prefix_offset})"
        )

    def __len__(self) -> int:
        return self.n_sequences
