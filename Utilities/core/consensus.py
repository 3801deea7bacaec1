"""
Consensus strings from position frequency matrices.

USAGE:
    >>> import numpy as np
    >>> from Utilities.core.consensus import relaxed_consensus
    >>> pfm = np.array([[0.9, 0.1], [0.05, 0.2], [0.03, 0.3], [0.02, 0.4]])
    >>> relaxed_consensus(pfm)
    'A'
"""

from typing import List

import numpy as np

from Utilities.config.analysis import ALPHABETS, CONSENSUS_PROB_THRESHOLD, PLACEHOLDER_CHAR


def trim_placeholders(chars: List[str], placeholder: str = PLACEHOLDER_CHAR) -> List[str]:
    """
    Remove leading and trailing placeholder characters.

    Returns ``['-', '-', '-']`` when every character is a placeholder.
    """
    kept = [i for i, ch in enumerate(chars) if ch != placeholder]
    if not kept:
        return ['-', '-', '-']
    return chars[kept[0]:kept[-1] + 1]


def relaxed_consensus(
    pfm: np.ndarray,
    prob_thresh: float = CONSENSUS_PROB_THRESHOLD,
    rna: bool = False,
    placeholder: str = PLACEHOLDER_CHAR,
) -> str:
    """
    Consensus string of a column-stochastic matrix.

    Each column contributes its most probable letter; columns whose best
    probability is below *prob_thresh* are masked with *placeholder*, and
    masked positions at either end are trimmed.

    Args:
        pfm:         ``(alphabet, width)`` frequency matrix.
        prob_thresh: Minimum probability for a confident call.
        rna:         Use ``U`` instead of ``T`` (nucleotide matrices only).
        placeholder: Character used for low-confidence positions.

    Returns:
        Consensus string.
    """
    pfm = np.asarray(pfm)
    if pfm.shape[0] == len(ALPHABETS['protein']):
        letters = ALPHABETS['protein']
    else:
        letters = ALPHABETS['rna'] if rna else ALPHABETS['dna']

    best = np.argmax(pfm, axis=0)
    best_prob = pfm[best, np.arange(pfm.shape[1])]
    chars = [letters[i] for i in best]
    for i in np.nonzero(best_prob < prob_thresh)[0]:
        chars[i] = placeholder
    return ''.join(trim_placeholders(chars, placeholder))
