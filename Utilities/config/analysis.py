"""
Analysis configuration for motif-group aggregation.

This module contains aggregation parameters:
- Window geometry (filter length)
- Count-matrix normalisation (pseudocount)
- Reference alignment search radius
- Pareto ranking and display-order switches
- Working float precision and group-level parallelism

IMPORTANT DISTINCTION
---------------------
TWO DIFFERENT Pareto settings control TWO DIFFERENT features:

1. SINGLETON PRE-FILTER (singleton_pareto_rank):
   - Applied to the raw event table before any matrix is built
   - Groups with rank > singleton_pareto_rank are dropped entirely
   - Only used for single-motif (size 1) region analysis

2. DISPLAY ORDER (sort_by_pareto):
   - Applied to every retained group after aggregation
   - Never drops a group, only decides where it is shown
   - Ranks are computed per (sign, structural tier) partition

OTHER PARAMETERS
----------------
PLACEHOLDER_CHAR = 'n'
CONSENSUS_PROB_THRESHOLD = 0.5
"""

# ==================== AGGREGATION PARAMETERS ====================
# Control count-matrix construction, alignment and ordering
AGGREGATION_CONFIG = {
    # Window geometry
    'window_length': 9,            # Columns per motif window (receptive field of one filter)

    # Normalisation
    'pseudocount': 1e-3,           # Added to every cell before column normalisation

    # Reference alignment
    'off_region_search': True,     # Search a +/- radius neighbourhood for the best reference match
    'search_radius': 3,            # +/- nucleotides searched around the nominal position

    # Ranking / ordering
    'singleton_pareto_rank': 1,    # Keep singleton groups up to this Pareto rank
    'split_by_sign': True,         # Positive and negative groups never compete in one ranking
    'sort_globally': True,         # Order the union of all motif sizes as one list
    'sort_by_pareto': True,        # False = simple (sign, tier, magnitude) ordering

    # Numerics / execution
    'float_dtype': 'float32',      # Working precision of count matrices
    'max_workers': 1,              # > 1 processes independent groups in a thread pool
}

# ==================== ALPHABETS ====================
# Row order of every one-hot tensor and count matrix
ALPHABETS = {
    'dna': 'ACGT',
    'rna': 'ACGU',
    'protein': 'ACDEFGHIKLMNPQRSTVWY',
}

# ==================== CONSENSUS SETTINGS ====================
# Positions whose best base is below this probability are masked
CONSENSUS_PROB_THRESHOLD = 0.5
PLACEHOLDER_CHAR = 'n'
