"""
Configuration modules for motif aggregation.

This package contains all configuration constants including:
- analysis: Aggregation defaults, alphabets and consensus settings
"""

from .analysis import (
    AGGREGATION_CONFIG,
    ALPHABETS,
    CONSENSUS_PROB_THRESHOLD,
    PLACEHOLDER_CHAR,
)

__all__ = [
    'AGGREGATION_CONFIG',
    'ALPHABETS',
    'CONSENSUS_PROB_THRESHOLD',
    'PLACEHOLDER_CHAR',
]
