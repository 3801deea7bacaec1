"""Core modules for motif aggregation"""

from .onehot_dataset import OnehotDataset, consensus_to_onehot, sequences_to_onehot
from .consensus import relaxed_consensus, trim_placeholders
from .performance_monitor import PerformanceMonitor

__all__ = [
    'OnehotDataset',
    'consensus_to_onehot',
    'sequences_to_onehot',
    'relaxed_consensus',
    'trim_placeholders',
    'PerformanceMonitor',
]
