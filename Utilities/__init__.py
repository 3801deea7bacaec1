"""
Utilities package for the motif aggregation toolkit.

Contains utility modules for:
- Configuration (config/)   – AGGREGATION_CONFIG, alphabets, consensus settings
- Core functionality (core/):
    OnehotDataset       – Read-only one-hot tensor + reference matrix
    relaxed_consensus   – Thresholded consensus strings of frequency matrices
    PerformanceMonitor  – Per-stage / per-group timings and peak memory
"""
