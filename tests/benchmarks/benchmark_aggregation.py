#!/usr/bin/env python3
"""
Aggregation Benchmark
Times grouping, accumulation, alignment and ordering on synthetic event tables,
serial versus thread-pool group processing.
"""
import sys
import time
sys.path.insert(0, '.')

import numpy as np
import pandas as pd

from Aggregation import AggregationConfig, aggregate_motif_groups
from Utilities.core.onehot_dataset import OnehotDataset
from Utilities.core.performance_monitor import PerformanceMonitor


def generate_dataset(n_sequences: int, length: int, seed: int = 0) -> OnehotDataset:
    """Random sequences around one random consensus (10% point mutations)."""
    rng = np.random.default_rng(seed)
    consensus = rng.choice(list("ACGT"), size=length)
    seqs = []
    for _ in range(n_sequences):
        seq = consensus.copy()
        mutate = rng.random(length) < 0.1
        seq[mutate] = rng.choice(list("ACGT"), size=int(mutate.sum()))
        seqs.append("".join(seq))
    return OnehotDataset.from_sequences(seqs, consensus="".join(consensus))


def generate_events(dataset: OnehotDataset, n_events: int, n_filters: int, window: int, seed: int = 1):
    """Singleton activations and pair events with random positions and contributions."""
    rng = np.random.default_rng(seed)
    max_pos = dataset.length - window
    singles = pd.DataFrame({
        "filter_index": rng.integers(1, n_filters + 1, n_events),
        "position": rng.integers(0, max_pos, n_events) // 4 * 4,
        "seq_index": rng.integers(0, dataset.n_sequences, n_events),
        "contribution": rng.normal(0, 1, n_events),
    })
    m1_pos = rng.integers(0, max_pos - 2 * window, n_events) // 4 * 4
    gap = rng.integers(0, window, n_events)
    pairs = pd.DataFrame({
        "m1": rng.integers(1, n_filters + 1, n_events),
        "m2": rng.integers(1, n_filters + 1, n_events),
        "d12": gap,
        "m1_position": m1_pos,
        "m2_position": m1_pos + window + gap,
        "seq_index": rng.integers(0, dataset.n_sequences, n_events),
        "contribution": rng.normal(0, 1, n_events),
    })
    return singles, [pairs]


def benchmark(n_events: int, name: str, max_workers: int) -> dict:
    print(f"\n{'='*60}")
    print(f"Benchmarking {name} ({n_events:,} events, {max_workers} worker(s))")
    print(f"{'='*60}")

    dataset = generate_dataset(n_sequences=2_000, length=200)
    config = AggregationConfig(max_workers=max_workers)
    singles, multis = generate_events(dataset, n_events, n_filters=8, window=config.window_length)

    monitor = PerformanceMonitor()
    start = time.time()
    records, _ = aggregate_motif_groups(singles, multis, dataset, config, monitor=monitor)
    elapsed = time.time() - start

    print(monitor.format_summary())
    print(f"Registered groups: {len(records)}")
    return {'name': name, 'events': n_events, 'workers': max_workers,
            'elapsed': elapsed, 'groups': len(records)}


def main():
    print("\n" + "="*60)
    print("Motif Aggregation Benchmark")
    print("="*60)

    test_cases = [
        (5_000, "Small table"),
        (50_000, "Medium table"),
        (200_000, "Large table"),
    ]

    results = []
    for n_events, name in test_cases:
        for workers in (1, 4):
            results.append(benchmark(n_events, name, workers))

    print(f"\n{'='*60}")
    print("SUMMARY")
    print(f"{'='*60}")
    print(f"{'Case':<16} {'Workers':>8} {'Groups':>8} {'Time (s)':>10}")
    for r in results:
        print(f"{r['name']:<16} {r['workers']:>8} {r['groups']:>8} {r['elapsed']:>10.3f}")


if __name__ == "__main__":
    main()
