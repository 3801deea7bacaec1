"""
┌──────────────────────────────────────────────────────────────────────────────┐
│ PerformanceMonitor - Aggregation Run Telemetry                               │
├──────────────────────────────────────────────────────────────────────────────┤
│ Author: Dr. Venkata Rajesh Yella | License: MIT | Version: 2025.1            │
└──────────────────────────────────────────────────────────────────────────────┘

DESCRIPTION:
    Thread-safe performance monitor that tracks per-stage and per-group
    timings across an entire aggregation run.

    Tracks:
        - Named stage durations (grouping, accumulation, ranking, ordering)
        - Per-group runtime + event count
        - Peak RSS memory via psutil

    Usage::

        from Utilities.core.performance_monitor import PerformanceMonitor

        monitor = PerformanceMonitor()
        monitor.start()

        monitor.record_group(group_key="(7, 20)", elapsed=0.004, event_count=120)
        monitor.record_stage("accumulation", elapsed=1.6)

        summary = monitor.get_summary()
        print(summary["events_per_second"])
"""

from __future__ import annotations

import logging
import os
import threading
from time import perf_counter
from typing import Any, Dict, List, Optional

import psutil

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Thread-safe performance monitor for aggregation runs.

    All ``record_*`` methods are safe to call from worker threads when
    groups are processed in a thread pool.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._start_time: Optional[float] = None
        self._stage_records: Dict[str, float] = {}
        self._group_records: List[Dict[str, Any]] = []
        self._peak_memory_mb: float = 0.0

    # ------------------------------------------------------------------
    # LIFECYCLE
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the global timer.  Must be called before ``record_*`` methods."""
        self._start_time = perf_counter()
        self.snapshot_memory()

    # ------------------------------------------------------------------
    # RECORDING
    # ------------------------------------------------------------------

    def record_stage(self, stage_name: str, elapsed: float) -> None:
        """
        Record the wall-clock duration of a named pipeline stage.

        Repeated stages (one per motif size) accumulate.
        """
        with self._lock:
            self._stage_records[stage_name] = self._stage_records.get(stage_name, 0.0) + elapsed

    def record_group(self, group_key: str, elapsed: float, event_count: int) -> None:
        """
        Record the processing of a single motif group.

        Args:
            group_key:   Printable group key.
            elapsed:     Time spent building the group's matrices (seconds).
            event_count: Number of events folded into the group.
        """
        with self._lock:
            self._group_records.append(
                {
                    "group_key": group_key,
                    "elapsed": elapsed,
                    "event_count": event_count,
                }
            )

    # ------------------------------------------------------------------
    # MEMORY
    # ------------------------------------------------------------------

    def snapshot_memory(self) -> float:
        """
        Capture current RSS memory and update peak.

        Returns:
            Current RSS memory in MB.
        """
        mb = psutil.Process(os.getpid()).memory_info().rss / 1_048_576
        with self._lock:
            if mb > self._peak_memory_mb:
                self._peak_memory_mb = mb
        return mb

    # ------------------------------------------------------------------
    # SUMMARY
    # ------------------------------------------------------------------

    def get_summary(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected performance metrics.

        Returns:
            Dict with keys::

                {
                    "total_elapsed":     float,   # seconds since start()
                    "total_events":      int,
                    "events_per_second": float,
                    "peak_memory_mb":    float,
                    "group_count":       int,
                    "avg_group_time":    float,
                    "group_records":     list,
                    "stage_times":       dict,    # stage_name -> elapsed
                    "slowest_group":     str | None,
                }
        """
        with self._lock:
            elapsed_since_start = (
                perf_counter() - self._start_time if self._start_time else 0.0
            )
            total_events = sum(g["event_count"] for g in self._group_records)
            group_times = [g["elapsed"] for g in self._group_records]
            slowest = (
                max(self._group_records, key=lambda g: g["elapsed"])["group_key"]
                if self._group_records
                else None
            )

            return {
                "total_elapsed": elapsed_since_start,
                "total_events": total_events,
                "events_per_second": (
                    total_events / elapsed_since_start if elapsed_since_start > 0 else 0.0
                ),
                "peak_memory_mb": self._peak_memory_mb,
                "group_count": len(self._group_records),
                "avg_group_time": (
                    sum(group_times) / len(group_times) if group_times else 0.0
                ),
                "group_records": list(self._group_records),
                "stage_times": dict(self._stage_records),
                "slowest_group": slowest,
            }

    def format_summary(self) -> str:
        """Return a human-readable performance summary table."""
        s = self.get_summary()

        lines: List[str] = [
            "══════════════════════════════════════════════════",
            "  Aggregation Performance Summary",
            "══════════════════════════════════════════════════",
            f"  Total runtime      : {s['total_elapsed']:.3f} s",
            f"  Events folded      : {s['total_events']:,}",
            f"  Throughput         : {s['events_per_second']:,.0f} events/s",
            f"  Peak memory        : {s['peak_memory_mb']:.1f} MB",
            f"  Groups processed   : {s['group_count']}",
            f"  Avg group time     : {s['avg_group_time'] * 1000:.2f} ms",
        ]

        if s.get("stage_times"):
            lines.append("")
            lines.append("  Stage Times:")
            for stage, t in sorted(s["stage_times"].items()):
                lines.append(f"    {stage:<20} {t:.3f} s")

        if s.get("slowest_group"):
            lines.append(f"\n  Slowest group: {s['slowest_group']}")

        lines.append("══════════════════════════════════════════════════")
        return "\n".join(lines)
