"""
Phase Monitor
=============
Counters and timings for one pipeline phase (initial pass, a retry tier,
content enrichment).

Tracks:
- Targets processed / extracted / failed / errored
- Per-target timing split into navigate and extract
- Phase wall-clock time

Single-threaded: phases run strictly one after another.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List

logger = logging.getLogger(__name__)


@dataclass
class TargetTiming:
    """Timing breakdown for a single target."""
    url: str = ""
    navigate_ms: float = 0.0
    extract_ms: float = 0.0
    status: str = "ok"   # ok | missing | error


@dataclass
class PhaseMetrics:
    """Snapshot of a phase at a point in time."""
    phase: str = ""
    processed: int = 0
    extracted: int = 0
    missing_fields: int = 0
    errors: int = 0
    avg_navigate_ms: float = 0.0
    avg_extract_ms: float = 0.0
    elapsed_sec: float = 0.0


class PhaseMonitor:
    """
    Usage::

        monitor = PhaseMonitor("tier-1 legacy")
        monitor.start()
        monitor.record(TargetTiming(url=url, navigate_ms=..., status="ok"))
        monitor.finish()
    """

    def __init__(self, phase: str):
        self.phase = phase
        self._start_time: float = 0.0
        self._end_time: float = 0.0
        self._timings: List[TargetTiming] = []

    def start(self) -> None:
        self._start_time = time.monotonic()
        self._end_time = 0.0

    def finish(self) -> PhaseMetrics:
        self._end_time = time.monotonic()
        metrics = self.snapshot()
        logger.info(self.format_summary(metrics))
        return metrics

    def record(self, timing: TargetTiming) -> None:
        self._timings.append(timing)

    def snapshot(self) -> PhaseMetrics:
        end = self._end_time or time.monotonic()
        elapsed = end - self._start_time if self._start_time else 0.0

        nav_times = [t.navigate_ms for t in self._timings if t.navigate_ms > 0]
        ext_times = [t.extract_ms for t in self._timings if t.extract_ms > 0]

        return PhaseMetrics(
            phase=self.phase,
            processed=len(self._timings),
            extracted=sum(1 for t in self._timings if t.status == "ok"),
            missing_fields=sum(1 for t in self._timings if t.status == "missing"),
            errors=sum(1 for t in self._timings if t.status == "error"),
            avg_navigate_ms=round(sum(nav_times) / len(nav_times), 1) if nav_times else 0.0,
            avg_extract_ms=round(sum(ext_times) / len(ext_times), 1) if ext_times else 0.0,
            elapsed_sec=round(elapsed, 2),
        )

    @staticmethod
    def format_summary(metrics: PhaseMetrics) -> str:
        return (
            f"[MONITOR] phase={metrics.phase} "
            f"processed={metrics.processed} "
            f"ok={metrics.extracted} "
            f"missing={metrics.missing_fields} "
            f"errors={metrics.errors} "
            f"nav={metrics.avg_navigate_ms:.0f}ms "
            f"extract={metrics.avg_extract_ms:.0f}ms "
            f"elapsed={metrics.elapsed_sec:.1f}s"
        )
