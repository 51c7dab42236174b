"""Sliding-window health tracker for a single provider.

Keeps the health samples (probe outcomes and exhausted live calls) seen over
a configurable window and derives the uptime percentage from them.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass

from chainwallet.shared.providers.types import HealthRecord, utcnow


@dataclass
class _Sample:
    timestamp: float
    success: bool


class ProviderHealthTracker:
    """Thread-safe, sliding-window health tracker."""

    def __init__(self, provider: str, *, window_seconds: float = 3600.0) -> None:
        self._provider = provider
        self._window = window_seconds

        self._samples: deque[_Sample] = deque()
        self._latest: HealthRecord | None = None
        self._lock = threading.Lock()

    # ── Recording ────────────────────────────────────────────
    def record_success(self, latency_ms: float) -> HealthRecord:
        return self._record(success=True, latency_ms=latency_ms)

    def record_failure(self) -> HealthRecord:
        return self._record(success=False, latency_ms=-1.0)

    # ── Observation ──────────────────────────────────────────
    @property
    def latest(self) -> HealthRecord | None:
        return self._latest

    @property
    def sample_count(self) -> int:
        with self._lock:
            return len(self._samples)

    # ── Internals ────────────────────────────────────────────
    def _record(self, *, success: bool, latency_ms: float) -> HealthRecord:
        with self._lock:
            now = time.monotonic()
            self._samples.append(_Sample(now, success))
            self._evict(now)
            successes = sum(1 for s in self._samples if s.success)
            uptime = successes / len(self._samples) * 100
            record = HealthRecord(
                is_healthy=success,
                latency_ms=float(f"{latency_ms:.1f}"),
                uptime_percent=float(f"{uptime:.2f}"),
                last_checked_at=utcnow(),
            )
            self._latest = record
            return record

    def _evict(self, now: float) -> None:
        """Remove samples outside the sliding window (caller holds lock)."""
        cutoff = now - self._window
        while self._samples and self._samples[0].timestamp < cutoff:
            self._samples.popleft()
