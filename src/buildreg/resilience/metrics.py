"""Process-lifetime counters for cache hits, misses, errors, and latency."""

from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from buildreg.core.types import MetricKind

MAX_LATENCY_SAMPLES = 100
MAX_ERROR_SAMPLES = 10


class ErrorSample(BaseModel):
    """A recorded error message and when it happened."""

    timestamp: datetime
    error: str


class CacheCounters(BaseModel):
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0
    errors: int = 0
    error_rate: float = 0.0


class PerformanceStats(BaseModel):
    avg_latency_ms: float = 0.0
    p95_latency_ms: float = 0.0
    sample_size: int = 0


class MetricsSnapshot(BaseModel):
    """Derived view of the recorder state at a point in time."""

    cache: CacheCounters = Field(default_factory=CacheCounters)
    performance: PerformanceStats = Field(default_factory=PerformanceStats)
    last_errors: list[ErrorSample] = Field(default_factory=list)
    uptime_seconds: float = 0.0
    timestamp: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricsRecorder:
    """
    In-memory telemetry for the fetch/cache layer.

    Latency samples are kept in a FIFO buffer of the most recent
    ``max_latency_samples`` values. Error samples are kept most-recent-first,
    capped at ``max_error_samples``. Counters are never reset.
    """

    def __init__(
        self,
        max_latency_samples: int = MAX_LATENCY_SAMPLES,
        max_error_samples: int = MAX_ERROR_SAMPLES,
        *,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self._latency: deque[float] = deque(maxlen=max_latency_samples)
        self._last_errors: deque[ErrorSample] = deque(maxlen=max_error_samples)
        self._now = now
        self._started = time.monotonic()

    @property
    def latency_samples(self) -> list[float]:
        """Stored latency samples, oldest first."""
        return list(self._latency)

    @property
    def last_errors(self) -> list[ErrorSample]:
        """Stored error samples, most recent first."""
        return list(self._last_errors)

    def record(
        self,
        kind: MetricKind | str,
        latency_ms: float | None = None,
        error_message: str | None = None,
    ) -> None:
        """Count one event and keep its latency/error sample if given."""
        kind = MetricKind(kind)
        if kind == MetricKind.HIT:
            self.hits += 1
        elif kind == MetricKind.MISS:
            self.misses += 1
        else:
            self.errors += 1
            self._last_errors.appendleft(
                ErrorSample(timestamp=self._now(), error=error_message or "Unknown error")
            )

        if latency_ms is not None:
            self._latency.append(latency_ms)

    def snapshot(self) -> MetricsSnapshot:
        """Compute hit/error rates and latency statistics."""
        lookups = self.hits + self.misses
        samples = sorted(self._latency)

        avg_latency = sum(samples) / len(samples) if samples else 0.0
        p95_latency = samples[math.floor(0.95 * len(samples))] if samples else 0.0

        return MetricsSnapshot(
            cache=CacheCounters(
                hits=self.hits,
                misses=self.misses,
                hit_rate=self.hits / lookups if lookups else 0.0,
                errors=self.errors,
                error_rate=self.errors / lookups if lookups else 0.0,
            ),
            performance=PerformanceStats(
                avg_latency_ms=round(avg_latency, 2),
                p95_latency_ms=round(p95_latency, 2),
                sample_size=len(samples),
            ),
            last_errors=list(self._last_errors),
            uptime_seconds=round(time.monotonic() - self._started, 3),
            timestamp=self._now(),
        )
