"""Tests for the metrics recorder."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from buildreg.core.types import MetricKind
from buildreg.resilience.metrics import MetricsRecorder

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def recorder() -> MetricsRecorder:
    return MetricsRecorder(now=lambda: FIXED_NOW)


class TestCounters:
    """Tests for hit/miss/error counting and rates."""

    def test_empty_rates_are_zero(self, recorder: MetricsRecorder):
        """No lookups yet: rates are 0, not NaN."""
        snapshot = recorder.snapshot()

        assert snapshot.cache.hit_rate == 0.0
        assert snapshot.cache.error_rate == 0.0
        assert snapshot.performance.avg_latency_ms == 0.0
        assert snapshot.performance.p95_latency_ms == 0.0
        assert snapshot.performance.sample_size == 0

    def test_hit_rate(self, recorder: MetricsRecorder):
        for _ in range(3):
            recorder.record(MetricKind.HIT)
        recorder.record(MetricKind.MISS, 12.0)

        snapshot = recorder.snapshot()
        assert snapshot.cache.hits == 3
        assert snapshot.cache.misses == 1
        assert snapshot.cache.hit_rate == pytest.approx(0.75)

    def test_error_rate_relative_to_lookups(self, recorder: MetricsRecorder):
        recorder.record(MetricKind.HIT)
        recorder.record(MetricKind.MISS)
        recorder.record(MetricKind.ERROR, 5.0, "boom")

        assert recorder.snapshot().cache.error_rate == pytest.approx(0.5)

    def test_accepts_kind_strings(self, recorder: MetricsRecorder):
        recorder.record("hit")
        assert recorder.hits == 1

    def test_unknown_kind_rejected(self, recorder: MetricsRecorder):
        with pytest.raises(ValueError):
            recorder.record("evicted")


class TestSamples:
    """Tests for the bounded latency and error buffers."""

    def test_latency_buffer_keeps_most_recent(self, recorder: MetricsRecorder):
        for i in range(150):
            recorder.record(MetricKind.MISS, float(i))

        assert len(recorder.latency_samples) == 100
        assert recorder.latency_samples[0] == 50.0
        assert recorder.latency_samples[-1] == 149.0

    def test_error_buffer_most_recent_first(self, recorder: MetricsRecorder):
        for i in range(15):
            recorder.record(MetricKind.ERROR, error_message=f"error {i}")

        errors = recorder.last_errors
        assert len(errors) == 10
        assert errors[0].error == "error 14"
        assert errors[-1].error == "error 5"
        assert recorder.errors == 15

    def test_error_without_message(self, recorder: MetricsRecorder):
        recorder.record(MetricKind.ERROR)

        sample = recorder.last_errors[0]
        assert sample.error == "Unknown error"
        assert sample.timestamp == FIXED_NOW

    def test_hit_without_latency_adds_no_sample(self, recorder: MetricsRecorder):
        recorder.record(MetricKind.HIT)
        assert recorder.latency_samples == []

    def test_custom_bounds(self):
        recorder = MetricsRecorder(max_latency_samples=3, max_error_samples=1)
        for i in range(5):
            recorder.record(MetricKind.ERROR, float(i), f"e{i}")

        assert recorder.latency_samples == [2.0, 3.0, 4.0]
        assert [e.error for e in recorder.last_errors] == ["e4"]


class TestSnapshot:
    """Tests for derived latency statistics."""

    def test_average_and_p95(self, recorder: MetricsRecorder):
        """Samples 10..1000: average 505, p95 is the sample at index 95."""
        for value in range(10, 1001, 10):
            recorder.record(MetricKind.MISS, float(value))

        performance = recorder.snapshot().performance
        assert performance.sample_size == 100
        assert performance.avg_latency_ms == 505.0
        assert performance.p95_latency_ms == 960.0

    def test_p95_of_single_sample(self, recorder: MetricsRecorder):
        recorder.record(MetricKind.MISS, 42.0)
        assert recorder.snapshot().performance.p95_latency_ms == 42.0

    def test_values_rounded(self, recorder: MetricsRecorder):
        recorder.record(MetricKind.MISS, 1.0)
        recorder.record(MetricKind.MISS, 1.0)
        recorder.record(MetricKind.MISS, 1.005)

        assert recorder.snapshot().performance.avg_latency_ms == round(3.005 / 3, 2)

    def test_snapshot_metadata(self, recorder: MetricsRecorder):
        snapshot = recorder.snapshot()
        assert snapshot.timestamp == FIXED_NOW
        assert snapshot.uptime_seconds >= 0
