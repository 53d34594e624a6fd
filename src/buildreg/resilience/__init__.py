"""Retry, endpoint fallback, batching, and metrics for external data access."""

from buildreg.resilience.batch import BatchOrchestrator, BatchReport, chunked, resolve_all
from buildreg.resilience.fallback import Endpoint, EndpointsExhaustedError, FallbackClient
from buildreg.resilience.metrics import MetricsRecorder, MetricsSnapshot
from buildreg.resilience.retry import NO_RETRY, RetryPolicy, retry, with_retry

__all__ = [
    "NO_RETRY",
    "BatchOrchestrator",
    "BatchReport",
    "Endpoint",
    "EndpointsExhaustedError",
    "FallbackClient",
    "MetricsRecorder",
    "MetricsSnapshot",
    "RetryPolicy",
    "chunked",
    "resolve_all",
    "retry",
    "with_retry",
]
