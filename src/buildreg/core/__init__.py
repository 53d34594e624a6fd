"""Core domain types, models, and exceptions."""

from buildreg.core.exceptions import (
    BuildregError,
    MalformedResponseError,
    NotFoundError,
    RateLimitError,
    UpstreamError,
    UpstreamTimeoutError,
    ValidationError,
)
from buildreg.core.types import BackoffStrategy, CacheStatus, ErrorCode, MetricKind, SourceName

__all__ = [
    "BackoffStrategy",
    "BuildregError",
    "CacheStatus",
    "ErrorCode",
    "MalformedResponseError",
    "MetricKind",
    "NotFoundError",
    "RateLimitError",
    "SourceName",
    "UpstreamError",
    "UpstreamTimeoutError",
    "ValidationError",
]
