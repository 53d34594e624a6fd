"""Core enums and type definitions."""

from enum import StrEnum


class SourceName(StrEnum):
    """External services the registry reads from."""

    EAS = "eas"
    TALENT = "talent"
    ENS = "ens"


class MetricKind(StrEnum):
    """Kinds of events observed by the metrics recorder."""

    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


class CacheStatus(StrEnum):
    """How a read-through cache lookup was served."""

    HIT = "HIT"
    MISS = "MISS"
    STALE = "STALE"  # Served stale, refresh scheduled in the background


class ErrorCode(StrEnum):
    """Error codes reported in API error bodies."""

    TIMEOUT = "TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMITED = "RATE_LIMITED"


class BackoffStrategy(StrEnum):
    """Delay schedule between retry attempts."""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"
