"""In-memory caching layer."""

from .keys import CacheKeys, normalize_query
from .memory import CacheEntry, CacheResult, ReadThroughCache

__all__ = [
    "CacheEntry",
    "CacheKeys",
    "CacheResult",
    "ReadThroughCache",
    "normalize_query",
]
