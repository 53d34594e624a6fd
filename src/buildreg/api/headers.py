"""Response headers describing how a cached result was served."""

from __future__ import annotations

from datetime import datetime, timezone

from buildreg.cache.memory import CacheResult


def cache_headers(result: CacheResult) -> dict[str, str]:
    """``X-Cache-*`` headers: status, store timestamp, TTL and age in ms."""
    stored_at = datetime.fromtimestamp(result.stored_at, tz=timezone.utc)
    return {
        "X-Cache-Status": result.status.value,
        "X-Cache-Timestamp": stored_at.isoformat(),
        "X-Cache-TTL": str(int(result.ttl * 1000)),
        "X-Cache-Age": str(int(result.age * 1000)),
    }
