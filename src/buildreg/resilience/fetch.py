"""Composable retry + cache policy for a single logical data source."""

from __future__ import annotations

import asyncio
import time
from typing import TypeVar

from buildreg.cache.memory import CacheResult, FetchFn, ReadThroughCache
from buildreg.core.types import CacheStatus
from buildreg.resilience.retry import RetryPolicy, Sleep, retry

V = TypeVar("V")


class ResilientFetch:
    """
    One configured way of reading a source: retry policy plus cache policy.

    Call sites build an instance instead of hand-rolling the retry loop and
    the cache lookup. Fallback across endpoints belongs in the fetch function
    (see ``FallbackClient``).

    Args:
        cache: Shared read-through cache; None disables caching.
        ttl: Freshness bound in seconds.
        stale_window: Age in seconds up to which stale values are served
            while refreshing in the background.
        retry_policy: Retry applied to each fetch; None means a single attempt.
    """

    def __init__(
        self,
        cache: ReadThroughCache | None,
        *,
        ttl: float,
        stale_window: float | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        name: str | None = None,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.stale_window = stale_window
        self.retry_policy = retry_policy
        self.name = name
        self._sleep = sleep

    def _guard(self, fetch_fn: FetchFn[V]) -> FetchFn[V]:
        if self.retry_policy is None:
            return fetch_fn

        async def guarded() -> V:
            return await retry(fetch_fn, self.retry_policy, sleep=self._sleep, description=self.name)

        return guarded

    async def get(self, key: str, fetch_fn: FetchFn[V], *, force_refresh: bool = False) -> CacheResult[V]:
        """Fetch through the cache (if any) with retry applied to misses."""
        guarded = self._guard(fetch_fn)

        if self.cache is None:
            value = await guarded()
            return CacheResult(value, CacheStatus.MISS, time.time(), 0.0, self.ttl)

        return await self.cache.lookup(
            key,
            guarded,
            self.ttl,
            stale_window=self.stale_window,
            force_refresh=force_refresh,
        )

    async def get_value(self, key: str, fetch_fn: FetchFn[V], *, force_refresh: bool = False) -> V:
        result = await self.get(key, fetch_fn, force_refresh=force_refresh)
        return result.value
