"""In-memory read-through cache with TTL and stale-while-revalidate."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from buildreg.core.types import CacheStatus, MetricKind
from buildreg.resilience.metrics import MetricsRecorder

logger = logging.getLogger(__name__)

V = TypeVar("V")

FetchFn = Callable[[], Awaitable[V]]


@dataclass
class CacheEntry(Generic[V]):
    """
    A cached value and when it was stored.

    Parameters
    ----------
    key : str
        Normalized cache key
    value : V
        Cached value (None is a valid value)
    stored_at : float
        Clock reading when the value was stored, in seconds
    ttl : float
        Time-to-live in seconds

    """

    key: str
    value: V
    stored_at: float
    ttl: float

    def age(self, now: float) -> float:
        return max(0.0, now - self.stored_at)

    def is_fresh(self, now: float, ttl: float | None = None) -> bool:
        """Fresh iff ``now - stored_at < ttl``."""
        return self.age(now) < (self.ttl if ttl is None else ttl)


@dataclass
class CacheResult(Generic[V]):
    """Value returned by the cache plus how it was served."""

    value: V
    status: CacheStatus
    stored_at: float
    age: float
    ttl: float

    @property
    def cached(self) -> bool:
        return self.status != CacheStatus.MISS


class ReadThroughCache:
    """
    Memoizes expensive fetches by key for a fixed TTL.

    - Fresh entry: returned without calling the fetch function.
    - Missing or expired entry: fetched, stored, and returned.
    - Expired but younger than ``stale_window``: the stale value is returned
      immediately and one background refresh is scheduled for the key.

    Writes are last-write-wins. Entries are never evicted, only replaced;
    staleness is checked on read.

    Args:
        metrics: Recorder for hits, misses, errors, and fetch latency.
        default_ttl: TTL in seconds when a call does not pass one.
        clock: Wall-clock source in seconds (injectable for tests).
    """

    def __init__(
        self,
        metrics: MetricsRecorder | None = None,
        *,
        default_ttl: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.metrics = metrics or MetricsRecorder()
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._refreshing: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def peek(self, key: str) -> CacheEntry[Any] | None:
        """Return the raw entry for ``key`` without touching metrics."""
        return self._entries.get(key)

    def invalidate(self, key: str) -> bool:
        """Drop one entry; returns whether it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Clear all cached entries."""
        self._entries.clear()

    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: FetchFn[V],
        ttl: float | None = None,
        *,
        stale_window: float | None = None,
        force_refresh: bool = False,
    ) -> V:
        """Return the cached value for ``key``, fetching it when needed."""
        result = await self.lookup(
            key,
            fetch_fn,
            ttl,
            stale_window=stale_window,
            force_refresh=force_refresh,
        )
        return result.value

    async def lookup(
        self,
        key: str,
        fetch_fn: FetchFn[V],
        ttl: float | None = None,
        *,
        stale_window: float | None = None,
        force_refresh: bool = False,
    ) -> CacheResult[V]:
        """
        Like ``get_or_fetch`` but also reports the cache status and entry age.

        Args:
            key: Cache key.
            fetch_fn: Coroutine factory producing a fresh value.
            ttl: Freshness bound in seconds.
            stale_window: Maximum age in seconds at which an expired entry may
                still be served while it is refreshed in the background.
            force_refresh: Skip the cached entry and fetch synchronously.

        Raises:
            Exception: Whatever ``fetch_fn`` raised on a synchronous fetch.
        """
        ttl = self.default_ttl if ttl is None else ttl
        now = self._clock()
        entry = self._entries.get(key)

        if entry is not None and not force_refresh:
            age = entry.age(now)
            if entry.is_fresh(now, ttl):
                self.metrics.record(MetricKind.HIT)
                return CacheResult(entry.value, CacheStatus.HIT, entry.stored_at, age, ttl)

            if stale_window is not None and age < stale_window:
                self.metrics.record(MetricKind.HIT)
                self._schedule_refresh(key, fetch_fn, ttl)
                return CacheResult(entry.value, CacheStatus.STALE, entry.stored_at, age, ttl)

        return await self._fetch_and_store(key, fetch_fn, ttl)

    async def _fetch_and_store(self, key: str, fetch_fn: FetchFn[V], ttl: float) -> CacheResult[V]:
        start = time.perf_counter()
        try:
            value = await fetch_fn()
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            self.metrics.record(MetricKind.ERROR, latency_ms, str(e) or type(e).__name__)
            raise

        latency_ms = (time.perf_counter() - start) * 1000
        self.metrics.record(MetricKind.MISS, latency_ms)

        stored_at = self._clock()
        self._entries[key] = CacheEntry(key=key, value=value, stored_at=stored_at, ttl=ttl)
        return CacheResult(value, CacheStatus.MISS, stored_at, 0.0, ttl)

    def _schedule_refresh(self, key: str, fetch_fn: FetchFn[V], ttl: float) -> None:
        pending = self._refreshing.get(key)
        if pending is not None and not pending.done():
            return

        task = asyncio.create_task(self._refresh(key, fetch_fn, ttl), name=f"refresh:{key}")
        self._refreshing[key] = task
        task.add_done_callback(lambda t, k=key: self._forget_refresh(k, t))

    def _forget_refresh(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._refreshing.get(key) is task:
            del self._refreshing[key]

    async def _refresh(self, key: str, fetch_fn: FetchFn[V], ttl: float) -> None:
        try:
            await self._fetch_and_store(key, fetch_fn, ttl)
            logger.debug(f"Background refresh completed for {key}")
        except Exception as e:
            # The caller already received the stale value
            logger.warning(f"Background refresh failed for {key}: {e}")

    @property
    def pending_refreshes(self) -> int:
        return sum(1 for task in self._refreshing.values() if not task.done())

    async def wait_for_refreshes(self) -> None:
        """Wait until every scheduled background refresh has settled."""
        tasks = [task for task in self._refreshing.values() if not task.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight background refreshes."""
        tasks = list(self._refreshing.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._refreshing.clear()
