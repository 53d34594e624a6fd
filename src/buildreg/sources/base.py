"""Abstract base source with HTTP client management, timeouts, and caching."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC
from collections.abc import Awaitable, Callable, Collection
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, ClassVar, TypeVar

import httpx
from pydantic import BaseModel

from buildreg.cache.memory import CacheResult, ReadThroughCache
from buildreg.core.exceptions import (
    MalformedResponseError,
    RateLimitError,
    UpstreamError,
    UpstreamTimeoutError,
)
from buildreg.core.types import SourceName
from buildreg.resilience.fetch import ResilientFetch
from buildreg.resilience.retry import RetryPolicy, Sleep, retry

logger = logging.getLogger(__name__)

V = TypeVar("V")

DEFAULT_TIMEOUT = 5.0


class SourceConfig(BaseModel):
    """Configuration for an external source."""

    api_key: str | None = None
    base_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    enabled: bool = True


class AbstractSource(ABC):
    """
    Abstract base class for all external sources.

    Provides:
    - HTTP client management with connection pooling
    - A hard per-request timeout reported as ``UpstreamTimeoutError``
    - Status mapping (429 and 5xx are retryable upstream errors)
    - Optional retry and read-through caching of parsed results
    """

    # Class-level configuration (to be overridden by subclasses)
    SOURCE_NAME: ClassVar[SourceName]
    BASE_URL: ClassVar[str] = ""
    CACHE_TTL: ClassVar[float] = 300.0
    STALE_WINDOW: ClassVar[float | None] = None

    def __init__(
        self,
        config: SourceConfig | None = None,
        *,
        retry_policy: RetryPolicy | None = None,
        cache: ReadThroughCache | None = None,
        cache_ttl: float | None = None,
        stale_window: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or SourceConfig()
        self.retry_policy = retry_policy or RetryPolicy(retry_on=(UpstreamError,))
        self._client: httpx.AsyncClient | None = None
        self._sleep = sleep
        self._fetch = ResilientFetch(
            cache,
            ttl=cache_ttl if cache_ttl is not None else self.CACHE_TTL,
            stale_window=stale_window if stale_window is not None else self.STALE_WINDOW,
            name=self.source_name.value,
        )

    @property
    def source_name(self) -> SourceName:
        """The source type for this client."""
        return self.SOURCE_NAME

    @property
    def is_enabled(self) -> bool:
        return self.config.enabled

    @property
    def cache(self) -> ReadThroughCache | None:
        return self._fetch.cache

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Get or create HTTP client with proper lifecycle."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url or self.BASE_URL,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_default_headers(),
                follow_redirects=True,
            )

        try:
            yield self._client
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(
                message=f"Request timed out after {self.config.timeout}s",
                source=self.source_name.value,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(
                message=f"HTTP error: {e}",
                source=self.source_name.value,
            ) from e

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests. Override to add auth."""
        return {
            "User-Agent": "buildreg/0.1",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> AbstractSource:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _make_request(
        self,
        method: str,
        url: str,
        *,
        allow_status: Collection[int] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make a single HTTP request under the hard timeout.

        Statuses listed in ``allow_status`` are returned to the caller instead
        of raising (used for 404 "no data" answers).
        """
        async with self._get_client() as client:
            try:
                async with asyncio.timeout(self.config.timeout):
                    response = await client.request(method, url, **kwargs)
            except TimeoutError as e:
                raise UpstreamTimeoutError(
                    message=f"Request timed out after {self.config.timeout}s",
                    source=self.source_name.value,
                ) from e

        status = response.status_code
        if status in allow_status or response.is_success:
            return response

        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                message="Rate limit exceeded",
                source=self.source_name.value,
                retry_after=_parse_retry_after(retry_after),
            )

        raise UpstreamError(
            message=f"HTTP error! status: {status}",
            source=self.source_name.value,
            status_code=status,
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Make an HTTP request with the source's retry policy."""
        return await retry(
            lambda: self._make_request(method, url, **kwargs),
            self.retry_policy,
            sleep=self._sleep,
            description=f"{self.source_name.value} {method} {url}",
        )

    def _parse_json(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body or raise ``MalformedResponseError``."""
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                message="Response body is not valid JSON",
                source=self.source_name.value,
                details={"url": str(response.request.url)},
            ) from e

        if not isinstance(data, dict):
            raise MalformedResponseError(
                message=f"Expected a JSON object, got {type(data).__name__}",
                source=self.source_name.value,
                details={"url": str(response.request.url)},
            )
        return data

    async def _cached(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[V]],
        *,
        force_refresh: bool = False,
    ) -> CacheResult[V]:
        """Serve ``fetch_fn`` through the shared cache when one is configured."""
        return await self._fetch.get(key, fetch_fn, force_refresh=force_refresh)


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None
