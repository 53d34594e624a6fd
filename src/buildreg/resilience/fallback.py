"""Round-robin fallback across equivalent endpoints."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from buildreg.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

E = TypeVar("E")
V = TypeVar("V")


@dataclass(frozen=True)
class Endpoint:
    """A configured service URL and its position in the rotation."""

    url: str
    position: int

    @classmethod
    def from_urls(cls, urls: Sequence[str]) -> list[Endpoint]:
        return [cls(url=url, position=i) for i, url in enumerate(urls)]


class EndpointsExhaustedError(UpstreamError):
    """Every endpoint in the rotation failed for a single lookup."""

    def __init__(self, message: str, source: str, errors: list[Exception]) -> None:
        super().__init__(message, source)
        self.errors = errors


class FallbackClient(Generic[E, V]):
    """
    Calls one of N equivalent endpoints, rotating to the next on failure.

    The cursor is shared by all callers and is not reset between lookups, so
    once a failing endpoint is skipped later calls start from its successor.
    Each lookup tries every endpoint at most once.

    Args:
        endpoints: Ordered endpoint handles (at least one).
        call: Coroutine performing the lookup against one endpoint.
        name: Label used for logging and error messages.
    """

    def __init__(
        self,
        endpoints: Sequence[E],
        call: Callable[[E, str], Awaitable[V | None]],
        *,
        name: str = "fallback",
    ) -> None:
        if not endpoints:
            raise ValueError("FallbackClient needs at least one endpoint")
        self._endpoints = list(endpoints)
        self._call = call
        self._cursor = 0
        self.name = name

    @property
    def cursor(self) -> int:
        """Index of the endpoint the next lookup starts from."""
        return self._cursor

    @property
    def endpoints(self) -> list[E]:
        return list(self._endpoints)

    @property
    def current_endpoint(self) -> E:
        return self._endpoints[self._cursor]

    def _rotate(self, failed_index: int) -> None:
        self._cursor = (failed_index + 1) % len(self._endpoints)
        logger.info(f"{self.name}: switching to endpoint {_describe(self._endpoints[self._cursor])}")

    async def lookup_or_raise(self, key: str) -> V | None:
        """
        Look up ``key``, raising if every endpoint fails.

        A ``None`` result from an endpoint is a successful "no value" answer
        and does not trigger rotation.

        Raises:
            EndpointsExhaustedError: If all endpoints failed.
        """
        max_attempts = len(self._endpoints)
        errors: list[Exception] = []

        for attempt in range(max_attempts):
            index = self._cursor
            endpoint = self._endpoints[index]
            try:
                return await self._call(endpoint, key)
            except Exception as e:
                errors.append(e)
                logger.warning(
                    f"{self.name}: error on {_describe(endpoint)} for {key} (attempt {attempt + 1}/{max_attempts}): {e}"
                )
                if attempt < max_attempts - 1:
                    self._rotate(index)

        raise EndpointsExhaustedError(
            message=f"All {max_attempts} endpoints failed for {key}",
            source=self.name,
            errors=errors,
        )

    async def lookup(self, key: str) -> V | None:
        """Look up ``key``; returns None instead of raising when all endpoints fail."""
        try:
            return await self.lookup_or_raise(key)
        except EndpointsExhaustedError as e:
            logger.error(e.message)
            return None


def _describe(endpoint: object) -> str:
    url = getattr(endpoint, "url", None)
    return url if isinstance(url, str) else repr(endpoint)
