"""Chunked, rate-limit friendly fan-out over many keys."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from buildreg.resilience.retry import Sleep

logger = logging.getLogger(__name__)

V = TypeVar("V")

Resolver = Callable[[str], Awaitable[V | None]]


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split ``items`` into contiguous chunks of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


@dataclass
class BatchReport(Generic[V]):
    """Outcome of one ``BatchOrchestrator.run`` call."""

    results: dict[str, V] = field(default_factory=dict)
    requested: int = 0
    unique: int = 0
    batches: int = 0
    failed: int = 0
    duration_ms: float = 0.0

    @property
    def resolved(self) -> int:
        return len(self.results)

    @property
    def missing(self) -> int:
        """Keys that resolved to None or failed."""
        return self.unique - self.resolved


class BatchOrchestrator:
    """
    Resolves a list of keys in fixed-size chunks.

    Keys in one chunk run concurrently; the next chunk starts only after every
    call in the current one has settled, with ``inter_batch_delay`` seconds in
    between. A key whose resolver returns None or raises is left out of the
    result instead of failing the batch.
    """

    def __init__(
        self,
        batch_size: int = 50,
        inter_batch_delay: float = 0.5,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.inter_batch_delay = inter_batch_delay
        self._sleep = sleep

    async def run(self, keys: Iterable[str], resolver: Resolver[V]) -> BatchReport[V]:
        """Resolve every unique key and report counts alongside the results."""
        start = time.monotonic()
        requested = list(keys)
        unique = list(dict.fromkeys(requested))
        chunks = chunked(unique, self.batch_size)
        report: BatchReport[V] = BatchReport(
            requested=len(requested),
            unique=len(unique),
            batches=len(chunks),
        )

        for index, chunk in enumerate(chunks):
            if index > 0 and self.inter_batch_delay > 0:
                await self._sleep(self.inter_batch_delay)

            logger.debug(f"Resolving batch {index + 1}/{len(chunks)} ({len(chunk)} keys)")
            outcomes = await asyncio.gather(*(self._try_resolve(resolver, key) for key in chunk))

            for key, (value, failed) in zip(chunk, outcomes):
                if failed:
                    report.failed += 1
                elif value is not None:
                    report.results[key] = value

        report.duration_ms = (time.monotonic() - start) * 1000
        return report

    async def resolve_all(self, keys: Iterable[str], resolver: Resolver[V]) -> dict[str, V]:
        """Resolve every unique key; failed or empty keys are absent."""
        report = await self.run(keys, resolver)
        return report.results

    @staticmethod
    async def _try_resolve(resolver: Resolver[V], key: str) -> tuple[V | None, bool]:
        try:
            return await resolver(key), False
        except Exception as e:
            logger.warning(f"Batch resolver failed for {key}: {e}")
            return None, True


async def resolve_all(
    keys: Iterable[str],
    resolver: Resolver[V],
    batch_size: int = 50,
    inter_batch_delay: float = 0.5,
) -> dict[str, V]:
    """Convenience wrapper around ``BatchOrchestrator.resolve_all``."""
    orchestrator = BatchOrchestrator(batch_size, inter_batch_delay)
    return await orchestrator.resolve_all(keys, resolver)
