"""Tests for the batch orchestrator."""

from __future__ import annotations

import asyncio

import pytest

from buildreg.resilience.batch import BatchOrchestrator, chunked, resolve_all


class RecordingResolver:
    """Resolver recording start/end events; values and failures are scripted."""

    def __init__(self, values: dict[str, str | None] | None = None, failing: set[str] | None = None):
        self.values = values or {}
        self.failing = failing or set()
        self.calls: list[str] = []
        self.events: list[tuple[str, str]] = []

    async def __call__(self, key: str) -> str | None:
        self.calls.append(key)
        self.events.append(("start", key))
        await asyncio.sleep(0)
        self.events.append(("end", key))
        if key in self.failing:
            raise RuntimeError(f"{key} failed")
        return self.values.get(key, key.upper())


class TestChunked:
    def test_uneven_split(self):
        assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]

    def test_empty(self):
        assert chunked([], 3) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunked(["a"], 0)


class TestBatchOrchestrator:
    """Tests for chunking, delays, dedup, and failure isolation."""

    async def test_five_keys_in_batches_of_two(self, sleep):
        """Chunks [2, 2, 1], one call per key, a delay only between chunks."""
        resolver = RecordingResolver()
        orchestrator = BatchOrchestrator(batch_size=2, inter_batch_delay=0.5, sleep=sleep)

        report = await orchestrator.run(["a", "b", "c", "d", "e"], resolver)

        assert sorted(resolver.calls) == ["a", "b", "c", "d", "e"]
        assert report.batches == 3
        assert report.results == {k: k.upper() for k in "abcde"}
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 0.5]

    async def test_chunks_run_sequentially(self, sleep):
        """Keys within a chunk overlap; the next chunk waits for all of them."""
        resolver = RecordingResolver()
        orchestrator = BatchOrchestrator(batch_size=2, inter_batch_delay=0.0, sleep=sleep)

        await orchestrator.run(["a", "b", "c"], resolver)

        events = resolver.events
        assert events.index(("start", "b")) < events.index(("end", "a"))
        assert events.index(("start", "c")) > events.index(("end", "a"))
        assert events.index(("start", "c")) > events.index(("end", "b"))

    async def test_zero_delay_never_sleeps(self, sleep):
        orchestrator = BatchOrchestrator(batch_size=1, inter_batch_delay=0.0, sleep=sleep)
        await orchestrator.run(["a", "b", "c"], RecordingResolver())
        sleep.assert_not_awaited()

    async def test_single_batch_never_sleeps(self, sleep):
        orchestrator = BatchOrchestrator(batch_size=50, inter_batch_delay=0.5, sleep=sleep)
        await orchestrator.run(["a", "b"], RecordingResolver())
        sleep.assert_not_awaited()

    async def test_duplicates_resolved_once(self, sleep):
        resolver = RecordingResolver()
        orchestrator = BatchOrchestrator(batch_size=10, sleep=sleep)

        report = await orchestrator.run(["a", "b", "a", "a"], resolver)

        assert sorted(resolver.calls) == ["a", "b"]
        assert report.requested == 4
        assert report.unique == 2

    async def test_none_and_failures_absent(self, sleep):
        """A failed or empty key is left out without failing the batch."""
        resolver = RecordingResolver(values={"b": None}, failing={"c"})
        orchestrator = BatchOrchestrator(batch_size=10, sleep=sleep)

        report = await orchestrator.run(["a", "b", "c"], resolver)

        assert report.results == {"a": "A"}
        assert report.failed == 1
        assert report.resolved == 1
        assert report.missing == 2

    async def test_empty_input(self, sleep):
        orchestrator = BatchOrchestrator(sleep=sleep)

        report = await orchestrator.run([], RecordingResolver())

        assert report.results == {}
        assert report.batches == 0

    async def test_resolve_all_returns_results(self, sleep):
        orchestrator = BatchOrchestrator(batch_size=2, sleep=sleep)
        assert await orchestrator.resolve_all(["x", "y"], RecordingResolver()) == {"x": "X", "y": "Y"}

    async def test_module_level_resolve_all(self):
        results = await resolve_all(["a", "b", "c"], RecordingResolver(), batch_size=2, inter_batch_delay=0.0)
        assert results == {"a": "A", "b": "B", "c": "C"}

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            BatchOrchestrator(batch_size=0)
