"""Unit test fixtures with HTTP mocking."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest
import respx
from httpx import Response

from buildreg.cache.memory import ReadThroughCache
from buildreg.resilience.metrics import MetricsRecorder

# ============================================================================
# HTTP Mocking Fixtures
# ============================================================================


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for HTTP mocking.

    Use this when you need fine-grained control over mocked responses.
    The mock is automatically started and stopped by respx.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


# ============================================================================
# Resilience Fixtures
# ============================================================================


@pytest.fixture
def sleep() -> AsyncMock:
    """Recording replacement for ``asyncio.sleep``."""
    return AsyncMock(return_value=None)


@pytest.fixture
def metrics() -> MetricsRecorder:
    return MetricsRecorder()


@pytest.fixture
async def cache(metrics: MetricsRecorder, clock) -> ReadThroughCache:
    """Cache driven by the fake clock; pending refreshes are cancelled on teardown."""
    cache = ReadThroughCache(metrics, clock=clock)
    yield cache
    await cache.close()


# ============================================================================
# Mock Response Helpers
# ============================================================================


def mock_json_response(data: Any, status_code: int = 200) -> Response:
    """Create a mock JSON response."""
    return Response(
        status_code=status_code,
        json=data,
        headers={"Content-Type": "application/json"},
    )


def mock_error_response(status_code: int, message: str = "Error") -> Response:
    """Create a mock error response."""
    return Response(
        status_code=status_code,
        json={"error": message},
        headers={"Content-Type": "application/json"},
    )


def mock_rate_limit_response(retry_after: int = 60) -> Response:
    """Create a mock 429 rate limit response."""
    return Response(
        status_code=429,
        json={"error": "Rate limit exceeded"},
        headers={
            "Content-Type": "application/json",
            "Retry-After": str(retry_after),
        },
    )


@pytest.fixture
def mock_responses():
    """Provide helper functions for creating mock responses."""
    return {
        "json": mock_json_response,
        "error": mock_error_response,
        "rate_limit": mock_rate_limit_response,
    }
