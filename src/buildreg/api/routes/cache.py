"""Cached EAS query and cache metrics endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from buildreg.api.dependencies import Client
from buildreg.api.errors import error_response
from buildreg.api.headers import cache_headers
from buildreg.api.schemas import (
    APIError,
    CacheQueryRequest,
    CacheQueryResponse,
    MetricsResponse,
    PerformanceInfo,
)
from buildreg.core.exceptions import BuildregError
from buildreg.resilience.metrics import MetricsSnapshot

router = APIRouter(prefix="/cache", tags=["cache"])


def _convert_metrics_to_response(snapshot: MetricsSnapshot) -> MetricsResponse:
    """Convert a metrics snapshot to the API response."""
    return MetricsResponse.model_validate(snapshot.model_dump())


@router.get(
    "/metrics",
    response_model=MetricsResponse,
    operation_id="getCacheMetrics",
    summary="Cache metrics",
    description="Hit/miss/error counters, hit and error rates, and latency statistics.",
)
async def get_cache_metrics(client: Client) -> MetricsResponse:
    """Return the current metrics snapshot."""
    return _convert_metrics_to_response(client.metrics())


@router.post(
    "",
    response_model=CacheQueryResponse,
    responses={500: {"model": APIError}, 504: {"model": APIError}},
    operation_id="queryCache",
    summary="Cached EAS query",
    description=(
        "Run an EAS GraphQL query through the short-TTL cache. Cache status, "
        "timestamp, TTL, and age are reported in X-Cache-* headers."
    ),
)
async def query_cache(request: CacheQueryRequest, client: Client) -> JSONResponse:
    """Serve EAS data from cache, refreshing stale entries in the background."""
    start_time = time.monotonic()

    try:
        result = await client.query_eas(request.query, force_refresh=request.force_refresh)
    except BuildregError as e:
        latency_ms = round((time.monotonic() - start_time) * 1000)
        return error_response(e, performance=PerformanceInfo(latency_ms=latency_ms, cached=False))

    latency_ms = round((time.monotonic() - start_time) * 1000)
    body = CacheQueryResponse(
        data=result.value,
        performance=PerformanceInfo(latency_ms=latency_ms, cached=result.cached),
    )
    return JSONResponse(
        content=body.model_dump(mode="json", by_alias=True),
        headers=cache_headers(result),
    )
