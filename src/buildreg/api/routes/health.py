"""Health check and debug endpoints."""

from __future__ import annotations

import platform
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, Request

from buildreg import __version__
from buildreg.api.dependencies import Settings
from buildreg.api.schemas import DebugResponse, HealthResponse
from buildreg.core.exceptions import NotFoundError

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    operation_id="getHealth",
    summary="Health check",
    description="Check the health status of the API and its cache.",
)
async def health_check(request: Request) -> HealthResponse:
    """Check API health status."""
    client = getattr(request.app.state, "buildreg_client", None)
    cache = client.cache if client is not None else None

    status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
    if cache is None:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=__version__,
        cache_entries=len(cache) if cache is not None else 0,
        pending_refreshes=cache.pending_refreshes if cache is not None else 0,
    )


@router.get(
    "/debug",
    response_model=DebugResponse,
    operation_id="getDebug",
    summary="Debug information",
    description="Environment flags, available only when debug mode is enabled.",
)
async def debug_info(settings: Settings) -> DebugResponse:
    """Report configuration flags without exposing secrets."""
    if not settings.debug:
        raise NotFoundError("Debug endpoint only available in debug mode")

    return DebugResponse(
        environment="development",
        has_talent_api_key=bool(settings.talent_api_key),
        talent_api_key_length=len(settings.talent_api_key or ""),
        ens_endpoints=settings.ens_rpc_endpoints,
        python_version=platform.python_version(),
        timestamp=datetime.now(timezone.utc),
    )
