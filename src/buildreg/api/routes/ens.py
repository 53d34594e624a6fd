"""Batch ENS name resolution endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from buildreg.api.dependencies import Client
from buildreg.api.schemas import (
    APIError,
    BatchMetricsResponse,
    EnsResolveRequest,
    EnsResolveResponse,
)

router = APIRouter(tags=["ens"])


@router.post(
    "/ens",
    response_model=EnsResolveResponse,
    responses={400: {"model": APIError}},
    operation_id="resolveEns",
    summary="Resolve ENS names",
    description=(
        "Resolve wallet addresses to verified primary ENS names. Addresses "
        "without a name, or whose lookup failed, are absent from ensMap."
    ),
)
async def resolve_ens(request: EnsResolveRequest, client: Client) -> EnsResolveResponse:
    """Resolve addresses in batches across the configured RPC providers."""
    report = await client.resolve_ens_names(request.addresses)

    return EnsResolveResponse(
        ens_map=report.results,
        metrics=BatchMetricsResponse(
            requested=report.requested,
            unique=report.unique,
            resolved=report.resolved,
            failed=report.failed,
            batches=report.batches,
            duration_ms=round(report.duration_ms, 2),
        ),
    )
