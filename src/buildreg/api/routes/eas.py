"""Uncached EAS GraphQL proxy."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from buildreg.api.dependencies import Client
from buildreg.api.schemas import APIError, EASQueryRequest

router = APIRouter(tags=["eas"])


@router.post(
    "/eas",
    response_model=dict,
    responses={500: {"model": APIError}, 504: {"model": APIError}},
    operation_id="queryEas",
    summary="EAS GraphQL proxy",
    description="Forward a GraphQL query to the EAS endpoint and return its body.",
)
async def query_eas(request: EASQueryRequest, client: Client) -> dict[str, Any]:
    """Proxy a query to EAS (with retries, without caching)."""
    return await client.eas.execute(request.query, request.variables)
