"""Talent Protocol proxy endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query

from buildreg.api.dependencies import Client
from buildreg.api.schemas import APIError
from buildreg.core.addresses import normalize_address

router = APIRouter(prefix="/talent", tags=["talent"])

Address = Annotated[str, Query(min_length=1, description="Wallet address")]


@router.get(
    "",
    response_model=dict,
    responses={400: {"model": APIError}, 500: {"model": APIError}},
    operation_id="getTalentScore",
    summary="Talent Protocol score",
    description="Builder score for a wallet; an empty object when it has none.",
)
async def get_talent_score(address: Address, client: Client) -> dict[str, Any]:
    """Return the cached Talent Protocol score payload."""
    payload = await client.talent.fetch_score(normalize_address(address))
    return payload or {}


@router.get(
    "/profile",
    response_model=dict,
    responses={400: {"model": APIError}, 500: {"model": APIError}},
    operation_id="getTalentProfile",
    summary="Talent Protocol profile",
    description="Profile for a wallet; an empty object when it has none.",
)
async def get_talent_profile(address: Address, client: Client) -> dict[str, Any]:
    """Return the cached Talent Protocol profile payload."""
    payload = await client.talent.fetch_profile(normalize_address(address))
    return payload or {}
