"""Builder directory endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from buildreg.api.dependencies import Client
from buildreg.api.headers import cache_headers
from buildreg.api.schemas import (
    APIError,
    BuilderResponse,
    PartnerResponse,
    RegistryMetricsResponse,
    RegistryResponse,
    TalentResponse,
)
from buildreg.core.models import ProcessedBuilder, RegistryDirectory
from buildreg.sources.eas import eascan_url

router = APIRouter(tags=["registry"])


def _convert_builder_to_response(builder: ProcessedBuilder) -> BuilderResponse:
    """Convert a processed builder to the API response."""
    talent = None
    if builder.talent is not None:
        profile = builder.talent.profile
        talent = TalentResponse(
            score=builder.talent.score,
            name=profile.name if profile else None,
            display_name=profile.display_name if profile else None,
            image_url=profile.image_url if profile else None,
        )

    return BuilderResponse(
        id=builder.id,
        address=builder.address,
        ens=builder.ens,
        total_verifications=builder.total_verifications,
        earliest_attestation_id=builder.earliest_attestation_id,
        earliest_attestation_date=builder.earliest_attestation_date,
        earliest_partner_name=builder.earliest_partner_name,
        earliest_partner_attestation_id=builder.earliest_partner_attestation_id,
        context=builder.context,
        attestation_ids=[a.id for a in builder.attestations],
        eascan_url=eascan_url(builder.earliest_attestation_id),
        talent=talent,
    )


def _convert_directory_to_response(directory: RegistryDirectory) -> RegistryResponse:
    return RegistryResponse(
        builders=[_convert_builder_to_response(b) for b in directory.builders],
        partners=[PartnerResponse.model_validate(p.model_dump()) for p in directory.partners],
        metrics=RegistryMetricsResponse.model_validate(directory.metrics.model_dump()),
    )


@router.get(
    "/registry",
    response_model=RegistryResponse,
    responses={500: {"model": APIError}, 504: {"model": APIError}},
    operation_id="getRegistry",
    summary="Builder directory",
    description="Verified builders and verification partners, enriched with ENS names.",
)
async def get_registry(
    client: Client,
    include_talent: Annotated[bool, Query(alias="includeTalent")] = False,
    force_refresh: Annotated[bool, Query(alias="forceRefresh")] = False,
) -> JSONResponse:
    """Load the processed directory through the cache."""
    result = await client.load_registry(include_talent=include_talent, force_refresh=force_refresh)
    body = _convert_directory_to_response(result.value)
    return JSONResponse(
        content=body.model_dump(mode="json", by_alias=True),
        headers=cache_headers(result),
    )
