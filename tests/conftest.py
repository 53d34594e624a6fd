"""Shared test fixtures for all tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from helpers import (
    BUILDER_SCHEMA,
    GRAPHQL_URL,
    PARTNER_ADDRESS,
    PARTNER_SCHEMA,
    RPC_A,
    RPC_B,
    TALENT_URL,
    ZERO_UID,
    FakeClock,
    raw_attestation,
)

from buildreg.config import BuildregSettings
from buildreg.core.models import BuilderAttestation, BuilderData, PartnerAttestation, PartnerData

# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def settings() -> BuildregSettings:
    """Settings pointing at mocked upstreams, with no retry or batch delays."""
    return BuildregSettings(
        _env_file=None,
        eas_graphql_url=GRAPHQL_URL,
        talent_api_url=TALENT_URL,
        talent_api_key="test-talent-key",
        ens_rpc_endpoints=[RPC_A, RPC_B],
        partner_schema_uid=PARTNER_SCHEMA,
        builder_schema_uid=BUILDER_SCHEMA,
        retry_max_attempts=2,
        retry_base_delay=0.0,
        batch_delay=0.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# Attestation Fixtures
# ============================================================================


@pytest.fixture
def make_partner() -> Callable[..., PartnerAttestation]:
    """Factory for decoded partner attestations."""

    def _make(uid: str, name: str = "Base", url: str = "https://base.org") -> PartnerAttestation:
        return PartnerAttestation(
            **raw_attestation(uid, PARTNER_ADDRESS),
            decodedData=PartnerData(name=name, url=url),
        )

    return _make


@pytest.fixture
def make_builder() -> Callable[..., BuilderAttestation]:
    """Factory for decoded builder attestations."""

    def _make(
        uid: str,
        recipient: str,
        *,
        ref_uid: str = ZERO_UID,
        partner_name: str = "Unknown",
        time: int = 1_700_000_000,
        context: str = "",
    ) -> BuilderAttestation:
        return BuilderAttestation(
            **raw_attestation(uid, recipient, ref_uid=ref_uid, time=time),
            decodedData=BuilderData(is_builder=True, context=context),
            partnerName=partner_name,
        )

    return _make
