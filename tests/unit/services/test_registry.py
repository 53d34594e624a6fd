"""Tests for building the builder/partner directory."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from helpers import ALICE, BOB

from buildreg.cache.memory import ReadThroughCache
from buildreg.core.models import TalentData
from buildreg.core.types import CacheStatus
from buildreg.services.registry import RegistryService

PARTNER_1 = "0x" + "01" * 32
PARTNER_2 = "0x" + "02" * 32


@pytest.fixture
def eas() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def ens() -> AsyncMock:
    ens = AsyncMock()
    ens.resolve_addresses.return_value = {ALICE: "alice.eth"}
    return ens


@pytest.fixture
def talent() -> AsyncMock:
    talent = AsyncMock()
    talent.get_talent_data_batch.return_value = {BOB: TalentData(score=12.0)}
    return talent


@pytest.fixture
def service(eas, ens, talent, metrics) -> RegistryService:
    return RegistryService(eas, ens, talent, cache=ReadThroughCache(metrics))


# ============================================================================
# Processing Tests
# ============================================================================


class TestProcessBuilderData:
    """Tests for grouping attestations into directory rows."""

    async def test_groups_by_recipient(self, service: RegistryService, make_builder, make_partner):
        builders = [
            make_builder("0xb1", ALICE, ref_uid=PARTNER_1, partner_name="Base", time=200),
            make_builder("0xb2", ALICE, ref_uid=PARTNER_2, partner_name="Optimism", time=300),
            make_builder("0xb3", BOB, ref_uid=PARTNER_1, partner_name="Base", time=250),
        ]

        directory = await service.process_builder_data(builders, [make_partner(PARTNER_1)])

        rows = {b.address: b for b in directory.builders}
        assert set(rows) == {ALICE, BOB}
        assert rows[ALICE].total_verifications == 2
        assert [a.id for a in rows[ALICE].attestations] == ["0xb1", "0xb2"]
        assert rows[ALICE].earliest_attestation_id == "0xb1"
        assert rows[BOB].total_verifications == 1

    async def test_earlier_attestation_becomes_earliest(
        self, service: RegistryService, make_builder, make_partner
    ):
        """A later-listed but earlier-dated attestation keeps the running count."""
        builders = [
            make_builder("0xb1", ALICE, ref_uid=PARTNER_2, partner_name="Optimism", time=300, context="late"),
            make_builder("0xb2", ALICE, ref_uid=PARTNER_1, partner_name="Base", time=100, context="early"),
            make_builder("0xb3", ALICE, ref_uid=PARTNER_2, partner_name="Optimism", time=200),
        ]

        directory = await service.process_builder_data(builders, [])

        (row,) = directory.builders
        assert row.id == "0xb2"
        assert row.earliest_attestation_id == "0xb2"
        assert row.earliest_attestation_date == 100
        assert row.earliest_partner_name == "Base"
        assert row.earliest_partner_attestation_id == PARTNER_1
        assert row.context == "early"
        assert row.total_verifications == 3
        assert len(row.attestations) == 3

    async def test_partner_counts_unique_builders(self, service: RegistryService, make_builder, make_partner):
        builders = [
            make_builder("0xb1", ALICE, ref_uid=PARTNER_1, time=1),
            make_builder("0xb2", ALICE, ref_uid=PARTNER_1, time=2),
            make_builder("0xb3", BOB, ref_uid=PARTNER_1, time=3),
            make_builder("0xb4", BOB, ref_uid=PARTNER_2, time=4),
        ]
        partners = [make_partner(PARTNER_1, "Base"), make_partner(PARTNER_2, "Optimism", "https://optimism.io")]

        directory = await service.process_builder_data(builders, partners)

        counts = {p.name: p.verified_builders_count for p in directory.partners}
        assert counts == {"Base": 2, "Optimism": 1}
        assert directory.partners[1].url == "https://optimism.io"
        assert directory.partners[0].attestation_uid == PARTNER_1

    async def test_metrics(self, service: RegistryService, make_builder, make_partner):
        builders = [
            make_builder("0xb1", ALICE, time=1),
            make_builder("0xb2", ALICE, time=2),
            make_builder("0xb3", BOB, time=3),
        ]

        directory = await service.process_builder_data(builders, [make_partner(PARTNER_1)])

        assert directory.metrics.total_builders == 2
        assert directory.metrics.total_partners == 1
        assert directory.metrics.total_attestations == 3

    async def test_empty_context_is_none(self, service: RegistryService, make_builder):
        directory = await service.process_builder_data([make_builder("0xb1", ALICE)], [])
        assert directory.builders[0].context is None

    async def test_empty_input(self, service: RegistryService, ens):
        directory = await service.process_builder_data([], [])

        assert directory.builders == []
        assert directory.metrics.total_builders == 0
        ens.resolve_addresses.assert_not_awaited()


class TestEnrichment:
    """Tests for ENS and Talent enrichment."""

    async def test_ens_names_attached(self, service: RegistryService, make_builder, ens):
        builders = [make_builder("0xb1", ALICE), make_builder("0xb2", BOB)]

        directory = await service.process_builder_data(builders, [])

        names = {b.address: b.ens for b in directory.builders}
        assert names == {ALICE: "alice.eth", BOB: None}
        ens.resolve_addresses.assert_awaited_once_with([ALICE, BOB])

    async def test_talent_only_when_requested(self, service: RegistryService, make_builder, talent):
        builders = [make_builder("0xb1", ALICE), make_builder("0xb2", BOB)]

        without = await service.process_builder_data(builders, [])
        talent.get_talent_data_batch.assert_not_awaited()
        assert all(b.talent is None for b in without.builders)

        with_talent = await service.process_builder_data(builders, [], include_talent=True)
        rows = {b.address: b for b in with_talent.builders}
        assert rows[BOB].talent.score == 12.0
        assert rows[ALICE].talent is None

    async def test_without_enrichment_sources(self, eas, make_builder):
        service = RegistryService(eas)

        directory = await service.process_builder_data([make_builder("0xb1", ALICE)], [], include_talent=True)

        assert directory.builders[0].ens is None


# ============================================================================
# Load Tests
# ============================================================================


class TestLoad:
    """Tests for the cached end-to-end load."""

    async def test_load_fetches_and_caches(self, service: RegistryService, eas, make_builder, make_partner):
        partners = [make_partner(PARTNER_1)]
        eas.get_verification_partners.return_value = partners
        eas.get_verified_builders.return_value = [make_builder("0xb1", ALICE, ref_uid=PARTNER_1)]

        first = await service.load()
        second = await service.load()

        assert first.status == CacheStatus.MISS
        assert second.status == CacheStatus.HIT
        assert first.value.metrics.total_builders == 1
        eas.get_verified_builders.assert_awaited_once_with(partners)

    async def test_talent_variant_cached_separately(self, service: RegistryService, eas):
        eas.get_verification_partners.return_value = []
        eas.get_verified_builders.return_value = []

        await service.load()
        result = await service.load(include_talent=True)

        assert result.status == CacheStatus.MISS
        assert eas.get_verification_partners.await_count == 2

    async def test_attestation_errors_propagate(self, service: RegistryService, eas):
        eas.get_verification_partners.side_effect = RuntimeError("EAS down")

        with pytest.raises(RuntimeError, match="EAS down"):
            await service.load()
