"""Registry service for building the builder/partner directory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildreg.cache.keys import CacheKeys
from buildreg.cache.memory import CacheResult, ReadThroughCache
from buildreg.core.models import (
    UNKNOWN_PARTNER,
    BuilderAttestation,
    PartnerAttestation,
    ProcessedBuilder,
    ProcessedPartner,
    RegistryDirectory,
    RegistryMetrics,
)
from buildreg.resilience.fetch import ResilientFetch

if TYPE_CHECKING:
    from buildreg.sources.eas import EASClient
    from buildreg.sources.ens import EnsResolver
    from buildreg.sources.talent import TalentClient

logger = logging.getLogger(__name__)


class RegistryService:
    """
    Service producing the processed directory shown to users.

    Orchestrates the full load:
    1. Fetch partner and builder attestations from EAS
    2. Group builder attestations by recipient, keeping the earliest one
    3. Count unique builders per partner
    4. Enrich builders with ENS names (and optionally Talent data) in batches

    Attestations are required data and errors propagate; enrichment is
    optional and degrades to missing fields.
    """

    def __init__(
        self,
        eas: EASClient,
        ens: EnsResolver | None = None,
        talent: TalentClient | None = None,
        *,
        cache: ReadThroughCache | None = None,
        cache_ttl: float = 300.0,
        stale_window: float | None = 600.0,
    ) -> None:
        self._eas = eas
        self._ens = ens
        self._talent = talent
        self._fetch = ResilientFetch(cache, ttl=cache_ttl, stale_window=stale_window, name="registry")

    async def load(
        self,
        *,
        include_talent: bool = False,
        force_refresh: bool = False,
    ) -> CacheResult[RegistryDirectory]:
        """Load the directory through the cache under a fixed logical key."""
        key = CacheKeys.registry() + (":talent" if include_talent else "")
        return await self._fetch.get(
            key,
            lambda: self.build(include_talent=include_talent),
            force_refresh=force_refresh,
        )

    async def build(self, *, include_talent: bool = False) -> RegistryDirectory:
        """Fetch attestations and process them into a directory."""
        partners = await self._eas.get_verification_partners()
        builders = await self._eas.get_verified_builders(partners)
        logger.info(f"Loaded {len(builders)} builder and {len(partners)} partner attestations")
        return await self.process_builder_data(builders, partners, include_talent=include_talent)

    async def process_builder_data(
        self,
        builder_attestations: list[BuilderAttestation],
        partner_attestations: list[PartnerAttestation],
        *,
        include_talent: bool = False,
    ) -> RegistryDirectory:
        """
        Group attestations into builder and partner rows and compute totals.

        Args:
            builder_attestations: Decoded builder attestations
            partner_attestations: Decoded partner attestations
            include_talent: Also attach Talent Protocol score/profile

        Returns:
            Directory with builders, partners, and metrics
        """
        partner_builders: dict[str, set[str]] = {}
        builder_map: dict[str, ProcessedBuilder] = {}

        for attestation in builder_attestations:
            if attestation.ref_uid:
                partner_builders.setdefault(attestation.ref_uid, set()).add(attestation.recipient)

            existing = builder_map.get(attestation.recipient)
            if existing is None:
                builder_map[attestation.recipient] = self._new_builder(attestation)
                continue

            existing.total_verifications += 1
            existing.attestations.append(attestation)
            if attestation.time < existing.earliest_attestation_date:
                self._set_earliest(existing, attestation)

        builders = list(builder_map.values())
        await self._enrich(builders, include_talent=include_talent)

        partners = [
            ProcessedPartner(
                id=attestation.id,
                address=attestation.recipient,
                name=attestation.decoded_data.name,
                url=attestation.decoded_data.url,
                attestation_uid=attestation.id,
                verified_builders_count=len(partner_builders.get(attestation.id, ())),
            )
            for attestation in partner_attestations
        ]

        return RegistryDirectory(
            builders=builders,
            partners=partners,
            metrics=RegistryMetrics(
                total_builders=len(builder_map),
                total_partners=len(partners),
                total_attestations=len(builder_attestations),
            ),
        )

    @staticmethod
    def _new_builder(attestation: BuilderAttestation) -> ProcessedBuilder:
        builder = ProcessedBuilder(
            id=attestation.id,
            address=attestation.recipient,
            earliest_attestation_id=attestation.id,
            earliest_attestation_date=attestation.time,
            attestations=[attestation],
        )
        RegistryService._set_earliest(builder, attestation)
        return builder

    @staticmethod
    def _set_earliest(builder: ProcessedBuilder, attestation: BuilderAttestation) -> None:
        builder.id = attestation.id
        builder.earliest_attestation_id = attestation.id
        builder.earliest_attestation_date = attestation.time
        builder.earliest_partner_name = attestation.partner_name or UNKNOWN_PARTNER
        builder.earliest_partner_attestation_id = attestation.ref_uid
        builder.context = attestation.decoded_data.context or None

    async def _enrich(self, builders: list[ProcessedBuilder], *, include_talent: bool) -> None:
        addresses = [b.address for b in builders]
        if not addresses:
            return

        if self._ens is not None:
            ens_map = await self._ens.resolve_addresses(addresses)
            for builder in builders:
                builder.ens = ens_map.get(builder.address)

        if include_talent and self._talent is not None:
            talent_map = await self._talent.get_talent_data_batch(addresses)
            for builder in builders:
                builder.talent = talent_map.get(builder.address)
