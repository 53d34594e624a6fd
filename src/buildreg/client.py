"""Main library client for standalone usage."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from buildreg.cache.memory import CacheResult, ReadThroughCache
from buildreg.config import BuildregSettings
from buildreg.core.exceptions import UpstreamError
from buildreg.core.models import RegistryDirectory, TalentData
from buildreg.resilience.batch import BatchOrchestrator, BatchReport
from buildreg.resilience.metrics import MetricsRecorder, MetricsSnapshot
from buildreg.resilience.retry import RetryPolicy, Sleep
from buildreg.services.registry import RegistryService
from buildreg.sources.base import SourceConfig
from buildreg.sources.eas import EASClient
from buildreg.sources.ens import EnsResolver
from buildreg.sources.talent import TalentClient

logger = logging.getLogger(__name__)


class BuildregClient:
    """
    Main client for the buildreg library.

    Owns the process-wide metrics recorder, the read-through cache, and the
    EAS, ENS, and Talent Protocol clients. Construct one per process (the API
    does this in its lifespan) or per test.

    Usage:
        async with BuildregClient() as client:
            # Cached EAS GraphQL query
            result = await client.query_eas("{ attestations(take: 1) { id } }")

            # Verified ENS names for many addresses
            names = await client.resolve_ens_names(["0xd8da6bf26964af9d7eed9e03e53415d37aa96045"])

            # Processed builder directory
            directory = await client.load_registry()

    Settings are loaded from environment variables or can be passed explicitly.
    """

    def __init__(
        self,
        settings: BuildregSettings | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings or BuildregSettings()
        self._sleep = sleep
        self.metrics_recorder: MetricsRecorder | None = None
        self.cache: ReadThroughCache | None = None
        self.eas: EASClient | None = None
        self.ens: EnsResolver | None = None
        self.talent: TalentClient | None = None
        self.registry: RegistryService | None = None

    @property
    def settings(self) -> BuildregSettings:
        return self._settings

    async def __aenter__(self) -> BuildregClient:
        """Initialize resources on context entry."""
        self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Clean up resources on context exit."""
        await self.close()

    def initialize(self) -> None:
        """Build the cache, metrics, and source clients from settings."""
        if self.cache is not None:
            return
        settings = self._settings

        self.metrics_recorder = MetricsRecorder(
            settings.metrics_latency_samples,
            settings.metrics_error_samples,
        )
        self.cache = ReadThroughCache(self.metrics_recorder, default_ttl=settings.eas_cache_ttl)
        retry_policy = RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            base_delay=settings.retry_base_delay,
            backoff=settings.retry_backoff,
            retry_on=(UpstreamError,),
        )
        orchestrator = BatchOrchestrator(settings.batch_size, settings.batch_delay, sleep=self._sleep)

        self.eas = EASClient(
            SourceConfig(timeout=settings.request_timeout),
            partner_schema_uid=settings.partner_schema_uid,
            builder_schema_uid=settings.builder_schema_uid,
            graphql_url=settings.eas_graphql_url,
            retry_policy=retry_policy,
            cache=self.cache,
            cache_ttl=settings.eas_cache_ttl,
            stale_window=settings.eas_stale_window,
            sleep=self._sleep,
        )
        self.talent = TalentClient(
            SourceConfig(
                api_key=settings.talent_api_key,
                base_url=settings.talent_api_url,
                timeout=settings.request_timeout,
            ),
            retry_policy=retry_policy,
            cache=self.cache,
            cache_ttl=settings.talent_cache_ttl,
            orchestrator=orchestrator,
            sleep=self._sleep,
        )
        self.ens = EnsResolver.from_urls(
            settings.ens_rpc_endpoints,
            timeout=settings.request_timeout,
            cache=self.cache,
            cache_ttl=settings.ens_cache_ttl,
            orchestrator=orchestrator,
        )
        self.registry = RegistryService(
            self.eas,
            self.ens,
            self.talent,
            cache=self.cache,
            cache_ttl=settings.eas_cache_ttl,
            stale_window=settings.eas_stale_window,
        )
        if not settings.talent_api_key:
            logger.warning("No Talent Protocol API key configured; Talent lookups will fail")
        logger.info("buildreg client initialized")

    async def close(self) -> None:
        """Close all resources."""
        if self.cache is not None:
            await self.cache.close()
        for source in (self.eas, self.talent, self.ens):
            if source is not None:
                await source.close()
        self.cache = None
        self.eas = self.talent = self.ens = None
        self.registry = None

    def _ensure_initialized(self) -> None:
        """Ensure client is initialized."""
        if self.cache is None:
            raise RuntimeError(
                "Client not initialized. Use 'async with BuildregClient() as client:'"
            )

    async def query_eas(self, query: str, *, force_refresh: bool = False) -> CacheResult[dict[str, Any]]:
        """Cached EAS GraphQL query (stale-while-revalidate)."""
        self._ensure_initialized()
        return await self.eas.query(query, force_refresh=force_refresh)

    async def resolve_ens_names(self, addresses: list[str]) -> BatchReport[str]:
        """Verified ENS names for many addresses, with batch counters."""
        self._ensure_initialized()
        return await self.ens.resolve_addresses_report(addresses)

    async def get_talent_data(self, addresses: list[str]) -> dict[str, TalentData]:
        """Talent Protocol score and profile for many addresses."""
        self._ensure_initialized()
        return await self.talent.get_talent_data_batch(addresses)

    async def load_registry(
        self,
        *,
        include_talent: bool = False,
        force_refresh: bool = False,
    ) -> CacheResult[RegistryDirectory]:
        """Processed builder/partner directory."""
        self._ensure_initialized()
        return await self.registry.load(include_talent=include_talent, force_refresh=force_refresh)

    def metrics(self) -> MetricsSnapshot:
        """Current cache and latency metrics."""
        self._ensure_initialized()
        return self.metrics_recorder.snapshot()
