"""Talent Protocol profile and score client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, ClassVar, TypeVar

from buildreg.cache.keys import CacheKeys
from buildreg.core.exceptions import MalformedResponseError
from buildreg.core.models import TalentData, TalentProfile
from buildreg.core.types import SourceName
from buildreg.resilience.batch import BatchOrchestrator
from buildreg.sources.base import AbstractSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TalentClient(AbstractSource):
    """
    Talent Protocol API client (requires an API key).

    A 404 means the wallet has no profile or score; it is reported as None
    and never retried. Results are cached for a day.
    """

    SOURCE_NAME: ClassVar[SourceName] = SourceName.TALENT
    BASE_URL: ClassVar[str] = "https://api.talentprotocol.com"
    CACHE_TTL: ClassVar[float] = 86400.0

    def __init__(
        self,
        *args: Any,
        orchestrator: BatchOrchestrator | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.orchestrator = orchestrator or BatchOrchestrator()

    def _get_default_headers(self) -> dict[str, str]:
        headers = super()._get_default_headers()
        headers["X-API-KEY"] = self.config.api_key or ""
        return headers

    async def _fetch_wallet_resource(self, path: str, address: str) -> dict[str, Any] | None:
        response = await self._request(
            "GET",
            path,
            params={"source": "wallet", "id": address},
            allow_status=(404,),
        )
        if response.status_code == 404:
            return None
        return self._parse_json(response)

    async def fetch_profile(self, address: str, *, force_refresh: bool = False) -> dict[str, Any] | None:
        """Raw ``/profile`` payload for a wallet, or None if it has no profile."""
        result = await self._cached(
            CacheKeys.talent_profile(address),
            lambda: self._fetch_wallet_resource("/profile", address),
            force_refresh=force_refresh,
        )
        return result.value

    async def fetch_score(self, address: str, *, force_refresh: bool = False) -> dict[str, Any] | None:
        """Raw ``/score`` payload for a wallet, or None if it has no score."""
        result = await self._cached(
            CacheKeys.talent_score(address),
            lambda: self._fetch_wallet_resource("/score", address),
            force_refresh=force_refresh,
        )
        return result.value

    async def get_profile(self, address: str) -> TalentProfile | None:
        payload = await self.fetch_profile(address)
        if payload is None:
            return None
        if not isinstance(payload.get("profile") or {}, dict):
            raise MalformedResponseError(
                message="Talent profile payload has unexpected shape",
                source=self.source_name.value,
                details={"address": address},
            )
        return TalentProfile.from_payload(payload)

    async def get_score(self, address: str) -> float | None:
        """Builder score points, or None if the wallet has no score."""
        payload = await self.fetch_score(address)
        if payload is None:
            return None
        score = payload.get("score")
        if score is None:
            return None
        if not isinstance(score, dict):
            raise MalformedResponseError(
                message="Talent score payload has unexpected shape",
                source=self.source_name.value,
                details={"address": address},
            )
        points = score.get("points")
        return float(points) if points is not None else None

    async def get_talent_data(self, address: str) -> TalentData:
        """
        Score and profile for one wallet.

        Each half degrades to None on failure; this data is optional
        enrichment for the directory.
        """
        score, profile = await asyncio.gather(
            self._optional(self.get_score(address), "score", address),
            self._optional(self.get_profile(address), "profile", address),
        )
        return TalentData(score=score, profile=profile)

    @staticmethod
    async def _optional(coro: Awaitable[T], what: str, address: str) -> T | None:
        try:
            return await coro
        except Exception as e:
            logger.warning(f"Error fetching Talent Protocol {what} for {address}: {e}")
            return None

    async def get_talent_data_batch(self, addresses: list[str]) -> dict[str, TalentData]:
        """Talent data for many wallets, resolved in rate-limited batches."""
        return await self.orchestrator.resolve_all(addresses, self.get_talent_data)
