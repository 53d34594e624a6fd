"""Ethereum Attestation Service (EAS) GraphQL client."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from pydantic import ValidationError as PydanticValidationError

from buildreg.cache.keys import CacheKeys
from buildreg.cache.memory import CacheResult
from buildreg.core.exceptions import MalformedResponseError
from buildreg.core.models import (
    UNKNOWN_PARTNER,
    Attestation,
    BuilderAttestation,
    BuilderData,
    PartnerAttestation,
    PartnerData,
)
from buildreg.core.types import SourceName
from buildreg.sources.base import AbstractSource

logger = logging.getLogger(__name__)

EASCAN_URL = "https://base.easscan.org"

# ABI layouts of the two schemas
PARTNER_SCHEMA_TYPES = ("string", "string")  # name, url
BUILDER_SCHEMA_TYPES = ("bool", "string")  # isBuilder, context

ATTESTATION_FIELDS = "id attester recipient refUID revocationTime expirationTime time txid data"

ATTESTATIONS_QUERY = """
query GetAttestations {{
  attestations(
    where: {{
      schemaId: {{ equals: "{schema_uid}" }}
      revoked: {{ equals: false }}
    }}
    take: {take}
    skip: {skip}
  ) {{
    {fields}
  }}
}}
"""


def eascan_url(uid: str) -> str:
    """Link to an attestation on EAScan."""
    return f"{EASCAN_URL}/attestation/view/{uid}"


def decode_partner_data(data: str) -> PartnerData | None:
    """Decode ``string name,string url``; None if empty or invalid."""
    values = _decode(PARTNER_SCHEMA_TYPES, data)
    if values is None:
        return None
    name, url = values
    if not name:
        return None
    return PartnerData(name=name, url=url)


def decode_builder_data(data: str) -> BuilderData | None:
    """Decode ``bool isBuilder,string context``; None if empty or invalid."""
    values = _decode(BUILDER_SCHEMA_TYPES, data)
    if values is None:
        return None
    is_builder, context = values
    return BuilderData(is_builder=is_builder, context=context)


def _decode(types: tuple[str, ...], data: str) -> tuple[Any, ...] | None:
    if not data or data == "0x":
        return None
    try:
        return decode(list(types), bytes.fromhex(data.removeprefix("0x")))
    except (DecodingError, ValueError) as e:
        logger.debug(f"Skipping undecodable attestation data: {e}")
        return None


class EASClient(AbstractSource):
    """
    Client for the EAS GraphQL endpoint on Base.

    API Documentation: https://docs.attest.org/docs/developer-tools/api
    """

    SOURCE_NAME: ClassVar[SourceName] = SourceName.EAS
    BASE_URL: ClassVar[str] = "https://base.easscan.org"
    CACHE_TTL: ClassVar[float] = 300.0
    STALE_WINDOW: ClassVar[float | None] = 600.0
    PAGE_SIZE: ClassVar[int] = 1000

    def __init__(
        self,
        *args: Any,
        partner_schema_uid: str,
        builder_schema_uid: str,
        graphql_url: str = "https://base.easscan.org/graphql",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.partner_schema_uid = partner_schema_uid
        self.builder_schema_uid = builder_schema_uid
        self.graphql_url = graphql_url

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Run a GraphQL query and return the full response body.

        Raises:
            MalformedResponseError: If the body has no ``data`` object.
            UpstreamError: On transport or HTTP failure after retries.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        response = await self._request("POST", self.graphql_url, json=payload)
        body = self._parse_json(response)

        data = body.get("data")
        if data is None:
            errors = body.get("errors") or []
            message = errors[0].get("message") if errors and isinstance(errors[0], dict) else None
            logger.error(f"EAS query returned no data: {message or body}")
            raise MalformedResponseError(
                message=f"EAS response missing data: {message or 'no data field'}",
                source=self.source_name.value,
                details={"endpoint": self.graphql_url},
            )
        if not isinstance(data, dict):
            logger.error(f"EAS query returned non-object data: {type(data).__name__}")
            raise MalformedResponseError(
                message="EAS response data is not an object",
                source=self.source_name.value,
                details={"endpoint": self.graphql_url},
            )
        return body

    async def query(self, query: str, *, force_refresh: bool = False) -> CacheResult[dict[str, Any]]:
        """Run a GraphQL query through the short-TTL cache."""
        return await self._cached(
            CacheKeys.eas_query(query),
            lambda: self.execute(query),
            force_refresh=force_refresh,
        )

    async def fetch_attestations(self, schema_uid: str) -> list[Attestation]:
        """Fetch every non-revoked attestation of a schema, page by page."""
        attestations: list[Attestation] = []
        skip = 0

        while True:
            query = ATTESTATIONS_QUERY.format(
                schema_uid=schema_uid,
                take=self.PAGE_SIZE,
                skip=skip,
                fields=ATTESTATION_FIELDS,
            )
            body = await self.execute(query)
            page = body["data"].get("attestations")
            if not isinstance(page, list):
                raise MalformedResponseError(
                    message="EAS response missing attestations",
                    source=self.source_name.value,
                    details={"schema_uid": schema_uid, "skip": skip},
                )

            try:
                attestations.extend(Attestation.model_validate(item) for item in page)
            except PydanticValidationError as e:
                logger.error(f"Malformed attestation in schema {schema_uid} page at {skip}: {e}")
                raise MalformedResponseError(
                    message="EAS response contains a malformed attestation",
                    source=self.source_name.value,
                    details={"schema_uid": schema_uid, "skip": skip},
                ) from e

            if len(page) < self.PAGE_SIZE:
                break
            skip += self.PAGE_SIZE

        logger.debug(f"Fetched {len(attestations)} attestations for schema {schema_uid}")
        return attestations

    async def get_verification_partners(self) -> list[PartnerAttestation]:
        """Partner attestations with decoded ``name`` and ``url``."""
        partners = []
        for attestation in await self.fetch_attestations(self.partner_schema_uid):
            decoded = decode_partner_data(attestation.data)
            if decoded is None:
                continue
            partners.append(
                PartnerAttestation(**attestation.model_dump(by_alias=True), decodedData=decoded)
            )
        return partners

    async def get_verified_builders(
        self,
        partners: list[PartnerAttestation] | None = None,
    ) -> list[BuilderAttestation]:
        """
        Builder attestations with ``isBuilder`` set, tagged with partner names.

        Args:
            partners: Already fetched partners; fetched when not given.
        """
        if partners is None:
            partners = await self.get_verification_partners()
        partner_names = {p.id: p.decoded_data.name for p in partners}

        builders = []
        for attestation in await self.fetch_attestations(self.builder_schema_uid):
            decoded = decode_builder_data(attestation.data)
            if decoded is None or not decoded.is_builder:
                continue

            partner_name = UNKNOWN_PARTNER
            if attestation.ref_uid:
                partner_name = partner_names.get(attestation.ref_uid, UNKNOWN_PARTNER)

            builders.append(
                BuilderAttestation(
                    **attestation.model_dump(by_alias=True),
                    decodedData=decoded,
                    partnerName=partner_name,
                )
            )
        return builders
