"""Domain models for attestations and builder profiles."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_PARTNER = "Unknown"


class Attestation(BaseModel):
    """A raw EAS attestation as returned by the GraphQL endpoint."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., description="Attestation UID")
    attester: str = Field(..., description="Address that signed the attestation")
    recipient: str = Field(..., description="Address the attestation is about")
    ref_uid: str | None = Field(default=None, alias="refUID", description="Referenced attestation UID")
    revocation_time: int = Field(default=0, alias="revocationTime")
    expiration_time: int = Field(default=0, alias="expirationTime")
    time: int = Field(default=0, description="Unix timestamp of the attestation")
    txid: str | None = Field(default=None, description="Transaction hash")
    data: str = Field(default="0x", description="ABI-encoded schema data")

    @property
    def has_data(self) -> bool:
        return bool(self.data) and self.data != "0x"


class PartnerData(BaseModel):
    """Decoded payload of a verification partner attestation."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class BuilderData(BaseModel):
    """Decoded payload of a verified builder attestation."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    is_builder: bool = Field(..., alias="isBuilder")
    context: str


class PartnerAttestation(Attestation):
    """Verification partner attestation with decoded data."""

    decoded_data: PartnerData = Field(..., alias="decodedData")


class BuilderAttestation(Attestation):
    """Verified builder attestation with decoded data and partner name."""

    decoded_data: BuilderData = Field(..., alias="decodedData")
    partner_name: str = Field(default=UNKNOWN_PARTNER, alias="partnerName")


class TalentProfile(BaseModel):
    """Subset of a Talent Protocol profile used by the directory."""

    name: str | None = None
    display_name: str | None = None
    image_url: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TalentProfile:
        profile = payload.get("profile") or {}
        return cls(
            name=profile.get("name") or None,
            display_name=profile.get("display_name") or None,
            image_url=profile.get("image_url") or None,
        )


class TalentData(BaseModel):
    """Talent Protocol enrichment for one address."""

    score: float | None = None
    profile: TalentProfile | None = None


class ProcessedBuilder(BaseModel):
    """A builder row in the directory, keyed by recipient address."""

    id: str
    address: str
    total_verifications: int = 1
    earliest_attestation_id: str
    earliest_attestation_date: int
    earliest_partner_name: str = UNKNOWN_PARTNER
    earliest_partner_attestation_id: str | None = None
    context: str | None = None
    attestations: list[BuilderAttestation] = Field(default_factory=list)
    ens: str | None = None
    talent: TalentData | None = None


class ProcessedPartner(BaseModel):
    """A verification partner row in the directory."""

    id: str
    address: str
    name: str
    url: str
    attestation_uid: str
    verified_builders_count: int = 0


class RegistryMetrics(BaseModel):
    """Headline totals for the directory."""

    total_builders: int = 0
    total_partners: int = 0
    total_attestations: int = 0


class RegistryDirectory(BaseModel):
    """Processed builders, partners, and totals."""

    builders: list[ProcessedBuilder] = Field(default_factory=list)
    partners: list[ProcessedPartner] = Field(default_factory=list)
    metrics: RegistryMetrics = Field(default_factory=RegistryMetrics)
