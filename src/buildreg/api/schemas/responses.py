"""Response schemas for API endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from buildreg.api.schemas.base import APIBaseSchema, PerformanceInfo


# ============================================================================
# Cache
# ============================================================================


class CacheCountersResponse(APIBaseSchema):
    hits: int
    misses: int
    hit_rate: float
    errors: int
    error_rate: float


class PerformanceStatsResponse(APIBaseSchema):
    avg_latency_ms: float
    p95_latency_ms: float
    sample_size: int


class ErrorSampleResponse(APIBaseSchema):
    timestamp: datetime
    error: str


class MetricsResponse(APIBaseSchema):
    """Cache and latency metrics."""

    cache: CacheCountersResponse
    performance: PerformanceStatsResponse
    last_errors: list[ErrorSampleResponse] = Field(default_factory=list)
    uptime_seconds: float
    timestamp: datetime


class CacheQueryResponse(APIBaseSchema):
    """EAS data served by the cache endpoint."""

    data: dict[str, Any]
    performance: PerformanceInfo


# ============================================================================
# ENS
# ============================================================================


class BatchMetricsResponse(APIBaseSchema):
    requested: int
    unique: int
    resolved: int
    failed: int
    batches: int
    duration_ms: float


class EnsResolveResponse(APIBaseSchema):
    """Verified ENS names keyed by the requested address."""

    ens_map: dict[str, str]
    metrics: BatchMetricsResponse


# ============================================================================
# Registry
# ============================================================================


class TalentResponse(APIBaseSchema):
    score: float | None = None
    name: str | None = None
    display_name: str | None = None
    image_url: str | None = None


class BuilderResponse(APIBaseSchema):
    id: str
    address: str
    ens: str | None = None
    total_verifications: int
    earliest_attestation_id: str
    earliest_attestation_date: int
    earliest_partner_name: str
    earliest_partner_attestation_id: str | None = None
    context: str | None = None
    attestation_ids: list[str] = Field(default_factory=list)
    eascan_url: str
    talent: TalentResponse | None = None


class PartnerResponse(APIBaseSchema):
    id: str
    address: str
    name: str
    url: str
    attestation_uid: str
    verified_builders_count: int


class RegistryMetricsResponse(APIBaseSchema):
    total_builders: int
    total_partners: int
    total_attestations: int


class RegistryResponse(APIBaseSchema):
    """Processed builder/partner directory."""

    builders: list[BuilderResponse]
    partners: list[PartnerResponse]
    metrics: RegistryMetricsResponse


# ============================================================================
# Operations
# ============================================================================


class HealthResponse(APIBaseSchema):
    """Health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    cache_entries: int
    pending_refreshes: int


class DebugResponse(APIBaseSchema):
    """Environment flags for local debugging (never secrets)."""

    environment: str
    has_talent_api_key: bool
    talent_api_key_length: int
    ens_endpoints: list[str]
    python_version: str
    timestamp: datetime
