"""API schema definitions."""

from buildreg.api.schemas.base import (
    APIBaseSchema,
    APIError,
    ErrorDetail,
    PerformanceInfo,
)
from buildreg.api.schemas.requests import (
    CacheQueryRequest,
    EASQueryRequest,
    EnsResolveRequest,
)
from buildreg.api.schemas.responses import (
    BatchMetricsResponse,
    BuilderResponse,
    CacheCountersResponse,
    CacheQueryResponse,
    DebugResponse,
    EnsResolveResponse,
    ErrorSampleResponse,
    HealthResponse,
    MetricsResponse,
    PartnerResponse,
    PerformanceStatsResponse,
    RegistryMetricsResponse,
    RegistryResponse,
    TalentResponse,
)

__all__ = [
    # Base
    "APIBaseSchema",
    "APIError",
    "ErrorDetail",
    "PerformanceInfo",
    # Requests
    "CacheQueryRequest",
    "EASQueryRequest",
    "EnsResolveRequest",
    # Responses
    "BatchMetricsResponse",
    "BuilderResponse",
    "CacheCountersResponse",
    "CacheQueryResponse",
    "DebugResponse",
    "EnsResolveResponse",
    "ErrorSampleResponse",
    "HealthResponse",
    "MetricsResponse",
    "PartnerResponse",
    "PerformanceStatsResponse",
    "RegistryMetricsResponse",
    "RegistryResponse",
    "TalentResponse",
]
