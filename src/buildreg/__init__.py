"""Buildreg - resilient external data access for an onchain builders directory."""

__version__ = "0.1.0"

from buildreg.cache import CacheKeys, CacheResult, ReadThroughCache  # noqa: E402
from buildreg.client import BuildregClient  # noqa: E402
from buildreg.config import BuildregSettings  # noqa: E402
from buildreg.core.models import (  # noqa: E402
    Attestation,
    BuilderAttestation,
    PartnerAttestation,
    ProcessedBuilder,
    ProcessedPartner,
    RegistryDirectory,
    TalentData,
    TalentProfile,
)
from buildreg.core.types import CacheStatus, MetricKind, SourceName  # noqa: E402
from buildreg.resilience import (  # noqa: E402
    BatchOrchestrator,
    FallbackClient,
    MetricsRecorder,
    RetryPolicy,
    retry,
    with_retry,
)

__all__ = [
    # Client
    "BuildregClient",
    "BuildregSettings",
    # Resilience
    "BatchOrchestrator",
    "FallbackClient",
    "MetricsRecorder",
    "RetryPolicy",
    "retry",
    "with_retry",
    # Cache
    "CacheKeys",
    "CacheResult",
    "ReadThroughCache",
    # Types
    "CacheStatus",
    "MetricKind",
    "SourceName",
    # Models
    "Attestation",
    "BuilderAttestation",
    "PartnerAttestation",
    "ProcessedBuilder",
    "ProcessedPartner",
    "RegistryDirectory",
    "TalentData",
    "TalentProfile",
    # Version
    "__version__",
]
