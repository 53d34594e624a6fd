"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildreg.core.types import BackoffStrategy


class BuildregSettings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="BUILDREG_",
    )

    # External APIs
    eas_graphql_url: str = Field(
        default="https://base.easscan.org/graphql",
        description="EAS GraphQL endpoint (Base mainnet)",
    )
    talent_api_url: str = Field(
        default="https://api.talentprotocol.com",
        description="Talent Protocol REST API base URL",
    )
    talent_api_key: str | None = Field(
        default=None,
        description="Talent Protocol API key (sent as X-API-KEY)",
    )
    ens_rpc_endpoints: list[str] = Field(
        default=[
            "https://eth.llamarpc.com",
            "https://rpc.ankr.com/eth",
            "https://ethereum.publicnode.com",
        ],
        min_length=1,
        description="Ethereum mainnet JSON-RPC endpoints used for ENS, in fallback order",
    )

    # EAS schemas
    partner_schema_uid: str = Field(
        default="0x0c25f92df9ba914668f7780e428a1b5238ae7441c765fbe8b7b528f8209ef4e3",
        description="Schema UID of verification partner attestations",
    )
    builder_schema_uid: str = Field(
        default="0x597905068aedcde4321ceaf2c42e24d3bbe0af694159bececd686bf057ec7ea5",
        description="Schema UID of verified builder attestations",
    )

    # Network behavior
    request_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Hard timeout for a single upstream request in seconds",
    )
    retry_max_attempts: int = Field(
        default=4,
        ge=1,
        description="Total attempts per upstream call, including the first",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Delay between retries in seconds",
    )
    retry_backoff: BackoffStrategy = Field(
        default=BackoffStrategy.FIXED,
        description="Retry delay schedule",
    )

    # Cache TTLs (seconds)
    eas_cache_ttl: float = Field(default=300.0, gt=0, description="EAS query freshness")
    eas_stale_window: float = Field(
        default=600.0,
        gt=0,
        description="Age up to which stale EAS results are served while refreshing",
    )
    talent_cache_ttl: float = Field(default=86400.0, gt=0, description="Talent data freshness")
    ens_cache_ttl: float = Field(default=86400.0, gt=0, description="ENS name freshness")

    # Batching
    batch_size: int = Field(default=50, ge=1, description="Keys resolved concurrently per batch")
    batch_delay: float = Field(default=0.5, ge=0, description="Pause between batches in seconds")

    # Metrics buffers
    metrics_latency_samples: int = Field(default=100, ge=1)
    metrics_error_samples: int = Field(default=10, ge=1)

    # App settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )


@lru_cache
def get_settings() -> BuildregSettings:
    """Get cached settings instance."""
    return BuildregSettings()
