"""Clients for the external services behind the directory."""

from buildreg.sources.base import AbstractSource, SourceConfig
from buildreg.sources.eas import EASClient, eascan_url
from buildreg.sources.ens import EnsResolver, EnsRpcEndpoint, namehash
from buildreg.sources.talent import TalentClient

__all__ = [
    "AbstractSource",
    "EASClient",
    "EnsResolver",
    "EnsRpcEndpoint",
    "SourceConfig",
    "TalentClient",
    "eascan_url",
    "namehash",
]
