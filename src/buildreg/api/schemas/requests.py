"""Request schemas for API endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field

from buildreg.api.schemas.base import APIBaseSchema


class CacheQueryRequest(APIBaseSchema):
    """EAS GraphQL query served through the cache."""

    query: Annotated[
        str,
        Field(
            min_length=1,
            max_length=20000,
            description="GraphQL query text",
        ),
    ]

    force_refresh: Annotated[
        bool,
        Field(
            default=False,
            description="Bypass a cached result and fetch synchronously.",
        ),
    ]


class EASQueryRequest(APIBaseSchema):
    """EAS GraphQL query passed through without caching."""

    query: Annotated[str, Field(min_length=1, max_length=20000)]
    variables: Annotated[
        dict[str, Any] | None,
        Field(default=None, description="GraphQL variables"),
    ]


class EnsResolveRequest(APIBaseSchema):
    """Addresses to resolve to ENS names."""

    addresses: Annotated[
        list[str],
        Field(
            max_length=5000,
            description="Wallet addresses (0x-prefixed hex)",
        ),
    ]
