"""Cache key builders for consistent key formatting."""

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    """Collapse whitespace runs so formatting differences share a key."""
    return _WHITESPACE_RE.sub(" ", query).strip()


class CacheKeys:
    """Cache key builders for consistent key formatting."""

    PREFIX = "buildreg"

    @classmethod
    def eas_query(cls, query: str) -> str:
        """Key for an EAS GraphQL query result."""
        return f"{cls.PREFIX}:eas:{normalize_query(query)}"

    @classmethod
    def registry(cls) -> str:
        """Key for the processed builder/partner directory."""
        return f"{cls.PREFIX}:registry"

    @classmethod
    def talent_profile(cls, address: str) -> str:
        return f"{cls.PREFIX}:talent:profile:{address.lower()}"

    @classmethod
    def talent_score(cls, address: str) -> str:
        return f"{cls.PREFIX}:talent:score:{address.lower()}"

    @classmethod
    def ens_name(cls, address: str) -> str:
        """Key for the verified ENS name of an address."""
        return f"{cls.PREFIX}:ens:{address.lower()}"
