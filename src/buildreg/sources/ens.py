"""ENS reverse resolution over plain Ethereum JSON-RPC with endpoint fallback."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from typing import Any, ClassVar

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from buildreg.cache.keys import CacheKeys
from buildreg.cache.memory import ReadThroughCache
from buildreg.core.addresses import normalize_address
from buildreg.core.exceptions import MalformedResponseError, UpstreamError
from buildreg.core.types import SourceName
from buildreg.resilience.batch import BatchOrchestrator, BatchReport
from buildreg.resilience.fallback import Endpoint, EndpointsExhaustedError, FallbackClient
from buildreg.resilience.fetch import ResilientFetch
from buildreg.resilience.retry import NO_RETRY
from buildreg.sources.base import AbstractSource, SourceConfig

logger = logging.getLogger(__name__)

ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
ZERO_ADDRESS = "0x" + "00" * 20

# Function selectors
RESOLVER_SELECTOR = "0178b8bf"  # resolver(bytes32)
NAME_SELECTOR = "691f3431"  # name(bytes32)
ADDR_SELECTOR = "3b3b57de"  # addr(bytes32)


def namehash(name: str) -> bytes:
    """EIP-137 namehash of a dot-separated ENS name."""
    node = b"\x00" * 32
    if name:
        for label in reversed(name.lower().split(".")):
            node = keccak(node + keccak(label.encode("utf-8")))
    return node


def reverse_node(address: str) -> bytes:
    """Node of ``<address>.addr.reverse`` for a 0x-prefixed address."""
    return namehash(f"{address.lower().removeprefix('0x')}.addr.reverse")


class EnsRpcEndpoint(AbstractSource):
    """
    One JSON-RPC provider able to answer ENS registry/resolver calls.

    Each call is a single attempt; retrying is left to the fallback rotation
    across providers.
    """

    SOURCE_NAME: ClassVar[SourceName] = SourceName.ENS

    def __init__(self, endpoint: Endpoint, timeout: float = 5.0, **kwargs: Any) -> None:
        kwargs.setdefault("retry_policy", NO_RETRY)
        super().__init__(SourceConfig(timeout=timeout), **kwargs)
        self.endpoint = endpoint
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self.endpoint.url

    def __repr__(self) -> str:
        return f"EnsRpcEndpoint({self.url!r})"

    async def eth_call(self, to: str, data: str) -> bytes:
        """Run ``eth_call`` against the latest block and return the raw result."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "eth_call",
            "params": [{"to": to, "data": data}, "latest"],
        }
        response = await self._request("POST", self.url, json=payload)
        body = self._parse_json(response)

        if "error" in body:
            error = body["error"] or {}
            raise UpstreamError(
                message=f"RPC error: {error.get('message', error)}",
                source=self.source_name.value,
                details={"endpoint": self.url},
            )
        result = body.get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise MalformedResponseError(
                message="RPC response missing result",
                source=self.source_name.value,
                details={"endpoint": self.url},
            )
        return bytes.fromhex(result[2:])

    async def get_resolver(self, node: bytes) -> str | None:
        raw = await self.eth_call(ENS_REGISTRY, f"0x{RESOLVER_SELECTOR}{node.hex()}")
        resolver = self._decode_single("address", raw)
        if resolver is None or resolver.lower() == ZERO_ADDRESS:
            return None
        return resolver

    async def lookup_address(self, address: str) -> str | None:
        """Primary ENS name recorded in the reverse registrar, unverified."""
        node = reverse_node(address)
        resolver = await self.get_resolver(node)
        if resolver is None:
            return None
        raw = await self.eth_call(resolver, f"0x{NAME_SELECTOR}{node.hex()}")
        name = self._decode_single("string", raw)
        return name or None

    async def resolve_name(self, name: str) -> str | None:
        """Address a name points to (lowercase), or None if unset."""
        node = namehash(name)
        resolver = await self.get_resolver(node)
        if resolver is None:
            return None
        raw = await self.eth_call(resolver, f"0x{ADDR_SELECTOR}{node.hex()}")
        resolved = self._decode_single("address", raw)
        if resolved is None or resolved.lower() == ZERO_ADDRESS:
            return None
        return resolved.lower()

    def _decode_single(self, abi_type: str, raw: bytes) -> Any:
        if not raw:
            return None
        try:
            return decode([abi_type], raw)[0]
        except DecodingError as e:
            raise MalformedResponseError(
                message=f"Could not decode {abi_type} from RPC result",
                source=self.source_name.value,
                details={"endpoint": self.url},
            ) from e


class EnsResolver:
    """
    Resolves addresses to verified primary ENS names.

    A name is accepted only if it resolves back to the same address. Lookups
    rotate across RPC providers on failure, are cached for a day, and degrade
    to None when no provider answers.
    """

    CACHE_TTL: ClassVar[float] = 86400.0

    def __init__(
        self,
        endpoints: Sequence[EnsRpcEndpoint],
        *,
        cache: ReadThroughCache | None = None,
        cache_ttl: float | None = None,
        orchestrator: BatchOrchestrator | None = None,
        verify: bool = True,
    ) -> None:
        self._endpoints = list(endpoints)
        self._fallback: FallbackClient[EnsRpcEndpoint, str] = FallbackClient(
            self._endpoints,
            self._lookup_on,
            name="ens",
        )
        self._fetch = ResilientFetch(cache, ttl=cache_ttl if cache_ttl is not None else self.CACHE_TTL, name="ens")
        self.orchestrator = orchestrator or BatchOrchestrator()
        self.verify = verify

    @classmethod
    def from_urls(cls, urls: Sequence[str], *, timeout: float = 5.0, **kwargs: Any) -> EnsResolver:
        endpoints = [EnsRpcEndpoint(endpoint, timeout=timeout) for endpoint in Endpoint.from_urls(urls)]
        return cls(endpoints, **kwargs)

    @property
    def fallback(self) -> FallbackClient[EnsRpcEndpoint, str]:
        return self._fallback

    async def _lookup_on(self, endpoint: EnsRpcEndpoint, address: str) -> str | None:
        name = await endpoint.lookup_address(address)
        if name is None or not self.verify:
            return name

        resolved = await endpoint.resolve_name(name)
        if resolved != address.lower():
            logger.debug(f"ENS name {name} does not resolve back to {address}")
            return None
        return name

    async def lookup(self, address: str) -> str | None:
        """
        Verified ENS name for ``address``, or None.

        Never raises for upstream failures; an invalid address raises
        ``ValidationError``.
        """
        normalized = normalize_address(address)
        try:
            result = await self._fetch.get(
                CacheKeys.ens_name(normalized),
                lambda: self._fallback.lookup_or_raise(normalized),
            )
        except EndpointsExhaustedError as e:
            logger.warning(f"ENS lookup failed for {address}: {e.message}")
            return None
        return result.value

    async def resolve_addresses_report(self, addresses: Sequence[str]) -> BatchReport[str]:
        """Resolve many addresses; the report also carries batch counters."""
        return await self.orchestrator.run(addresses, self.lookup)

    async def resolve_addresses(self, addresses: Sequence[str]) -> dict[str, str]:
        """Map each input address that has a verified name to that name."""
        report = await self.resolve_addresses_report(addresses)
        return report.results

    async def close(self) -> None:
        for endpoint in self._endpoints:
            await endpoint.close()
