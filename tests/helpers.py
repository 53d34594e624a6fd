"""Constants and payload builders shared by the test suite."""

from __future__ import annotations

import json

from eth_abi import encode
from httpx import Request, Response

from buildreg.sources.ens import (
    ADDR_SELECTOR,
    NAME_SELECTOR,
    RESOLVER_SELECTOR,
    namehash,
    reverse_node,
)

GRAPHQL_URL = "https://eas.test/graphql"
TALENT_URL = "https://talent.test"
RPC_A = "https://rpc-a.test/"
RPC_B = "https://rpc-b.test/"
RPC_C = "https://rpc-c.test/"

PARTNER_SCHEMA = "0x" + "aa" * 32
BUILDER_SCHEMA = "0x" + "bb" * 32
ZERO_UID = "0x" + "00" * 32

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
PARTNER_ADDRESS = "0x" + "cc" * 20
RESOLVER_ADDRESS = "0x" + "4e" * 20
ZERO_ADDRESS = "0x" + "00" * 20


class FakeClock:
    """Manually advanced wall clock in seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# EAS payloads
# ============================================================================


def encode_partner(name: str, url: str) -> str:
    return "0x" + encode(["string", "string"], [name, url]).hex()


def encode_builder(is_builder: bool, context: str) -> str:
    return "0x" + encode(["bool", "string"], [is_builder, context]).hex()


def raw_attestation(
    uid: str,
    recipient: str,
    *,
    data: str = "0x",
    ref_uid: str = ZERO_UID,
    time: int = 1_700_000_000,
) -> dict:
    """An attestation as the EAS GraphQL endpoint returns it."""
    return {
        "id": uid,
        "attester": PARTNER_ADDRESS,
        "recipient": recipient,
        "refUID": ref_uid,
        "revocationTime": 0,
        "expirationTime": 0,
        "time": time,
        "txid": "0x" + "ee" * 32,
        "data": data,
    }


def eas_responder(partners: list[dict], builders: list[dict]):
    """respx side effect answering attestation queries by schema UID."""

    def respond(request: Request) -> Response:
        query = json.loads(request.content)["query"]
        page = partners if PARTNER_SCHEMA in query else builders if BUILDER_SCHEMA in query else []
        return Response(200, json={"data": {"attestations": page}})

    return respond


# ============================================================================
# JSON-RPC payloads
# ============================================================================


def rpc_result(request: Request, data: bytes) -> Response:
    payload = json.loads(request.content)
    return Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": "0x" + data.hex()})


def ens_responder(
    names: dict[str, str],
    *,
    forward: dict[str, str] | None = None,
):
    """
    respx side effect emulating the ENS registry and one public resolver.

    Args:
        names: Address (lowercase) to primary name for reverse records.
        forward: Name to address for forward records; defaults to the
            inverse of ``names`` so every reverse record verifies.
    """
    forward = forward if forward is not None else {name: address for address, name in names.items()}

    reverse_nodes = {reverse_node(address).hex(): name for address, name in names.items()}
    forward_nodes = {namehash(name).hex(): address for name, address in forward.items()}

    def respond(request: Request) -> Response:
        call = json.loads(request.content)["params"][0]
        selector, node = call["data"][2:10], call["data"][10:]

        if selector == RESOLVER_SELECTOR:
            known = node in reverse_nodes or node in forward_nodes
            resolver = RESOLVER_ADDRESS if known else ZERO_ADDRESS
            return rpc_result(request, encode(["address"], [resolver]))
        if selector == NAME_SELECTOR:
            return rpc_result(request, encode(["string"], [reverse_nodes.get(node, "")]))
        if selector == ADDR_SELECTOR:
            return rpc_result(request, encode(["address"], [forward_nodes.get(node, ZERO_ADDRESS)]))
        return Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"message": "unknown call"}})

    return respond
