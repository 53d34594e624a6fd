"""Ethereum address helpers."""

from __future__ import annotations

import re

from buildreg.core.exceptions import ValidationError

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> str:
    """
    Normalize an address to lowercase hex with a ``0x`` prefix.

    Raises:
        ValidationError: If the value is not a 20-byte hex address.
    """
    candidate = value.strip()
    if candidate[:2].lower() == "0x":
        candidate = candidate[2:]
    candidate = f"0x{candidate}"
    if not _ADDRESS_RE.match(candidate):
        raise ValidationError(f"Invalid address: {value!r}", {"address": value})
    return candidate.lower()
