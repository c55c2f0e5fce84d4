"""Fixed-width hex field decoding for the Hex record format."""

from __future__ import annotations

import re

from .records import InvalidHexError

HEX_RE = re.compile(r"[0-9a-fA-F]+")


def decode_hex_field(hex_string: str) -> int:
    """Decode a hex substring (any width, no 0x prefix) to a non-negative int."""
    if not HEX_RE.fullmatch(hex_string):
        raise InvalidHexError(f"invalid hex number: {hex_string!r}")
    return int(hex_string, 16)


def decode_ipv4(hex_string: str) -> str:
    """Decode 8 hex chars (4 bytes, big-endian) to a dotted quad, e.g. c0a80001 -> 192.168.0.1."""
    if len(hex_string) != 8:
        raise InvalidHexError(f"expected 8 hex characters for IPv4, got {len(hex_string)}")
    return ".".join(str(decode_hex_field(hex_string[i : i + 2])) for i in range(0, 8, 2))
