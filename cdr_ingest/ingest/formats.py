"""Record format decoders: Basic, Extended, Hex.

Each parser receives the full trimmed line (id included as first field) and the id already
parsed by the dispatcher. Parsers never raise for bad input; they return a ParseFailure.
"""

from __future__ import annotations

import re
from typing import List, Union

from .codec import decode_hex_field, decode_ipv4
from .records import InvalidHexError, ParseErrorKind, ParseFailure, UsageRecord, parse_int

FormatResult = Union[UsageRecord, ParseFailure]

HEX_PAYLOAD_LEN = 24
HEX_PAYLOAD_RE = re.compile(r"[0-9a-fA-F]+")

# (start, end) char offsets inside the 24-char payload: 2B mnc | 2B bytes_used | 4B cellid | 4B ip
HEX_MNC = (0, 4)
HEX_BYTES_USED = (4, 8)
HEX_CELLID = (8, 16)
HEX_IP = (16, 24)


def _split(line: str) -> List[str]:
    return [p.strip() for p in line.split(",")]


def parse_basic(line: str, record_id: int) -> FormatResult:
    """<id>,<bytes_used>"""
    parts = _split(line)
    if len(parts) != 2:
        return ParseFailure(ParseErrorKind.BASIC_FORMAT, "basic: expected 2 comma-separated values")
    bytes_used = parse_int(parts[1])
    if bytes_used is None:
        return ParseFailure(ParseErrorKind.BASIC_FORMAT, "basic: bytes_used must be an integer")
    return UsageRecord(id=record_id, bytes_used=bytes_used)


def parse_extended(line: str, record_id: int) -> FormatResult:
    """<id>,<dmcc>,<mnc>,<bytes_used>,<cellid>; rules checked in field order, first violation wins."""
    parts = _split(line)
    if len(parts) != 5:
        return ParseFailure(ParseErrorKind.EXTENDED_FORMAT, "extended: expected 5 comma-separated values")

    dmcc = parts[1]
    if not dmcc:
        return ParseFailure(ParseErrorKind.EXTENDED_FORMAT, "extended: dmcc is required")
    mnc = parse_int(parts[2])
    if mnc is None:
        return ParseFailure(ParseErrorKind.EXTENDED_FORMAT, "extended: mnc must be an integer")
    bytes_used = parse_int(parts[3])
    if bytes_used is None:
        return ParseFailure(ParseErrorKind.EXTENDED_FORMAT, "extended: bytes_used must be an integer")
    cellid = parse_int(parts[4])
    if cellid is None:
        return ParseFailure(ParseErrorKind.EXTENDED_FORMAT, "extended: cellid must be an integer")

    return UsageRecord(id=record_id, mnc=mnc, bytes_used=bytes_used, dmcc=dmcc, cellid=cellid)


def parse_hex(line: str, record_id: int) -> FormatResult:
    """<id>,<24 hex chars>"""
    parts = _split(line)
    if len(parts) != 2:
        return ParseFailure(ParseErrorKind.HEX_FORMAT, "hex: expected 2 comma-separated values")

    payload = parts[1]
    if len(payload) != HEX_PAYLOAD_LEN:
        return ParseFailure(ParseErrorKind.HEX_FORMAT, "hex: expected 24-character hex string")
    if not HEX_PAYLOAD_RE.fullmatch(payload):
        return ParseFailure(ParseErrorKind.HEX_FORMAT, "hex: contains non-hex characters")

    try:
        mnc = decode_hex_field(payload[HEX_MNC[0] : HEX_MNC[1]])
        bytes_used = decode_hex_field(payload[HEX_BYTES_USED[0] : HEX_BYTES_USED[1]])
        cellid = decode_hex_field(payload[HEX_CELLID[0] : HEX_CELLID[1]])
        ip = decode_ipv4(payload[HEX_IP[0] : HEX_IP[1]])
    except InvalidHexError:
        return ParseFailure(ParseErrorKind.INVALID_HEX, "hex: invalid hex number")

    return UsageRecord(id=record_id, mnc=mnc, bytes_used=bytes_used, cellid=cellid, ip=ip)
