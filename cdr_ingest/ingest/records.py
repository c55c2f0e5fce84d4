"""Parsed usage record, per-line parse errors and the tagged failure type returned by parsers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

# Signed decimal, ASCII digits only (no "1_000", no "1e3").
INT_RE = re.compile(r"[+-]?[0-9]+")

# BigInteger columns: id, mnc, bytes_used, cellid.
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
INT64_MAX_DIGITS = len(str(INT64_MAX))


class InvalidHexError(ValueError):
    """Raised by the field codec when a substring is not a hex number."""


class ParseErrorKind(str, Enum):
    EMPTY_LINE = "empty_line"
    MISSING_COMMA = "missing_comma"
    INVALID_ID = "invalid_id"
    BASIC_FORMAT = "basic_format"
    EXTENDED_FORMAT = "extended_format"
    HEX_FORMAT = "hex_format"
    INVALID_HEX = "invalid_hex"


@dataclass(frozen=True)
class UsageRecord:
    id: int
    bytes_used: int
    mnc: Optional[int] = None
    dmcc: Optional[str] = None
    cellid: Optional[int] = None
    ip: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        # All keys always present; absent fields are explicit None.
        return {
            "id": self.id,
            "mnc": self.mnc,
            "bytes_used": self.bytes_used,
            "dmcc": self.dmcc,
            "cellid": self.cellid,
            "ip": self.ip,
        }


@dataclass(frozen=True)
class ParseFailure:
    kind: ParseErrorKind
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Outcome of dispatching one line: exactly one of record / failure is set."""

    record: Optional[UsageRecord] = None
    failure: Optional[ParseFailure] = None

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def success(cls, record: UsageRecord) -> "ParseResult":
        return cls(record=record)

    @classmethod
    def fail(cls, kind: ParseErrorKind, message: str) -> "ParseResult":
        return cls(failure=ParseFailure(kind=kind, message=message))


@dataclass(frozen=True)
class ParseError:
    line_number: int
    line: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"lineNumber": self.line_number, "line": self.line, "message": self.message}


def parse_int(value: str) -> Optional[int]:
    """Return int for a signed decimal string (surrounding whitespace allowed), else None.

    Values outside the signed 64-bit range of the storage columns are rejected too.
    """
    value = value.strip()
    if not INT_RE.fullmatch(value):
        return None
    # Length check before int(): very long digit strings raise ValueError on CPython 3.11+.
    if len(value.lstrip("+-").lstrip("0")) > INT64_MAX_DIGITS:
        return None
    n = int(value)
    if n < INT64_MIN or n > INT64_MAX:
        return None
    return n
