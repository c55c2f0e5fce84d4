"""Single-line dispatch: pick a record format from the id's last decimal digit and parse.

Every ingestion path (in-memory upload, streaming upload) goes through parse_line so the
per-line decision is identical everywhere.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict

from .formats import FormatResult, parse_basic, parse_extended, parse_hex
from .records import ParseErrorKind, ParseFailure, ParseResult, parse_int

logger = logging.getLogger("cdr_ingest.ingest.dispatch")


class RecordFormat(str, Enum):
    BASIC = "basic"
    EXTENDED = "extended"
    HEX = "hex"


FORMAT_PARSERS: Dict[RecordFormat, Callable[[str, int], FormatResult]] = {
    RecordFormat.BASIC: parse_basic,
    RecordFormat.EXTENDED: parse_extended,
    RecordFormat.HEX: parse_hex,
}


def select_format(record_id: int) -> RecordFormat:
    """Last digit 4 -> Extended, 6 -> Hex, anything else -> Basic. Sign is ignored."""
    last_digit = abs(record_id) % 10
    if last_digit == 4:
        return RecordFormat.EXTENDED
    if last_digit == 6:
        return RecordFormat.HEX
    return RecordFormat.BASIC


def parse_line(line: str) -> ParseResult:
    trimmed = line.strip()
    if not trimmed:
        return ParseResult.fail(ParseErrorKind.EMPTY_LINE, "empty line")

    id_str, sep, _ = trimmed.partition(",")
    if not sep:
        return ParseResult.fail(ParseErrorKind.MISSING_COMMA, "missing comma")

    record_id = parse_int(id_str)
    if record_id is None:
        return ParseResult.fail(ParseErrorKind.INVALID_ID, "invalid id")

    fmt = select_format(record_id)
    result = FORMAT_PARSERS[fmt](trimmed, record_id)
    if isinstance(result, ParseFailure):
        logger.debug("Line rejected (id=%s format=%s): %s", record_id, fmt.value, result.message)
        return ParseResult(failure=result)
    return ParseResult.success(result)
