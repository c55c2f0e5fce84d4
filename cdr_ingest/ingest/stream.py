"""Line-by-line parsing of a binary stream without reading it all into memory.

Line numbering matches parse_file_content for the same text: lines end at \\n, a \\r right
before the \\n is dropped, blank lines are skipped but still advance the counter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from .dispatch import parse_line
from .records import ParseError, UsageRecord

logger = logging.getLogger("cdr_ingest.ingest.stream")


@dataclass(frozen=True)
class StreamOutcome:
    line_number: int
    record: Optional[UsageRecord] = None
    error: Optional[ParseError] = None


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def parse_file_stream(stream: BinaryIO) -> Iterator[StreamOutcome]:
    """Yield one StreamOutcome per non-blank line. Single pass; the stream is consumed.

    Iterating a binary file splits on b"\\n" only and holds one line at a time.
    """
    line_number = 0
    try:
        for raw in stream:
            line_number += 1
            line = _decode_line(raw)
            if not line.strip():
                continue
            result = parse_line(line)
            if result.ok:
                yield StreamOutcome(line_number=line_number, record=result.record)
            else:
                yield StreamOutcome(
                    line_number=line_number,
                    error=ParseError(line_number=line_number, line=line, message=result.failure.message),
                )
    finally:
        logger.debug("Stream parser stopped after %d lines", line_number)


def parse_file_path(path: Union[str, Path]) -> Iterator[StreamOutcome]:
    """Open path and stream it. The file is closed when the generator finishes, fails or is closed."""
    with open(path, "rb") as f:
        yield from parse_file_stream(f)
