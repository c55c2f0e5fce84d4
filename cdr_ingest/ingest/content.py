"""Parse a whole in-memory upload. Only for small payloads; large files go through stream.py."""

from __future__ import annotations

import re
from typing import List, Tuple

from .dispatch import parse_line
from .records import ParseError, UsageRecord

# \n or \r\n. A bare \r is not a line boundary.
LINE_SPLIT_RE = re.compile(r"\r?\n")


def split_lines(content: str) -> List[str]:
    return LINE_SPLIT_RE.split(content)


def count_non_blank_lines(content: str) -> int:
    return sum(1 for line in split_lines(content) if line.strip())


def parse_file_content(content: str) -> Tuple[List[UsageRecord], List[ParseError]]:
    """Dispatch every non-blank line; return (records, errors), both in file order.

    Blank lines are skipped but still count toward line numbering.
    """
    records: List[UsageRecord] = []
    errors: List[ParseError] = []

    for line_number, raw in enumerate(split_lines(content), start=1):
        if not raw.strip():
            continue
        result = parse_line(raw)
        if result.ok:
            records.append(result.record)
        else:
            errors.append(ParseError(line_number=line_number, line=raw, message=result.failure.message))

    return records, errors
