"""Per-upload ingest summary (lines, parsed, inserted, errors). Created per request, then discarded."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .records import ParseError

logger = logging.getLogger("cdr_ingest.ingest.stats")

# Max length of a rejected line echoed into the log (full line is kept in the response)
SAMPLE_RAW_LINE_MAX = 200


@dataclass
class IngestSummary:
    """Counters for one upload. Single thread, no locking."""

    total_lines: int = 0  # non-blank lines seen
    parsed_records: int = 0
    inserted_records: int = 0
    errors: List[ParseError] = field(default_factory=list)

    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def duplicates_skipped(self) -> int:
        return self.parsed_records - self.inserted_records

    def add_error(self, error: ParseError) -> None:
        self.errors.append(error)

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    def meta(self) -> dict:
        """Counters in the response field names used by upload clients."""
        return {
            "totalLines": self.total_lines,
            "parsedRecords": self.parsed_records,
            "insertedRecords": self.inserted_records,
            "errorCount": self.error_count,
        }

    def to_dict(self, include_empty_errors: bool = True) -> dict:
        d: dict = {"meta": self.meta()}
        if self.errors or include_empty_errors:
            d["errors"] = [e.to_dict() for e in self.errors]
        return d

    def log_summary(self, source: str) -> None:
        elapsed = (self.finished_at or time.monotonic()) - self.started_at
        logger.info(
            "Ingest %s | lines: %d | parsed: %d | inserted: %d (duplicates=%d) | errors: %d | %.2fs",
            source,
            self.total_lines,
            self.parsed_records,
            self.inserted_records,
            self.duplicates_skipped,
            self.error_count,
            elapsed,
        )
        if self.total_lines > 0 and self.parsed_records == 0 and self.errors:
            first = self.errors[0]
            logger.warning(
                "No records parsed. First rejected line %d (first %d chars): %s -> %s",
                first.line_number,
                SAMPLE_RAW_LINE_MAX,
                first.line[:SAMPLE_RAW_LINE_MAX],
                first.message,
            )
