"""Upload pipelines: in-memory content and streamed files, each ending in batched duplicate-tolerant inserts."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import BinaryIO, Iterator, List, Tuple

from .batcher import DEFAULT_BATCH_SIZE, BatchCoordinator, BatchWriter
from .content import count_non_blank_lines, parse_file_content
from .records import UsageRecord
from .stats import IngestSummary
from .stream import StreamOutcome, parse_file_stream

logger = logging.getLogger("cdr_ingest.ingest.upload")


def ingest_content(
    content: str,
    writer: BatchWriter,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Tuple[IngestSummary, List[UsageRecord]]:
    """Parse the whole content, then persist every parsed record. Returns (summary, records)."""
    summary = IngestSummary()
    records, errors = parse_file_content(content)
    summary.total_lines = count_non_blank_lines(content)
    summary.parsed_records = len(records)
    summary.errors = errors

    result = BatchCoordinator(writer, batch_size).ingest(records)
    summary.inserted_records = result.inserted_count
    summary.finish()
    summary.log_summary("upload")
    return summary, records


def _records_only(outcomes: Iterator[StreamOutcome], summary: IngestSummary) -> Iterator[UsageRecord]:
    """Pass records through to the coordinator; count lines and collect errors on the way."""
    for outcome in outcomes:
        summary.total_lines += 1
        if outcome.record is not None:
            summary.parsed_records += 1
            yield outcome.record
        elif outcome.error is not None:
            summary.add_error(outcome.error)


def ingest_stream(
    stream: BinaryIO,
    writer: BatchWriter,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> IngestSummary:
    """Stream-parse and persist in batches. Memory is bounded by one batch plus the error list.

    Errors from the source or the writer propagate; batches already written stay written.
    """
    summary = IngestSummary()
    coordinator = BatchCoordinator(writer, batch_size)
    with closing(parse_file_stream(stream)) as outcomes:
        result = coordinator.ingest(_records_only(outcomes, summary))
    summary.inserted_records = result.inserted_count
    summary.finish()
    summary.log_summary("stream")
    return summary
