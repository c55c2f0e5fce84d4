"""Drain a record iterable into fixed-size batches and hand each batch to a duplicate-tolerant writer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Protocol, Sequence

from .records import UsageRecord

logger = logging.getLogger("cdr_ingest.ingest.batcher")

DEFAULT_BATCH_SIZE = 500


class BatchWriter(Protocol):
    """Storage collaborator. Inserts rows whose id is new, skips the rest, returns rows inserted."""

    def insert_batch(self, records: Sequence[UsageRecord]) -> int:
        ...


@dataclass
class BatchInsertResult:
    inserted_count: int = 0
    total_processed: int = 0


class BatchCoordinator:
    """Pulls one record at a time; while a batch is being written no further input is read.

    Deduplication is left to the writer (primary key on id). If the input raises mid-way the
    exception propagates and the partially filled batch is dropped; earlier batches stay committed.
    """

    def __init__(self, writer: BatchWriter, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._writer = writer
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def _flush(self, batch: List[UsageRecord], result: BatchInsertResult) -> None:
        if not batch:
            return
        inserted = self._writer.insert_batch(batch)
        result.inserted_count += inserted
        logger.debug(
            "Flushed batch size=%d inserted=%d skipped=%d",
            len(batch),
            inserted,
            len(batch) - inserted,
        )

    def ingest(self, records: Iterable[UsageRecord]) -> BatchInsertResult:
        result = BatchInsertResult()
        batch: List[UsageRecord] = []

        for record in records:
            batch.append(record)
            result.total_processed += 1
            if len(batch) >= self._batch_size:
                self._flush(batch, result)
                batch = []

        self._flush(batch, result)
        return result
