"""Duplicate-tolerant batch insert of usage records. Core only; one transaction per batch."""

from __future__ import annotations

import logging
import threading
from typing import Any, Sequence

from sqlalchemy import text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..ingest.records import UsageRecord
from .models import UsageRecordRow
from .retry import run_with_retry

logger = logging.getLogger("cdr_ingest.storage.writer")

RECORD_KEY = ["id"]
# Rows per INSERT statement; keeps bound parameters under SQLite/PostgreSQL limits for any batch size.
ROWS_PER_STATEMENT = 1000


def record_to_row(record: UsageRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "mnc": record.mnc,
        "bytes_used": record.bytes_used,
        "dmcc": record.dmcc,
        "cellid": record.cellid,
        "ip": record.ip,
    }


class UsageRecordWriter:
    """One-writer-per-engine. For SQLite, serializes insert_batch with a lock.

    insert_batch inserts rows whose id is not yet stored, silently skips the others and returns
    the number of rows actually inserted. It never raises for a primary-key collision.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._is_sqlite = engine.dialect.name == "sqlite"
        self._lock = threading.Lock()
        self._sessionmaker = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    def insert_batch(self, records: Sequence[UsageRecord]) -> int:
        if not records:
            return 0
        rows = [record_to_row(r) for r in records]
        if self._is_sqlite:
            with self._lock:
                return run_with_retry(lambda: self._insert_rows(rows), log=logger)
        return run_with_retry(lambda: self._insert_rows(rows), log=logger)

    def _configure_sqlite_connection(self, session: Session) -> None:
        """Apply ingest-friendly PRAGMAs for SQLite (WAL, busy_timeout)."""
        if not self._is_sqlite:
            return
        for stmt in (
            "PRAGMA journal_mode=WAL",
            "PRAGMA synchronous=NORMAL",
            "PRAGMA busy_timeout=10000",
        ):
            session.execute(text(stmt))

    def _insert_statement(self, rows: list[dict[str, Any]]):
        table = UsageRecordRow.__table__
        if self._engine.dialect.name == "postgresql":
            return pg_insert(table).values(rows).on_conflict_do_nothing(index_elements=RECORD_KEY)
        return sqlite_insert(table).values(rows).on_conflict_do_nothing(index_elements=RECORD_KEY)

    def _insert_rows(self, rows: list[dict[str, Any]]) -> int:
        inserted = 0
        session = self._sessionmaker()
        try:
            self._configure_sqlite_connection(session)
            for start in range(0, len(rows), ROWS_PER_STATEMENT):
                chunk = rows[start : start + ROWS_PER_STATEMENT]
                result = session.execute(self._insert_statement(chunk))
                inserted += max(result.rowcount or 0, 0)
            session.commit()
        finally:
            session.close()
        logger.debug("insert_batch rows=%d inserted=%d", len(rows), inserted)
        return inserted
