"""Read side and single-row create for stored usage records."""

from __future__ import annotations

from typing import List

from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..ingest.records import UsageRecord
from .models import UsageRecordRow
from .writer import record_to_row

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000


class DuplicateRecordError(Exception):
    """Raised by create_record when a row with the same id already exists."""

    def __init__(self, record_id: int) -> None:
        super().__init__(f"usage record {record_id} already exists")
        self.record_id = record_id


def list_records(db: Session, limit: int = DEFAULT_LIST_LIMIT) -> List[UsageRecordRow]:
    """Newest first (created_at desc, then id desc for rows created in the same instant)."""
    stmt = (
        select(UsageRecordRow)
        .order_by(UsageRecordRow.created_at.desc(), UsageRecordRow.id.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def create_record(db: Session, record: UsageRecord) -> UsageRecordRow:
    """Insert one row and commit. Unlike the batch writer, a duplicate id is an error here."""
    try:
        db.execute(insert(UsageRecordRow).values(**record_to_row(record)))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateRecordError(record.id) from exc
    return db.get(UsageRecordRow, record.id)


def row_to_dict(row: UsageRecordRow) -> dict:
    created = row.created_at
    return {
        "id": row.id,
        "mnc": row.mnc,
        "bytes_used": row.bytes_used,
        "dmcc": row.dmcc,
        "cellid": row.cellid,
        "ip": row.ip,
        "created_at": created.isoformat() if created is not None else None,
    }
