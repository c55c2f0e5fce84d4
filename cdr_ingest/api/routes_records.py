"""Stored usage records: list newest first, create one."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..ingest.records import UsageRecord
from ..storage.records import (
    DEFAULT_LIST_LIMIT,
    MAX_LIST_LIMIT,
    DuplicateRecordError,
    create_record,
    list_records,
    row_to_dict,
)

router = APIRouter(tags=["records"])


def get_db(request: Request) -> Session:
    return request.app.state.db_sessionmaker()


class RecordCreatePayload(BaseModel):
    id: int
    bytes_used: int
    mnc: Optional[int] = None
    dmcc: Optional[str] = None
    cellid: Optional[int] = None
    ip: Optional[str] = None


@router.get("/records")
def get_records(
    request: Request,
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
) -> List[Dict[str, Any]]:
    db: Session = get_db(request)
    try:
        return [row_to_dict(r) for r in list_records(db, limit)]
    finally:
        db.close()


@router.post("/records", status_code=201)
def post_record(request: Request, payload: RecordCreatePayload) -> Dict[str, Any]:
    db: Session = get_db(request)
    try:
        row = create_record(db, UsageRecord(**payload.model_dump()))
        return row_to_dict(row)
    except DuplicateRecordError as exc:
        raise HTTPException(status_code=409, detail={"message": str(exc)}) from exc
    finally:
        db.close()
