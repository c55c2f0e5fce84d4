from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from ..config import AppConfig
from ..ingest.upload import ingest_content, ingest_stream
from ..storage.writer import UsageRecordWriter

router = APIRouter(tags=["upload"])
logger = logging.getLogger("cdr_ingest.api.upload")

MISSING_FILE_DETAIL = {"message": "Missing file field 'file' in multipart form-data."}


def _config(request: Request) -> AppConfig:
    return request.app.state.app_config


def _writer(request: Request) -> UsageRecordWriter:
    """One writer per app so the SQLite write lock is shared by all requests."""
    state = request.app.state
    writer = getattr(state, "record_writer", None)
    if writer is None:
        writer = UsageRecordWriter(state.db_engine)
        state.record_writer = writer
    return writer


@router.post("/upload")
async def upload_file(request: Request, file: Optional[UploadFile] = File(None)) -> Dict[str, Any]:
    """Small files: read fully into memory, parse every line, insert records, return records and errors."""
    if file is None:
        raise HTTPException(status_code=400, detail=MISSING_FILE_DETAIL)
    config = _config(request)

    data = await file.read(config.upload_max_bytes + 1)
    if len(data) > config.upload_max_bytes:
        raise HTTPException(
            status_code=413,
            detail={
                "message": f"File too large for /upload (max {config.upload_max_bytes} bytes); use /upload/stream",
            },
        )
    content = data.decode("utf-8", errors="replace")

    try:
        summary, records = await run_in_threadpool(ingest_content, content, _writer(request), config.batch_size)
    except SQLAlchemyError as exc:
        logger.exception("Upload %s failed: %s", file.filename, exc)
        raise HTTPException(
            status_code=500,
            detail={"message": "Failed to store records", "error": str(exc)[:1000]},
        ) from exc

    return {
        "meta": summary.meta(),
        "records": [r.to_dict() for r in records],
        "errors": [e.to_dict() for e in summary.errors],
    }


@router.post("/upload/stream")
def upload_file_stream(request: Request, file: Optional[UploadFile] = File(None)) -> Dict[str, Any]:
    """Large files: parse line by line and insert in batches. Runs in FastAPI's thread pool."""
    if file is None:
        raise HTTPException(status_code=400, detail=MISSING_FILE_DETAIL)
    config = _config(request)

    try:
        summary = ingest_stream(file.file, _writer(request), config.batch_size)
    except (SQLAlchemyError, OSError) as exc:
        # Batches flushed before the failure stay committed.
        logger.exception("Stream upload %s failed: %s", file.filename, exc)
        raise HTTPException(
            status_code=500,
            detail={"message": "Failed to process file stream", "error": str(exc)[:1000]},
        ) from exc

    return summary.to_dict(include_empty_errors=False)
