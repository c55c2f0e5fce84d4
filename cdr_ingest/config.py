from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .ingest.batcher import DEFAULT_BATCH_SIZE

DEFAULT_DATABASE_URL = "postgresql+psycopg://localhost/cdr"
# In-memory /upload is for small files; larger ones go to /upload/stream.
DEFAULT_UPLOAD_MAX_BYTES = 10 * 1024 * 1024


@dataclass
class AppConfig:
    web_host: str = "0.0.0.0"
    web_port: int = 3001
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "info"
    batch_size: int = DEFAULT_BATCH_SIZE
    upload_max_bytes: int = DEFAULT_UPLOAD_MAX_BYTES


def _positive_int(value: str) -> int:
    import argparse

    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return n


def parse_args(argv: Optional[list[str]] = None) -> AppConfig:
    """Parse CLI arguments into AppConfig.

    Exposed via `python -m cdr_ingest` and `cdr-usage-ingest`.
    """
    import argparse

    parser = argparse.ArgumentParser(description="CDR usage record ingest API")
    parser.add_argument("--web-host", default="0.0.0.0")
    parser.add_argument("--web-port", type=int, default=3001)
    parser.add_argument(
        "--database-url",
        default=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
        help="SQLAlchemy database URL (PostgreSQL recommended; defaults to $DATABASE_URL)",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
    )
    parser.add_argument(
        "--batch-size",
        type=_positive_int,
        default=DEFAULT_BATCH_SIZE,
        help="Records per duplicate-tolerant bulk insert",
    )
    parser.add_argument(
        "--upload-max-bytes",
        type=_positive_int,
        default=DEFAULT_UPLOAD_MAX_BYTES,
        help="Largest file accepted by the in-memory /upload endpoint",
    )

    args = parser.parse_args(argv)

    return AppConfig(
        web_host=args.web_host,
        web_port=args.web_port,
        database_url=args.database_url,
        log_level=args.log_level,
        batch_size=args.batch_size,
        upload_max_bytes=args.upload_max_bytes,
    )
