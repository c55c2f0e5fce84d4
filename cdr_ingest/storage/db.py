from __future__ import annotations

from typing import Any, Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .models import Base


def init_engine_and_sessionmaker(database_url: str) -> Tuple[Engine, sessionmaker]:
    """Initialise SQLAlchemy engine and sessionmaker."""
    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        # Sync routes run in FastAPI's thread pool.
        connect_args["check_same_thread"] = False
    engine = create_engine(database_url, future=True, connect_args=connect_args)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    return engine, SessionLocal


def create_tables(engine: Engine) -> None:
    """Create usage_records if missing. No migrations."""
    Base.metadata.create_all(bind=engine)
