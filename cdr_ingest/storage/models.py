from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UsageRecordRow(Base):
    __tablename__ = "usage_records"

    # Caller-supplied key from the CDR line; duplicates are skipped on insert.
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    mnc: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    bytes_used: Mapped[int] = mapped_column(BigInteger, nullable=False)
    dmcc: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Hex-decoded cellid goes up to 0xFFFFFFFF, past 32-bit signed range.
    cellid: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
