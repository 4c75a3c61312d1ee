from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import String, Float, Integer, DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column
from meme_tracker.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TrackedToken(Base):
    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    chain: Mapped[str] = mapped_column(String(10), nullable=False)  # ethereum / solana

    # Observation window, stored as YYYY-MM-DD HH:MM:SS
    start_time: Mapped[Optional[str]] = mapped_column(String(19), nullable=True)
    end_time: Mapped[Optional[str]] = mapped_column(String(19), nullable=True)
    market_cap_limit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Filled in by the buyer import
    buyers_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    buyers_last_updated: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    buyers_import_status: Mapped[str] = mapped_column(String(10), default="none", nullable=False)  # none/pending/completed/failed/skipped
    buyers_import_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )
