from __future__ import annotations
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, Boolean, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column
from meme_tracker.database import Base
from meme_tracker.models.token import _utcnow


class PromisingAddressRow(Base):
    __tablename__ = "promising_addresses"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    address: Mapped[str] = mapped_column(String(64), nullable=False)
    # Lower-cased address; one record per wallet system-wide
    address_key: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    token_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    token_symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    purchase_time: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    block_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tx_hash: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    related_tokens: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    is_marked_promising: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )
