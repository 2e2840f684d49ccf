# File: civic_dispatch/models/collection.py
from __future__ import annotations
from sqlalchemy import String, Integer, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column
from civic_dispatch.db.base import Base

class StoredCollection(Base):
    """One row per persisted collection; the payload is always written whole."""
    __tablename__ = "collections"

    key: Mapped[str] = mapped_column(String(120), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    payload: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    updated_at: Mapped["DateTime | None"] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True
    )
