# catalog_import/models/source_keys.py
from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import String, Integer, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from catalog_import.db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceKey(Base):
    __tablename__ = "source_keys"
    __table_args__ = (UniqueConstraint("source", "entity", "source_key", name="uq_source_entity_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(32), index=True)       # "pos" | "marketplace"
    entity: Mapped[str] = mapped_column(String(32), default="product")
    source_key: Mapped[str] = mapped_column(String(255), index=True)  # group code / marketplace product id
    internal_id: Mapped[str] = mapped_column(String(64))               # id in the storefront DB
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
