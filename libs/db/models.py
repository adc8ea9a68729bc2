"""SQLAlchemy ORM models for core entities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, BigInteger, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid4())
    )
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )


class Entry(Base):
    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid4())
    )
    user_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    source: Mapped[str] = mapped_column(String(16), default="raw")

    raw_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    improved_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_model: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    device: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    entities: Mapped[List[str]] = mapped_column(JSON, default=list)
    sentiment: Mapped[Optional[str]] = mapped_column(String(16), nullable=True, index=True)
    quality_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    topics: Mapped[List[str]] = mapped_column(JSON, default=list)
    keywords: Mapped[List[str]] = mapped_column(JSON, default=list)
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    image_url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_storage_path: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_objects: Mapped[List[str]] = mapped_column(JSON, default=list)
    image_scene: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_mood: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    image_colors: Mapped[List[str]] = mapped_column(JSON, default=list)
    image_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    url: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    url_title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    url_domain: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    url_author: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    url_checksum: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    url_fetched_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_points: Mapped[List[str]] = mapped_column(JSON, default=list)
    quotes: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    tag_links: Mapped[list["EntryTag"]] = relationship(
        back_populates="entry", cascade="all, delete-orphan", lazy="selectin"
    )


class EntryTag(Base):
    """Membership index behind the ``tag`` list filter."""

    __tablename__ = "entry_tags"

    entry_id: Mapped[str] = mapped_column(
        ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True
    )
    pos: Mapped[int] = mapped_column(Integer, primary_key=True)
    tag: Mapped[str] = mapped_column(String, index=True)

    entry: Mapped[Entry] = relationship(back_populates="tag_links")


__all__ = ["User", "Entry", "EntryTag"]
