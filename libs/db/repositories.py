"""Repository classes for the persisted journal records."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from libs.core.exceptions import ForbiddenError, NotFoundError
from libs.core.models import Entry, EntryFilters, NewEntry
from libs.core.timestamps import resolve_instant
from . import models

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRepo:
    """CRUD operations for :class:`models.User`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, telegram_id: int) -> models.User:
        user = models.User(telegram_id=telegram_id)
        self.session.add(user)
        await self.session.flush()
        return user

    async def get(self, user_id: str) -> Optional[models.User]:
        return await self.session.get(models.User, user_id)

    async def get_by_telegram(self, telegram_id: int) -> Optional[models.User]:
        stmt = select(models.User).where(models.User.telegram_id == telegram_id)
        res = await self.session.execute(stmt)
        return res.scalar_one_or_none()


def to_domain(row: models.Entry) -> Entry:
    """Convert an ORM row into the domain :class:`Entry`."""
    return Entry(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        source=row.source or "raw",
        raw_text=row.raw_text,
        improved_text=row.improved_text,
        ai_model=row.ai_model,
        timezone=row.timezone,
        device=row.device,
        tags=list(row.tags or []),
        entities=list(row.entities or []),
        sentiment=row.sentiment,
        quality_score=row.quality_score,
        topics=list(row.topics or []),
        keywords=list(row.keywords or []),
        category=row.category,
        image_url=row.image_url,
        image_storage_path=row.image_storage_path,
        image_description=row.image_description,
        image_objects=list(row.image_objects or []),
        image_scene=row.image_scene,
        image_mood=row.image_mood,
        image_colors=list(row.image_colors or []),
        image_metadata=row.image_metadata,
        url=row.url,
        url_title=row.url_title,
        url_domain=row.url_domain,
        url_author=row.url_author,
        url_checksum=row.url_checksum,
        url_fetched_at=row.url_fetched_at,
        summary=row.summary,
        key_points=list(row.key_points or []),
        quotes=list(row.quotes or []),
        created_at=resolve_instant(row.created_at),
        updated_at=resolve_instant(row.updated_at),
    )


class EntryRepo:
    """Persistence boundary for journal entries.

    Timestamps are assigned here from ``clock`` at write time; the value
    supplied by callers is never used.
    """

    def __init__(self, session: AsyncSession, clock: Clock = _utcnow) -> None:
        self.session = session
        self.clock = clock

    async def create(self, entry: NewEntry) -> Entry:
        now = self.clock()
        data = entry.model_dump(mode="json")
        data["url_fetched_at"] = entry.url_fetched_at
        row = models.Entry(id=str(uuid4()), created_at=now, updated_at=now, **data)
        row.tag_links = [
            models.EntryTag(pos=pos, tag=tag) for pos, tag in enumerate(entry.tags)
        ]
        self.session.add(row)
        await self.session.flush()
        logger.info("entry_created", extra={"entry_id": row.id, "owner_id": row.user_id})
        return to_domain(row)

    async def _get_row(self, entry_id: str) -> models.Entry:
        row = await self.session.get(models.Entry, entry_id)
        if row is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        return row

    async def get(self, entry_id: str) -> Entry:
        return to_domain(await self._get_row(entry_id))

    async def get_owned(self, entry_id: str, requester_id: str) -> Entry:
        row = await self._get_row(entry_id)
        if row.user_id != requester_id:
            raise ForbiddenError("You don't have permission to access this entry")
        return to_domain(row)

    async def list_by_owner(
        self, owner_id: str, filters: EntryFilters | None = None
    ) -> List[Entry]:
        """Return the owner's entries, newest first.

        Type, tag, sentiment and limit are applied in the query. The date
        bounds are applied afterwards to the already limited result, so a
        range query can return fewer rows than actually fall in range when
        newer rows outside the range fill the limit.
        """
        filters = filters or EntryFilters()
        stmt = select(models.Entry).where(models.Entry.user_id == owner_id)
        if filters.type:
            stmt = stmt.where(models.Entry.type == filters.type)
        if filters.tag:
            stmt = stmt.where(
                models.Entry.tag_links.any(models.EntryTag.tag == filters.tag)
            )
        if filters.sentiment:
            stmt = stmt.where(models.Entry.sentiment == filters.sentiment)
        stmt = stmt.order_by(models.Entry.created_at.desc()).limit(filters.limit)

        res = await self.session.execute(stmt)
        entries = [to_domain(row) for row in res.scalars().all()]

        if filters.date_from is not None:
            lower = resolve_instant(filters.date_from)
            entries = [e for e in entries if resolve_instant(e.created_at) >= lower]
        if filters.date_to is not None:
            upper = resolve_instant(filters.date_to)
            entries = [e for e in entries if resolve_instant(e.created_at) <= upper]
        return entries

    async def delete(self, entry_id: str, requester_id: str) -> None:
        row = await self._get_row(entry_id)
        if row.user_id != requester_id:
            raise ForbiddenError("You don't have permission to delete this entry")
        await self.session.delete(row)
        await self.session.flush()
        logger.info("entry_deleted", extra={"entry_id": entry_id, "owner_id": requester_id})


__all__ = ["UserRepo", "EntryRepo", "to_domain"]
