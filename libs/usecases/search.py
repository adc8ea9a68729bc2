from __future__ import annotations

import logging
from typing import List, Optional

from libs.core.models import Entry, EntryFilters
from libs.db.repositories import EntryRepo

logger = logging.getLogger(__name__)


def searchable_text(entry: Entry) -> str:
    parts = [
        entry.raw_text,
        entry.improved_text,
        entry.summary,
        *entry.tags,
        entry.url_title,
    ]
    return " ".join(p for p in parts if p).lower()


class SearchEntries:
    """Filter an owner's entries by the list filters plus a free-text query."""

    def __init__(self, repo: EntryRepo) -> None:
        self.repo = repo

    async def __call__(
        self,
        owner_id: str,
        filters: EntryFilters,
        q: Optional[str] = None,
        semantic: bool = False,
    ) -> List[Entry]:
        if semantic:
            # Vector search is not available; substring matching stands in
            logger.info("semantic_search_unavailable", extra={"owner_id": owner_id})
        entries = await self.repo.list_by_owner(owner_id, filters)
        term = (q or "").strip().lower()
        if not term:
            return entries
        return [e for e in entries if term in searchable_text(e)]


__all__ = ["SearchEntries", "searchable_text"]
