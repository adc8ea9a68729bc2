from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from libs.core.models import EntryFilters
from libs.db.repositories import EntryRepo
from libs.export import render_history_export

logger = logging.getLogger(__name__)


@dataclass
class ExportDocument:
    filename: str
    html: str


class ExportHistory:
    """Load an owner's whole timeline and render the export document."""

    def __init__(
        self,
        repo: EntryRepo,
        product_name: str = "visper",
        max_entries: int = 2000,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.repo = repo
        self.product_name = product_name
        self.max_entries = max_entries
        self.clock = clock

    async def __call__(self, owner_id: str, include_images: bool = True) -> ExportDocument:
        entries = await self.repo.list_by_owner(
            owner_id, EntryFilters(limit=self.max_entries)
        )
        exported_at = self.clock()
        html = render_history_export(
            entries,
            exported_at,
            include_images=include_images,
            product_name=self.product_name,
        )
        filename = f"{self.product_name}-history-{exported_at.date().isoformat()}.html"
        logger.info(
            "export_generated",
            extra={"owner_id": owner_id, "entry_count": len(entries), "include_images": include_images},
        )
        return ExportDocument(filename=filename, html=html)


__all__ = ["ExportHistory", "ExportDocument"]
