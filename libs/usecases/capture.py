from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from libs.core.models import Entry, ScrapedContent, UrlSummary
from libs.db.repositories import EntryRepo
from libs.enrichment import Enrichment
from libs.fetch import ContentFetcher
from .assemble_entry import EnrichmentBundle, EntryAssembler, EntryDraft

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SummarizeLink:
    """Fetch a page and summarise its text."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        enrichment: Enrichment,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.fetcher = fetcher
        self.enrichment = enrichment
        self.clock = clock

    async def __call__(self, url: str) -> Tuple[ScrapedContent, UrlSummary, datetime]:
        scraped = await asyncio.to_thread(self.fetcher.fetch, url)
        fetched_at = self.clock()
        summary = await asyncio.to_thread(self.enrichment.summarize_url, scraped.content)
        return scraped, summary, fetched_at


class CaptureEntry:
    """Enrich a draft, assemble it and persist the result."""

    def __init__(
        self,
        enrichment: Enrichment,
        fetcher: ContentFetcher,
        repo: EntryRepo,
        assembler: Optional[EntryAssembler] = None,
    ) -> None:
        self.enrichment = enrichment
        self.fetcher = fetcher
        self.repo = repo
        self.assembler = assembler or EntryAssembler()

    # ------------------------------------------------------------------
    async def __call__(self, owner_id: str, draft: EntryDraft, enrich: bool = True) -> Entry:
        bundle = await self.enrich(draft) if enrich else EnrichmentBundle()
        new_entry = self.assembler.assemble(owner_id, draft, bundle)
        return await self.repo.create(new_entry)

    async def enrich(self, draft: EntryDraft) -> EnrichmentBundle:
        if draft.type == "url" and draft.url:
            scraped, summary, fetched_at = await SummarizeLink(self.fetcher, self.enrichment)(
                draft.url
            )
            return EnrichmentBundle(
                url_summary=summary,
                scraped=scraped,
                fetched_at=fetched_at,
                ai_model=self.enrichment.summarize_url.model,
            )

        bundle = EnrichmentBundle()
        text = (draft.raw_text or draft.improved_text or "").strip()
        # Independent calls; no ordering between them is required
        jobs = {}
        if draft.type == "note" and text:
            jobs["text_metadata"] = asyncio.to_thread(self.enrichment.text_metadata, text)
            if draft.raw_text and not draft.improved_text:
                jobs["improvement"] = asyncio.to_thread(self.enrichment.improve, draft.raw_text)
        if draft.type == "image" and draft.image_url:
            jobs["image"] = asyncio.to_thread(self.enrichment.image_metadata, draft.image_url)
        if not jobs:
            return bundle

        results = await asyncio.gather(*jobs.values())
        for name, result in zip(jobs, results):
            setattr(bundle, name, result)
        strategy = self.enrichment.image_metadata if draft.type == "image" else self.enrichment.improve
        bundle.ai_model = strategy.model
        logger.debug("draft_enriched", extra={"steps": sorted(jobs)})
        return bundle


__all__ = ["CaptureEntry", "SummarizeLink"]
