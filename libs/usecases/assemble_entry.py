from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from libs.core.exceptions import ValidationError
from libs.core.models import (
    CamelModel,
    EntrySource,
    EntryType,
    ImageAnalysis,
    ImageMetadata,
    ImprovedText,
    NewEntry,
    ScrapedContent,
    TextMetadata,
    UrlSummary,
)


class EntryDraft(CamelModel):
    """Raw user input for one entry, as received at the boundary."""

    type: EntryType
    source: Optional[EntrySource] = None
    raw_text: Optional[str] = None
    improved_text: Optional[str] = None
    url: Optional[str] = None
    image_url: Optional[str] = None
    image_storage_path: Optional[str] = None
    image_metadata: Optional[ImageMetadata] = None
    tags: List[str] = Field(default_factory=list)
    timezone: Optional[str] = None
    device: Optional[str] = None


class EnrichmentBundle(CamelModel):
    """Whatever enrichment ran for the draft; every part is optional."""

    improvement: Optional[ImprovedText] = None
    text_metadata: Optional[TextMetadata] = None
    image: Optional[ImageAnalysis] = None
    url_summary: Optional[UrlSummary] = None
    scraped: Optional[ScrapedContent] = None
    fetched_at: Optional[datetime] = None
    ai_model: Optional[str] = None


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def _merge_tags(*groups: List[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for group in groups:
        for tag in group:
            tag = tag.strip()
            if tag and tag.lower() not in seen:
                seen.add(tag.lower())
                out.append(tag)
    return out


class EntryAssembler:
    """Merge a draft and its enrichment outputs into a :class:`NewEntry`."""

    def assemble(
        self,
        owner_id: str,
        draft: EntryDraft,
        enrichment: EnrichmentBundle | None = None,
    ) -> NewEntry:
        if _blank(owner_id):
            raise ValidationError("owner id is required", field="userId")
        enrichment = enrichment or EnrichmentBundle()
        improvement = enrichment.improvement
        metadata = enrichment.text_metadata
        image = enrichment.image
        summary = enrichment.url_summary
        scraped = enrichment.scraped

        improved_text = draft.improved_text
        if _blank(improved_text) and improvement is not None:
            improved_text = improvement.improved_text

        if draft.type in ("note", "image") and _blank(draft.raw_text) and _blank(improved_text):
            raise ValidationError(
                f"rawText or improvedText is required for {draft.type} entries",
                field="rawText",
            )
        if draft.type == "url" and _blank(draft.url):
            raise ValidationError("url is required for url entries", field="url")
        if draft.type == "image" and _blank(draft.image_url):
            raise ValidationError("imageUrl is required for image entries", field="imageUrl")

        source = draft.source or ("improved" if not _blank(improved_text) else "raw")

        entry = NewEntry(
            user_id=owner_id,
            type=draft.type,
            source=source,
            raw_text=draft.raw_text,
            improved_text=improved_text,
            ai_model=enrichment.ai_model,
            timezone=draft.timezone,
            device=draft.device,
            tags=_merge_tags(
                draft.tags,
                improvement.tags if improvement else [],
                metadata.tags if metadata else [],
                image.tags if image else [],
                summary.tags if summary else [],
            ),
            entities=_merge_tags(
                improvement.entities if improvement else [],
                metadata.entities if metadata else [],
            ),
            url=draft.url,
            image_url=draft.image_url,
            image_storage_path=draft.image_storage_path,
            image_metadata=draft.image_metadata,
        )

        if improvement is not None:
            entry.quality_score = improvement.quality_score
            entry.sentiment = improvement.sentiment
        if metadata is not None:
            entry.topics = list(metadata.topics)
            entry.keywords = list(metadata.keywords)
            entry.category = metadata.category
            entry.sentiment = entry.sentiment or metadata.sentiment
        if image is not None:
            entry.image_description = image.description
            entry.image_objects = list(image.objects)
            entry.image_scene = image.scene
            entry.image_mood = image.mood
            entry.image_colors = list(image.colors)
            entry.category = entry.category or image.category
        if draft.type == "url":
            if summary is not None:
                entry.summary = summary.summary
                entry.key_points = list(summary.key_points)
                entry.quotes = list(summary.quotes)
            if scraped is not None:
                entry.url_title = scraped.title
                entry.url_domain = scraped.domain
                entry.url_author = scraped.author
                entry.url_checksum = scraped.checksum
                entry.url_fetched_at = enrichment.fetched_at
        return entry


__all__ = ["EntryAssembler", "EntryDraft", "EnrichmentBundle"]
