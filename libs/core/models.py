"""Pydantic models representing core domain entities."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EntryType = Literal["note", "url", "image"]
EntrySource = Literal["raw", "improved", "both"]
Sentiment = Literal["negative", "neutral", "positive"]

ENTRY_TYPES: tuple[str, ...] = ("note", "url", "image")
SENTIMENTS: tuple[str, ...] = ("negative", "neutral", "positive")


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys at the HTTP boundary."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Quote(CamelModel):
    text: str
    locator: Optional[str] = None


class ImageMetadata(CamelModel):
    """Upload facts recorded for an image entry."""

    filename: str
    size: int
    content_type: str
    width: Optional[int] = None
    height: Optional[int] = None


class NewEntry(CamelModel):
    """An entry ready to be written; identity and timestamps come from the store."""

    user_id: str
    type: EntryType
    source: EntrySource = "raw"

    raw_text: Optional[str] = None
    improved_text: Optional[str] = None
    ai_model: Optional[str] = None
    timezone: Optional[str] = None
    device: Optional[str] = None

    tags: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)
    sentiment: Optional[Sentiment] = None
    quality_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    topics: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    category: Optional[str] = None

    image_url: Optional[str] = None
    image_storage_path: Optional[str] = None
    image_description: Optional[str] = None
    image_objects: List[str] = Field(default_factory=list)
    image_scene: Optional[str] = None
    image_mood: Optional[str] = None
    image_colors: List[str] = Field(default_factory=list)
    image_metadata: Optional[ImageMetadata] = None

    url: Optional[str] = None
    url_title: Optional[str] = None
    url_domain: Optional[str] = None
    url_author: Optional[str] = None
    url_checksum: Optional[str] = None
    url_fetched_at: Optional[datetime] = None
    summary: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    quotes: List[Quote] = Field(default_factory=list)


class Entry(NewEntry):
    """A persisted journal record.

    ``created_at`` keeps whatever shape the store produced; consumers resolve
    it with :func:`libs.core.timestamps.resolve_instant`.
    """

    id: str
    created_at: Any = None
    updated_at: Any = None


class ScrapedContent(BaseModel):
    """Plain-text rendition of a fetched page."""

    title: str
    content: str
    author: Optional[str] = None
    domain: str
    checksum: str


class ImprovedText(CamelModel):
    improved_text: Optional[str] = None
    quality_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    tags: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)
    sentiment: Optional[Sentiment] = None


class TextMetadata(CamelModel):
    tags: List[str] = Field(default_factory=list)
    entities: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    summary: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    category: Optional[str] = None


class ImageAnalysis(CamelModel):
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    objects: List[str] = Field(default_factory=list)
    scene: Optional[str] = None
    mood: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    category: Optional[str] = None


class UrlSummary(CamelModel):
    summary: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    quotes: List[Quote] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)


class EntryFilters(BaseModel):
    """Filters accepted by ``EntryRepo.list_by_owner``."""

    type: Optional[EntryType] = None
    tag: Optional[str] = None
    sentiment: Optional[Sentiment] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    limit: int = Field(default=50, ge=1)


__all__ = [
    "EntryType",
    "EntrySource",
    "Sentiment",
    "ENTRY_TYPES",
    "SENTIMENTS",
    "Quote",
    "ImageMetadata",
    "NewEntry",
    "Entry",
    "ScrapedContent",
    "ImprovedText",
    "TextMetadata",
    "ImageAnalysis",
    "UrlSummary",
    "EntryFilters",
]
