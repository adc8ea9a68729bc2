"""Self-contained HTML export of a user's journal.

``render_history_export`` is a pure function: it groups entries by the
month of their creation instant, computes summary statistics and renders
one document with the filtering script inlined. It performs no I/O beyond
reading its own template assets at import time.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader, TemplateError
from markupsafe import Markup

from libs.core.exceptions import RenderError
from libs.core.models import ENTRY_TYPES, Entry, Quote
from libs.core.timestamps import resolve_instant

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "history_export.html.j2"

NO_CONTENT = "No content provided."
TOP_TAGS_SUMMARY = 6
TOP_TAGS_PREVIEW = 4

_MONTHS = (
    "January", "February", "March", "April", "May", "June", "July",
    "August", "September", "October", "November", "December",
)
_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_TYPE_LABELS = {"note": "Note", "url": "URL", "image": "Image"}


# ----------------------------------------------------------------------
# date formatting (fixed English output, independent of process locale)

def format_long_date(value: datetime) -> str:
    """``Friday, March 1, 2024 at 9:05 AM``"""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return (
        f"{_WEEKDAYS[value.weekday()]}, {_MONTHS[value.month - 1]} {value.day}, "
        f"{value.year} at {hour}:{value.minute:02d} {meridiem}"
    )


def format_short_date(value: datetime) -> str:
    """``Mar 1``"""
    return f"{_MONTHS[value.month - 1][:3]} {value.day}"


def entries_label(count: int) -> str:
    return f"{count} entr{'y' if count == 1 else 'ies'}"


# ----------------------------------------------------------------------
# view models

@dataclass
class EntryCard:
    id: str
    type: str
    type_label: str
    source: str
    instant: datetime
    short_date: str
    long_date: str
    content: str
    sentiment: str
    category: str
    device: str
    timezone: str
    tags: List[str]
    tag_index: str
    search_text: str
    link_title: Optional[str] = None
    link_href: Optional[str] = None
    image_src: Optional[str] = None
    image_alt: str = "Image"
    image_omitted: bool = False
    image_description: Optional[str] = None
    topics: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    key_points: List[str] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)


@dataclass
class MonthGroup:
    year: int
    month: int
    label: str
    cards: List[EntryCard] = field(default_factory=list)

    @property
    def anchor(self) -> str:
        return f"month-{self.year:04d}-{self.month:02d}"


@dataclass
class YearGroup:
    year: int
    months: List[MonthGroup] = field(default_factory=list)


@dataclass
class TagStats:
    unique: int
    sorted: List[Tuple[str, int]]


# ----------------------------------------------------------------------
# aggregation

def canonical_content(entry: Entry) -> str:
    return entry.improved_text or entry.raw_text or entry.summary or NO_CONTENT


def _safe_href(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    scheme = urlparse(url).scheme.lower()
    return url if scheme in {"http", "https"} else None


def build_card(entry: Entry, include_images: bool = True) -> EntryCard:
    instant = resolve_instant(entry.created_at)
    long_date = format_long_date(instant)
    entry_type = (entry.type or "note").lower()
    tags = [t for t in entry.tags if t]

    search_parts = [
        long_date,
        entry.url_title,
        entry.summary,
        entry.raw_text,
        entry.improved_text,
        entry.image_description,
        " ".join(tags),
    ]
    card = EntryCard(
        id=entry.id,
        type=entry_type,
        type_label=_TYPE_LABELS.get(entry_type, entry_type.title()),
        source=entry.source or "raw",
        instant=instant,
        short_date=format_short_date(instant),
        long_date=long_date,
        content=canonical_content(entry),
        sentiment=entry.sentiment or "neutral",
        category=entry.category or "uncategorized",
        device=entry.device or "unknown",
        timezone=entry.timezone or "unknown",
        tags=tags,
        tag_index=json.dumps(sorted({t.lower() for t in tags}), ensure_ascii=False),
        search_text=" ".join(p for p in search_parts if p).lower(),
        image_description=entry.image_description,
        topics=list(entry.topics),
        keywords=list(entry.keywords),
        key_points=list(entry.key_points),
        quotes=[q for q in entry.quotes if q.text],
    )
    if entry_type == "url" and entry.url:
        card.link_title = entry.url_title or entry.url
        card.link_href = _safe_href(entry.url)
    if entry.image_url:
        if include_images:
            card.image_src = entry.image_url
            card.image_alt = entry.image_description or "Image"
        else:
            card.image_omitted = True
    return card


def group_by_month(cards: Iterable[EntryCard]) -> List[YearGroup]:
    """Bucket cards by (year, month), newest bucket and newest card first."""
    buckets: Dict[Tuple[int, int], MonthGroup] = {}
    for card in cards:
        key = (card.instant.year, card.instant.month)
        if key not in buckets:
            buckets[key] = MonthGroup(year=key[0], month=key[1], label=_MONTHS[key[1] - 1])
        buckets[key].cards.append(card)

    years: Dict[int, YearGroup] = {}
    for key in sorted(buckets, reverse=True):
        month = buckets[key]
        month.cards.sort(key=lambda c: c.instant, reverse=True)
        years.setdefault(key[0], YearGroup(year=key[0])).months.append(month)
    return list(years.values())


def collect_tag_stats(entries: Iterable[Entry]) -> TagStats:
    """Tag frequencies, most frequent first; ties keep first-seen order."""
    counts: Counter[str] = Counter()
    for entry in entries:
        for tag in entry.tags:
            normalized = (tag or "").strip()
            if normalized:
                counts[normalized] += 1
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return TagStats(unique=len(counts), sorted=ordered)


def tag_options(tag_stats: TagStats) -> List[Tuple[str, str]]:
    """(value, label) pairs for the tag selector, one per lowercased tag."""
    seen: Dict[str, str] = {}
    for tag, _ in tag_stats.sorted:
        seen.setdefault(tag.lower(), tag)
    return list(seen.items())


def collect_type_counts(entries: Iterable[Entry]) -> Dict[str, int]:
    counts = {t: 0 for t in ENTRY_TYPES}
    for entry in entries:
        kind = entry.type or "note"
        counts[kind] = counts.get(kind, 0) + 1
    return counts


def collect_sentiment_counts(entries: Iterable[Entry]) -> Dict[str, int]:
    counts = {"positive": 0, "neutral": 0, "negative": 0}
    for entry in entries:
        counts[entry.sentiment or "neutral"] += 1
    return counts


# ----------------------------------------------------------------------
# rendering

def _read_asset(name: str) -> Markup:
    text = (TEMPLATES_DIR / name).read_text(encoding="utf-8")
    if "</script" in text.lower() or "</style" in text.lower():
        raise RenderError(f"Asset {name} must not close its own element")
    return Markup(text)


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.globals["entries_label"] = entries_label
_SCRIPT = _read_asset("history_export.js")
_STYLES = _read_asset("history_export.css")


def render_history_export(
    entries: Sequence[Entry],
    export_instant: datetime,
    include_images: bool = True,
    product_name: str = "visper",
) -> str:
    """Render the full export document for ``entries``."""
    entries = list(entries)
    cards = [build_card(entry, include_images) for entry in entries]
    years = group_by_month(cards)
    tag_stats = collect_tag_stats(entries)
    top_tags_preview = " • ".join(f"#{tag}" for tag, _ in tag_stats.sorted[:TOP_TAGS_PREVIEW])

    try:
        template = _env.get_template(TEMPLATE_NAME)
        html = template.render(
            product_title=product_name.title(),
            exported_at=format_long_date(resolve_instant(export_instant)),
            total=len(entries),
            top_tags_preview=top_tags_preview,
            top_tags=tag_stats.sorted[:TOP_TAGS_SUMMARY],
            tag_stats=tag_stats,
            tag_options=tag_options(tag_stats),
            type_counts=collect_type_counts(entries),
            sentiment_counts=collect_sentiment_counts(entries),
            years=years,
            styles=_STYLES,
            script=_SCRIPT,
        )
    except TemplateError as exc:
        raise RenderError(f"Failed to render export: {exc}") from exc

    logger.info(
        "export_rendered",
        extra={"entry_count": len(entries), "include_images": include_images},
    )
    return html


__all__ = [
    "render_history_export",
    "build_card",
    "group_by_month",
    "collect_tag_stats",
    "tag_options",
    "collect_type_counts",
    "collect_sentiment_counts",
    "canonical_content",
    "format_long_date",
    "format_short_date",
    "entries_label",
    "EntryCard",
    "MonthGroup",
    "YearGroup",
    "TagStats",
    "NO_CONTENT",
]
