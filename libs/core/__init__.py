"""Core library exposing domain models, settings, exceptions and helpers."""

from .settings import Settings, get_settings, check_startup
from .exceptions import (
    AuthError,
    DomainError,
    FetchError,
    ForbiddenError,
    GatewayError,
    NotFoundError,
    RenderError,
    ValidationError,
    Error,
)
from .models import (
    Entry,
    EntryFilters,
    ImageAnalysis,
    ImageMetadata,
    ImprovedText,
    NewEntry,
    Quote,
    ScrapedContent,
    TextMetadata,
    UrlSummary,
)
from .timestamps import EPOCH, resolve_instant

__all__ = [
    "Settings",
    "get_settings",
    "check_startup",
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "AuthError",
    "ForbiddenError",
    "FetchError",
    "GatewayError",
    "RenderError",
    "Error",
    "Entry",
    "EntryFilters",
    "ImageAnalysis",
    "ImageMetadata",
    "ImprovedText",
    "NewEntry",
    "Quote",
    "ScrapedContent",
    "TextMetadata",
    "UrlSummary",
    "EPOCH",
    "resolve_instant",
]
