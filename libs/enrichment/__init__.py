"""AI-derived metadata for journal entries."""

from .prompts import PromptBook, PromptsError
from .strategies import (
    Enrichment,
    EnrichmentStrategy,
    ExtractImageMetadata,
    ExtractTextMetadata,
    ImproveText,
    SummarizeUrl,
)

__all__ = [
    "PromptBook",
    "PromptsError",
    "Enrichment",
    "EnrichmentStrategy",
    "ExtractImageMetadata",
    "ExtractTextMetadata",
    "ImproveText",
    "SummarizeUrl",
]
