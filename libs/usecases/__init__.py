"""Application use cases built on the core components."""

from .assemble_entry import EnrichmentBundle, EntryAssembler, EntryDraft
from .capture import CaptureEntry, SummarizeLink
from .export_history import ExportDocument, ExportHistory
from .search import SearchEntries

__all__ = [
    "EnrichmentBundle",
    "EntryAssembler",
    "EntryDraft",
    "CaptureEntry",
    "SummarizeLink",
    "ExportDocument",
    "ExportHistory",
    "SearchEntries",
]
