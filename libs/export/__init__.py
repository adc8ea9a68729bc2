"""HTML export of the journal timeline."""

from .renderer import (
    NO_CONTENT,
    build_card,
    collect_tag_stats,
    group_by_month,
    render_history_export,
)

__all__ = [
    "NO_CONTENT",
    "build_card",
    "collect_tag_stats",
    "group_by_month",
    "render_history_export",
]
