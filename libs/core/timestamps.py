"""Decoding of the creation-time shapes found in stored entries.

Stored records carry ``created_at`` in one of several wire forms:

- a native :class:`datetime` (naive values are taken as UTC)
- an epoch wrapper ``{"seconds": ...}`` or ``{"_seconds": ...}``
- an ISO-8601 string

Anything else goes through generic parsing and, if that fails, resolves
to :data:`EPOCH` so that callers never see an ambiguous "now".
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_EPOCH_KEYS = ("seconds", "_seconds")


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(seconds: Any, nanos: Any = 0) -> datetime:
    total = float(seconds) + float(nanos or 0) / 1_000_000_000
    return datetime.fromtimestamp(total, tz=timezone.utc)


def _from_mapping(value: Mapping[str, Any]) -> datetime:
    for key in _EPOCH_KEYS:
        if value.get(key) is not None:
            nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
            return _from_epoch(value[key], nanos)
    raise ValueError("mapping carries no epoch seconds")


def _from_string(value: str) -> datetime:
    text = value.strip()
    # fromisoformat before 3.11 does not accept a trailing Z
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return _aware(datetime.fromisoformat(text))


def resolve_instant(value: Any) -> datetime:
    """Return the UTC instant encoded by ``value`` or :data:`EPOCH`."""
    if value is None:
        return EPOCH
    try:
        if isinstance(value, datetime):
            return _aware(value)
        if isinstance(value, Mapping):
            return _from_mapping(value)
        if isinstance(value, str):
            return _from_string(value)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            # Bare numbers are epoch milliseconds, as produced by JS clients
            return _from_epoch(value / 1000)
        to_datetime = getattr(value, "to_datetime", None)
        if callable(to_datetime):
            return _aware(to_datetime())
    except (ValueError, TypeError, OverflowError, OSError):
        return EPOCH
    return EPOCH


__all__ = ["EPOCH", "resolve_instant"]
