from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from libs.core import EPOCH, resolve_instant

INSTANT = datetime(2024, 3, 1, 9, 5, 30, tzinfo=timezone.utc)
SECONDS = int(INSTANT.timestamp())


@pytest.mark.parametrize(
    "value",
    [
        INSTANT,
        {"seconds": SECONDS},
        {"_seconds": SECONDS, "_nanoseconds": 0},
    ],
)
def test_supported_shapes_resolve_to_same_instant(value):
    assert resolve_instant(value) == INSTANT


def test_naive_datetime_is_utc():
    assert resolve_instant(datetime(2024, 3, 1, 9, 5, 30)) == INSTANT


def test_offset_datetime_is_normalised():
    local = INSTANT.astimezone(timezone(timedelta(hours=3)))
    resolved = resolve_instant(local)
    assert resolved == INSTANT
    assert resolved.utcoffset() == timedelta(0)


def test_iso_string_with_z_suffix():
    assert resolve_instant("2024-03-01T09:05:30Z") == INSTANT


def test_epoch_milliseconds():
    assert resolve_instant(SECONDS * 1000) == INSTANT


def test_zero_seconds_is_epoch_not_missing():
    assert resolve_instant({"seconds": 0}) == EPOCH


def test_object_with_to_datetime():
    value = SimpleNamespace(to_datetime=lambda: INSTANT)
    assert resolve_instant(value) == INSTANT


@pytest.mark.parametrize("value", [None, "not a date", {"nanos": 5}, [1, 2], True])
def test_unresolvable_values_fall_back_to_epoch(value):
    assert resolve_instant(value) == EPOCH
