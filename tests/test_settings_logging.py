import json
import logging
import sys

import pytest

from libs.core import Settings, check_startup
from libs.logging import _JsonFormatter


def test_check_startup_names_missing_credentials():
    settings = Settings(ai_api_key="", telegram_bot_token="")
    with pytest.raises(RuntimeError) as exc:
        check_startup(settings)
    assert "AI_API_KEY" in str(exc.value)
    assert "TELEGRAM_BOT_TOKEN" in str(exc.value)


def test_check_startup_passes_with_credentials():
    check_startup(Settings(ai_api_key="k", telegram_bot_token="t"))


def test_postgres_uri_assembled_from_parts(monkeypatch):
    monkeypatch.delenv("POSTGRES_URI", raising=False)
    monkeypatch.setenv("POSTGRES_HOST", "db")
    monkeypatch.setenv("POSTGRES_DB", "journal")
    settings = Settings(_env_file=None)
    assert settings.postgres_uri == "postgresql+psycopg://postgres:postgres@db:5432/journal"


def test_json_formatter_includes_extras_and_error():
    formatter = _JsonFormatter(service="api", environment="test")
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("t").makeRecord(
            "t", logging.ERROR, __file__, 1, "entry_created", None,
            exc_info=sys.exc_info(), extra={"entry_id": "e1"},
        )
    data = json.loads(formatter.format(record))
    assert data["message"] == "entry_created"
    assert data["service"] == "api"
    assert data["environment"] == "test"
    assert data["entry_id"] == "e1"
    assert data["error"] == {"class": "ValueError", "message": "boom"}
