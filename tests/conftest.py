import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

# Ensure project root on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are read once at startup; provide credentials and a throwaway
# database before the app is imported.
os.environ.setdefault("AI_API_KEY", "test-key")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("POSTGRES_URI", "sqlite+aiosqlite://")
os.environ.setdefault("VAULT_DIR", tempfile.mkdtemp(prefix="visper-vault-"))

from apps.api.main import (  # noqa: E402
    app,
    capture_uc,
    current_user,
    export_uc,
    get_enrichment,
    get_entry_repo,
    get_fetcher,
    get_storage,
    search_uc,
    summarize_uc,
)
from libs.core import Entry, ForbiddenError, NotFoundError  # noqa: E402
from libs.storage import BlobStorage  # noqa: E402
from libs.usecases import SearchEntries  # noqa: E402

OWNER_ID = "user-1"


def make_entry(**overrides: Any) -> Entry:
    """Build a stored entry with sensible defaults."""
    data: Dict[str, Any] = {
        "id": "e1",
        "user_id": OWNER_ID,
        "type": "note",
        "raw_text": "hello world",
        "created_at": datetime(2024, 3, 1, 9, 5, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 3, 1, 9, 5, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Entry(**data)


class FakeEntryRepo:
    """In-memory stand-in for ``EntryRepo`` with the same ownership rules."""

    def __init__(self, entries: List[Entry] | None = None) -> None:
        self.entries: Dict[str, Entry] = {e.id: e for e in entries or []}
        self.created: List[Any] = []

    async def create(self, new_entry):
        self.created.append(new_entry)
        entry = Entry(
            id=f"e{len(self.entries) + 1}",
            created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
            **new_entry.model_dump(),
        )
        self.entries[entry.id] = entry
        return entry

    async def get(self, entry_id):
        if entry_id not in self.entries:
            raise NotFoundError(f"Entry {entry_id} not found")
        return self.entries[entry_id]

    async def get_owned(self, entry_id, requester_id):
        entry = await self.get(entry_id)
        if entry.user_id != requester_id:
            raise ForbiddenError("You don't have permission to access this entry")
        return entry

    async def list_by_owner(self, owner_id, filters=None):
        found = [e for e in self.entries.values() if e.user_id == owner_id]
        if filters is not None:
            if filters.type:
                found = [e for e in found if e.type == filters.type]
            if filters.tag:
                found = [e for e in found if filters.tag in e.tags]
            found = found[: filters.limit]
        return sorted(found, key=lambda e: e.created_at, reverse=True)

    async def delete(self, entry_id, requester_id):
        await self.get_owned(entry_id, requester_id)
        del self.entries[entry_id]


@pytest.fixture()
def repo() -> FakeEntryRepo:
    return FakeEntryRepo([make_entry()])


@pytest.fixture()
def enrichment() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def client(tmp_path, repo, enrichment):
    """FastAPI test client with dependencies overridden."""

    storage = BlobStorage(tmp_path / "vault", public_url="http://testserver")
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_entry_repo] = lambda: repo
    app.dependency_overrides[get_enrichment] = lambda: enrichment
    app.dependency_overrides[get_fetcher] = lambda: MagicMock()
    app.dependency_overrides[search_uc] = lambda: SearchEntries(repo)
    app.dependency_overrides[current_user] = lambda: SimpleNamespace(
        id=OWNER_ID, telegram_id=1
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


__all__ = [
    "OWNER_ID",
    "FakeEntryRepo",
    "make_entry",
    "capture_uc",
    "export_uc",
    "summarize_uc",
]
