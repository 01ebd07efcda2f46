"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides common fixtures like an in-memory document store.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("FIREBASE_API_KEY", "fake-api-key-for-tests")
os.environ.setdefault("FIREBASE_PROJECT_ID", "campus-test")
os.environ.setdefault("FIREBASE_STORAGE_BUCKET", "")
os.environ.setdefault("DEFAULT_THEME", "light")

import itertools
from datetime import datetime, timezone

import pytest

from src.ports.backend_error import BackendError

SERVER_TS = object()


class FakeStore:
    """In-memory DocumentStorePort. Replaces SERVER_TS with an increasing clock."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict]] = {}
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)
        self.fail_with: Exception | None = None

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def _resolve(self, data: dict) -> dict:
        resolved = {}
        for key, value in data.items():
            if value is SERVER_TS:
                value = datetime(2025, 1, 1, tzinfo=timezone.utc).replace(
                    second=next(self._clock) % 60
                )
            resolved[key] = value
        return resolved

    async def add(self, collection, data):
        self._check()
        doc_id = f"doc{next(self._ids)}"
        self.collections.setdefault(collection, {})[doc_id] = self._resolve(data)
        return doc_id

    async def get(self, collection, doc_id):
        self._check()
        doc = self.collections.get(collection, {}).get(doc_id)
        return dict(doc) if doc is not None else None

    async def set(self, collection, doc_id, data):
        self._check()
        self.collections.setdefault(collection, {})[doc_id] = self._resolve(data)

    async def update(self, collection, doc_id, data):
        self._check()
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            raise BackendError("not-found", "Error (not-found)")
        docs[doc_id].update(self._resolve(data))

    async def delete(self, collection, doc_id):
        self._check()
        self.collections.get(collection, {}).pop(doc_id, None)

    async def query_equal(self, collection, field, value):
        self._check()
        return [
            (doc_id, dict(doc))
            for doc_id, doc in self.collections.get(collection, {}).items()
            if doc.get(field) == value
        ]

    async def flip_flag(self, collection, doc_id, field, extra=None):
        self._check()
        docs = self.collections.get(collection, {})
        if doc_id not in docs:
            raise BackendError("not-found", "Error (not-found)")
        value = not bool(docs[doc_id].get(field, False))
        docs[doc_id].update(self._resolve({field: value, **(extra or {})}))
        return value

    def server_timestamp(self):
        return SERVER_TS


@pytest.fixture
def fake_store():
    """Return an empty in-memory document store."""
    return FakeStore()


@pytest.fixture
def event_repo(fake_store):
    """Return an EventRepository backed by the in-memory store."""
    from src.core.event_repository import EventRepository
    return EventRepository(fake_store, collection="events")


@pytest.fixture
def prefs_db(tmp_path):
    """Return a PreferencesDB instance backed by a temp file."""
    from src.data.db import PreferencesDB
    return PreferencesDB(db_path=str(tmp_path / "test_prefs.db"), default_theme="light")
