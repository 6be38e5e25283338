"""Shared test fixtures and collection-time service gating for remindr."""

from __future__ import annotations

import os
import socket
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import pytest

from remindr.clock import FixedClock
from remindr.config.manager import ConfigManager
from remindr.integrations.llm import MockTextGenerator
from remindr.store.memory import InMemoryDocumentStore
from remindr.store.paths import reminder_path

NOW = datetime(2024, 1, 1, 9, 5, tzinfo=timezone.utc)


def _is_port_open(host: str, port: int, timeout: float = 0.5) -> bool:
    """Return True when host:port accepts TCP connections."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        return sock.connect_ex((host, port)) == 0


def _postgres_url() -> str | None:
    url = os.getenv("REMINDR_TEST_POSTGRES_URL", "").strip()
    return url or None


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip PostgreSQL tests when no server is reachable."""
    url = _postgres_url()
    available = False
    if url:
        parsed = urlparse(url)
        available = _is_port_open(parsed.hostname or "localhost", parsed.port or 5432)
    for item in items:
        if item.get_closest_marker("requires_postgres") and not available:
            item.add_marker(pytest.mark.skip(reason="Set REMINDR_TEST_POSTGRES_URL to a reachable PostgreSQL server"))


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep the host environment and config singleton out of tests."""
    for key in list(os.environ):
        if key.startswith("REMINDR_") and key != "REMINDR_TEST_POSTGRES_URL":
            monkeypatch.delenv(key, raising=False)
    ConfigManager._reset_for_tests()
    yield
    ConfigManager._reset_for_tests()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def generator() -> MockTextGenerator:
    return MockTextGenerator("Generated draft text")


def reminder_doc(
    *,
    reminder_type: str = "simple",
    frequency: str = "daily",
    next_run: str | None = "2024-01-01T09:00:00.000Z",
    enabled: bool = True,
    content: dict[str, Any] | None = None,
    schedule: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a stored reminder document."""
    if content is None:
        content = {"message": "Stand up and stretch"} if reminder_type == "simple" else {"prompt": "Write a tip"}
    doc: dict[str, Any] = {
        "enabled": enabled,
        "frequency": frequency,
        "reminderType": reminder_type,
        "content": content,
        "schedule": schedule or {"timeOfDay": "09:00", "timezone": "UTC"},
        "createdAt": "2023-12-31T12:00:00.000Z",
    }
    if next_run is not None:
        doc["nextRunAtUTC"] = next_run
    return doc


@pytest.fixture
def make_reminder():
    return reminder_doc


@pytest.fixture
def seed_reminder(store: InMemoryDocumentStore):
    """Store a reminder and return its path."""

    async def _seed(uid: str = "u1", reminder_id: str = "r1", **fields: Any) -> str:
        path = reminder_path(uid, reminder_id)
        await store.set(path, reminder_doc(**fields))
        return path

    return _seed


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'remindr.db'}"


class FailingStore(InMemoryDocumentStore):
    """In-memory store whose reads or writes raise for matching path fragments."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_get_on: list[str] = []
        self.fail_write_on: list[str] = []

    def _check(self, path: str, fragments: list[str]) -> None:
        for fragment in fragments:
            if fragment in path:
                raise ConnectionError(f"injected store failure for {path}")

    async def get(self, path: str):
        self._check(path, self.fail_get_on)
        return await super().get(path)

    async def create(self, path: str, data: dict[str, Any]) -> None:
        self._check(path, self.fail_write_on)
        await super().create(path, data)

    async def update(self, path: str, data: dict[str, Any]) -> None:
        self._check(path, self.fail_write_on)
        await super().update(path, data)

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        self._check(collection, self.fail_write_on)
        return await super().add(collection, data)

    async def increment(self, path: str, field: str, delta: int = 1) -> None:
        self._check(path, self.fail_write_on)
        await super().increment(path, field, delta)


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()
