"""Shared test fixtures."""

from pathlib import Path

import pytest

from taskpulse.notifications.dispatcher import NotificationDispatcher
from taskpulse.tasks.store import TaskStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("taskpulse.config.settings.turso_database_url", "")


@pytest.fixture
def store(tmp_path: Path, _no_turso: None) -> TaskStore:
    """A TaskStore backed by a temp database."""
    return TaskStore(db_path=tmp_path / "test.db")


@pytest.fixture
def dispatcher():
    """A fresh NotificationDispatcher singleton."""
    NotificationDispatcher._reset()
    yield NotificationDispatcher.get()
    NotificationDispatcher._reset()
