"""TaskStore — libsql persistence for task documents and device tokens."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from taskpulse.db import connection
from taskpulse.tasks.models import DeviceToken, Task, now_ms

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_CREATE_TASKS = """
CREATE TABLE IF NOT EXISTS tasks (
    user_id            TEXT NOT NULL,
    id                 TEXT NOT NULL,
    title              TEXT NOT NULL,
    status             TEXT NOT NULL DEFAULT 'todo',
    priority           TEXT NOT NULL DEFAULT 'medium',
    sub_tasks          TEXT NOT NULL DEFAULT '[]',
    comment            TEXT NOT NULL DEFAULT '',
    timer_start        INTEGER,
    timer_duration     INTEGER,
    notified_15min     INTEGER NOT NULL DEFAULT 0,
    recurring          INTEGER NOT NULL DEFAULT 0,
    recurring_interval INTEGER,
    last_occurrence    INTEGER,
    created_at         INTEGER NOT NULL,
    PRIMARY KEY (user_id, id)
)
"""

_CREATE_TOKENS = """
CREATE TABLE IF NOT EXISTS device_tokens (
    user_id    TEXT NOT NULL,
    token_id   TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    PRIMARY KEY (user_id, token_id)
)
"""

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_tasks_timer ON tasks(notified_15min, timer_start)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_recurring ON tasks(recurring)",
)

_COLUMNS = (
    "user_id, id, title, status, priority, sub_tasks, comment, timer_start, "
    "timer_duration, notified_15min, recurring, recurring_interval, "
    "last_occurrence, created_at"
)

# Fields writable through update_fields(), mapped to their column names.
_UPDATABLE = {
    "title": "title",
    "status": "status",
    "priority": "priority",
    "comment": "comment",
    "timer_start": "timer_start",
    "timer_duration": "timer_duration",
    "notified_15min": "notified_15min",
    "recurring": "recurring",
    "recurring_interval": "recurring_interval",
    "last_occurrence": "last_occurrence",
}


class TaskStore:
    """Persists tasks (one collection per user) in SQLite / Turso.

    Singleton accessed via ``TaskStore.get()``.  Pass an explicit *db_path*
    for test isolation (e.g. ``tmp_path / "test.db"``).

    Access is serialised through one lock: concurrent libsql connections to
    the same file fail with "database is locked" instead of waiting.
    """

    _instance: TaskStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False
        self._lock = asyncio.Lock()

    @classmethod
    def get(cls) -> TaskStore:
        """Return the shared TaskStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _ensure_schema(self, db) -> None:  # noqa: ANN001
        if self._initialised:
            return
        await db.execute(_CREATE_TASKS)
        await db.execute(_CREATE_TOKENS)
        for stmt in _INDEXES:
            await db.execute(stmt)
        await db.commit()
        self._initialised = True

    @asynccontextmanager
    async def _session(self) -> AsyncIterator:
        async with self._lock, connection(self._db_path) as db:
            await self._ensure_schema(db)
            yield db

    async def _query(self, sql: str, params: tuple = ()) -> list[Task]:
        async with self._session() as db:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [Task.from_row(row) for row in rows]

    async def _write(self, sql: str, params: tuple) -> int:
        async with self._session() as db:
            cursor = await db.execute(sql, params)
            await db.commit()
            return cursor.rowcount

    # -- Collection-group queries ----------------------------------------------

    async def list_timer_candidates(self) -> list[Task]:
        """Tasks of every user with a running timer that has not warned yet."""
        return await self._query(
            f"SELECT {_COLUMNS} FROM tasks"
            " WHERE timer_start IS NOT NULL AND timer_duration IS NOT NULL"
            " AND notified_15min = 0"
            " ORDER BY user_id, created_at"
        )

    async def list_recurring_tasks(self) -> list[Task]:
        """Tasks of every user flagged as recurring templates."""
        return await self._query(
            f"SELECT {_COLUMNS} FROM tasks WHERE recurring = 1 ORDER BY user_id, created_at"
        )

    # -- Per-user collection ---------------------------------------------------

    async def add_task(self, task: Task) -> Task:
        """Insert *task* into its user's collection. Fills ``created_at`` if unset."""
        if not task.title.strip():
            msg = "Task title must not be empty"
            raise ValueError(msg)
        if task.created_at is None:
            task.created_at = now_ms()
        await self._write(
            f"INSERT INTO tasks ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            task.to_row(),
        )
        logger.info("Added task %s for user %s: %s", task.id, task.user_id, task.title)
        return task

    async def get_task(self, user_id: str, task_id: str) -> Task | None:
        """Fetch a task by owner and ID, or None if not found."""
        tasks = await self._query(
            f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? AND id = ?",
            (user_id, task_id),
        )
        return tasks[0] if tasks else None

    async def list_tasks(self, user_id: str) -> list[Task]:
        """Every task in one user's collection, oldest first."""
        return await self._query(
            f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? ORDER BY created_at",
            (user_id,),
        )

    async def update_fields(self, user_id: str, task_id: str, **fields: Any) -> bool:
        """Replace the named fields of one task in a single statement.

        Returns True if a row was updated.
        """
        unknown = set(fields) - set(_UPDATABLE)
        if unknown:
            msg = f"Cannot update field(s): {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        if not fields:
            return False

        assignments = []
        params: list[Any] = []
        for name, value in fields.items():
            assignments.append(f"{_UPDATABLE[name]} = ?")
            if isinstance(value, bool):
                value = int(value)
            elif hasattr(value, "value"):
                value = value.value
            params.append(value)
        params.extend([user_id, task_id])

        updated = await self._write(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE user_id = ? AND id = ?",
            tuple(params),
        )
        return updated > 0

    async def mark_notified(self, user_id: str, task_id: str) -> bool:
        """Advance the deadline-warning guard flag."""
        return await self.update_fields(user_id, task_id, notified_15min=True)

    async def set_last_occurrence(self, user_id: str, task_id: str, timestamp: int) -> bool:
        """Advance the rollover guard field to *timestamp* (epoch ms)."""
        return await self.update_fields(user_id, task_id, last_occurrence=timestamp)

    async def start_timer(
        self, user_id: str, task_id: str, *, duration_ms: int, start_ms: int | None = None
    ) -> bool:
        """Start a new timer. This is the only path that clears ``notified_15min``."""
        if duration_ms <= 0:
            msg = "Timer duration must be positive"
            raise ValueError(msg)
        return await self.update_fields(
            user_id,
            task_id,
            timer_start=start_ms if start_ms is not None else now_ms(),
            timer_duration=duration_ms,
            notified_15min=False,
        )

    async def clear_timer(self, user_id: str, task_id: str) -> bool:
        return await self.update_fields(
            user_id, task_id, timer_start=None, timer_duration=None
        )

    async def delete_task(self, user_id: str, task_id: str) -> bool:
        """Delete a task. Returns True if a row was removed."""
        deleted = await self._write(
            "DELETE FROM tasks WHERE user_id = ? AND id = ?", (user_id, task_id)
        )
        if deleted:
            logger.info("Deleted task %s for user %s", task_id, user_id)
        return deleted > 0

    # -- Device tokens ---------------------------------------------------------

    async def register_device_token(self, user_id: str, token_id: str) -> DeviceToken:
        """Record a push registration for *user_id*. Re-registering is a no-op."""
        if not token_id.strip():
            msg = "Device token must not be empty"
            raise ValueError(msg)
        token = DeviceToken(user_id=user_id, token_id=token_id, created_at=now_ms())
        await self._write(
            "INSERT OR IGNORE INTO device_tokens (user_id, token_id, created_at)"
            " VALUES (?, ?, ?)",
            (token.user_id, token.token_id, token.created_at),
        )
        return token

    async def list_device_tokens(self, user_id: str) -> list[DeviceToken]:
        """Registered tokens for one user, oldest first."""
        async with self._session() as db:
            cursor = await db.execute(
                "SELECT user_id, token_id, created_at FROM device_tokens"
                " WHERE user_id = ? ORDER BY created_at, token_id",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [DeviceToken(user_id=r[0], token_id=r[1], created_at=r[2]) for r in rows]
