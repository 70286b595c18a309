"""Task and DeviceToken documents."""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    """Task lifecycle status.

    ``closed`` predates ``done`` and still appears on older documents; the
    rollover job treats both as finished.
    """

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    DONE = "done"
    CLOSED = "closed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO

    @property
    def is_finished(self) -> bool:
        return self in (TaskStatus.DONE, TaskStatus.CLOSED)


class Priority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


@dataclass
class SubTask:
    title: str
    done: bool = False
    in_progress: bool = False

    def reset(self) -> SubTask:
        """Return an unchecked copy with the same title."""
        return SubTask(title=self.title)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "done": self.done, "inProgress": self.in_progress}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubTask:
        return cls(
            title=str(data.get("title", "")),
            done=bool(data.get("done", False)),
            in_progress=bool(data.get("inProgress", False)),
        )


@dataclass
class Task:
    """A unit of work tracked by a user.

    Attributes:
        id: Identifier, unique within the owning user's collection.
        user_id: Owner of the collection the task lives in.
        title: Display string.
        status: Lifecycle status.
        priority: ``low`` / ``medium`` / ``high``.
        sub_tasks: Ordered checklist items.
        comment: Free-text note, carried over to spawned occurrences.
        timer_start: Epoch ms when the timer was started, or None.
        timer_duration: Timer length in ms, or None.
        notified_15min: Guard flag for the deadline warning. Set once per
            timer; only ``TaskStore.start_timer`` clears it.
        recurring: Whether the task is a template that regenerates itself.
        recurring_interval: Days between occurrences; values <= 0 disable it.
        last_occurrence: Epoch ms of the last spawn or closure. Guard field
            for the rollover job.
        created_at: Epoch ms assigned by the store on insert.
    """

    id: str
    user_id: str
    title: str
    status: TaskStatus = TaskStatus.TODO
    priority: Priority = Priority.MEDIUM
    sub_tasks: list[SubTask] = field(default_factory=list)
    comment: str = ""
    timer_start: int | None = None
    timer_duration: int | None = None
    notified_15min: bool = False
    recurring: bool = False
    recurring_interval: int | None = None
    last_occurrence: int | None = None
    created_at: int | None = None

    # -- Convenience properties ------------------------------------------------

    @property
    def has_active_timer(self) -> bool:
        return bool(self.timer_start) and bool(self.timer_duration)

    @property
    def deadline_ms(self) -> int | None:
        if not self.has_active_timer:
            return None
        return self.timer_start + self.timer_duration

    @property
    def anchor_ms(self) -> int | None:
        """Instant the recurrence interval is measured from."""
        return self.last_occurrence or self.created_at or None

    def spawn_occurrence(self, title: str, created_at: int) -> Task:
        """Build the plain, non-recurring task that replaces this template."""
        return replace(
            self,
            id=make_task_id(),
            title=title,
            status=TaskStatus.IN_PROGRESS,
            sub_tasks=[s.reset() for s in self.sub_tasks],
            timer_start=None,
            timer_duration=None,
            notified_15min=False,
            recurring=False,
            recurring_interval=None,
            last_occurrence=None,
            created_at=created_at,
        )

    # -- Serialization ---------------------------------------------------------

    def to_row(self) -> tuple:
        """Serialize to a tuple matching the ``tasks`` column order."""
        return (
            self.user_id,
            self.id,
            self.title,
            self.status.value,
            self.priority.value,
            json.dumps([s.to_dict() for s in self.sub_tasks]),
            self.comment,
            self.timer_start,
            self.timer_duration,
            int(self.notified_15min),
            int(self.recurring),
            self.recurring_interval,
            self.last_occurrence,
            self.created_at,
        )

    @classmethod
    def from_row(cls, row: tuple) -> Task:
        """Deserialize from a ``tasks`` row tuple."""
        try:
            raw_subs = json.loads(row[5] or "[]")
        except ValueError:
            raw_subs = []
        return cls(
            user_id=row[0],
            id=row[1],
            title=row[2],
            status=TaskStatus.from_db(row[3]),
            priority=Priority.from_db(row[4]),
            sub_tasks=[SubTask.from_dict(s) for s in raw_subs if isinstance(s, dict)],
            comment=row[6] or "",
            timer_start=row[7],
            timer_duration=row[8],
            notified_15min=bool(row[9]),
            recurring=bool(row[10]),
            recurring_interval=row[11],
            last_occurrence=row[12],
            created_at=row[13],
        )


@dataclass(frozen=True)
class DeviceToken:
    """One push destination registered by a client.

    ``token_id`` is the registration id as the client stored it, either
    ``"<prefix>:<token>"`` or the bare token.
    """

    user_id: str
    token_id: str
    created_at: int = 0

    @property
    def push_token(self) -> str:
        _, sep, token = self.token_id.partition(":")
        return token if sep and token else self.token_id


def make_task_id() -> str:
    """Generate a new task ID."""
    return uuid.uuid4().hex


def now_ms() -> int:
    """Current instant in epoch milliseconds."""
    return int(time.time() * 1000)
