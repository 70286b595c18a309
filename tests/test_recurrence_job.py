"""Tests for RecurrenceRolloverJob."""

from datetime import datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

from taskpulse.scheduler.jobs.recurrence import (
    MS_PER_DAY,
    RecurrenceRolloverJob,
    evaluate_rollover,
)
from taskpulse.tasks.models import Priority, SubTask, Task, TaskStatus
from taskpulse.tasks.store import TaskStore
from tests.fakes import TZ, ms

HOUR = 60 * 60 * 1000

# Thursday Jan 15 2026, winter time (UTC+1). Target is 14:00 local.
TARGET = ms(datetime(2026, 1, 15, 14, 0, tzinfo=ZoneInfo(TZ)))
NOW = TARGET + HOUR


def _job(store: TaskStore) -> RecurrenceRolloverJob:
    return RecurrenceRolloverJob(store, clock=lambda: NOW, timezone=TZ, target_time=(14, 0))


def _template(
    task_id: str = "tpl",
    user_id: str = "u1",
    *,
    interval: int | None = 7,
    last: int | None = None,
    **kwargs,
) -> Task:
    defaults = {
        "title": "Weekly review",
        "status": TaskStatus.DONE,
        "recurring": True,
        "created_at": NOW - 30 * MS_PER_DAY,
    }
    defaults.update(kwargs)
    return Task(
        id=task_id,
        user_id=user_id,
        recurring_interval=interval,
        last_occurrence=last,
        **defaults,
    )


async def _occurrences(store: TaskStore, user_id: str = "u1") -> list[Task]:
    return [t for t in await store.list_tasks(user_id) if not t.recurring]


# -- evaluate_rollover ---------------------------------------------------------


def test_job_target_is_configured_local_time(store: TaskStore) -> None:
    assert _job(store).target_ms(NOW) == TARGET


def test_decision_steady_state() -> None:
    decision = evaluate_rollover(_template(last=NOW - 8 * MS_PER_DAY), NOW, TARGET)
    assert decision.spawn is True
    assert decision.days_since == pytest.approx(8)


def test_decision_early_closure_branch() -> None:
    decision = evaluate_rollover(_template(last=NOW - 2 * MS_PER_DAY), NOW, TARGET)
    assert decision.spawn is True
    assert decision.days_since < 7
    assert decision.closed_before_target is True


def test_decision_before_target() -> None:
    now = TARGET - HOUR
    decision = evaluate_rollover(_template(last=now - 8 * MS_PER_DAY), now, TARGET)
    assert decision.spawn is False
    assert decision.reason == "before target time"


def test_decision_closed_after_todays_target() -> None:
    decision = evaluate_rollover(_template(interval=1, last=TARGET + 10 * 60_000), NOW, TARGET)
    assert decision.spawn is False
    assert decision.reason == "not due"


def test_decision_missing_anchor() -> None:
    decision = evaluate_rollover(_template(created_at=None), NOW, TARGET)
    assert decision.spawn is False
    assert decision.reason == "no anchor time"


@pytest.mark.parametrize(
    "overrides",
    [
        {"recurring": False},
        {"status": TaskStatus.TODO},
        {"status": TaskStatus.IN_PROGRESS},
        {"status": TaskStatus.ON_HOLD},
        {"interval": 0},
        {"interval": -3},
        {"interval": None},
    ],
)
def test_decision_never_spawns(overrides: dict) -> None:
    task = _template(last=NOW - 365 * MS_PER_DAY, **overrides)
    assert evaluate_rollover(task, NOW, TARGET).spawn is False


def test_decision_legacy_closed_status() -> None:
    task = _template(status=TaskStatus.CLOSED, last=NOW - 8 * MS_PER_DAY)
    assert evaluate_rollover(task, NOW, TARGET).spawn is True


# -- run() ---------------------------------------------------------------------


async def test_spawns_occurrence_steady_state(store: TaskStore) -> None:
    await store.add_task(
        _template(
            last=NOW - 8 * MS_PER_DAY,
            priority=Priority.HIGH,
            comment="Check inbox zero",
            sub_tasks=[SubTask("Email", done=True), SubTask("Calendar", in_progress=True)],
        )
    )

    report = await _job(store).run()

    assert report.processed == 1
    spawned = await _occurrences(store)
    assert len(spawned) == 1
    new = spawned[0]
    assert new.title == "Weekly review (Jan 15, 2026)"
    assert new.status is TaskStatus.IN_PROGRESS
    assert new.priority is Priority.HIGH
    assert new.comment == "Check inbox zero"
    assert new.sub_tasks == [SubTask("Email"), SubTask("Calendar")]
    assert new.recurring_interval is None
    assert new.last_occurrence is None
    assert new.created_at == NOW

    template = await store.get_task("u1", "tpl")
    assert template.last_occurrence == NOW
    assert template.status is TaskStatus.DONE
    assert template.recurring is True


async def test_spawns_on_early_closure(store: TaskStore) -> None:
    await store.add_task(_template(last=NOW - 2 * MS_PER_DAY))

    await _job(store).run()

    assert len(await _occurrences(store)) == 1


async def test_anchor_falls_back_to_created_at(store: TaskStore) -> None:
    await store.add_task(_template(last=None, created_at=NOW - 10 * MS_PER_DAY))

    await _job(store).run()

    assert len(await _occurrences(store)) == 1
    assert (await store.get_task("u1", "tpl")).last_occurrence == NOW


async def test_no_spawn_before_target(store: TaskStore) -> None:
    await store.add_task(_template(last=NOW - 8 * MS_PER_DAY))

    report = await _job(store).run(now_ms=TARGET - HOUR)

    assert report.skipped == 1
    assert await _occurrences(store) == []
    assert (await store.get_task("u1", "tpl")).last_occurrence == NOW - 8 * MS_PER_DAY


async def test_double_run_spawns_once(store: TaskStore) -> None:
    await store.add_task(_template(last=NOW - 8 * MS_PER_DAY))
    job = _job(store)

    await job.run()
    second = await job.run()

    assert second.processed == 0
    assert len(await _occurrences(store)) == 1


async def test_spawns_again_next_cycle(store: TaskStore) -> None:
    await store.add_task(_template(interval=1, last=NOW - 2 * MS_PER_DAY))
    job = _job(store)

    await job.run()
    await job.run(now_ms=NOW + MS_PER_DAY)

    titles = sorted(t.title for t in await _occurrences(store))
    assert titles == ["Weekly review (Jan 15, 2026)", "Weekly review (Jan 16, 2026)"]


async def test_non_qualifying_tasks_never_spawn(store: TaskStore) -> None:
    long_ago = NOW - 365 * MS_PER_DAY
    await store.add_task(_template("open", status=TaskStatus.TODO, last=long_ago))
    await store.add_task(_template("zero", interval=0, last=long_ago))
    await store.add_task(_template("plain", recurring=False, status=TaskStatus.DONE))

    report = await _job(store).run()

    assert report.processed == 0
    assert await _occurrences(store) == [await store.get_task("u1", "plain")]


async def test_summer_time_target(store: TaskStore) -> None:
    # CEST (UTC+2): 14:00 local is 12:00 UTC, so 12:30 UTC is past target.
    now = ms(datetime(2026, 7, 15, 14, 30, tzinfo=ZoneInfo(TZ)))
    await store.add_task(_template(last=now - 8 * MS_PER_DAY))

    report = await _job(store).run(now_ms=now)

    assert report.processed == 1
    assert (await _occurrences(store))[0].title == "Weekly review (Jul 15, 2026)"


# -- Failure isolation ---------------------------------------------------------


async def test_many_templates_share_one_database(store: TaskStore) -> None:
    users = [f"user-{i}" for i in range(12)]
    for user in users:
        await store.add_task(_template(f"tpl-{user}", user_id=user, last=NOW - 8 * MS_PER_DAY))

    report = await _job(store).run()

    assert report.candidates == 12
    assert report.failed == 0
    assert report.processed == 12
    for user in users:
        assert len(await _occurrences(store, user)) == 1
        assert (await store.get_task(user, f"tpl-{user}")).last_occurrence == NOW


async def test_one_failed_spawn_does_not_block_others(store: TaskStore) -> None:
    for user in ("a", "b", "c"):
        await store.add_task(_template(f"tpl-{user}", user_id=user, last=NOW - 8 * MS_PER_DAY))

    real_add = store.add_task

    async def flaky_add(task: Task) -> Task:
        if task.user_id == "b":
            raise RuntimeError("write failed")
        return await real_add(task)

    store.add_task = flaky_add
    report = await _job(store).run()

    assert report.processed == 2
    assert report.failed_task_ids == ["tpl-b"]
    assert len(await _occurrences(store, "a")) == 1
    assert await _occurrences(store, "b") == []
    # Guard not advanced, so the next tick retries it.
    assert (await store.get_task("b", "tpl-b")).last_occurrence == NOW - 8 * MS_PER_DAY


async def test_candidate_query_failure_propagates() -> None:
    store = AsyncMock()
    store.list_recurring_tasks.side_effect = RuntimeError("store unavailable")

    with pytest.raises(RuntimeError, match="store unavailable"):
        await RecurrenceRolloverJob(store, timezone=TZ, target_time=(14, 0)).run(now_ms=NOW)
