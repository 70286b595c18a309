"""RecurrenceRolloverJob — spawn a fresh occurrence of finished recurring tasks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskpulse.clock import date_label, format_local, resolve_target_ms
from taskpulse.config import settings
from taskpulse.scheduler.jobs.base import process_candidates
from taskpulse.scheduler.models import JobReport, Outcome
from taskpulse.tasks.models import now_ms as _system_now_ms

if TYPE_CHECKING:
    from collections.abc import Callable

    from taskpulse.tasks.models import Task
    from taskpulse.tasks.store import TaskStore

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class RolloverDecision:
    """Why a recurring task does or does not spawn at a given instant."""

    spawn: bool
    reason: str
    days_since: float | None = None
    closed_before_target: bool | None = None


def evaluate_rollover(task: Task, now_ms: int, target_ms: int) -> RolloverDecision:
    """Decide whether *task* spawns a new occurrence at *now_ms*.

    A finished recurring task spawns once today's target time has passed and
    either a full interval has elapsed since its anchor or the anchor lies
    before today's target.
    """
    if not task.recurring:
        return RolloverDecision(False, "not recurring")
    if not task.status.is_finished:
        return RolloverDecision(False, f"status={task.status.value}")

    interval = task.recurring_interval or 0
    if interval <= 0:
        return RolloverDecision(False, "no interval")

    last_ms = task.anchor_ms
    if not last_ms:
        return RolloverDecision(False, "no anchor time")

    days_since = (now_ms - last_ms) / MS_PER_DAY
    closed_before_target = last_ms < target_ms

    if now_ms < target_ms:
        return RolloverDecision(False, "before target time", days_since, closed_before_target)
    if days_since >= interval or closed_before_target:
        return RolloverDecision(True, "due", days_since, closed_before_target)
    return RolloverDecision(False, "not due", days_since, closed_before_target)


class RecurrenceRolloverJob:
    """Turns finished recurring templates into new in-progress tasks.

    The template keeps its status and ``recurring`` flag; only its
    ``last_occurrence`` moves to "now", written after the new task exists.

    Args:
        store: TaskStore to scan and write.
        clock: Returns "now" in epoch ms.
        timezone: IANA zone for the daily target time (default from settings).
        target_time: ``(hour, minute)`` of the daily target (default from settings).
        interval_minutes: Driver cadence (default from settings).
    """

    def __init__(
        self,
        store: TaskStore,
        clock: Callable[[], int] = _system_now_ms,
        timezone: str | None = None,
        target_time: tuple[int, int] | None = None,
        interval_minutes: int | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._timezone = timezone or settings.scheduler_timezone
        self._hour, self._minute = target_time or settings.get_rollover_time()
        self._interval = interval_minutes or settings.rollover_check_interval_minutes

    @property
    def name(self) -> str:
        return "recurrence_rollover"

    @property
    def interval_minutes(self) -> int:
        return self._interval

    def target_ms(self, now_ms: int) -> int:
        return resolve_target_ms(now_ms, self._timezone, self._hour, self._minute)

    async def run(self, now_ms: int | None = None) -> JobReport:
        now = self._clock() if now_ms is None else now_ms
        target = self.target_ms(now)
        report = JobReport(job=self.name, now_ms=now)
        logger.debug(
            "Rollover target today = %s (tz=%s)",
            format_local(target, self._timezone),
            self._timezone,
        )

        tasks = await self._store.list_recurring_tasks()

        async def handle(task: Task) -> Outcome:
            return await self._process(task, now, target)

        await process_candidates(report, tasks, handle)
        logger.info(
            "Recurring rollover: %d spawned, %d skipped, %d failed (%d recurring)",
            report.processed,
            report.skipped,
            report.failed,
            report.candidates,
        )
        return report

    async def _process(self, task: Task, now: int, target: int) -> Outcome:
        decision = evaluate_rollover(task, now, target)
        if not decision.spawn:
            logger.debug(
                "Skipping '%s' (%s): %s days_since=%s closed_before_target=%s",
                task.title,
                task.id,
                decision.reason,
                f"{decision.days_since:.2f}" if decision.days_since is not None else None,
                decision.closed_before_target,
            )
            return Outcome.SKIPPED

        title = f"{task.title} ({date_label(now, self._timezone)})"
        occurrence = task.spawn_occurrence(title, created_at=now)
        await self._store.add_task(occurrence)
        await self._store.set_last_occurrence(task.user_id, task.id, now)
        logger.info(
            "Spawned occurrence %s of '%s' (%s) for user %s",
            occurrence.id,
            task.title,
            task.id,
            task.user_id,
        )
        return Outcome.PROCESSED
