"""DeadlineWarningJob — one push when a running timer nears its end."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskpulse.config import settings
from taskpulse.scheduler.jobs.base import process_candidates
from taskpulse.scheduler.models import JobReport, Outcome
from taskpulse.tasks.models import now_ms as _system_now_ms

if TYPE_CHECKING:
    from collections.abc import Callable

    from taskpulse.notifications.dispatcher import NotificationDispatcher
    from taskpulse.notifications.tokens import TokenRegistry
    from taskpulse.tasks.models import Task
    from taskpulse.tasks.store import TaskStore

logger = logging.getLogger(__name__)

# Open interval: a task qualifies while 13 min < time left < 15 min.
WARNING_WINDOW_MIN_MS = 13 * 60 * 1000
WARNING_WINDOW_MAX_MS = 15 * 60 * 1000

WARNING_TITLE = "⏰ 15 Minutes Left!"


def time_left_ms(task: Task, now_ms: int) -> int | None:
    deadline = task.deadline_ms
    if deadline is None:
        return None
    return deadline - now_ms


def in_warning_window(time_left: int | None) -> bool:
    return time_left is not None and WARNING_WINDOW_MIN_MS < time_left < WARNING_WINDOW_MAX_MS


def warning_body(task: Task) -> str:
    return f'Your task "{task.title}" is running out of time.'


class DeadlineWarningJob:
    """Warns the owner once when a task's timer has about 15 minutes left.

    ``notified_15min`` is the guard: it is read before anything else and
    written only after the dispatch returned, as the last step for the task.

    Args:
        store: TaskStore to scan and update.
        tokens: TokenRegistry for the owner's devices.
        dispatcher: NotificationDispatcher used to send the push.
        clock: Returns "now" in epoch ms.
        interval_minutes: Driver cadence (default from settings).
    """

    def __init__(
        self,
        store: TaskStore,
        tokens: TokenRegistry,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], int] = _system_now_ms,
        interval_minutes: int | None = None,
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._dispatcher = dispatcher
        self._clock = clock
        self._interval = interval_minutes or settings.deadline_check_interval_minutes

    @property
    def name(self) -> str:
        return "deadline_warning"

    @property
    def interval_minutes(self) -> int:
        return self._interval

    async def run(self, now_ms: int | None = None) -> JobReport:
        now = self._clock() if now_ms is None else now_ms
        report = JobReport(job=self.name, now_ms=now)

        tasks = await self._store.list_timer_candidates()

        async def handle(task: Task) -> Outcome:
            return await self._process(task, now)

        await process_candidates(report, tasks, handle)
        if report.processed or report.failed:
            logger.info(
                "Deadline warnings: %d sent, %d failed (%d candidates)",
                report.processed,
                report.failed,
                report.candidates,
            )
        return report

    async def _process(self, task: Task, now: int) -> Outcome:
        if task.notified_15min or not task.has_active_timer:
            return Outcome.SKIPPED
        if not in_warning_window(time_left_ms(task, now)):
            return Outcome.SKIPPED
        if not task.user_id:
            logger.warning("Task %s has no owning user; skipping warning", task.id)
            return Outcome.SKIPPED

        tokens = await self._tokens.tokens_for(task.user_id)
        if not tokens:
            logger.debug("No device tokens for user %s; skipping task %s", task.user_id, task.id)
            return Outcome.SKIPPED

        report = await self._dispatcher.dispatch(tokens, WARNING_TITLE, warning_body(task))
        await self._store.mark_notified(task.user_id, task.id)
        logger.info(
            "Sent 15-minute warning for '%s' (%s) to %d/%d device(s)",
            task.title,
            task.id,
            report.success_count,
            len(tokens),
        )
        return Outcome.PROCESSED
