"""Scatter-gather over a job's candidate tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from taskpulse.scheduler.models import Outcome

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from taskpulse.scheduler.models import JobReport
    from taskpulse.tasks.models import Task

logger = logging.getLogger(__name__)


async def process_candidates(
    report: JobReport,
    tasks: list[Task],
    handler: Callable[[Task], Awaitable[Outcome]],
) -> JobReport:
    """Run *handler* for every task concurrently and wait for all of them.

    A task whose handler raises is logged and counted as failed; it never
    stops the others.
    """
    report.candidates = len(tasks)
    outcomes = await asyncio.gather(
        *(handler(task) for task in tasks), return_exceptions=True
    )
    for task, outcome in zip(tasks, outcomes, strict=True):
        if isinstance(outcome, Exception):
            logger.error(
                "%s: task %s (user %s) failed: %r",
                report.job,
                task.id,
                task.user_id,
                outcome,
                exc_info=outcome,
            )
            report.record(task.id, Outcome.FAILED)
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            report.record(task.id, outcome)
    return report
