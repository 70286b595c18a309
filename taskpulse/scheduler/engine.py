"""SchedulerEngine — APScheduler lifecycle for the periodic jobs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from taskpulse.config import settings

if TYPE_CHECKING:
    from taskpulse.scheduler.models import JobReport, ScheduledJob

logger = logging.getLogger(__name__)


class SchedulerEngine:
    """Invokes each registered job on its fixed cadence.

    Each job runs with ``max_instances=1``: a tick that arrives while the
    previous run of the same job is still going is skipped. The guard fields
    on each task still decide whether work is repeated.

    Args:
        timezone: IANA timezone string (default from settings).
    """

    def __init__(self, timezone: str | None = None) -> None:
        self._timezone = timezone or settings.scheduler_timezone
        self._scheduler = AsyncIOScheduler(timezone=self._timezone)
        self._jobs: dict[str, ScheduledJob] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def job_names(self) -> list[str]:
        return list(self._jobs)

    # -- Lifecycle -------------------------------------------------------------

    async def start(self) -> None:
        """Start firing every registered job."""
        self._scheduler.start()
        self._running = True
        logger.info(
            "Scheduler started with %d job(s): %s (tz=%s)",
            len(self._jobs),
            ", ".join(self._jobs) or "-",
            self._timezone,
        )

    async def stop(self) -> None:
        """Shut down the scheduler."""
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped")

    # -- Job management --------------------------------------------------------

    def register(self, job: ScheduledJob) -> None:
        """Add *job* to the scheduler. Raises ValueError on duplicate name."""
        if job.name in self._jobs:
            msg = f"Job '{job.name}' is already registered"
            raise ValueError(msg)
        self._jobs[job.name] = job
        self._scheduler.add_job(
            self._run_job,
            trigger=IntervalTrigger(minutes=job.interval_minutes, timezone=self._timezone),
            id=job.name,
            name=job.name,
            args=[job.name],
            coalesce=True,
            max_instances=1,
            misfire_grace_time=None,
            replace_existing=True,
        )
        logger.info("Registered job %s (every %d min)", job.name, job.interval_minutes)

    async def run_now(self, name: str) -> JobReport | None:
        """Run one registered job immediately, outside its cadence."""
        if name not in self._jobs:
            msg = f"Job '{name}' is not registered"
            raise KeyError(msg)
        return await self._run_job(name)

    # -- Internal --------------------------------------------------------------

    async def _run_job(self, name: str) -> JobReport | None:
        """Callback invoked by APScheduler. A failed pass waits for the next tick."""
        job = self._jobs.get(name)
        if job is None:
            logger.warning("Job not found: %s", name)
            return None
        try:
            return await job.run()
        except Exception:
            logger.exception("Job %s failed; retrying on next tick", name)
            return None
