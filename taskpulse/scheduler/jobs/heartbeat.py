"""HeartbeatJob — logs that the driver is still firing."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskpulse.clock import format_local
from taskpulse.config import settings
from taskpulse.scheduler.models import JobReport
from taskpulse.tasks.models import now_ms as _system_now_ms

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class HeartbeatJob:
    def __init__(
        self,
        clock: Callable[[], int] = _system_now_ms,
        timezone: str | None = None,
        interval_minutes: int | None = None,
    ) -> None:
        self._clock = clock
        self._timezone = timezone or settings.scheduler_timezone
        self._interval = interval_minutes or settings.heartbeat_interval_minutes

    @property
    def name(self) -> str:
        return "heartbeat"

    @property
    def interval_minutes(self) -> int:
        return self._interval

    async def run(self, now_ms: int | None = None) -> JobReport:
        now = self._clock() if now_ms is None else now_ms
        stamp = format_local(now, self._timezone, "%d/%m/%Y, %H:%M:%S")
        logger.info("Heartbeat fired at %s", stamp)
        return JobReport(job=self.name, now_ms=now)
