"""Background scheduling — jobs and the driver that fires them."""

from taskpulse.scheduler.engine import SchedulerEngine
from taskpulse.scheduler.jobs import DeadlineWarningJob, HeartbeatJob, RecurrenceRolloverJob
from taskpulse.scheduler.models import JobReport, ScheduledJob

__all__ = [
    "DeadlineWarningJob",
    "HeartbeatJob",
    "JobReport",
    "RecurrenceRolloverJob",
    "ScheduledJob",
    "SchedulerEngine",
]
