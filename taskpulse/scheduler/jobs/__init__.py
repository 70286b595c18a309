"""Periodically-invoked scheduler jobs."""

from taskpulse.scheduler.jobs.deadline import DeadlineWarningJob
from taskpulse.scheduler.jobs.heartbeat import HeartbeatJob
from taskpulse.scheduler.jobs.recurrence import RecurrenceRolloverJob

__all__ = [
    "DeadlineWarningJob",
    "HeartbeatJob",
    "RecurrenceRolloverJob",
]
