"""Job protocol and per-run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable


class Outcome(StrEnum):
    """What happened to one candidate task during a job run."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class JobReport:
    """Summary of one pass of a scheduled job.

    Attributes:
        job: Job name.
        now_ms: The instant the pass evaluated against.
        candidates: Tasks returned by the job's enumeration query.
        processed: Tasks acted on (notification sent, occurrence spawned).
        skipped: Candidates that did not qualify.
        failed: Candidates whose processing raised; their guard fields are
            left as they were so the next tick retries them.
        failed_task_ids: IDs behind ``failed``.
    """

    job: str
    now_ms: int
    candidates: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    failed_task_ids: list[str] = field(default_factory=list)

    def record(self, task_id: str, outcome: Outcome) -> None:
        if outcome is Outcome.PROCESSED:
            self.processed += 1
        elif outcome is Outcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
            self.failed_task_ids.append(task_id)


@runtime_checkable
class ScheduledJob(Protocol):
    """Protocol that every periodically-invoked job satisfies."""

    @property
    def name(self) -> str:
        """Unique job identifier, used as the APScheduler job id."""
        ...

    @property
    def interval_minutes(self) -> int:
        """Cadence at which the driver invokes ``run``."""
        ...

    async def run(self, now_ms: int | None = None) -> JobReport:
        """Run one pass. Raises only if candidates cannot be enumerated."""
        ...
