"""taskpulse scheduler entry point."""

import asyncio
import contextlib
import logging

from taskpulse.config import settings
from taskpulse.notifications.dispatcher import NotificationDispatcher
from taskpulse.notifications.log_transport import LogTransport
from taskpulse.notifications.tokens import TokenRegistry
from taskpulse.scheduler.engine import SchedulerEngine
from taskpulse.scheduler.jobs import DeadlineWarningJob, HeartbeatJob, RecurrenceRolloverJob
from taskpulse.tasks.store import TaskStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


def build_dispatcher() -> NotificationDispatcher:
    """Register the configured push transport on the shared dispatcher."""
    dispatcher = NotificationDispatcher.get()
    if settings.push_transport == "fcm":
        from taskpulse.notifications.fcm_transport import FCMTransport

        dispatcher.register_transport(FCMTransport())
    elif settings.push_transport == "log":
        dispatcher.register_transport(LogTransport())
    else:
        msg = f"Unknown PUSH_TRANSPORT: {settings.push_transport}"
        raise ValueError(msg)
    dispatcher.set_default_transport(settings.push_transport)
    return dispatcher


def build_engine(store: TaskStore, dispatcher: NotificationDispatcher) -> SchedulerEngine:
    """Create the engine with every job registered."""
    engine = SchedulerEngine()
    engine.register(DeadlineWarningJob(store, TokenRegistry(store), dispatcher))
    engine.register(RecurrenceRolloverJob(store))
    if settings.heartbeat_enabled:
        engine.register(HeartbeatJob())
    return engine


async def run() -> None:
    store = TaskStore.get()
    engine = build_engine(store, build_dispatcher())
    await engine.start()
    try:
        await asyncio.Event().wait()
    finally:
        await engine.stop()


def main() -> None:
    """Start the scheduler and run until interrupted."""
    logger.info(
        "Starting taskpulse scheduler (tz=%s, rollover at %02d:%02d, transport=%s)...",
        settings.scheduler_timezone,
        settings.rollover_hour,
        settings.rollover_minute,
        settings.push_transport,
    )
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run())


if __name__ == "__main__":
    main()
