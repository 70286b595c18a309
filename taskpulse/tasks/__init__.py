"""Task documents and their persistence."""

from taskpulse.tasks.models import DeviceToken, Priority, SubTask, Task, TaskStatus
from taskpulse.tasks.store import TaskStore

__all__ = [
    "DeviceToken",
    "Priority",
    "SubTask",
    "Task",
    "TaskStatus",
    "TaskStore",
]
