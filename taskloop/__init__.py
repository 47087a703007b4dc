"""Cooperative, interruptible iteration tasks for single-threaded schedulers."""

from taskloop.scheduler import (
    IterationTask,
    IterationType,
    RunLoop,
    Task,
    TaskManager,
    TaskState,
    default_loop,
)

__version__ = "0.1.0"

__all__ = [
    "IterationTask",
    "IterationType",
    "RunLoop",
    "Task",
    "TaskManager",
    "TaskState",
    "default_loop",
]
