"""Cooperative scheduling: run loop, tasks and the task manager."""

from .run_loop import RunLoop, default_loop
from .tasks import IterationTask, IterationType, Task, TaskState
from .task_manager import TaskManager

__all__ = [
    "RunLoop",
    "default_loop",
    "IterationTask",
    "IterationType",
    "Task",
    "TaskState",
    "TaskManager",
]
