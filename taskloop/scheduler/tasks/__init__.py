"""Task abstractions for scheduler."""

from .state import TaskState
from .base import Task, TaskOwner, resolve_call
from .stats import IterationStats
from .strategies import MISSING, Shape, list_strategies, select_strategy
from .iteration import IterationTask, IterationType, detect_shape

__all__ = [
    "TaskState",
    "Task",
    "TaskOwner",
    "resolve_call",
    "IterationStats",
    "MISSING",
    "Shape",
    "list_strategies",
    "select_strategy",
    "IterationTask",
    "IterationType",
    "detect_shape",
]
