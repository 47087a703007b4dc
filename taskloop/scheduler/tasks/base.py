"""Task base classes and the owner contract."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, Union

from .state import TaskState

logger = logging.getLogger(__name__)

# A callable, or the name of a method looked up on the call context
TaskCallable = Union[Callable[..., Any], str]
Continuation = Callable[[Any], None]
Defer = Callable[[Callable[[], None]], Any]


class TaskOwner(Protocol):
    """What a task needs from whoever executes it.

    Owners may also expose ``origin`` (default call context) and
    ``defer`` (deferred-execution primitive); both are optional and
    read with ``getattr``.
    """

    def completed(self, task: "Task", manual_override: bool) -> None:
        """Called once when a task finishes naturally."""
        ...


def resolve_call(fn: TaskCallable, context: Any = None) -> Callable[..., Any]:
    """Resolve a task callable against its call context.

    Args:
        fn: A callable, or the name of a method on ``context``.
        context: Object the method name is looked up on.

    Returns:
        The callable to invoke.

    Raises:
        TypeError: If ``fn`` is a name and there is no context.
        AttributeError: If the context has no such method.
    """
    if callable(fn):
        return fn
    if not isinstance(fn, str):
        raise TypeError(f"Task callable must be callable or a method name, got {fn!r}")
    if context is None:
        raise TypeError(f"Method name '{fn}' given without a call context")
    return getattr(context, fn)


class Task(ABC):
    """Stateful unit of work executed by a TaskManager.

    Holds the configuration every task shares (element function, call
    context, result callback) and its lifecycle state. Scheduling
    behaviour lives in the owner, not here.
    """

    def __init__(
        self,
        fn: TaskCallable,
        *,
        context: Any = None,
        callback: Optional[TaskCallable] = None,
        name: Optional[str] = None,
    ):
        self.fn = fn
        self.context = context
        self.callback = callback
        self.state = TaskState.PENDING
        self.result: Any = None
        self._name = name

    @property
    def name(self) -> str:
        """Human-friendly task name for logging."""
        return self._name or self.__class__.__name__

    @property
    def is_done(self) -> bool:
        return self.state in (TaskState.COMPLETE, TaskState.CANCELLED)

    @abstractmethod
    def execute(
        self,
        owner: TaskOwner,
        continuation: Continuation,
        manual_override: bool = False,
    ) -> Any:
        """Run the task; call ``continuation(result)`` once it finishes."""
        raise NotImplementedError

    def cancel(self) -> bool:
        """Move a task that has not finished to CANCELLED.

        Returns:
            True if the state changed.
        """
        if self.is_done:
            return False
        previous = self.state
        self.state = TaskState.CANCELLED
        logger.info("Task '%s' cancelled (was %s)", self.name, previous.value)
        return True

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, state={self.state.value})"
