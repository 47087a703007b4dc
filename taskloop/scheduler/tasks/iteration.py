"""Cooperative iteration over a sequence or a mapping.

An IterationTask applies a function to every element of a collection and
yields to the host run loop every ``step`` elements, so other scheduled
work can interleave with a long iteration. Run to completion it behaves
like a single synchronous pass.

The collection is evaluated when the task executes, not when it is
created, and it is never copied: mutating it while the task runs is the
caller's responsibility and gives undefined results.

The element function must be synchronous. If it starts asynchronous work
of its own, iterations of different tasks are no longer isolated from
each other.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any, Optional, Tuple, Union

import numpy as np

from ..run_loop import default_loop
from .base import Continuation, Defer, Task, TaskCallable, TaskOwner, resolve_call
from .state import TaskState
from .stats import IterationStats
from .strategies import MISSING, Effect, Shape, select_strategy

logger = logging.getLogger(__name__)


class IterationType(str, Enum):
    """Aggregate produced by an IterationTask.

    - EACH: call the function for its side effects, no result
    - MAP: store each return value at the element's index/key
    - REDUCE: fold the return values into an accumulator
    """

    EACH = "each"
    MAP = "map"
    REDUCE = "reduce"


def detect_shape(collection: Any) -> Shape:
    """Classify a collection as a sequence or a mapping.

    Raises:
        TypeError: If the object is neither.
    """
    if isinstance(collection, Mapping):
        return Shape.MAPPING
    if isinstance(collection, (Sequence, np.ndarray)):
        return Shape.SEQUENCE
    raise TypeError(
        f"IterationTask needs a sequence or a mapping, got {type(collection).__name__}"
    )


class IterationTask(Task):
    """Task that walks a collection in slices of ``step`` elements.

    Example:
        >>> from taskloop.scheduler import TaskManager
        >>> manager = TaskManager()
        >>> task = IterationTask([1, 2, 3], lambda x: x * 2, iteration_type="map", step=2)
        >>> task.execute(manager, print)
        [2, 4, None]
        >>> manager.run_loop.run_until_idle()
        [2, 4, 6]
        1
    """

    def __init__(
        self,
        collection: Any,
        fn: TaskCallable,
        *,
        iteration_type: Union[IterationType, str] = IterationType.EACH,
        step: int = 1,
        initial: Any = MISSING,
        context: Any = None,
        callback: Optional[TaskCallable] = None,
        defer: Optional[Defer] = None,
        name: Optional[str] = None,
    ):
        super().__init__(fn, context=context, callback=callback, name=name)

        if isinstance(step, bool) or not isinstance(step, int) or step < 1:
            raise ValueError(f"step must be a positive integer, got {step!r}")

        self.collection = collection
        self.iteration_type = IterationType(iteration_type)
        self.step = step
        self.is_sequence = False
        self.keys: Optional[Tuple[Any, ...]] = None
        self.current_iteration = -1
        self.iterator: Optional[Effect] = None
        self.stats = IterationStats()
        self._defer = defer
        self._seed = initial

        if self.iteration_type is IterationType.REDUCE and initial is not MISSING:
            self.result = initial

    @property
    def length(self) -> int:
        """Number of elements this run walks (available once executing)."""
        if self.keys is not None:
            return len(self.keys)
        return len(self.collection)

    def execute(
        self,
        owner: TaskOwner,
        continuation: Continuation,
        manual_override: bool = False,
    ) -> Any:
        """Start iterating.

        Args:
            owner: Notified through ``completed`` when the run finishes;
                its ``origin`` is the default call context and its
                ``defer`` the default way to yield.
            continuation: Called once with the final result.
            manual_override: Forwarded to ``owner.completed`` untouched.

        Returns:
            The result so far. Executing a task that is not PENDING
            does nothing and returns its current result.
        """
        if self.state is not TaskState.PENDING:
            logger.debug("Task '%s' is %s, not executing again", self.name, self.state.value)
            return self.result

        shape = detect_shape(self.collection)
        self.is_sequence = shape is Shape.SEQUENCE
        if not self.is_sequence:
            self.keys = tuple(self.collection.keys())

        context = self.context if self.context is not None else getattr(owner, "origin", None)
        if self.iterator is None:
            factory = select_strategy(self.iteration_type, shape)
            self.iterator = factory(self, resolve_call(self.fn, context))

        if self.iteration_type is IterationType.MAP:
            self.result = [None] * len(self.collection) if self.is_sequence else {}
        elif self.iteration_type is IterationType.REDUCE:
            self.result = self._seed

        defer = self._defer or getattr(owner, "defer", None) or default_loop().defer

        self.state = TaskState.ACTIVE
        self.current_iteration = 0
        self.stats.start()
        logger.info(
            "Task '%s' started: %s over %s %s (step=%s)",
            self.name,
            self.iteration_type.value,
            self.length,
            "elements" if self.is_sequence else "keys",
            self.step,
        )

        driver = _IterationDriver(self, owner, continuation, manual_override, defer)
        driver.run_slice()
        return self.result


class _IterationDriver:
    """Resume state of one IterationTask run.

    Applies effects, advances the cursor and decides after each element
    whether to stop, finish, yield or keep going in the current turn.
    """

    def __init__(
        self,
        task: IterationTask,
        owner: TaskOwner,
        continuation: Continuation,
        manual_override: bool,
        defer: Defer,
    ):
        self.task = task
        self.owner = owner
        self.continuation = continuation
        self.manual_override = manual_override
        self.defer = defer
        self.length = task.length
        self._finished = False

    def resume(self) -> None:
        """Entry point for a deferred turn."""
        task = self.task
        if not task.state.is_running:
            logger.info(
                "Task '%s' stopped at %s/%s (state=%s)",
                task.name,
                task.current_iteration,
                self.length,
                task.state.value,
            )
            return
        self.run_slice()

    def run_slice(self) -> None:
        """Process elements until the task yields, finishes or is stopped."""
        task = self.task
        task.stats.record_slice()

        while True:
            if task.current_iteration >= self.length:
                self._finalize()
                return

            task.iterator(task.current_iteration)
            task.current_iteration += 1
            task.stats.record_element()

            if not task.state.is_running:
                return
            if task.current_iteration >= self.length:
                self._finalize()
                return
            if task.current_iteration % task.step == 0:
                task.stats.record_yield(task.current_iteration)
                logger.debug(
                    "Task '%s' yielding at %s/%s", task.name, task.current_iteration, self.length
                )
                self.defer(self.resume)
                return

    def _finalize(self) -> None:
        if self._finished:
            return
        self._finished = True

        task = self.task
        if task.result is MISSING:
            task.result = None

        task.state = TaskState.COMPLETE
        task.stats.finish()
        logger.info(
            "Task '%s' complete: %s elements in %s slices",
            task.name,
            task.stats.elements_processed,
            task.stats.slices,
        )

        self.owner.completed(task, self.manual_override)
        if task.callback is not None:
            resolve_call(task.callback, task.context)(task.result)
        self.continuation(task.result)
