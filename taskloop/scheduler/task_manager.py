"""Cooperative scheduler that owns and runs tasks."""

from __future__ import annotations

import heapq
import itertools
import logging
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

from taskloop.config import SchedulerConfig
from taskloop.scheduler.run_loop import RunLoop
from taskloop.scheduler.tasks import IterationTask, IterationType, Task, TaskState
from taskloop.scheduler.tasks.strategies import MISSING

logger = logging.getLogger(__name__)


class TaskManager:
    """Queue of tasks run one after another on a cooperative run loop.

    The manager is the owner every task reports to. Only one task is
    scheduler-driven at a time; the next one starts on a later turn once
    the current task calls its continuation. Tasks that yield leave the
    run loop free for other work (other managers, ``run_now`` tasks,
    anything else deferred on the same loop) between their slices.

    Example:
        >>> manager = TaskManager()
        >>> task = manager.iterate([1, 2, 3], lambda x: x * 2, iteration_type="map", step=2)
        >>> manager.run_until_idle()
        2
        >>> task.result
        [2, 4, 6]
    """

    def __init__(
        self,
        run_loop: Optional[RunLoop] = None,
        *,
        config: Optional[SchedulerConfig] = None,
        origin: Any = None,
    ):
        """Initialize TaskManager.

        Args:
            run_loop: Loop tasks yield to. A new one is created if omitted.
            config: Optional configuration.
            origin: Default call context for tasks without their own.
        """
        self.config = config or SchedulerConfig()
        self.run_loop = run_loop or RunLoop(max_turns=self.config.run_loop.max_turns)
        self.origin = origin

        # State
        self._queue: List[Tuple[int, int, Task]] = []
        self._counter = itertools.count()
        self._active: Optional[Task] = None
        self._scheduled = False
        self._completed: List[Task] = []
        self._manual_completions = 0
        self._cancelled = 0

    @property
    def active_task(self) -> Optional[Task]:
        """Task currently driven by the scheduler."""
        return self._active

    @property
    def queued(self) -> List[Task]:
        """Queued tasks in the order they will run."""
        return [task for _, _, task in sorted(self._queue)]

    @property
    def completed_tasks(self) -> List[Task]:
        """Tasks that finished naturally, in completion order."""
        return list(self._completed)

    @property
    def is_idle(self) -> bool:
        """True when nothing is running or queued."""
        return self._active is None and not self._queue

    def defer(self, fn, *args) -> None:
        """Deferred-execution primitive handed to tasks."""
        self.run_loop.defer(fn, *args)

    def add(self, task: Task, priority: int = 0) -> Task:
        """Queue a task. Higher priority runs first; ties run FIFO."""
        heapq.heappush(self._queue, (-priority, next(self._counter), task))
        logger.debug("Queued task '%s' (priority=%s, queued=%s)", task.name, priority, len(self._queue))
        return task

    def iterate(
        self,
        collection: Any,
        fn: Any,
        *,
        iteration_type: Any = IterationType.EACH,
        step: Optional[int] = None,
        initial: Any = MISSING,
        context: Any = None,
        callback: Any = None,
        name: Optional[str] = None,
        priority: int = 0,
    ) -> IterationTask:
        """Build an IterationTask with configured defaults and queue it."""
        task = IterationTask(
            collection,
            fn,
            iteration_type=iteration_type,
            step=step if step is not None else self.config.iteration.default_step,
            initial=initial,
            context=context,
            callback=callback,
            name=name,
        )
        self.add(task, priority=priority)
        return task

    def start(self) -> None:
        """Schedule the next queued task if nothing is running."""
        if self._active is None and self._queue and not self._scheduled:
            self._scheduled = True
            self.defer(self._run_next)

    def run_until_idle(self, max_turns: Optional[int] = None) -> int:
        """Start the queue and drain the run loop."""
        self.start()
        return self.run_loop.run_until_idle(max_turns)

    def run_now(self, task: Task) -> Any:
        """Execute a task immediately, outside the queue order.

        Completion is reported with ``manual_override=True``.
        """
        logger.info("Running task '%s' out of band", task.name)
        return task.execute(self, partial(self._advance, task), manual_override=True)

    def completed(self, task: Task, manual_override: bool) -> None:
        """Owner hook: record a task that finished naturally.

        Frees the active slot when the task was scheduler-driven; the
        next task still starts only from the continuation.
        """
        if self._active is task:
            self._active = None
        self._completed.append(task)
        if manual_override:
            self._manual_completions += 1
        if self.config.log_completions:
            logger.info(
                "Task '%s' completed%s (%s completed, %s queued)",
                task.name,
                " (manual)" if manual_override else "",
                len(self._completed),
                len(self._queue),
            )

    def cancel(self, task: Task) -> bool:
        """Cancel a queued or running task.

        Cancelling the scheduler-driven task frees the slot and schedules
        the next queued task, since a cancelled task never calls its
        continuation.

        Returns:
            True if the task state changed.
        """
        for i, (_, _, queued) in enumerate(self._queue):
            if queued is task:
                self._queue.pop(i)
                heapq.heapify(self._queue)
                break

        changed = task.cancel()
        if changed:
            self._cancelled += 1
        if task is self._active:
            self._active = None
            self.start()
        return changed

    def get_stats_summary(self) -> Dict[str, Any]:
        """Return a summary of scheduler statistics."""
        return {
            "completed": len(self._completed),
            "manual_completions": self._manual_completions,
            "cancelled": self._cancelled,
            "queued": len(self._queue),
            "active": self._active.name if self._active else None,
            "turns": self.run_loop.turns,
        }

    def _run_next(self) -> None:
        self._scheduled = False
        if self._active is not None:
            return

        while self._queue:
            _, _, task = heapq.heappop(self._queue)
            if task.state is TaskState.PENDING:
                break
            logger.debug("Skipping task '%s' (%s)", task.name, task.state.value)
        else:
            return

        self._active = task
        task.execute(self, partial(self._advance, task))

    def _advance(self, task: Task, result: Any) -> None:
        """Continuation given to tasks: move on to the next queued task."""
        if self._active is task:
            self._active = None
        self.start()
