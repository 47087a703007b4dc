"""Single-threaded cooperative run loop.

Provides the deferred-execution primitive tasks yield through. A turn
runs the callbacks that were queued before it started; anything deferred
during a turn waits for the next one, so other queued work always gets a
chance to run in between.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Optional, Tuple

logger = logging.getLogger(__name__)

_Callback = Tuple[Callable[..., Any], Tuple[Any, ...]]


class RunLoop:
    """FIFO queue of deferred callbacks, drained one turn at a time.

    Example:
        >>> loop = RunLoop()
        >>> loop.defer(print, "later")
        >>> loop.run_until_idle()
        later
        1
    """

    def __init__(self, max_turns: Optional[int] = None):
        self.max_turns = max_turns
        self._queue: Deque[_Callback] = deque()
        self._turns = 0

    @property
    def pending(self) -> int:
        """Number of callbacks waiting for a turn."""
        return len(self._queue)

    @property
    def turns(self) -> int:
        """Number of turns run so far."""
        return self._turns

    def defer(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule ``fn(*args)`` on a later turn, after anything already queued."""
        self._queue.append((fn, args))

    def run_once(self) -> int:
        """Run one turn.

        Exceptions from a callback propagate; callbacks queued behind it
        stay queued.

        Returns:
            Number of callbacks run.
        """
        batch = len(self._queue)
        if batch == 0:
            return 0

        self._turns += 1
        for _ in range(batch):
            fn, args = self._queue.popleft()
            fn(*args)
        logger.debug("Turn %s ran %s callbacks (%s pending)", self._turns, batch, len(self._queue))
        return batch

    def run_until_idle(self, max_turns: Optional[int] = None) -> int:
        """Run turns until nothing is queued.

        Args:
            max_turns: Stop after this many turns. Defaults to the
                loop's ``max_turns`` (unbounded when None).

        Returns:
            Number of turns run.
        """
        limit = max_turns if max_turns is not None else self.max_turns
        ran = 0
        while self._queue:
            if limit is not None and ran >= limit:
                logger.warning("Run loop stopped after %s turns with %s pending", ran, len(self._queue))
                break
            self.run_once()
            ran += 1
        return ran

    def clear(self) -> None:
        """Drop every queued callback."""
        if self._queue:
            logger.info("Discarding %s pending callbacks", len(self._queue))
        self._queue.clear()


_default_loop: Optional[RunLoop] = None


def default_loop() -> RunLoop:
    """Process-wide loop used when a task has no other way to defer."""
    global _default_loop
    if _default_loop is None:
        _default_loop = RunLoop()
    return _default_loop
