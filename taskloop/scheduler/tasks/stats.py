"""Task-level statistics tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class IterationStats:
    """Lightweight stats container for an iteration run.

    Attributes:
        elements_processed: Elements whose effect has been applied.
        slices: Synchronous runs of the loop (one per turn the task ran in).
        yields: Deferred continuations scheduled.
        yield_points: Cursor value at each yield.
    """

    elements_processed: int = 0
    slices: int = 0
    yields: int = 0
    yield_points: List[int] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def start(self) -> None:
        """Mark the beginning of a run."""
        self.start_time = datetime.utcnow()

    def record_element(self) -> None:
        self.elements_processed += 1

    def record_slice(self) -> None:
        self.slices += 1

    def record_yield(self, cursor: int) -> None:
        """Record a deferred continuation scheduled at ``cursor``."""
        self.yields += 1
        self.yield_points.append(cursor)

    def finish(self) -> None:
        """Mark the end of a run."""
        self.end_time = datetime.utcnow()

    def summary(self) -> Dict[str, Any]:
        """Return a summary dictionary."""
        duration = None
        if self.start_time and self.end_time:
            duration = (self.end_time - self.start_time).total_seconds()

        return {
            "elements_processed": self.elements_processed,
            "slices": self.slices,
            "yields": self.yields,
            "duration_seconds": duration,
            "metadata": self.metadata,
        }

    def reset(self) -> None:
        """Reset stats for a new run."""
        self.elements_processed = 0
        self.slices = 0
        self.yields = 0
        self.yield_points = []
        self.start_time = None
        self.end_time = None
        self.metadata = {}
