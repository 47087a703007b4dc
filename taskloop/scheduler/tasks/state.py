"""Task lifecycle states."""

from enum import Enum


class TaskState(Enum):
    """Lifecycle states shared by every task."""

    PENDING = "pending"  # Constructed, not yet executed
    ACTIVE = "active"  # Iterating, including while suspended between turns
    COMPLETE = "complete"  # Finished naturally
    CANCELLED = "cancelled"  # Stopped by an external actor

    @property
    def is_running(self) -> bool:
        """True while the iteration loop is expected to keep going."""
        return self in (TaskState.PENDING, TaskState.ACTIVE)
