"""Pytest configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from taskloop.scheduler.run_loop import RunLoop
from taskloop.scheduler.task_manager import TaskManager


# ============================================================
# Run Loop Fixtures
# ============================================================

@pytest.fixture
def run_loop():
    """Create an empty cooperative run loop."""
    return RunLoop()


# ============================================================
# Owner Fixtures
# ============================================================

@pytest.fixture
def owner():
    """Create a mock owner exposing only the completion hook."""
    return MagicMock(spec=["completed"])


@pytest.fixture
def continuation():
    """Create a mock continuation."""
    return MagicMock()


@pytest.fixture
def manager(run_loop):
    """Create a task manager on the shared run loop."""
    return TaskManager(run_loop)


# ============================================================
# Collection Fixtures
# ============================================================

@pytest.fixture
def numbers():
    return [1, 2, 3, 4]


@pytest.fixture
def letters():
    return {"a": 1, "b": 2, "c": 3}
