"""Configuration loading and management.

This module provides unified configuration management with:
- Type-safe configuration classes using dataclasses
- Environment variable substitution
- Single source of truth for all components
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


# ============================================================
# Configuration Data Classes
# ============================================================

@dataclass
class IterationConfig:
    """Defaults for iteration tasks built by the scheduler."""
    default_step: int = 1  # Elements per synchronous slice before yielding

    def __post_init__(self):
        if isinstance(self.default_step, bool) or not isinstance(self.default_step, int) or self.default_step < 1:
            raise ValueError(f"default_step must be a positive integer, got {self.default_step!r}")


@dataclass
class RunLoopConfig:
    """Cooperative run loop configuration."""
    max_turns: Optional[int] = None  # None drains until idle


@dataclass
class SchedulerConfig:
    """Scheduler/TaskManager configuration."""
    iteration: IterationConfig = field(default_factory=IterationConfig)
    run_loop: RunLoopConfig = field(default_factory=RunLoopConfig)
    log_completions: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "SchedulerConfig":
        """Create SchedulerConfig from dictionary."""
        iteration_data = data.get("iteration", {})
        run_loop_data = data.get("run_loop", {})
        return cls(
            iteration=IterationConfig(**iteration_data),
            run_loop=RunLoopConfig(**run_loop_data),
            log_completions=data.get("log_completions", True),
        )


@dataclass
class AppSettings:
    """Application-level settings."""
    name: str = "taskloop"
    version: str = "0.1.0"
    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration container.

    Create once at startup and inject into the scheduler.

    Example:
        >>> config = AppConfig.from_yaml("config/settings.yaml")
        >>> manager = TaskManager(config=config.scheduler)
    """
    app: AppSettings = field(default_factory=AppSettings)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)

    # Path to the config file (for reference/logging)
    _config_path: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict, config_path: Optional[str] = None) -> "AppConfig":
        """Create AppConfig from dictionary.

        Args:
            data: Configuration dictionary.
            config_path: Optional path for logging purposes.

        Returns:
            Populated AppConfig instance.
        """
        app_data = data.get("app", {})
        scheduler_data = data.get("scheduler", {})

        return cls(
            app=AppSettings(**app_data),
            scheduler=SchedulerConfig.from_dict(scheduler_data),
            _config_path=config_path,
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Populated AppConfig instance.

        Raises:
            FileNotFoundError: If config file not found.
            yaml.YAMLError: If YAML parsing fails.
        """
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path) as f:
            content = f.read()

        # Substitute environment variables
        content = _substitute_env_vars(content)

        data = yaml.safe_load(content) or {}

        logger.info(f"Loaded configuration from {config_path}")
        return cls.from_dict(data, config_path=str(path.absolute()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary."""
        return {
            "app": {
                "name": self.app.name,
                "version": self.app.version,
                "log_level": self.app.log_level,
            },
            "scheduler": {
                "iteration": {
                    "default_step": self.scheduler.iteration.default_step,
                },
                "run_loop": {
                    "max_turns": self.scheduler.run_loop.max_turns,
                },
                "log_completions": self.scheduler.log_completions,
            },
        }


# ============================================================
# Helper Functions
# ============================================================

_ENV_PATTERN = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")


def _substitute_env_vars(content: str) -> str:
    """Expand ``${NAME}`` and ``${NAME:-fallback}`` from the environment.

    Unset names without a fallback expand to an empty string and are
    logged, so a YAML key left blank by a missing variable is visible.
    """

    def expand(match: re.Match) -> str:
        name = match.group("name")
        fallback = match.group("default")
        value = os.environ.get(name)
        if value:
            return value
        if fallback is not None:
            return fallback
        logger.warning("Environment variable not set: %s", name)
        return ""

    return _ENV_PATTERN.sub(expand, content)
