"""Configuration defaults, env vars, and runtime options for mdtasks."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


VERSION = "1.0.0"

DEFAULT_TASK_FILE = "tasks.md"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


@dataclass
class Config:
    """Runtime configuration shared by the CLI commands."""

    # Task file
    task_file: str = ""
    strict: bool = False

    # Watch
    watch_interval: float = 1.0
    watch_command: str = ""

    # Misc
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.task_file:
            self.task_file = os.environ.get("MDTASKS_FILE") or DEFAULT_TASK_FILE
        if not self.strict:
            self.strict = _env_flag("MDTASKS_STRICT")
        if self.watch_interval <= 0:
            raise ValueError("watch_interval must be positive")

    @property
    def task_path(self) -> Path:
        return Path(self.task_file)
