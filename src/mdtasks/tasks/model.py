"""Task data models produced by the parser and queried by the manager."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any

NO_DEPENDENCIES = "None"

TASK_ID_RE = re.compile(r"^\d+(\.\d+){0,2}$")


def percent(part: int, whole: int) -> int:
    """``round(100 * part / whole)`` rounding halves up."""
    return math.floor(100 * part / whole + 0.5)


def is_valid_task_id(task_id: str) -> bool:
    return bool(TASK_ID_RE.match(task_id))


@dataclass
class ChecklistItem:
    text: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "completed": self.completed}


@dataclass
class Task:
    id: str
    title: str = ""
    completed: bool = False
    main_topic: str = ""
    description: str = ""
    subtasks: list[ChecklistItem] = field(default_factory=list)
    required_tasks: list[str] = field(default_factory=list)
    validation: list[ChecklistItem] = field(default_factory=list)

    # ── derived fields ──────────────────────────────────────────

    @property
    def progress(self) -> int:
        if not self.subtasks:
            return 100 if self.completed else 0
        done = sum(1 for s in self.subtasks if s.completed)
        return percent(done, len(self.subtasks))

    @property
    def validation_progress(self) -> int:
        if not self.validation:
            return 100
        done = sum(1 for v in self.validation if v.completed)
        return percent(done, len(self.validation))

    @property
    def dependency_ids(self) -> list[str]:
        """Required task ids with the ``None`` sentinel removed."""
        if len(self.required_tasks) == 1 and self.required_tasks[0].lower() == "none":
            return []
        return list(self.required_tasks)

    # ── lookups ─────────────────────────────────────────────────

    def find_subtask(self, text: str) -> int:
        return _find_by_text(self.subtasks, text)

    def find_validation(self, text: str) -> int:
        return _find_by_text(self.validation, text)

    # ── in-memory mutation ──────────────────────────────────────

    def toggle_subtask(self, index: int) -> bool:
        return _toggle(self.subtasks, index)

    def toggle_validation(self, index: int) -> bool:
        return _toggle(self.validation, index)

    def set_completed(self, completed: bool) -> None:
        """Set the completion flag; completing also checks every item."""
        self.completed = completed
        if completed:
            for item in (*self.subtasks, *self.validation):
                item.completed = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "mainTopic": self.main_topic,
            "description": self.description,
            "subtasks": [s.to_dict() for s in self.subtasks],
            "requiredTasks": list(self.required_tasks),
            "validation": [v.to_dict() for v in self.validation],
            "progress": self.progress,
            "validationProgress": self.validation_progress,
        }


def _find_by_text(items: list[ChecklistItem], text: str) -> int:
    needle = text.lower()
    for i, item in enumerate(items):
        if needle in item.text.lower():
            return i
    return -1


def _toggle(items: list[ChecklistItem], index: int) -> bool:
    if 0 <= index < len(items):
        items[index].completed = not items[index].completed
        return True
    return False
