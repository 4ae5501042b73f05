"""Render Task records back into the markdown block format."""

from __future__ import annotations

from collections.abc import Iterable

from mdtasks.tasks.model import ChecklistItem, Task


def checkbox(completed: bool) -> str:
    return "[x]" if completed else "[ ]"


def render_checklist(items: Iterable[ChecklistItem]) -> list[str]:
    return [f"- {checkbox(item.completed)} {item.text}" for item in items]


def render_task(task: Task) -> str:
    """Render *task* as a ``## Task`` block (no trailing newline)."""
    lines = [
        f"## Task {task.id}: {task.title}",
        f"- {checkbox(task.completed)} **Complete**",
        f"**Main Topic:** {task.main_topic}",
        f"**Description:** {task.description}",
        "**Subtasks:**",
        *render_checklist(task.subtasks),
        f"**Required Tasks:** {', '.join(task.required_tasks)}",
        "**Validation:** ",
        *render_checklist(task.validation),
    ]
    return "\n".join(lines)
