"""Exceptions raised by single-task operations.

Parsing never raises these: malformed headers and invalid tasks are collected
as messages on the parse result. Lookups and file mutations fail immediately
because no partial result is meaningful.
"""

from __future__ import annotations


class MdTasksError(Exception):
    """Base class for every error raised by mdtasks."""


class TaskNotFoundError(MdTasksError, LookupError):
    def __init__(self, task_id: str, where: str = "") -> None:
        self.task_id = task_id
        suffix = f" in {where}" if where else ""
        super().__init__(f"Task {task_id} not found{suffix}")


class ItemNotFoundError(MdTasksError, LookupError):
    """No subtask or validation entry matched a text query."""

    def __init__(self, kind: str, query: str, task_id: str) -> None:
        self.kind = kind
        self.query = query
        self.task_id = task_id
        super().__init__(f'{kind.capitalize()} "{query}" not found in task {task_id}')


class StructuralError(MdTasksError):
    """The task block does not have the shape a mutation needs."""


class SectionMissingError(StructuralError):
    def __init__(self, section: str, task_id: str) -> None:
        self.section = section
        self.task_id = task_id
        super().__init__(f"{section} section not found for task {task_id}")


class IndexOutOfRangeError(StructuralError, IndexError):
    def __init__(self, kind: str, index: int, task_id: str) -> None:
        self.kind = kind
        self.index = index
        self.task_id = task_id
        super().__init__(f"{kind.capitalize()} index {index} out of range for task {task_id}")
