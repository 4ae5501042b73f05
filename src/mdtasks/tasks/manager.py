"""In-memory query and dependency-graph layer over parsed tasks.

Mutators here change the Task objects only. Nothing is written to disk; use
``MarkdownUpdater`` for that and re-parse afterwards.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from mdtasks import log
from mdtasks.errors import IndexOutOfRangeError, ItemNotFoundError, TaskNotFoundError
from mdtasks.tasks.model import NO_DEPENDENCIES, Task, percent

STATUS_COMPLETE = "complete"
STATUS_INCOMPLETE = "incomplete"
STATUS_ALL = "all"

_UPDATABLE_FIELDS = frozenset(f.name for f in fields(Task))


@dataclass
class TopicStats:
    total: int = 0
    completed: int = 0

    @property
    def completion_rate(self) -> int:
        return percent(self.completed, self.total) if self.total else 0

    def to_dict(self) -> dict[str, int]:
        return {"total": self.total, "completed": self.completed}


@dataclass
class TaskStatistics:
    total: int = 0
    completed: int = 0
    incomplete: int = 0
    completion_rate: int = 0
    topics: dict[str, TopicStats] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "incomplete": self.incomplete,
            "completionRate": self.completion_rate,
            "topics": {name: t.to_dict() for name, t in self.topics.items()},
        }


@dataclass
class DependencyNode:
    """One node of a dependency tree.

    A circular node marks an id already present on the path from the root;
    it has no children.
    """

    task: Task
    dependencies: list[DependencyNode] = field(default_factory=list)
    circular: bool = False

    def has_cycle(self) -> bool:
        return self.circular or any(dep.has_cycle() for dep in self.dependencies)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.task.id,
            "title": self.task.title,
            "completed": self.task.completed,
            "circular": self.circular,
            "dependencies": [dep.to_dict() for dep in self.dependencies],
        }


class TaskManager:
    """Query, filter and graph operations over a list of tasks."""

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self.tasks: list[Task] = list(tasks)

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)

    def get_task(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    # ── queries ──────────────────────────────────────────────────

    def filter(
        self,
        status: str | None = None,
        topic: str | None = None,
        id: str | None = None,
    ) -> list[Task]:
        """Return tasks matching every given criterion.

        *status* is ``complete``, ``incomplete``, or ``None``/``all`` for no
        filtering. *topic* is a case-insensitive substring of the main topic.
        """
        result = list(self.tasks)

        if status not in (None, STATUS_ALL):
            if status == STATUS_COMPLETE:
                result = [t for t in result if t.completed]
            elif status == STATUS_INCOMPLETE:
                result = [t for t in result if not t.completed]
            else:
                raise ValueError(
                    f"Unknown status filter: {status!r} "
                    f"(expected {STATUS_COMPLETE}, {STATUS_INCOMPLETE} or {STATUS_ALL})"
                )

        if topic:
            needle = topic.lower()
            result = [t for t in result if needle in t.main_topic.lower()]

        if id:
            result = [t for t in result if t.id == id]

        return result

    def get_statistics(self) -> TaskStatistics:
        total = len(self.tasks)
        completed = sum(1 for t in self.tasks if t.completed)

        topics: dict[str, TopicStats] = {}
        for t in self.tasks:
            stats = topics.setdefault(t.main_topic, TopicStats())
            stats.total += 1
            if t.completed:
                stats.completed += 1

        return TaskStatistics(
            total=total,
            completed=completed,
            incomplete=total - completed,
            completion_rate=percent(completed, total) if total else 0,
            topics=topics,
        )

    # ── dependency graph ─────────────────────────────────────────

    def get_dependencies(self, task_id: str) -> list[Task] | None:
        """Resolved dependencies of *task_id*; unknown ids are skipped.

        Returns ``None`` when *task_id* itself does not exist.
        """
        task = self.get_task(task_id)
        if task is None:
            return None

        deps: list[Task] = []
        for dep_id in task.dependency_ids:
            dep = self.get_task(dep_id)
            if dep is not None:
                deps.append(dep)
        return deps

    def get_dependents(self, task_id: str) -> list[Task]:
        return [t for t in self.tasks if task_id in t.dependency_ids]

    def get_dependency_tree(
        self,
        task_id: str,
        visited: frozenset[str] = frozenset(),
    ) -> DependencyNode | None:
        """Build the dependency tree rooted at *task_id*.

        *visited* holds the ids on the path from the root to this node only.
        Each child gets its own extended copy, so a task reached through two
        sibling branches (a diamond) is expanded in both and not mistaken for
        a cycle.
        """
        task = self.get_task(task_id)
        if task is None:
            return None
        if task_id in visited:
            return DependencyNode(task=task, circular=True)

        path = visited | {task_id}
        children: list[DependencyNode] = []
        for dep_id in task.dependency_ids:
            child = self.get_dependency_tree(dep_id, path)
            if child is not None:
                children.append(child)

        return DependencyNode(task=task, dependencies=children)

    def validate_dependencies(self) -> list[str]:
        """Report dangling references and cycles, one cycle message per task."""
        errors: list[str] = []

        for task in self.tasks:
            for dep_id in task.dependency_ids:
                if dep_id == NO_DEPENDENCIES:
                    continue
                if self.get_task(dep_id) is None:
                    errors.append(f"Task {task.id} depends on non-existent task {dep_id}")

            tree = self.get_dependency_tree(task.id)
            if tree is not None and tree.has_cycle():
                errors.append(f"Circular dependency detected involving task {task.id}")

        return errors

    # ── in-memory mutators ───────────────────────────────────────

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        task = self._require(task_id)
        unknown = sorted(set(updates) - _UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown task field(s): {', '.join(unknown)}")
        for name, value in updates.items():
            setattr(task, name, value)
        log.debug(f"Task {task_id}: updated {', '.join(updates)} in memory")
        return task

    def toggle_subtask(self, task_id: str, index_or_text: int | str) -> Task:
        task = self._require(task_id)
        index = self._resolve_index(task, "subtask", index_or_text)
        if not task.toggle_subtask(index):
            raise IndexOutOfRangeError("subtask", index, task_id)
        return task

    def toggle_validation(self, task_id: str, index_or_text: int | str) -> Task:
        task = self._require(task_id)
        index = self._resolve_index(task, "validation criterion", index_or_text)
        if not task.toggle_validation(index):
            raise IndexOutOfRangeError("validation", index, task_id)
        return task

    def _require(self, task_id: str) -> Task:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    @staticmethod
    def _resolve_index(task: Task, kind: str, index_or_text: int | str) -> int:
        if isinstance(index_or_text, int):
            return index_or_text
        if kind == "subtask":
            index = task.find_subtask(index_or_text)
        else:
            index = task.find_validation(index_or_text)
        if index == -1:
            raise ItemNotFoundError(kind, index_or_text, task.id)
        return index

    # ── export projections ───────────────────────────────────────

    def export_json(self) -> dict[str, Any]:
        from mdtasks.export import export_json

        return export_json(self)

    def export_csv(self) -> str:
        from mdtasks.export import export_csv

        return export_csv(self)

    def export_html(self) -> str:
        from mdtasks.export import export_html

        return export_html(self)
