"""Parse a tasks markdown file into validated Task records.

The scanner is a small line-oriented state machine::

    IDLE ──header──▶ FIELDS ──**Subtasks:**──▶ SUBTASKS
                       ▲  ──**Validation:**─▶ VALIDATION
                       └──── first non-checkbox line ┘

A header line is accepted from any state: it closes the task being read
(validating it) and opens the next one. Lines that match nothing are ignored.
Errors never abort the scan; they are collected on the ``ParseResult``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from mdtasks import log
from mdtasks.io_utils import PathLike, read_text
from mdtasks.tasks.model import (
    NO_DEPENDENCIES,
    ChecklistItem,
    Task,
    is_valid_task_id,
)

HEADER_RE = re.compile(r"^## Task .+:")
_HEADER_PARTS_RE = re.compile(r"^## Task\s+([\d.]+):\s+(.+)$")
CHECKBOX_RE = re.compile(r"^- \[([ x])\]\s*(.*)$")
COMPLETE_RE = re.compile(r"^- \[([ x])\] \*\*Complete\*\*")

MAIN_TOPIC_PREFIX = "**Main Topic:**"
DESCRIPTION_PREFIX = "**Description:**"
REQUIRED_TASKS_PREFIX = "**Required Tasks:**"
SUBTASKS_MARKER = "**Subtasks:**"
VALIDATION_MARKER = "**Validation:**"


class ScanState(str, Enum):
    IDLE = "idle"
    FIELDS = "fields"
    SUBTASKS = "subtasks"
    VALIDATION = "validation"


@dataclass
class ParseResult:
    tasks: list[Task] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def parse_required_tasks(text: str) -> list[str]:
    """Split a ``**Required Tasks:**`` value into ids.

    ``none`` in any letter case becomes the single ``"None"`` sentinel.
    """
    if text.lower() == "none":
        return [NO_DEPENDENCIES]
    return [part.strip() for part in text.split(",") if part.strip()]


def validate_task(task: Task, *, strict: bool = False) -> list[str]:
    """Return the validation errors for *task* (empty list when valid)."""
    errors: list[str] = []

    if not task.id:
        errors.append("Task ID is required")
    elif not is_valid_task_id(task.id):
        errors.append("Task ID must follow semantic versioning pattern (e.g., 1.0, 2.1, 3.14)")

    if not task.title:
        errors.append("Task title is required")
    if not task.main_topic:
        errors.append("Main Topic is required")
    if not task.description:
        errors.append("Description is required")
    if not task.subtasks:
        errors.append("At least one subtask is required")
    if not task.required_tasks:
        errors.append('Required Tasks field is required (use "None" if no dependencies)')
    if strict and not task.validation:
        errors.append("At least one validation criterion is required in strict mode")

    return errors


def parse_checkbox(line: str) -> ChecklistItem | None:
    """Return the item for a trimmed ``- [ ] text`` line, else ``None``."""
    m = CHECKBOX_RE.match(line)
    if m is None:
        return None
    return ChecklistItem(text=m.group(2), completed=m.group(1) == "x")


class _Scanner:
    """One-shot scanner; a fresh instance is used for every parse."""

    def __init__(self, strict: bool) -> None:
        self._strict = strict
        self._state = ScanState.IDLE
        self._current: Task | None = None
        self._result = ParseResult()

    def feed(self, raw_line: str) -> None:
        line = raw_line.strip()

        if HEADER_RE.match(line):
            self._open_task(line)
            return

        if self._state in (ScanState.SUBTASKS, ScanState.VALIDATION):
            item = parse_checkbox(line)
            if item is not None:
                self._open_list().append(item)
                return
            self._state = ScanState.FIELDS

        if self._state is ScanState.FIELDS:
            self._read_field(line)

    def finish(self) -> ParseResult:
        self._close_task()
        return self._result

    # ── transitions ──────────────────────────────────────────────

    def _open_task(self, line: str) -> None:
        self._close_task()
        m = _HEADER_PARTS_RE.match(line)
        if m is None:
            self._result.errors.append(f"Invalid task header format: {line}")
            self._state = ScanState.IDLE
            return
        self._current = Task(id=m.group(1), title=m.group(2))
        self._state = ScanState.FIELDS

    def _close_task(self) -> None:
        task = self._current
        self._current = None
        if task is None:
            return
        errors = validate_task(task, strict=self._strict)
        if errors:
            self._result.errors.extend(f"Task {task.id}: {err}" for err in errors)
            log.debug(f"Task {task.id}: rejected ({len(errors)} error(s))")
        else:
            self._result.tasks.append(task)

    def _open_list(self) -> list[ChecklistItem]:
        assert self._current is not None
        if self._state is ScanState.SUBTASKS:
            return self._current.subtasks
        return self._current.validation

    def _read_field(self, line: str) -> None:
        task = self._current
        assert task is not None

        complete = COMPLETE_RE.match(line)
        if complete:
            task.completed = complete.group(1) == "x"
        elif line.startswith(MAIN_TOPIC_PREFIX):
            task.main_topic = line[len(MAIN_TOPIC_PREFIX):].strip()
        elif line.startswith(DESCRIPTION_PREFIX):
            task.description = line[len(DESCRIPTION_PREFIX):].strip()
        elif line.startswith(REQUIRED_TASKS_PREFIX):
            task.required_tasks = parse_required_tasks(line[len(REQUIRED_TASKS_PREFIX):].strip())
        elif line == SUBTASKS_MARKER:
            task.subtasks = []
            self._state = ScanState.SUBTASKS
        elif line == VALIDATION_MARKER:
            task.validation = []
            self._state = ScanState.VALIDATION


def parse_content(text: str, *, strict: bool = False) -> ParseResult:
    """Parse markdown *text* into tasks plus every error found along the way."""
    scanner = _Scanner(strict)
    for line in text.split("\n"):
        scanner.feed(line)
    result = scanner.finish()
    log.debug(f"Parsed {len(result.tasks)} task(s), {len(result.errors)} error(s)")
    return result


def parse_file(path: PathLike, *, strict: bool = False) -> ParseResult:
    """Read *path* as UTF-8 and parse it. I/O errors propagate unchanged."""
    log.debug(f"Parsing {path}")
    return parse_content(read_text(path), strict=strict)


def parse(source: str | Path, *, strict: bool = False) -> ParseResult:
    """Parse a ``Path`` (read from disk) or a ``str`` (markdown text)."""
    if isinstance(source, Path):
        return parse_file(source, strict=strict)
    return parse_content(source, strict=strict)
