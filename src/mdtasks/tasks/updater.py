"""In-place edits of a tasks markdown file.

The updater never goes through the Task model: it finds the lines of one
task block and rewrites only the lines that change, so comments, spacing and
any text the parser ignores survive untouched. Every public method reads the
whole file, patches the line list, and writes the file back; when a lookup
fails the file is not written at all.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from mdtasks import log
from mdtasks.errors import (
    IndexOutOfRangeError,
    ItemNotFoundError,
    SectionMissingError,
    TaskNotFoundError,
)
from mdtasks.io_utils import PathLike, read_lines_exact, write_lines_exact
from mdtasks.tasks.model import ChecklistItem
from mdtasks.tasks.parser import SUBTASKS_MARKER, VALIDATION_MARKER, parse_checkbox
from mdtasks.tasks.render import checkbox, render_checklist

_ANY_HEADER_RE = re.compile(r"^## Task \d+(\.\d+)*:")
_CHECKBOX_LINE_RE = re.compile(r"^- \[[ x]\]")
_COMPLETE_LINE_RE = re.compile(r"^- \[[ x]\] \*\*Complete\*\*")
_MARKER_RE = re.compile(r"\[[ x]\]")


@dataclass(frozen=True)
class _Section:
    kind: str
    marker: str
    title: str


SUBTASKS = _Section(kind="subtask", marker=SUBTASKS_MARKER, title="Subtasks")
VALIDATION = _Section(kind="validation", marker=VALIDATION_MARKER, title="Validation")


def _is_checkbox(line: str) -> bool:
    return bool(_CHECKBOX_LINE_RE.match(line.lstrip()))


def _flip(line: str) -> str:
    """Flip the first bracket marker on *line*, leaving the rest as is."""
    return _MARKER_RE.sub(lambda m: "[ ]" if m.group(0) == "[x]" else "[x]", line, count=1)


def _set_marker(line: str, completed: bool) -> str:
    return _MARKER_RE.sub(checkbox(completed), line, count=1)


class MarkdownUpdater:
    """Targeted edits to the task blocks of one markdown file."""

    def __init__(self, path: PathLike) -> None:
        self.path = path if isinstance(path, Path) else Path(path)

    # ── public operations ───────────────────────────────────────

    def update_task(
        self,
        task_id: str,
        *,
        completed: bool | None = None,
        subtasks: Sequence[ChecklistItem] | None = None,
        validation: Sequence[ChecklistItem] | None = None,
    ) -> None:
        """Apply a partial update to the block of *task_id*.

        ``completed`` rewrites the ``**Complete**`` checkbox. ``subtasks`` and
        ``validation`` replace the whole checkbox run after their marker; the
        number of items may change.
        """
        lines = read_lines_exact(self.path)
        start, end = self._locate(lines, task_id)

        if completed is not None:
            idx = self._find_complete_line(lines, start, end, task_id)
            lines[idx] = _set_marker(lines[idx], completed)
            log.debug(f"Task {task_id}: line {idx + 1} -> {checkbox(completed)} Complete")

        # Replacements can change the line count; recompute the range each time.
        for section, items in ((SUBTASKS, subtasks), (VALIDATION, validation)):
            if items is None:
                continue
            start, end = self._locate(lines, task_id)
            marker = self._find_marker(lines, start, end, section, task_id)
            run_end = marker + 1
            while run_end < end and _is_checkbox(lines[run_end]):
                run_end += 1
            eol = "\r" if lines[marker].endswith("\r") else ""
            lines[marker + 1:run_end] = [line + eol for line in render_checklist(items)]
            log.debug(
                f"Task {task_id}: replaced {run_end - marker - 1} {section.kind} line(s) "
                f"with {len(items)}"
            )

        write_lines_exact(self.path, lines)

    def toggle_subtask(self, task_id: str, index_or_text: int | str) -> bool:
        """Flip one subtask checkbox on disk and return its new state."""
        return self._toggle(task_id, SUBTASKS, index_or_text)

    def toggle_validation(self, task_id: str, index_or_text: int | str) -> bool:
        """Flip one validation checkbox on disk and return its new state."""
        return self._toggle(task_id, VALIDATION, index_or_text)

    # ── internals ───────────────────────────────────────────────

    def _toggle(self, task_id: str, section: _Section, index_or_text: int | str) -> bool:
        lines = read_lines_exact(self.path)
        start, end = self._locate(lines, task_id)
        marker = self._find_marker(lines, start, end, section, task_id)
        items = self._section_items(lines, marker, end)

        if isinstance(index_or_text, str):
            needle = index_or_text.lower()
            line_idx = next(
                (i for i in items if needle in parse_checkbox(lines[i].strip()).text.lower()),
                None,
            )
            if line_idx is None:
                raise ItemNotFoundError(section.kind, index_or_text, task_id)
        else:
            if not 0 <= index_or_text < len(items):
                raise IndexOutOfRangeError(section.kind, index_or_text, task_id)
            line_idx = items[index_or_text]

        now_done = not parse_checkbox(lines[line_idx].strip()).completed
        lines[line_idx] = _flip(lines[line_idx])
        write_lines_exact(self.path, lines)

        log.debug(f"Task {task_id}: {section.kind} line {line_idx + 1} -> {checkbox(now_done)}")
        return now_done

    @staticmethod
    def _locate(lines: list[str], task_id: str) -> tuple[int, int]:
        """Return ``(header_index, end)`` where *end* is exclusive."""
        header_re = re.compile(rf"^## Task {re.escape(task_id)}:")
        start = -1
        for i, line in enumerate(lines):
            if start == -1:
                if header_re.match(line):
                    start = i
            elif _ANY_HEADER_RE.match(line):
                return start, i
        if start == -1:
            raise TaskNotFoundError(task_id, "file")
        return start, len(lines)

    @staticmethod
    def _find_complete_line(lines: list[str], start: int, end: int, task_id: str) -> int:
        for i in range(start + 1, end):
            if _COMPLETE_LINE_RE.match(lines[i].lstrip()):
                return i
        raise SectionMissingError("Complete", task_id)

    @staticmethod
    def _find_marker(
        lines: list[str], start: int, end: int, section: _Section, task_id: str
    ) -> int:
        for i in range(start + 1, end):
            if lines[i].strip() == section.marker:
                return i
        raise SectionMissingError(section.title, task_id)

    @staticmethod
    def _section_items(lines: list[str], marker: int, end: int) -> list[int]:
        """Indexes of the checkbox lines after *marker*.

        Blank lines are skipped; the section ends at the first other line.
        """
        items: list[int] = []
        for i in range(marker + 1, end):
            line = lines[i]
            if _is_checkbox(line):
                items.append(i)
            elif line.strip():
                break
        return items
