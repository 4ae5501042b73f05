"""Tests for mdtasks.tasks.updater — in-place edits that leave other bytes alone."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import DEMO
from mdtasks.errors import (
    IndexOutOfRangeError,
    ItemNotFoundError,
    SectionMissingError,
    TaskNotFoundError,
)
from mdtasks.tasks.model import ChecklistItem
from mdtasks.tasks.parser import parse_file
from mdtasks.tasks.updater import MarkdownUpdater


def _raw(path: Path) -> bytes:
    return path.read_bytes()


def _changed_lines(before: bytes, after: bytes) -> list[tuple[bytes, bytes]]:
    old, new = before.split(b"\n"), after.split(b"\n")
    assert len(old) == len(new)
    return [(a, b) for a, b in zip(old, new) if a != b]


# ═══════════════════════════════════════════════════════════════════
#  Toggles
# ═══════════════════════════════════════════════════════════════════


class TestToggleSubtask:
    def test_flips_only_that_line(self, project_file):
        before = _raw(project_file)
        done = MarkdownUpdater(project_file).toggle_subtask("2.0", 0)
        after = _raw(project_file)

        assert done is True
        assert _changed_lines(before, after) == [(b"- [ ] Define routes", b"- [x] Define routes")]

    def test_flip_back_restores_file(self, project_file):
        before = _raw(project_file)
        updater = MarkdownUpdater(project_file)
        updater.toggle_subtask("2.0", 1)
        assert updater.toggle_subtask("2.0", 1) is True
        assert _raw(project_file) == before

    def test_unchecks_completed(self, project_file):
        assert MarkdownUpdater(project_file).toggle_subtask("2.0", 1) is False
        task = parse_file(project_file).tasks[1]
        assert [s.completed for s in task.subtasks] == [False, False, False]

    def test_other_fields_unchanged_after_reparse(self, project_file):
        before = parse_file(project_file).tasks
        MarkdownUpdater(project_file).toggle_subtask("2.0", 2)
        after = parse_file(project_file).tasks

        assert after[1].subtasks[2].completed is True
        after[1].subtasks[2].completed = False
        assert after == before

    def test_by_text(self, project_file):
        assert MarkdownUpdater(project_file).toggle_subtask("2.0", "handlers") is True
        assert parse_file(project_file).tasks[1].subtasks[2].completed is True

    def test_text_not_found(self, project_file):
        before = _raw(project_file)
        with pytest.raises(ItemNotFoundError):
            MarkdownUpdater(project_file).toggle_subtask("2.0", "deploy")
        assert _raw(project_file) == before

    def test_out_of_range_leaves_file_unchanged(self, project_file):
        before = _raw(project_file)
        with pytest.raises(IndexOutOfRangeError, match="Subtask index 3 out of range for task 2.0"):
            MarkdownUpdater(project_file).toggle_subtask("2.0", 3)
        assert _raw(project_file) == before

    def test_negative_index(self, project_file):
        with pytest.raises(IndexOutOfRangeError):
            MarkdownUpdater(project_file).toggle_subtask("2.0", -1)

    def test_last_task_in_file(self, project_file):
        MarkdownUpdater(project_file).toggle_subtask("3.0", 0)
        assert parse_file(project_file).tasks[2].subtasks[0].completed is True

    def test_blank_lines_inside_section_are_skipped(self, write_tasks):
        path = write_tasks(DEMO.replace("- [x] b\n", "\n- [x] b\n"))
        assert MarkdownUpdater(path).toggle_subtask("1.0", 1) is False
        assert "- [ ] b" in path.read_text(encoding="utf-8")

    def test_indented_checkbox_keeps_indent(self, write_tasks):
        path = write_tasks(DEMO.replace("- [x] b", "  - [x] b"))
        assert MarkdownUpdater(path).toggle_subtask("1.0", "b") is False
        assert "\n  - [ ] b\n" in path.read_text(encoding="utf-8")

    def test_section_boundary_stops_count(self, write_tasks):
        """Checkboxes after the next field line are not counted."""
        path = write_tasks(DEMO)
        with pytest.raises(IndexOutOfRangeError):
            MarkdownUpdater(path).toggle_subtask("1.0", 2)

    def test_missing_task(self, project_file):
        with pytest.raises(TaskNotFoundError, match="Task 7.0 not found in file"):
            MarkdownUpdater(project_file).toggle_subtask("7.0", 0)

    def test_id_is_matched_literally(self, project_file):
        """'2' must not match the header of task 2.0."""
        with pytest.raises(TaskNotFoundError):
            MarkdownUpdater(project_file).toggle_subtask("2", 0)

    def test_missing_section(self, write_tasks):
        path = write_tasks("## Task 1.0: Bare\n- [ ] **Complete**\n")
        with pytest.raises(SectionMissingError, match="Subtasks section not found for task 1.0"):
            MarkdownUpdater(path).toggle_subtask("1.0", 0)

    def test_crlf_preserved(self, tmp_path):
        path = tmp_path / "crlf.md"
        path.write_bytes(DEMO.replace("\n", "\r\n").encode("utf-8"))
        MarkdownUpdater(path).toggle_subtask("1.0", 0)
        assert path.read_bytes() == DEMO.replace("- [ ] a", "- [x] a").replace("\n", "\r\n").encode("utf-8")


class TestToggleValidation:
    def test_flips_only_that_line(self, project_file):
        before = _raw(project_file)
        assert MarkdownUpdater(project_file).toggle_validation("2.0", 1) is True
        assert _changed_lines(before, _raw(project_file)) == [
            (b"- [ ] Errors are JSON", b"- [x] Errors are JSON")
        ]

    def test_missing_section(self, write_tasks):
        path = write_tasks(DEMO.replace("**Validation:** \n- [ ] v\n", ""))
        with pytest.raises(SectionMissingError, match="Validation section"):
            MarkdownUpdater(path).toggle_validation("1.0", 0)

    def test_out_of_range(self, project_file):
        with pytest.raises(IndexOutOfRangeError, match="Validation index 2"):
            MarkdownUpdater(project_file).toggle_validation("2.0", 2)


# ═══════════════════════════════════════════════════════════════════
#  Partial updates
# ═══════════════════════════════════════════════════════════════════


class TestUpdateTask:
    def test_mark_complete(self, project_file):
        before = _raw(project_file)
        MarkdownUpdater(project_file).update_task("2.0", completed=True)
        assert _changed_lines(before, _raw(project_file)) == [
            (b"- [ ] **Complete**", b"- [x] **Complete**")
        ]
        assert parse_file(project_file).tasks[1].completed is True

    def test_mark_incomplete(self, project_file):
        MarkdownUpdater(project_file).update_task("1.0", completed=False)
        assert parse_file(project_file).tasks[0].completed is False

    def test_setting_same_value_is_noop(self, project_file):
        before = _raw(project_file)
        MarkdownUpdater(project_file).update_task("1.0", completed=True)
        assert _raw(project_file) == before

    def test_replace_subtasks_changes_count(self, project_file):
        items = [ChecklistItem("one", True), ChecklistItem("two", False)]
        MarkdownUpdater(project_file).update_task("2.0", subtasks=items)

        tasks = parse_file(project_file).tasks
        assert tasks[1].subtasks == items
        assert tasks[1].validation[0].text == "Endpoints respond"
        assert tasks[2].subtasks[0].text == "Scaffold app"

    def test_replace_validation(self, project_file):
        items = [ChecklistItem("Endpoints respond", True), ChecklistItem("Errors are JSON", True)]
        MarkdownUpdater(project_file).update_task("2.0", validation=items)
        text = project_file.read_text(encoding="utf-8")
        assert "- [x] Endpoints respond\n- [x] Errors are JSON\n\n<!-- reviewer: keep this comment -->" in text

    def test_combined_update(self, project_file):
        MarkdownUpdater(project_file).update_task(
            "2.0",
            completed=True,
            subtasks=[ChecklistItem("only", True)],
            validation=[ChecklistItem("checked", True)],
        )
        task = parse_file(project_file).tasks[1]
        assert task.completed
        assert task.subtasks == [ChecklistItem("only", True)]
        assert task.validation == [ChecklistItem("checked", True)]

    def test_unrelated_text_preserved(self, project_file):
        MarkdownUpdater(project_file).update_task("2.0", subtasks=[ChecklistItem("x")])
        text = project_file.read_text(encoding="utf-8")
        assert text.startswith("# Project plan\n\nSome notes the parser ignores.\n")
        assert "<!-- reviewer: keep this comment -->" in text
        assert text.endswith("- [ ] Pages render\n")

    def test_replaced_sections_keep_crlf(self, tmp_path):
        path = tmp_path / "crlf.md"
        path.write_bytes(DEMO.replace("\n", "\r\n").encode("utf-8"))
        MarkdownUpdater(path).update_task(
            "1.0",
            subtasks=[ChecklistItem("x"), ChecklistItem("y", True)],
            validation=[ChecklistItem("checked", True)],
        )
        raw = path.read_bytes()
        assert b"**Subtasks:**\r\n- [ ] x\r\n- [x] y\r\n**Required Tasks:** None\r\n" in raw
        assert raw.endswith(b"**Validation:** \r\n- [x] checked\r\n")
        assert raw.replace(b"\r\n", b"").count(b"\n") == 0

    def test_missing_task(self, project_file):
        before = _raw(project_file)
        with pytest.raises(TaskNotFoundError):
            MarkdownUpdater(project_file).update_task("8.0", completed=True)
        assert _raw(project_file) == before

    def test_missing_complete_line(self, write_tasks):
        path = write_tasks(DEMO.replace("- [ ] **Complete**\n", ""))
        with pytest.raises(SectionMissingError, match="Complete section"):
            MarkdownUpdater(path).update_task("1.0", completed=True)

    def test_missing_file_propagates(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            MarkdownUpdater(tmp_path / "nope.md").update_task("1.0", completed=True)

    def test_in_memory_tasks_not_reconciled(self, project_file):
        """Parsed tasks are a snapshot; the updater does not touch them."""
        tasks = parse_file(project_file).tasks
        MarkdownUpdater(project_file).update_task("2.0", completed=True)
        assert tasks[1].completed is False
        assert parse_file(project_file).tasks[1].completed is True
