"""Shared fixtures for mdtasks tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdtasks import log
from mdtasks.io_utils import write_text
from mdtasks.tasks.model import ChecklistItem, Task

DEMO = (
    "## Task 1.0: Demo\n"
    "- [ ] **Complete**\n"
    "**Main Topic:** T\n"
    "**Description:** D\n"
    "**Subtasks:**\n"
    "- [ ] a\n"
    "- [x] b\n"
    "**Required Tasks:** None\n"
    "**Validation:** \n"
    "- [ ] v\n"
)

PROJECT = """\
# Project plan

Some notes the parser ignores.

## Task 1.0: Setup project
- [x] **Complete**
**Main Topic:** Infrastructure
**Description:** Create the repository layout
**Subtasks:**
- [x] Create repo
- [x] Add CI
**Required Tasks:** None
**Validation:** 
- [x] CI is green

## Task 2.0: Build API
- [ ] **Complete**
**Main Topic:** Backend
**Description:** Implement the REST API
**Subtasks:**
- [ ] Define routes
- [x] Add models
- [ ] Write handlers
**Required Tasks:** 1.0
**Validation:** 
- [ ] Endpoints respond
- [ ] Errors are JSON

<!-- reviewer: keep this comment -->

## Task 3.0: Build UI
- [ ] **Complete**
**Main Topic:** Frontend
**Description:** Implement the web client
**Subtasks:**
- [ ] Scaffold app
**Required Tasks:** 1.0, 2.0
**Validation:** 
- [ ] Pages render
"""


def _make_task(
    id: str,
    title: str = "",
    completed: bool = False,
    main_topic: str = "General",
    description: str = "",
    subtasks: list[tuple[str, bool]] | None = None,
    required_tasks: list[str] | None = None,
    validation: list[tuple[str, bool]] | None = None,
) -> Task:
    return Task(
        id=id,
        title=title or f"Task {id}",
        completed=completed,
        main_topic=main_topic,
        description=description or f"Description of {id}",
        subtasks=[ChecklistItem(t, c) for t, c in (subtasks or [("step", False)])],
        required_tasks=required_tasks or ["None"],
        validation=[ChecklistItem(t, c) for t, c in (validation or [])],
    )


@pytest.fixture
def make_task():
    """Factory fixture that creates Task instances."""
    return _make_task


@pytest.fixture
def write_tasks(tmp_path: Path):
    """Write markdown to a file under tmp_path and return its path."""

    def _write(text: str, name: str = "tasks.md") -> Path:
        path = tmp_path / name
        write_text(path, text)
        return path

    return _write


@pytest.fixture
def project_file(write_tasks) -> Path:
    return write_tasks(PROJECT)


@pytest.fixture(autouse=True)
def _quiet_logging():
    """Reset verbosity between tests."""
    log.set_verbose(False)
    yield
    log.set_verbose(False)
