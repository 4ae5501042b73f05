"""mdtasks: a markdown file as a lightweight task database."""

from mdtasks.config import VERSION as __version__
from mdtasks.errors import (
    IndexOutOfRangeError,
    ItemNotFoundError,
    MdTasksError,
    SectionMissingError,
    StructuralError,
    TaskNotFoundError,
)
from mdtasks.tasks.manager import DependencyNode, TaskManager, TaskStatistics
from mdtasks.tasks.model import ChecklistItem, Task
from mdtasks.tasks.parser import ParseResult, parse, parse_content, parse_file
from mdtasks.tasks.render import render_task
from mdtasks.tasks.updater import MarkdownUpdater

__all__ = [
    "__version__",
    "ChecklistItem",
    "DependencyNode",
    "IndexOutOfRangeError",
    "ItemNotFoundError",
    "MarkdownUpdater",
    "MdTasksError",
    "ParseResult",
    "SectionMissingError",
    "StructuralError",
    "Task",
    "TaskManager",
    "TaskNotFoundError",
    "TaskStatistics",
    "parse",
    "parse_content",
    "parse_file",
    "render_task",
]
