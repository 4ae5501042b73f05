"""JSON, CSV and HTML projections of a task collection."""

from __future__ import annotations

from datetime import datetime, timezone
from html import escape
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mdtasks.tasks.manager import TaskManager
    from mdtasks.tasks.model import ChecklistItem, Task

CSV_HEADERS = ("ID", "Title", "Status", "Topic", "Progress", "Validation Progress", "Dependencies")

EXPORT_FORMATS = ("json", "csv", "html")


def export_json(manager: TaskManager) -> dict[str, Any]:
    return {
        "tasks": [t.to_dict() for t in manager.tasks],
        "statistics": manager.get_statistics().to_dict(),
        "exportedAt": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }


def _csv_quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _dependency_label(task: Task) -> str:
    deps = task.dependency_ids
    return ", ".join(deps) if deps else "None"


def export_csv(manager: TaskManager) -> str:
    rows = [",".join(CSV_HEADERS)]
    for t in manager.tasks:
        rows.append(",".join([
            t.id,
            _csv_quote(t.title),
            "Complete" if t.completed else "Incomplete",
            _csv_quote(t.main_topic),
            f"{t.progress}%",
            f"{t.validation_progress}%",
            _csv_quote(_dependency_label(t)),
        ]))
    return "\n".join(rows)


# ── HTML ─────────────────────────────────────────────────────────────

_STYLE = """\
        body { font-family: Arial, sans-serif; margin: 40px; }
        .header { background: #f5f5f5; padding: 20px; border-radius: 8px; margin-bottom: 30px; }
        .stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
        .stat-card { background: white; border: 1px solid #ddd; padding: 15px; border-radius: 8px; text-align: center; }
        .stat-number { font-size: 2em; font-weight: bold; color: #333; }
        .stat-label { color: #666; font-size: 0.9em; }
        .task { background: white; border: 1px solid #ddd; margin-bottom: 20px; border-radius: 8px; overflow: hidden; }
        .task-header { background: #f8f9fa; padding: 15px; border-bottom: 1px solid #ddd; }
        .task-title { margin: 0; color: #333; }
        .task-meta { color: #666; font-size: 0.9em; margin-top: 5px; }
        .task-body { padding: 15px; }
        .progress-bar { background: #e9ecef; height: 20px; border-radius: 10px; overflow: hidden; margin: 10px 0; }
        .progress-fill { height: 100%; background: linear-gradient(90deg, #28a745, #20c997); }
        .subtasks, .validation { margin: 10px 0; }
        .subtask, .validation-item { margin: 5px 0; }
        .completed { color: #28a745; }
        .incomplete { color: #dc3545; }"""


def _state_class(completed: bool) -> str:
    return "completed" if completed else "incomplete"


def _html_items(items: list[ChecklistItem], css: str) -> str:
    return "\n".join(
        f'            <div class="{css} {_state_class(i.completed)}">'
        f'{"✓" if i.completed else "○"} {escape(i.text)}</div>'
        for i in items
    )


def _html_task(t: Task) -> str:
    done = sum(1 for s in t.subtasks if s.completed)
    parts = [
        '    <div class="task">',
        '        <div class="task-header">',
        f'            <h3 class="task-title">Task {escape(t.id)}: {escape(t.title)}</h3>',
        f'            <div class="task-meta">Topic: {escape(t.main_topic)} | '
        f'Status: <span class="{_state_class(t.completed)}">'
        f'{"Complete" if t.completed else "Incomplete"}</span></div>',
        "        </div>",
        '        <div class="task-body">',
        f"            <p><strong>Description:</strong> {escape(t.description)}</p>",
        "            <div><strong>Progress:</strong>",
        '                <div class="progress-bar">'
        f'<div class="progress-fill" style="width: {t.progress}%"></div></div>',
        f"                {t.progress}% ({done}/{len(t.subtasks)} subtasks)",
        "            </div>",
        '            <div class="subtasks"><strong>Subtasks:</strong>',
        _html_items(t.subtasks, "subtask"),
        "            </div>",
    ]
    if t.validation:
        parts += [
            '            <div class="validation"><strong>Validation:</strong>',
            _html_items(t.validation, "validation-item"),
            "            </div>",
        ]
    if t.dependency_ids:
        parts.append(
            f"            <p><strong>Dependencies:</strong> {escape(', '.join(t.dependency_ids))}</p>"
        )
    parts += ["        </div>", "    </div>"]
    return "\n".join(parts)


def _stat_card(value: str, label: str) -> str:
    return (
        '        <div class="stat-card">'
        f'<div class="stat-number">{value}</div>'
        f'<div class="stat-label">{label}</div></div>'
    )


def export_html(manager: TaskManager) -> str:
    """Render a standalone HTML report. User text is HTML-escaped."""
    stats = manager.get_statistics()
    generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    cards = "\n".join([
        _stat_card(str(stats.total), "Total Tasks"),
        _stat_card(str(stats.completed), "Completed"),
        _stat_card(str(stats.incomplete), "Incomplete"),
        _stat_card(f"{stats.completion_rate}%", "Completion Rate"),
    ])
    tasks = "\n".join(_html_task(t) for t in manager.tasks)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Task Report</title>
    <style>
{_STYLE}
    </style>
</head>
<body>
    <div class="header">
        <h1>Task Management Report</h1>
        <p>Generated on {generated}</p>
    </div>
    <div class="stats">
{cards}
    </div>
    <h2>Tasks</h2>
{tasks}
</body>
</html>"""
