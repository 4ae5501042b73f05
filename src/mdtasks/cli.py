"""MDTASKS CLI: query and edit a markdown task file.

Installed as the ``mdtasks`` console_script.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from mdtasks import __version__
from mdtasks import log as glog
from mdtasks.config import Config
from mdtasks.errors import MdTasksError
from mdtasks.export import EXPORT_FORMATS
from mdtasks.io_utils import append_text, read_text, write_text
from mdtasks.tasks.manager import DependencyNode, TaskManager
from mdtasks.tasks.model import ChecklistItem, Task, is_valid_task_id
from mdtasks.tasks.parser import parse_file, parse_required_tasks
from mdtasks.tasks.render import render_task
from mdtasks.tasks.updater import MarkdownUpdater

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

DEFAULT_VALIDATION = "Task completed successfully"


class InvalidTaskFileError(MdTasksError):
    """The task file did not parse cleanly."""

    def __init__(self, path: Path, errors: list[str]) -> None:
        self.path = path
        self.errors = errors
        super().__init__(f"{path} has {len(errors)} validation error(s)")


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Log known failures and exit with status 1."""
    try:
        yield
    except InvalidTaskFileError as exc:
        _report_invalid(exc)
        sys.exit(1)
    except (MdTasksError, OSError, ValueError) as exc:
        glog.error(str(exc))
        sys.exit(1)


def _report_invalid(exc: InvalidTaskFileError) -> None:
    glog.error_list("Task file has validation errors:", exc.errors)


def _file_option(fn):
    return click.option(
        "-f", "--file", "task_file", default="",
        help="Task file (default: $MDTASKS_FILE or tasks.md)",
    )(fn)


def _config(ctx: click.Context, task_file: str, **overrides) -> Config:
    verbose = bool(ctx.obj.verbose) if isinstance(ctx.obj, Config) else False
    return Config(task_file=task_file, verbose=verbose, **overrides)


def _load_manager(cfg: Config) -> TaskManager:
    result = parse_file(cfg.task_path, strict=cfg.strict)
    if not result.is_valid:
        raise InvalidTaskFileError(cfg.task_path, result.errors)
    return TaskManager(result.tasks)


def _require_task(manager: TaskManager, task_id: str) -> Task:
    task = manager.get_task(task_id)
    if task is None:
        glog.error(f"Task {task_id} not found")
        sys.exit(1)
    return task


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _parse_item_ref(raw: str) -> int | str:
    """``"2"`` → index 1 (CLI indexes are 1-based); anything else is a text query."""
    if raw.isdigit():
        return int(raw) - 1
    return raw


# ── Main group ───────────────────────────────────────────────────────


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "--version", prog_name="mdtasks")
@click.option("--verbose", "-v", is_flag=True, help="Verbose debug output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """MDTASKS — use a markdown file as a task database.

    \b
    EXAMPLES:
      mdtasks parse --strict
      mdtasks list -s incomplete -t backend
      mdtasks check 1.0 2
      mdtasks export html report.html
    """
    glog.set_verbose(verbose)
    ctx.obj = Config(verbose=verbose)


# ── Read commands ────────────────────────────────────────────────────


@main.command("parse")
@_file_option
@click.option("--strict", is_flag=True, help="Require at least one validation criterion per task")
@click.pass_context
def parse_cmd(ctx: click.Context, task_file: str, strict: bool) -> None:
    """Validate the format of the task file."""
    cfg = _config(ctx, task_file, strict=strict)
    with _reported_errors():
        glog.info(f"Parsing {cfg.task_file}...")
        result = parse_file(cfg.task_path, strict=cfg.strict)
        if not result.is_valid:
            raise InvalidTaskFileError(cfg.task_path, result.errors)
    glog.success("Task file is valid")
    glog.console.print(f"Found {len(result.tasks)} tasks")


@main.command("list")
@_file_option
@click.option(
    "--status", "-s", default="all",
    type=click.Choice(["complete", "incomplete", "all"]),
    help="Filter by status",
)
@click.option("--topic", "-t", default="", help="Filter by main topic (substring)")
@click.option(
    "--format", "fmt", default="table",
    type=click.Choice(["table", "json", "minimal"]),
    help="Output format",
)
@click.pass_context
def list_cmd(ctx: click.Context, task_file: str, status: str, topic: str, fmt: str) -> None:
    """Display tasks with their status."""
    cfg = _config(ctx, task_file)
    with _reported_errors():
        manager = _load_manager(cfg)
        tasks = manager.filter(status=status, topic=topic or None)

    if fmt == "json":
        click.echo(json.dumps([t.to_dict() for t in tasks], indent=2))
        return

    if fmt == "minimal":
        for t in tasks:
            glog.console.print(f"{glog.mark(t.completed)} {escape(t.id)}: {escape(t.title)}")
        return

    table = Table("ID", "Title", "Status", "Topic", "Progress", header_style="label")
    for t in tasks:
        table.add_row(
            escape(t.id),
            escape(_truncate(t.title, 40)),
            glog.status_label(t.completed),
            escape(_truncate(t.main_topic, 20)),
            f"{t.progress}%",
        )
    glog.console.print(table)


@main.command("get")
@click.argument("task_id")
@_file_option
@click.pass_context
def get_cmd(ctx: click.Context, task_id: str, task_file: str) -> None:
    """Show details of a single task."""
    cfg = _config(ctx, task_file)
    with _reported_errors():
        manager = _load_manager(cfg)
    task = _require_task(manager, task_id)
    out = glog.console

    done = sum(1 for s in task.subtasks if s.completed)
    out.print(f"\n[heading]Task {escape(task.id)}: {escape(task.title)}[/heading]\n")
    out.print(f"[label]Topic:[/label] {escape(task.main_topic)}")
    out.print(f"[label]Status:[/label] {glog.status_label(task.completed)}")
    out.print(f"[label]Progress:[/label] {task.progress}% ({done}/{len(task.subtasks)} subtasks)")
    if task.validation:
        checked = sum(1 for v in task.validation if v.completed)
        out.print(
            f"[label]Validation:[/label] {task.validation_progress}% "
            f"({checked}/{len(task.validation)} criteria)"
        )

    out.print("\n[label]Description:[/label]")
    out.print(escape(task.description))

    out.print("\n[label]Subtasks:[/label]")
    for n, item in enumerate(task.subtasks, 1):
        out.print(f"  {n}. {glog.mark(item.completed)} {escape(item.text)}")

    if task.validation:
        out.print("\n[label]Validation Criteria:[/label]")
        for n, item in enumerate(task.validation, 1):
            out.print(f"  {n}. {glog.mark(item.completed)} {escape(item.text)}")

    if task.dependency_ids:
        out.print(f"\n[label]Dependencies:[/label] {escape(', '.join(task.dependency_ids))}")


@main.command("status")
@_file_option
@click.pass_context
def status_cmd(ctx: click.Context, task_file: str) -> None:
    """Show task statistics and overall progress."""
    cfg = _config(ctx, task_file)
    with _reported_errors():
        _show_status(cfg)


def _show_status(cfg: Config) -> None:
    stats = _load_manager(cfg).get_statistics()
    out = glog.console

    out.print("\n[heading]Task Statistics[/heading]\n")
    out.print(f"[label]Total Tasks:[/label] {stats.total}")
    out.print(f"[success]Completed:[/success] {stats.completed} ({stats.completion_rate}%)")
    incomplete_rate = 100 - stats.completion_rate if stats.total else 0
    out.print(f"[warn]Incomplete:[/warn] {stats.incomplete} ({incomplete_rate}%)")

    if stats.topics:
        out.print("\n[heading]By Topic[/heading]\n")
        for name, topic in stats.topics.items():
            out.print(
                f"[label]{escape(name)}[/label]: {topic.completed}/{topic.total} "
                f"({topic.completion_rate}%)"
            )


@main.command("deps")
@click.argument("task_id")
@click.option("--reverse", is_flag=True, help="Show tasks that depend on this task")
@click.option("--tree", "as_tree", is_flag=True, help="Display the full dependency tree")
@_file_option
@click.pass_context
def deps_cmd(ctx: click.Context, task_id: str, reverse: bool, as_tree: bool, task_file: str) -> None:
    """Show dependencies of a task."""
    cfg = _config(ctx, task_file)
    with _reported_errors():
        manager = _load_manager(cfg)
    _require_task(manager, task_id)
    out = glog.console

    if reverse:
        dependents = manager.get_dependents(task_id)
        out.print(f"\n[heading]Tasks that depend on {escape(task_id)}:[/heading]\n")
        if not dependents:
            out.print("[dim]No tasks depend on this task[/dim]")
        for t in dependents:
            out.print(f"  • {escape(t.id)}: {escape(t.title)}")
        return

    if as_tree:
        root = manager.get_dependency_tree(task_id)
        assert root is not None
        out.print(f"\n[heading]Dependency tree for {escape(task_id)}:[/heading]\n")
        out.print(_build_tree(root))
        return

    deps = manager.get_dependencies(task_id) or []
    out.print(f"\n[heading]Dependencies for {escape(task_id)}:[/heading]\n")
    if not deps:
        out.print("[dim]No dependencies[/dim]")
    for t in deps:
        out.print(f"  {glog.mark(t.completed)} {escape(t.id)}: {escape(t.title)}")


def _tree_label(node: DependencyNode) -> str:
    label = f"{glog.mark(node.task.completed)} {escape(node.task.id)}: {escape(node.task.title)}"
    if node.circular:
        label += " [error](circular)[/error]"
    return label


def _build_tree(node: DependencyNode, parent: Tree | None = None) -> Tree:
    branch = Tree(_tree_label(node)) if parent is None else parent.add(_tree_label(node))
    for child in node.dependencies:
        _build_tree(child, branch)
    return branch


@main.command("lint")
@_file_option
@click.option("--strict", is_flag=True, help="Require at least one validation criterion per task")
@click.pass_context
def lint_cmd(ctx: click.Context, task_file: str, strict: bool) -> None:
    """Validate the task file and its dependency graph."""
    cfg = _config(ctx, task_file, strict=strict)
    with _reported_errors():
        manager = _load_manager(cfg)
    problems = manager.validate_dependencies()
    if problems:
        glog.error_list("Dependency errors:", problems)
        sys.exit(1)
    glog.success(f"{len(manager.tasks)} tasks, dependencies OK")


# ── Write commands ───────────────────────────────────────────────────


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise click.BadParameter("a value is required")
    return value


def _task_id_value(value: str) -> str:
    value = value.strip()
    if not is_valid_task_id(value):
        raise click.BadParameter(
            "Task ID must follow semantic versioning pattern (e.g., 1.0, 2.1, 3.14)"
        )
    return value


def _split_items(raw: str) -> list[ChecklistItem]:
    return [ChecklistItem(text=part.strip()) for part in raw.split(",") if part.strip()]


@main.command("create")
@_file_option
@click.pass_context
def create_cmd(ctx: click.Context, task_file: str) -> None:
    """Create a new task interactively and append it to the file."""
    cfg = _config(ctx, task_file)
    glog.console.print("\n[heading]Create New Task[/heading]\n")

    task_id = click.prompt("Task ID (e.g., 1.0, 2.1)", value_proc=_task_id_value)
    title = click.prompt("Task title", value_proc=_required_text)
    topic = click.prompt("Main topic", value_proc=_required_text)
    description = click.prompt("Description", value_proc=_required_text)
    subtasks = click.prompt("Subtasks (comma-separated)", value_proc=_required_text)
    required = click.prompt("Required tasks (comma-separated, or None)", default="None")
    validation = click.prompt(
        "Validation criteria (comma-separated, optional)", default="", show_default=False
    )

    task = Task(
        id=task_id,
        title=title,
        main_topic=topic,
        description=description,
        subtasks=_split_items(subtasks),
        required_tasks=parse_required_tasks(required.strip()) or ["None"],
        validation=_split_items(validation) or [ChecklistItem(text=DEFAULT_VALIDATION)],
    )

    with _reported_errors():
        path = cfg.task_path
        existing = read_text(path) if path.is_file() else ""
        if not existing:
            sep = ""
        elif existing.endswith("\n"):
            sep = "\n"
        else:
            sep = "\n\n"
        append_text(path, f"{sep}{render_task(task)}\n")

    glog.success(f"Task {task_id} created in {cfg.task_file}")


@main.command("update")
@click.argument("task_id")
@click.argument("status", type=click.Choice(["complete", "incomplete"], case_sensitive=False))
@_file_option
@click.pass_context
def update_cmd(ctx: click.Context, task_id: str, status: str, task_file: str) -> None:
    """Mark a task complete or incomplete in the file."""
    cfg = _config(ctx, task_file)
    completed = status.lower() == "complete"
    with _reported_errors():
        manager = _load_manager(cfg)
        _require_task(manager, task_id)
        MarkdownUpdater(cfg.task_path).update_task(task_id, completed=completed)
    glog.success(f"Task {task_id} marked as {'complete' if completed else 'incomplete'}")


@main.command("check")
@click.argument("task_id")
@click.argument("subtask")
@_file_option
@click.pass_context
def check_cmd(ctx: click.Context, task_id: str, subtask: str, task_file: str) -> None:
    """Toggle a subtask by 1-based index or partial text."""
    cfg = _config(ctx, task_file)
    ref = _parse_item_ref(subtask)
    with _reported_errors():
        manager = _load_manager(cfg)
        _require_task(manager, task_id)
        done = MarkdownUpdater(cfg.task_path).toggle_subtask(task_id, ref)
    label = f"Subtask {ref + 1}" if isinstance(ref, int) else f'Subtask "{ref}"'
    glog.success(f"{label} of task {task_id} marked as {'complete' if done else 'incomplete'}")


@main.command("validate")
@click.argument("task_id")
@click.argument("criterion", required=False)
@click.option("--all", "check_all", is_flag=True, help="Mark all validation criteria complete")
@_file_option
@click.pass_context
def validate_cmd(
    ctx: click.Context, task_id: str, criterion: str | None, check_all: bool, task_file: str
) -> None:
    """Toggle a validation criterion by 1-based index or partial text."""
    cfg = _config(ctx, task_file)
    if not check_all and criterion is None:
        raise click.UsageError("Give a criterion index or text, or use --all.")

    with _reported_errors():
        manager = _load_manager(cfg)
    task = _require_task(manager, task_id)
    if not task.validation:
        glog.error(f"Task {task_id} has no validation criteria")
        sys.exit(1)

    updater = MarkdownUpdater(cfg.task_path)
    if check_all:
        items = [ChecklistItem(text=v.text, completed=True) for v in task.validation]
        with _reported_errors():
            updater.update_task(task_id, validation=items)
        glog.success(f"All validation criteria for task {task_id} marked as complete")
        return

    ref = _parse_item_ref(criterion)
    with _reported_errors():
        done = updater.toggle_validation(task_id, ref)
    label = f"Validation criterion {ref + 1}" if isinstance(ref, int) else f'Validation criterion "{ref}"'
    glog.success(f"{label} of task {task_id} marked as {'complete' if done else 'incomplete'}")


# ── Export / watch ───────────────────────────────────────────────────


@main.command("export")
@click.argument("fmt", metavar="FORMAT", type=click.Choice(EXPORT_FORMATS, case_sensitive=False))
@click.argument("output", required=False)
@_file_option
@click.pass_context
def export_cmd(ctx: click.Context, fmt: str, output: str | None, task_file: str) -> None:
    """Export tasks as json, csv or html (to OUTPUT or stdout)."""
    cfg = _config(ctx, task_file)
    with _reported_errors():
        manager = _load_manager(cfg)
        match fmt.lower():
            case "json":
                data = json.dumps(manager.export_json(), indent=2)
            case "csv":
                data = manager.export_csv()
            case _:
                data = manager.export_html()

        if output:
            write_text(output, data)
            glog.success(f"Exported to {output}")
        else:
            click.echo(data)


@main.command("watch")
@click.option("--command", "-c", "command", default="", help="Shell command to run on change")
@click.option("--interval", type=float, default=1.0, show_default=True, help="Polling interval in seconds")
@_file_option
@click.pass_context
def watch_cmd(ctx: click.Context, command: str, interval: float, task_file: str) -> None:
    """Watch the task file and show status (or run a command) on every change."""
    from mdtasks.watch import run_shell_command, watch_file

    with _reported_errors():
        cfg = _config(ctx, task_file, watch_interval=interval, watch_command=command)

    def on_change() -> None:
        glog.warn(f"{cfg.task_file} changed, reloading...")
        if cfg.watch_command:
            code = run_shell_command(cfg.watch_command)
            glog.console.print(f"[dim]Command exited with code {code}[/dim]")
            return
        try:
            _show_status(cfg)
        except InvalidTaskFileError as exc:
            _report_invalid(exc)
        except (MdTasksError, OSError) as exc:
            glog.error(str(exc))

    glog.info(f"Watching {cfg.task_file} for changes... (Ctrl+C to stop)")
    try:
        watch_file(cfg.task_path, on_change, interval=cfg.watch_interval)
    except KeyboardInterrupt:
        glog.info("Stopped watching")


if __name__ == "__main__":
    main()
