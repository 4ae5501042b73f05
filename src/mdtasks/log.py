"""Console output for mdtasks, styled with a small Rich theme.

Status messages go through ``info``/``success``/``warn``; failures go to
stderr through ``error`` and ``error_list``. Core modules only call ``debug``,
which prints nothing unless verbose mode is on. Every message is
markup-escaped, so task text containing ``[brackets]`` prints literally.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

THEME = Theme({
    "info": "blue",
    "success": "green",
    "warn": "yellow",
    "error": "red",
    "debug": "dim",
    "done": "green",
    "pending": "red",
    "label": "cyan",
    "heading": "bold blue",
})

console = Console(theme=THEME, highlight=False)
_err_console = Console(theme=THEME, highlight=False, stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def info(msg: str) -> None:
    console.print(f"[info]\\[INFO][/info] {escape(msg)}")


def success(msg: str) -> None:
    console.print(f"[success]\\[OK][/success] {escape(msg)}")


def warn(msg: str) -> None:
    console.print(f"[warn]\\[WARN][/warn] {escape(msg)}")


def error(msg: str) -> None:
    _err_console.print(f"[error]\\[ERROR][/error] {escape(msg)}")


def error_list(header: str, items: Iterable[str]) -> None:
    """Report *header* followed by one bullet per item, all on stderr."""
    error(header)
    for item in items:
        _err_console.print(f"  [error]•[/error] {escape(item)}")


def debug(msg: str) -> None:
    if _verbose:
        console.print(f"[debug]\\[DEBUG] {escape(msg)}[/debug]")


# ── Task markup ──────────────────────────────────────────────────────


def mark(completed: bool) -> str:
    """Markup for a checked/unchecked item."""
    return "[done]✓[/done]" if completed else "[pending]○[/pending]"


def status_label(completed: bool) -> str:
    return "[done]Complete[/done]" if completed else "[warn]Incomplete[/warn]"
