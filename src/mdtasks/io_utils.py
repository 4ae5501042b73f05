"""Wrappers for task file I/O with consistent encoding (UTF-8)."""

from __future__ import annotations

from io import TextIOWrapper
from pathlib import Path
from typing import Any

PathLike = Path | str


def read_text(path: PathLike, errors: str = "strict") -> str:
    """Read path as text with UTF-8 encoding and universal newlines."""
    p = path if isinstance(path, Path) else Path(path)
    return p.read_text(encoding="utf-8", errors=errors)


def write_text(path: PathLike, text: str) -> None:
    """Write text to path with UTF-8 encoding."""
    p = path if isinstance(path, Path) else Path(path)
    p.write_text(text, encoding="utf-8")


def read_lines_exact(path: PathLike) -> list[str]:
    """Read path and split on ``\\n`` only.

    Line endings are not translated, so a ``\\r`` stays attached to its line
    and ``"\\n".join`` of the result reproduces the file exactly.
    """
    with open_text(path, newline="") as fh:
        return fh.read().split("\n")


def write_lines_exact(path: PathLike, lines: list[str]) -> None:
    """Join *lines* with ``\\n`` and write them back without newline translation."""
    with open_text(path, "w", newline="") as fh:
        fh.write("\n".join(lines))


def append_text(path: PathLike, text: str) -> None:
    """Append *text* to path, creating the file if it does not exist."""
    with open_text(path, "a") as fh:
        fh.write(text)


def open_text(
    path: PathLike,
    mode: str = "r",
    *,
    encoding: str = "utf-8",
    errors: str = "strict",
    **kwargs: Any,
) -> TextIOWrapper:
    """Open path for text I/O with UTF-8 by default."""
    p = path if isinstance(path, Path) else Path(path)
    return open(p, mode, encoding=encoding, errors=errors, **kwargs)
