"""Poll a task file and react when it changes."""

from __future__ import annotations

import subprocess
import time
from collections.abc import Callable
from pathlib import Path

from mdtasks import log

Signature = tuple[int, int] | None


def file_signature(path: Path) -> Signature:
    """``(mtime_ns, size)`` of *path*, or ``None`` while it does not exist."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return None
    return (st.st_mtime_ns, st.st_size)


def watch_file(
    path: Path,
    on_change: Callable[[], None],
    *,
    interval: float = 1.0,
    max_polls: int | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Call *on_change* each time the signature of *path* changes.

    Runs until interrupted, or for *max_polls* polls when given. Returns the
    number of changes seen.
    """
    last = file_signature(path)
    polls = 0
    changes = 0
    while max_polls is None or polls < max_polls:
        sleep(interval)
        polls += 1
        current = file_signature(path)
        if current == last:
            continue
        last = current
        changes += 1
        log.debug(f"{path} changed (signature {current})")
        on_change()
    return changes


def run_shell_command(command: str, cwd: Path | None = None) -> int:
    """Run *command* through the shell with inherited stdio; return its exit code."""
    result = subprocess.run(command, shell=True, cwd=cwd)
    return result.returncode
