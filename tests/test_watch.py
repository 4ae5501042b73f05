"""Tests for mdtasks.watch — polling file watcher."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from mdtasks.io_utils import write_text
from mdtasks.watch import file_signature, run_shell_command, watch_file


def _touch_with(path: Path, text: str, bump: int) -> None:
    write_text(path, text)
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + bump * 1_000_000_000))


class TestFileSignature:
    def test_missing_file(self, tmp_path):
        assert file_signature(tmp_path / "none.md") is None

    def test_changes_with_content(self, tmp_path):
        path = tmp_path / "t.md"
        write_text(path, "a")
        first = file_signature(path)
        _touch_with(path, "abc", 5)
        assert file_signature(path) != first


class TestWatchFile:
    def test_no_change_no_callback(self, tmp_path):
        path = tmp_path / "t.md"
        write_text(path, "x")
        calls: list[int] = []
        changes = watch_file(path, lambda: calls.append(1), max_polls=3, sleep=lambda _s: None)
        assert changes == 0
        assert calls == []

    def test_each_change_fires_once(self, tmp_path):
        path = tmp_path / "t.md"
        write_text(path, "x")
        calls: list[int] = []
        ticks = iter(range(1, 10))

        def fake_sleep(_interval: float) -> None:
            n = next(ticks)
            if n in (1, 3):
                _touch_with(path, "x" * (n + 1), n)

        changes = watch_file(path, lambda: calls.append(1), max_polls=4, sleep=fake_sleep)
        assert changes == 2
        assert len(calls) == 2

    def test_creation_counts_as_change(self, tmp_path):
        path = tmp_path / "late.md"
        calls: list[int] = []
        changes = watch_file(
            path,
            lambda: calls.append(1),
            max_polls=1,
            sleep=lambda _s: write_text(path, "now"),
        )
        assert changes == 1

    def test_interval_passed_to_sleep(self, tmp_path):
        path = tmp_path / "t.md"
        write_text(path, "x")
        seen: list[float] = []
        watch_file(path, lambda: None, interval=0.25, max_polls=2, sleep=seen.append)
        assert seen == [0.25, 0.25]


def test_run_shell_command_exit_code(tmp_path):
    cmd = f'"{sys.executable}" -c "import sys; sys.exit(3)"'
    assert run_shell_command(cmd, cwd=tmp_path) == 3
