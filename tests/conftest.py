"""Shared fixtures: a fake /proc tree built under tmp_path."""

from pathlib import Path

import pytest

from procmon.procfs import ProcFS

CPU_LINE = "cpu  1000 0 200 800 0 0 0 0 0 0\n"


def stat_line(pid: int, name: str, utime: int, stime: int) -> str:
    """Build a /proc/<pid>/stat record with the given name and tick counts."""
    # fields 3..13: state ppid pgrp session tty_nr tpgid flags minflt cminflt majflt cmajflt
    middle = "S 1 1 1 0 -1 4194560 100 0 0 0"
    tail = "0 0 20 0 1 0 12345 1000000 200"
    return f"{pid} ({name}) {middle} {utime} {stime} {tail}\n"


class FakeProc:
    """Writes a minimal proc filesystem into a directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.set_cpu_line(CPU_LINE)

    def set_cpu_line(self, line: str) -> None:
        (self.root / "stat").write_text(line)

    def add_process(
        self,
        pid: int,
        name: str = "proc",
        utime: int = 0,
        stime: int = 0,
        uid: int | None = 0,
        rss_kb: int | None = 1024,
        statm_pages: int | None = None,
        status: bool = True,
    ) -> Path:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        (proc_dir / "stat").write_text(stat_line(pid, name, utime, stime))
        if status:
            lines = [f"Name:\t{name}"]
            if uid is not None:
                lines.append(f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}")
            if rss_kb is not None:
                lines.append(f"VmRSS:\t{rss_kb:8d} kB")
            (proc_dir / "status").write_text("\n".join(lines) + "\n")
        if statm_pages is not None:
            (proc_dir / "statm").write_text(f"5000 {statm_pages} 300 10 0 400 0\n")
        return proc_dir

    def set_ticks(self, pid: int, utime: int, stime: int, name: str = "proc") -> None:
        (self.root / str(pid) / "stat").write_text(stat_line(pid, name, utime, stime))

    def remove_process(self, pid: int) -> None:
        proc_dir = self.root / str(pid)
        for child in proc_dir.iterdir():
            child.unlink()
        proc_dir.rmdir()


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """An empty fake /proc tree with an aggregate cpu line."""
    return FakeProc(tmp_path)


@pytest.fixture
def procfs(fake_proc: FakeProc) -> ProcFS:
    """A ProcFS reading the fake tree."""
    return ProcFS(fake_proc.root)
