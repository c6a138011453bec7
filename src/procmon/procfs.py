"""Raw access to the kernel process registry exposed under /proc."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ROOT = Path("/proc")


@dataclass(slots=True, frozen=True)
class StatRecord:
    """The fields of /proc/<pid>/stat that procmon consumes."""

    pid: int
    name: str
    utime: int
    stime: int


@dataclass(slots=True, frozen=True)
class StatusRecord:
    """The fields of /proc/<pid>/status that procmon consumes."""

    uid: int | None
    vm_rss_kb: int | None


def parse_stat(text: str) -> StatRecord:
    """
    Parse a /proc/<pid>/stat record.

    The command name sits between the first '(' and the last ')', and may
    itself contain spaces and parentheses, so fields are only tokenized after
    the closing paren.

    Raises:
        ValueError: If the pid or the tick fields cannot be read.
    """
    lparen = text.find("(")
    rparen = text.rfind(")")
    if lparen != -1 and rparen > lparen:
        pid_text = text[:lparen]
        name = text[lparen + 1 : rparen]
        rest = text[rparen + 1 :].split()
    else:
        tokens = text.split()
        pid_text = tokens[0] if tokens else ""
        name = "?"
        rest = tokens[2:]

    pid = int(pid_text.strip())
    if len(rest) < 13:
        raise ValueError(f"truncated stat record for pid {pid}")
    # rest[0] is field 3 (state); utime and stime are fields 14 and 15.
    return StatRecord(pid=pid, name=name, utime=int(rest[11]), stime=int(rest[12]))


def parse_status(text: str) -> StatusRecord:
    """Pull the real uid and VmRSS (kB) out of a /proc/<pid>/status document."""
    uid = None
    vm_rss_kb = None
    for line in text.splitlines():
        key, _, value = line.partition(":")
        if key == "Uid":
            fields = value.split()
            if fields:
                uid = int(fields[0])
        elif key == "VmRSS":
            fields = value.split()
            if fields:
                vm_rss_kb = int(fields[0])
    return StatusRecord(uid=uid, vm_rss_kb=vm_rss_kb)


class ProcFS:
    """
    Reader for a proc filesystem tree.

    Every method reads straight from disk and lets OSError / ValueError
    propagate; deciding what a failed read means is up to the caller.
    """

    def __init__(self, root: Path | str = DEFAULT_ROOT) -> None:
        """
        Initialize the ProcFS reader.

        Args:
            root: Mount point of the proc filesystem. Tests point this at a
                fake tree.
        """
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """Get the proc root."""
        return self._root

    def pids(self) -> list[int]:
        """List the numeric entries of the proc root."""
        with os.scandir(self._root) as entries:
            return [int(entry.name) for entry in entries if entry.name.isdigit()]

    def read_cpu_line(self) -> str:
        """Return the aggregate 'cpu' line of /proc/stat."""
        with open(self._root / "stat", encoding="ascii") as f:
            return f.readline()

    def read_stat(self, pid: int) -> StatRecord:
        return parse_stat(self._read_text(pid, "stat"))

    def read_status(self, pid: int) -> StatusRecord:
        return parse_status(self._read_text(pid, "status"))

    def read_statm_resident_pages(self, pid: int) -> int:
        """Return the resident page count (second field) of /proc/<pid>/statm."""
        fields = self._read_text(pid, "statm").split()
        return int(fields[1])

    def dir_owner(self, pid: int) -> int:
        """Return the uid owning the /proc/<pid> directory entry."""
        return (self._root / str(pid)).stat().st_uid

    def _read_text(self, pid: int, name: str) -> str:
        # Command names are arbitrary bytes; never let decoding fail the read.
        with open(self._root / str(pid) / name, encoding="utf-8", errors="replace") as f:
            return f.read()


def page_size() -> int:
    """System page size in bytes."""
    return os.sysconf("SC_PAGE_SIZE")
