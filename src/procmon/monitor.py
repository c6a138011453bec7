"""Sampling of system and per-process counters for procmon."""

import logging
import pwd

import psutil

from procmon.models import MemoryInfo, ProcessSample, ProcessTable, SystemCounterSample
from procmon.procfs import ProcFS, page_size

logger = logging.getLogger(__name__)

ZERO_SAMPLE = SystemCounterSample(total_ticks=0, idle_ticks=0)

# user, nice, system, idle, iowait, irq, softirq, steal
_CPU_FIELDS = 8


def uid_to_user(uid: int) -> str:
    """Resolve a uid to a user name, falling back to the number itself."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def read_memory() -> MemoryInfo:
    """
    Read installed and free physical memory in kB.

    Returns zero totals when the memory counters cannot be read, which makes
    every mem_percent 0 for that cycle.
    """
    try:
        mem = psutil.virtual_memory()
    except OSError as exc:
        logger.debug("Cannot read memory counters: %s", exc)
        return MemoryInfo(total_kb=0, free_kb=0)
    return MemoryInfo(total_kb=mem.total // 1024, free_kb=mem.free // 1024)


class SystemCounterReader:
    """Reads the aggregate CPU tick counters from /proc/stat."""

    def __init__(self, procfs: ProcFS | None = None) -> None:
        self._procfs = procfs or ProcFS()

    def capture(self) -> SystemCounterSample:
        """
        Capture one snapshot of the aggregate CPU counters.

        Returns ZERO_SAMPLE when the counters cannot be read or parsed, so a
        bad read shows up as a cycle with no usable delta instead of an error.
        """
        try:
            fields = self._procfs.read_cpu_line().split()
            if not fields or fields[0] != "cpu" or len(fields) < _CPU_FIELDS + 1:
                raise ValueError(f"unexpected cpu line: {fields!r}")
            user, nice, system, idle, iowait, irq, softirq, steal = (
                int(value) for value in fields[1 : _CPU_FIELDS + 1]
            )
        except (OSError, ValueError) as exc:
            logger.debug("Cannot read aggregate cpu counters: %s", exc)
            return ZERO_SAMPLE

        return SystemCounterSample(
            total_ticks=user + nice + system + idle + iowait + irq + softirq + steal,
            idle_ticks=idle + iowait,
        )


class ProcessSnapshotReader:
    """
    Reads every visible process from the process registry.

    Processes come and go while the registry is being walked. A process that
    disappears (or becomes unreadable) between enumeration and the detailed
    read is simply left out of the table.
    """

    def __init__(self, procfs: ProcFS | None = None, page_size_bytes: int | None = None) -> None:
        """
        Initialize the ProcessSnapshotReader.

        Args:
            procfs: Process registry to read from. Defaults to /proc.
            page_size_bytes: Page size used to convert statm pages to kB.
                Defaults to the system page size.
        """
        self._procfs = procfs or ProcFS()
        self._page_size = page_size_bytes or page_size()

    def capture_all(self, total_memory_kb: int) -> ProcessTable:
        """Capture a ProcessSample for every process that can be read."""
        try:
            pids = self._procfs.pids()
        except OSError as exc:
            logger.debug("Process registry unavailable: %s", exc)
            return []

        samples = (self.read_process(pid, total_memory_kb) for pid in pids)
        return [sample for sample in samples if sample is not None]

    def read_process(self, pid: int, total_memory_kb: int) -> ProcessSample | None:
        """
        Read one process.

        Returns None when the tick counters cannot be read or the pid is not
        valid; owner and memory are best-effort on top of that.
        """
        try:
            stat = self._procfs.read_stat(pid)
        except (OSError, ValueError, IndexError) as exc:
            logger.debug("Skipping pid %d: %s", pid, exc)
            return None

        if stat.pid <= 0:
            return None

        uid = None
        rss_kb = 0
        try:
            status = self._procfs.read_status(pid)
            uid = status.uid
            rss_kb = status.vm_rss_kb or 0
        except (OSError, ValueError) as exc:
            logger.debug("No status for pid %d: %s", pid, exc)

        if rss_kb == 0:
            rss_kb = self._statm_rss_kb(pid)

        owner = uid_to_user(uid) if uid is not None else self._dir_owner(pid)

        if total_memory_kb > 0:
            mem_percent = 100.0 * rss_kb / total_memory_kb
        else:
            mem_percent = 0.0

        return ProcessSample(
            pid=stat.pid,
            owner=owner,
            display_name=stat.name,
            cpu_ticks=stat.utime + stat.stime,
            resident_memory_kb=rss_kb,
            mem_percent=mem_percent,
        )

    def _statm_rss_kb(self, pid: int) -> int:
        try:
            pages = self._procfs.read_statm_resident_pages(pid)
        except (OSError, ValueError, IndexError):
            return 0
        return pages * self._page_size // 1024

    def _dir_owner(self, pid: int) -> str:
        try:
            return uid_to_user(self._procfs.dir_owner(pid))
        except OSError:
            return "n/a"
