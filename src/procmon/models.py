"""Data models for procmon."""

from dataclasses import dataclass
from enum import Enum


class SortMode(Enum):
    """Sort modes for the process table."""

    CPU = "cpu"
    MEM = "mem"
    PID = "pid"


@dataclass(slots=True, frozen=True)
class SystemCounterSample:
    """Aggregate CPU tick counters since boot."""

    total_ticks: int  # user + nice + system + idle + iowait + irq + softirq + steal
    idle_ticks: int  # idle + iowait

    @property
    def is_zero(self) -> bool:
        """True for the placeholder sample returned when /proc/stat is unusable."""
        return self.total_ticks == 0 and self.idle_ticks == 0


@dataclass(slots=True)
class ProcessSample:
    """
    One process as seen during a sampling pass.

    Captured fields never change after the read; only the derived
    percentages are filled in later.
    """

    pid: int
    owner: str
    display_name: str
    cpu_ticks: int  # utime + stime
    resident_memory_kb: int
    cpu_percent: float = 0.0
    mem_percent: float = 0.0


ProcessTable = list[ProcessSample]


@dataclass(slots=True, frozen=True)
class MemoryInfo:
    """Installed and free physical memory."""

    total_kb: int
    free_kb: int

    @property
    def used_kb(self) -> int:
        return max(0, self.total_kb - self.free_kb)


@dataclass(slots=True)
class Frame:
    """Everything one refresh cycle puts on screen."""

    busy_percent: float
    memory: MemoryInfo
    processes: ProcessTable
    refresh_interval: float
    sort_mode: SortMode
