"""Ordering and rendering of a process table."""

from rich import box
from rich.console import Group
from rich.table import Table
from rich.text import Text

from procmon.models import Frame, ProcessSample, ProcessTable, SortMode

COLUMNS = ("PID", "USER", "CPU%", "MEM%", "RSS", "COMMAND")
COMMAND_HINT = "Commands: k <pid>  |  s cpu|mem|pid  |  q"

# Metric keys are negated so every mode sorts ascending with pid as the tiebreaker.
_SORT_KEYS = {
    SortMode.CPU: lambda p: (-p.cpu_percent, p.pid),
    SortMode.MEM: lambda p: (-p.mem_percent, p.pid),
    SortMode.PID: lambda p: p.pid,
}


def sort_processes(processes: ProcessTable, mode: SortMode) -> ProcessTable:
    """Return a new list ordered by the given sort mode."""
    return sorted(processes, key=_SORT_KEYS[mode])


def format_kb(size_kb: int) -> str:
    """Format a kB amount as a human-readable string."""
    size = float(size_kb)
    for unit in ["K", "M", "G", "T"]:
        if size < 1024:
            return f"{int(size):5d}{unit}" if unit == "K" else f"{size:5.1f}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def summary_lines(frame: Frame) -> tuple[str, str]:
    """Header and CPU/memory summary lines for a frame."""
    mem = frame.memory
    return (
        f"procmon  |  refresh: {frame.refresh_interval:g}s  |  procs: {len(frame.processes)}"
        f"  |  sort: {frame.sort_mode.value}",
        f"CPU Load: {frame.busy_percent:.1f}%   "
        f"Mem: {mem.used_kb // 1024}MB/{mem.total_kb // 1024}MB",
    )


def row_cells(proc: ProcessSample) -> tuple[str, ...]:
    """Cell strings for one process, in COLUMNS order."""
    return (
        str(proc.pid),
        proc.owner[:9],
        f"{proc.cpu_percent:5.1f}",
        f"{proc.mem_percent:5.1f}",
        format_kb(proc.resident_memory_kb),
        proc.display_name,
    )


def render_frame(frame: Frame, max_rows: int, message: str | None = None) -> Group:
    """Build the console renderable for a frame: header, top rows and hints."""
    header, summary = summary_lines(frame)

    table = Table(box=box.SIMPLE_HEAD, pad_edge=False, expand=False)
    for column in COLUMNS:
        justify = "left" if column in ("USER", "COMMAND") else "right"
        table.add_column(column, justify=justify, no_wrap=True)
    for proc in frame.processes[:max_rows]:
        table.add_row(*row_cells(proc))

    parts = [Text(header, style="bold"), Text(summary), table, Text(COMMAND_HINT, style="dim")]
    if message:
        parts.append(Text(message, style="yellow"))
    return Group(*parts)
