"""CPU utilization derived from two generations of tick counters."""

from procmon.models import ProcessTable, SystemCounterSample


def tick_delta(previous: SystemCounterSample, current: SystemCounterSample) -> tuple[int, int]:
    """
    Return (total_delta, idle_delta) between two system samples.

    Either delta is 0 when its counter went backwards, which happens when one
    of the samples is the zero placeholder.
    """
    total = max(0, current.total_ticks - previous.total_ticks)
    idle = max(0, current.idle_ticks - previous.idle_ticks)
    return total, idle


def system_busy_percent(previous: SystemCounterSample, current: SystemCounterSample) -> float:
    """Percentage of the interval the CPUs spent outside idle and iowait."""
    total, idle = tick_delta(previous, current)
    if total == 0:
        return 0.0
    return 100.0 * max(0, total - idle) / total


def compute_cpu_percents(
    current: ProcessTable,
    previous: ProcessTable,
    system_tick_delta: int,
) -> None:
    """
    Fill in cpu_percent for every process of the current generation.

    Process and system counters are both kernel clock ticks, so a process's
    share of the interval is its tick delta over the system-wide delta,
    summed across all CPUs.

    A pid missing from the previous generation is measured against a zero
    baseline: its whole accumulated history counts for this one cycle and is
    corrected on the next. A tick count that went backwards means the pid was
    reused and is treated as no progress.
    """
    baseline = {proc.pid: proc.cpu_ticks for proc in previous}

    for proc in current:
        delta = max(0, proc.cpu_ticks - baseline.get(proc.pid, 0))
        if system_tick_delta > 0:
            proc.cpu_percent = 100.0 * delta / system_tick_delta
        else:
            proc.cpu_percent = 0.0
