"""Sample/render/command loop for procmon."""

import logging
import sys
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue
from typing import TextIO

from rich.console import Console

from procmon.calculator import compute_cpu_percents, system_busy_percent, tick_delta
from procmon.commands import Action, CommandError, parse_command
from procmon.control import terminate_process
from procmon.models import (
    Frame,
    MemoryInfo,
    ProcessTable,
    SortMode,
    SystemCounterSample,
)
from procmon.monitor import ProcessSnapshotReader, SystemCounterReader, read_memory
from procmon.procfs import ProcFS
from procmon.ranking import render_frame, sort_processes

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = 2.0  # seconds
MAX_ROWS = 40
UNREADABLE_LINE = "<unreadable>"


@dataclass(slots=True, frozen=True)
class CommandResult:
    """Outcome of one command line."""

    message: str | None = None
    quit: bool = False


class CommandReader:
    """
    Reads command lines from a stream on a daemon thread.

    Each line is put on the queue without its trailing newline. A line that
    cannot be decoded is queued as UNREADABLE_LINE so it is reported like any
    unknown command. End of input, or a stream that can no longer be read,
    puts None, which the controller treats as quit.
    """

    def __init__(self, stream: TextIO, commands: "Queue[str | None]") -> None:
        self._stream = stream
        self._queue = commands
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        """Check if the reader thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the reader thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._read_loop,
            daemon=True,
            name="CommandReader",
        )
        self._thread.start()

    def stop(self, timeout: float | None = 0.5) -> None:
        """
        Stop the reader thread.

        A thread blocked in readline() cannot be interrupted; it exits after
        the line it is waiting for, which is then dropped.

        Args:
            timeout: How long to wait for the thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

    def _read_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                line = self._stream.readline()
            except ValueError as exc:
                # UnicodeDecodeError included: keep reading after a bad line.
                logger.debug("Unreadable command line: %s", exc)
                line = UNREADABLE_LINE + "\n"
            except OSError as exc:
                logger.debug("Command stream failed: %s", exc)
                self._queue.put(None)
                return

            if not line:
                self._queue.put(None)
                return
            if self._stop_event.is_set():
                return
            self._queue.put(line.rstrip("\n"))


class Controller:
    """
    Owns the monitor state and drives the refresh cycle.

    State is the current sort mode plus exactly one previous generation of
    system and process counters, replaced on every sample.
    """

    def __init__(
        self,
        procfs: ProcFS | None = None,
        refresh_interval: float = REFRESH_INTERVAL,
        max_rows: int = MAX_ROWS,
        terminator: Callable[[int], bool] = terminate_process,
        memory_reader: Callable[[], MemoryInfo] = read_memory,
        console: Console | None = None,
    ) -> None:
        """
        Initialize the Controller.

        Args:
            procfs: Process registry to sample. Defaults to /proc.
            refresh_interval: Seconds to wait for a command before refreshing.
            max_rows: Maximum number of process rows to render.
            terminator: Called with a pid for ``k <pid>``; returns success.
            memory_reader: Source of installed/free memory.
            console: Console used by run(). Defaults to stdout.
        """
        procfs = procfs or ProcFS()
        self._counter_reader = SystemCounterReader(procfs)
        self._process_reader = ProcessSnapshotReader(procfs)
        self._memory_reader = memory_reader
        self._terminator = terminator
        self._console = console or Console()
        self._refresh_interval = max(0.1, refresh_interval)
        self._max_rows = max_rows
        self._sort_mode = SortMode.CPU
        self._previous_counters: SystemCounterSample | None = None
        self._previous_processes: ProcessTable = []

    @property
    def refresh_interval(self) -> float:
        """Get the refresh interval."""
        return self._refresh_interval

    @refresh_interval.setter
    def refresh_interval(self, value: float) -> None:
        """Set the refresh interval."""
        self._refresh_interval = max(0.1, value)  # Minimum 0.1 seconds

    @property
    def max_rows(self) -> int:
        """Get the maximum number of rendered rows."""
        return self._max_rows

    @property
    def sort_mode(self) -> SortMode:
        """Get the current sort mode."""
        return self._sort_mode

    def sample(self) -> Frame:
        """
        Take a new generation and derive utilization against the previous one.

        The first call, or a call where either generation's system counters
        are the zero placeholder, reports 0% everywhere.
        """
        counters = self._counter_reader.capture()
        memory = self._memory_reader()
        processes = self._process_reader.capture_all(memory.total_kb)

        previous = self._previous_counters
        busy = 0.0
        if previous is not None and not previous.is_zero and not counters.is_zero:
            total_delta, _ = tick_delta(previous, counters)
            compute_cpu_percents(processes, self._previous_processes, total_delta)
            busy = system_busy_percent(previous, counters)

        self._previous_counters = counters
        self._previous_processes = processes

        return Frame(
            busy_percent=busy,
            memory=memory,
            processes=sort_processes(processes, self._sort_mode),
            refresh_interval=self._refresh_interval,
            sort_mode=self._sort_mode,
        )

    def execute(self, line: str) -> CommandResult:
        """Parse and apply one command line."""
        try:
            command = parse_command(line)
        except CommandError as exc:
            return CommandResult(message=str(exc))

        if command.action is Action.QUIT:
            return CommandResult(quit=True)

        if command.action is Action.SORT:
            self._sort_mode = command.sort_mode
            return CommandResult(message=f"Sorting by {command.sort_mode.value}")

        if command.action is Action.KILL:
            logger.info("Terminating pid %d", command.pid)
            if self._terminator(command.pid):
                return CommandResult(message=f"Killed {command.pid}")
            return CommandResult(message=f"Failed to kill {command.pid}")

        return CommandResult()

    def run(self, stream: TextIO | None = None) -> None:
        """
        Run the interactive loop until quit or end of input.

        Each cycle samples, renders, then waits up to one refresh interval for
        a command line; a timeout just starts the next cycle.

        Run once per stream: the reader of a finished run may still be blocked
        on the stream and will swallow one more line.
        """
        commands: Queue[str | None] = Queue()
        reader = CommandReader(stream or sys.stdin, commands)
        reader.start()

        message = None
        try:
            while True:
                self._render(self.sample(), message)
                message = None

                try:
                    line = commands.get(timeout=self._refresh_interval)
                except Empty:
                    continue

                if line is None:
                    break

                result = self.execute(line)
                if result.quit:
                    break
                message = result.message
        finally:
            reader.stop()

        self._console.print("\nExiting procmon.")

    def _render(self, frame: Frame, message: str | None) -> None:
        self._console.clear()
        self._console.print(render_frame(frame, self._max_rows, message))
        self._console.print("Enter command: ", end="")
