"""procmon - Console loop and Textual application."""

import argparse
import logging

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Input, Static

from procmon.controller import Controller
from procmon.models import Frame, ProcessTable
from procmon.ranking import COLUMNS, COMMAND_HINT, row_cells, summary_lines


class SummaryBar(Static):
    """Header widget showing process count, CPU load and memory."""

    DEFAULT_CSS = """
    SummaryBar {
        height: auto;
        min-height: 2;
        padding: 0 1;
        background: $surface;
    }
    """

    def update_frame(self, frame: Frame) -> None:
        """Show the summary of a frame."""
        header, summary = summary_lines(frame)
        self.update(f"[b]{header}[/b]\n{summary}")


class ProcessList(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessList {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessList."""
        super().__init__(*args, **kwargs)
        self._current_pids: list[int] = []

    @property
    def current_pids(self) -> list[int]:
        """Pids currently shown, in display order."""
        return list(self._current_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        for column in COLUMNS:
            table.add_column(column, key=column.lower())

    def update_processes(self, processes: ProcessTable, max_rows: int) -> None:
        """
        Replace the table contents with the given, already sorted, processes.

        Rows are rebuilt each time since a new sort mode reorders every row.
        """
        table = self.query_one("#process-table", DataTable)
        table.clear()
        shown = processes[:max_rows]
        for proc in shown:
            table.add_row(*row_cells(proc), key=str(proc.pid))
        self._current_pids = [proc.pid for proc in shown]


class ProcmonApp(App):
    """Full-screen procmon driven by a Controller."""

    TITLE = "procmon"
    SUB_TITLE = "Live process monitor"
    AUTO_FOCUS = "#command"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary {
        dock: top;
    }

    #command {
        dock: bottom;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, controller: Controller | None = None) -> None:
        """Initialize the ProcmonApp."""
        super().__init__()
        self._controller = controller or Controller()

    @property
    def controller(self) -> Controller:
        """Get the controller driving the app."""
        return self._controller

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield SummaryBar(id="summary")
        yield ProcessList()
        yield Input(placeholder=COMMAND_HINT, id="command")
        yield Footer()

    def on_mount(self) -> None:
        """Take the first sample and schedule the refresh timer."""
        self.refresh_frame()
        self.set_interval(self._controller.refresh_interval, self.refresh_frame)
        self.query_one("#command", Input).focus()

    def refresh_frame(self) -> None:
        """Sample once and show the result."""
        frame = self._controller.sample()
        self.query_one("#summary", SummaryBar).update_frame(frame)
        self.query_one(ProcessList).update_processes(frame.processes, self._controller.max_rows)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Run a command line typed into the command input."""
        event.input.value = ""
        result = self._controller.execute(event.value)
        if result.quit:
            self.exit()
            return
        if result.message:
            self.notify(result.message)
        self.refresh_frame()

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()


def main(argv: list[str] | None = None) -> None:
    """Entry point for procmon."""
    parser = argparse.ArgumentParser(prog="procmon", description="Live process monitor")
    parser.add_argument("--tui", action="store_true", help="use the full-screen Textual interface")
    parser.add_argument("--log-file", help="write debug logging to this file")
    args = parser.parse_args(argv)

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
        )

    controller = Controller()
    if args.tui:
        ProcmonApp(controller).run()
    else:
        controller.run()


if __name__ == "__main__":
    main()
