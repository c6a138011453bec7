"""Tests for the procmon Textual application and entry point."""

import pytest
from textual.widgets import Input

from procmon.app import ProcessList, ProcmonApp, SummaryBar, main
from procmon.controller import Controller
from procmon.models import MemoryInfo, SortMode


def fixed_memory() -> MemoryInfo:
    return MemoryInfo(total_kb=10_000, free_kb=4_000)


@pytest.fixture
def controller(fake_proc, procfs) -> Controller:
    fake_proc.add_process(30, name="gamma", rss_kb=900)
    fake_proc.add_process(10, name="alpha", rss_kb=100)
    fake_proc.add_process(20, name="beta", rss_kb=500)
    return Controller(
        procfs=procfs,
        refresh_interval=60.0,
        max_rows=2,
        terminator=lambda pid: False,
        memory_reader=fixed_memory,
    )


@pytest.mark.asyncio
async def test_app_creation(controller):
    """Test ProcmonApp can be instantiated."""
    app = ProcmonApp(controller)
    assert app.title == "procmon"
    assert app.sub_title == "Live process monitor"
    assert app.controller is controller


@pytest.mark.asyncio
async def test_app_compose(controller):
    """Test ProcmonApp composes correctly."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        assert pilot.app.query_one("#summary") is not None
        assert pilot.app.query_one("#process-table") is not None
        assert pilot.app.query_one("#command", Input) is not None


@pytest.mark.asyncio
async def test_app_shows_first_frame(controller):
    """Test the first sample is shown on mount, capped at max_rows."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        process_list = pilot.app.query_one(ProcessList)
        # All CPU% are 0 on the first cycle, so the pid tiebreak decides.
        assert process_list.current_pids == [10, 20]


@pytest.mark.asyncio
async def test_sort_command(controller):
    """Test typing a sort command reorders the table."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        await pilot.press("s", "space", "m", "e", "m", "enter")
        await pilot.pause()

        assert controller.sort_mode is SortMode.MEM
        assert pilot.app.query_one(ProcessList).current_pids == [30, 20]
        assert pilot.app.query_one("#command", Input).value == ""


@pytest.mark.asyncio
async def test_unknown_sort_mode_keeps_mode(controller):
    """Test a bad sort mode leaves the mode unchanged and keeps running."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        await pilot.press(*"s", "space", *"banana", "enter")
        await pilot.pause()

        assert controller.sort_mode is SortMode.CPU
        assert pilot.app.is_running


@pytest.mark.asyncio
async def test_quit_command(controller):
    """Test typing q exits the app."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        await pilot.press("q", "enter")
        await pilot.pause()
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_quit_binding(controller):
    """Test that ctrl+q triggers quit."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        await pilot.press("ctrl+q")
        assert pilot.app._exit


@pytest.mark.asyncio
async def test_summary_bar_update(controller):
    """Test the summary bar can be refreshed from a frame."""
    app = ProcmonApp(controller)
    async with app.run_test() as pilot:
        pilot.app.refresh_frame()
        assert pilot.app.query_one("#summary", SummaryBar) is not None
        assert pilot.app.query_one(ProcessList).current_pids == [10, 20]


def test_main_console(monkeypatch):
    """Test main runs the console loop by default."""
    calls = []
    monkeypatch.setattr(Controller, "run", lambda self: calls.append("console"))
    main([])
    assert calls == ["console"]


def test_main_tui(monkeypatch):
    """Test --tui starts the Textual app."""
    calls = []
    monkeypatch.setattr(ProcmonApp, "run", lambda self: calls.append("tui"))
    main(["--tui"])
    assert calls == ["tui"]
