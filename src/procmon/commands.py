"""Parsing of interactive command lines."""

from dataclasses import dataclass
from enum import Enum

from procmon.models import SortMode


class CommandError(ValueError):
    """A command line that cannot be applied."""


class Action(Enum):
    NOOP = "noop"
    QUIT = "quit"
    SORT = "sort"
    KILL = "kill"


@dataclass(slots=True, frozen=True)
class Command:
    action: Action
    sort_mode: SortMode | None = None
    pid: int | None = None


def parse_command(line: str) -> Command:
    """
    Parse one command line.

    Accepted forms are ``q``/``quit``, ``s cpu|mem|pid`` and ``k <pid>``;
    a blank line is a no-op.

    Raises:
        CommandError: For unknown commands, sort modes and invalid pids.
    """
    tokens = line.split()
    if not tokens:
        return Command(Action.NOOP)

    name, args = tokens[0], tokens[1:]
    if name in ("q", "quit"):
        return Command(Action.QUIT)

    if name == "s":
        mode = args[0] if args else ""
        try:
            return Command(Action.SORT, sort_mode=SortMode(mode))
        except ValueError:
            raise CommandError(f"Unknown sort mode: {mode or '(none)'}") from None

    if name == "k":
        try:
            pid = int(args[0])
        except (IndexError, ValueError):
            pid = 0
        if pid <= 0:
            raise CommandError("Invalid pid")
        return Command(Action.KILL, pid=pid)

    raise CommandError(f"Unknown command: {name}")
