"""Interactive, keyboard-driven configuration selector."""

from enum import Enum
from typing import Callable, Optional

from loguru import logger
from rich.console import Console
from rich.text import Text

from codust.config import ConfigKind, EntryList
from codust.errors import EmptySelectionError, SwitcherError
from codust.terminal import Key, alternate_screen, is_interactive, on_resize, raw_mode, read_key

HEADER = "Claude Code Configuration Selector"
KEY_HINT = "Use Up/Down to navigate, Enter to select, Esc/q to quit"
CURSOR_MARKER = "❯ "
ROW_PADDING = " " * len(CURSOR_MARKER)


class SelectorStatus(Enum):
    RUNNING = "running"
    SELECTED = "selected"
    CANCELLED = "cancelled"


class SelectorState:
    """Cursor position and outcome of one selection session."""

    def __init__(self, entries: EntryList):
        if not len(entries):
            raise EmptySelectionError()
        self.entries = entries
        self.cursor = 0
        self.status = SelectorStatus.RUNNING

    @property
    def terminated(self) -> bool:
        return self.status is not SelectorStatus.RUNNING

    @property
    def selected_index(self) -> Optional[int]:
        if self.status is SelectorStatus.SELECTED:
            return self.cursor
        return None

    def handle(self, key: Key) -> SelectorStatus:
        """Apply one key press and return the resulting status."""
        if self.terminated:
            return self.status
        count = len(self.entries)
        if key is Key.UP:
            self.cursor = (self.cursor - 1 + count) % count
        elif key is Key.DOWN:
            self.cursor = (self.cursor + 1) % count
        elif key is Key.ENTER:
            self.status = SelectorStatus.SELECTED
        elif key in (Key.ESCAPE, Key.QUIT):
            self.status = SelectorStatus.CANCELLED
        return self.status


def build_view(state: SelectorState) -> Text:
    """Render the header, key hint and one row per entry."""
    view = Text()
    view.append(HEADER + "\n", style="bold")
    view.append(KEY_HINT + "\n", style="dim")
    view.append("\n")
    for index, (entry, row) in enumerate(zip(state.entries, state.entries.rows())):
        style = "cyan" if entry.kind is ConfigKind.ROUTER else None
        if index == state.cursor:
            view.append(CURSOR_MARKER + row + "\n", style="bold green")
        else:
            view.append(ROW_PADDING + row + "\n", style=style)
    return view


def run_selector(
    state: SelectorState,
    read: Callable[[], Key],
    render: Callable[[SelectorState], None],
) -> Optional[int]:
    """Drive ``state`` until selection or cancellation.

    Blocks only in ``read``. Returns the selected index, or None if cancelled.
    """
    while not state.terminated:
        render(state)
        state.handle(read())
    logger.debug(f"Selector finished: {state.status.value}")
    return state.selected_index


class SelectorScreen:
    """Draws the selector, folding resize redraws into the frame in progress.

    A resize signal can arrive while a frame is being printed; redrawing from
    the signal handler would interleave two Rich prints. Such a request only
    marks the frame stale and the running draw repeats once it finishes.
    """

    def __init__(self, console: Console, state: SelectorState):
        self.console = console
        self.state = state
        self.drawing = False
        self.stale = False

    def render(self, state: SelectorState) -> None:
        self.drawing = True
        try:
            while True:
                self.stale = False
                self.console.clear()
                self.console.print(build_view(state), end="")
                if not self.stale:
                    break
        finally:
            self.drawing = False

    def resized(self) -> None:
        if self.drawing:
            self.stale = True
        else:
            self.render(self.state)


def select_entry(entries: EntryList, console: Console) -> Optional[int]:
    """Let the user pick an entry on the terminal.

    Raises:
        EmptySelectionError: If there is nothing to select; the terminal is
            left untouched in that case.
        SwitcherError: If stdin is not a terminal.
    """
    state = SelectorState(entries)
    if not is_interactive():
        raise SwitcherError("The configuration selector needs an interactive terminal.")

    screen = SelectorScreen(console, state)
    with raw_mode(), alternate_screen(console), on_resize(screen.resized):
        return run_selector(state, read_key, screen.render)
