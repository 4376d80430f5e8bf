"""Helpers for configuring the curses environment."""

from __future__ import annotations

import curses

from .constants import (
    COLOR_PAIR_ACTION,
    COLOR_PAIR_BORDER,
    COLOR_PAIR_COMMAND,
    COLOR_PAIR_DIM,
    COLOR_PAIR_FAILURE,
    COLOR_PAIR_KEY,
    COLOR_PAIR_SELECTED,
    COLOR_PAIR_SUCCESS,
    COLOR_PAIR_WARNING,
)

MOUSE_EVENTS = curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION


def init_curses() -> None:
    """Initialise colors and global curses settings."""
    # Keys are read from the raw terminal, so Ctrl-C must not raise SIGINT.
    curses.raw()
    curses.noecho()
    curses.curs_set(0)
    curses.start_color()
    curses.use_default_colors()
    curses.init_pair(COLOR_PAIR_SELECTED, curses.COLOR_BLACK, curses.COLOR_WHITE)
    curses.init_pair(COLOR_PAIR_BORDER, 240, -1)
    curses.init_pair(COLOR_PAIR_SUCCESS, curses.COLOR_GREEN, -1)
    curses.init_pair(COLOR_PAIR_WARNING, curses.COLOR_YELLOW, -1)
    curses.init_pair(COLOR_PAIR_FAILURE, curses.COLOR_RED, -1)
    curses.init_pair(COLOR_PAIR_ACTION, curses.COLOR_BLUE, -1)
    curses.init_pair(COLOR_PAIR_KEY, curses.COLOR_GREEN, -1)
    curses.init_pair(COLOR_PAIR_DIM, 245, -1)
    curses.init_pair(COLOR_PAIR_COMMAND, curses.COLOR_RED, -1)
    set_mouse_capture(True)


def set_mouse_capture(enabled: bool) -> None:
    """Enable or release mouse reporting (visual mode releases it)."""
    curses.mousemask(MOUSE_EVENTS if enabled else 0)
