"""Drawing helpers for the main UI.

Row contents are laid out by :class:`~gpgtui_app.widget.row.RowItem` before
anything is written to the screen, so the curses calls here only place
already-truncated lines.
"""

from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from ..command import OutputType, describe
from ..constants import (
    COLOR_PAIR_ACTION,
    COLOR_PAIR_BORDER,
    COLOR_PAIR_COMMAND,
    COLOR_PAIR_DIM,
    COLOR_PAIR_FAILURE,
    COLOR_PAIR_KEY,
    COLOR_PAIR_SELECTED,
    COLOR_PAIR_SUCCESS,
    COLOR_PAIR_WARNING,
    HIGHLIGHT_SYMBOL,
    KEYS_ROW_LENGTH,
    OPTIONS_HEIGHT_PERCENT,
    OPTIONS_WIDTH,
    TABLE_PADDING,
)
from ..gpg.key import GpgKey
from ..widget.row import RowItem, ScrollAmount

if TYPE_CHECKING:
    from ..app import App

_OUTPUT_COLORS = {
    OutputType.SUCCESS: COLOR_PAIR_SUCCESS,
    OutputType.WARNING: COLOR_PAIR_WARNING,
    OutputType.FAILURE: COLOR_PAIR_FAILURE,
    OutputType.ACTION: COLOR_PAIR_ACTION,
}


@dataclass
class TableRow:
    """The two laid-out cells of one key."""

    keys: list[str]
    users: list[str]
    overflow: int = 1

    @property
    def height(self) -> int:
        return max(len(self.keys), len(self.users), 1)


def first_column_width(minimized: bool) -> int:
    return KEYS_ROW_LENGTH[0] if minimized else KEYS_ROW_LENGTH[1]


def user_column_width(total_width: int, minimized: bool) -> int:
    """Width left for the user ID column."""
    width = total_width - (first_column_width(minimized) + TABLE_PADDING)
    return width if width > 0 else total_width


def build_key_rows(
    keys: Sequence[GpgKey],
    selected: Optional[int],
    scroll: ScrollAmount,
    max_width: int,
    max_height: int,
    minimized: bool,
    default_key: Optional[str] = None,
) -> list[TableRow]:
    """Lay out every key of the table.

    Only the selected row uses the row scroll offsets; the others are
    shown from the top.
    """
    rows = []
    for index, key in enumerate(keys):
        row_scroll = scroll if index == selected else ScrollAmount()
        subkey_row = RowItem(key.get_subkey_info(default_key, minimized), None, max_height, row_scroll)
        user_row = RowItem(key.get_user_info(minimized), max_width, max_height, row_scroll)
        overflow = max(subkey_row.height_overflow, user_row.height_overflow)
        rows.append(TableRow(subkey_row.data, user_row.data, overflow))
    return rows


def row_scroll_limit(app: "App", height: int, width: int) -> int:
    """Largest vertical offset of the selected key on a screen of this size."""
    table = app.keys_table
    key = table.selected_item()
    if key is None:
        return 0
    minimized = table.state.minimized
    # the table box and the prompt line take three rows
    body_height = height - 3
    row = build_key_rows(
        [key],
        None,
        ScrollAmount(),
        user_column_width(width, minimized),
        body_height,
        minimized,
        app.keyring.default_key,
    )[0]
    return row.overflow if row.overflow > 1 else 0


def first_visible_row(heights: Sequence[int], selected: Optional[int], body_height: int, margin: int) -> int:
    """Return the first row to draw so that ``selected`` is on screen."""
    if selected is None or not 0 <= selected < len(heights):
        return 0
    start = selected
    used = heights[selected]
    while start > 0 and used + heights[start - 1] + margin <= body_height:
        start -= 1
        used += heights[start] + margin
    return start


def prompt_text(app: "App") -> str:
    """Text of the bottom line."""
    prompt = app.prompt
    if prompt.text:
        return f"{prompt.output_type}{prompt.text}"
    table = app.keys_table
    if app.tab.is_help:
        return f"< help ({(app.help_list.selected or 0) + 1}/{len(app.help_list.items)}) >"
    position = ""
    if table.items:
        position = f" ({(table.selected or 0) + 1}/{len(table.items)})"
    return f"< {app.tab}{position} >"


def _addstr(win: "curses.window", y: int, x: int, text: str, attr: int = 0) -> None:
    height, width = win.getmaxyx()
    if y < 0 or y >= height or x >= width:
        return
    text = text[: max(0, width - x)]
    if y == height - 1 and x + len(text) >= width:
        # Writing the bottom-right cell moves the cursor off the window.
        text = text[: max(0, width - x - 1)]
    if text:
        win.addstr(y, x, text, attr)


def draw_prompt(stdscr: "curses.window", app: "App") -> None:
    height, width = stdscr.getmaxyx()
    text = prompt_text(app)
    attr = 0
    if app.prompt.output_type is not OutputType.NONE:
        attr = curses.A_BOLD
        if app.state.colored:
            attr |= curses.color_pair(_OUTPUT_COLORS.get(app.prompt.output_type, 0))
    x = 0 if app.prompt.text else max(0, width - len(text) - 1)
    _addstr(stdscr, height - 1, x, text, attr)
    if app.prompt.is_enabled():
        curses.curs_set(1)
        stdscr.move(height - 1, min(len(text), width - 1))
    else:
        curses.curs_set(0)


def draw_box(win: "curses.window", top: int, left: int, height: int, width: int, title: str = "", attr: int = 0) -> None:
    """Draw a border box with an optional title."""
    if height < 2 or width < 2:
        return
    _addstr(win, top, left, "┌" + "─" * (width - 2) + "┐", attr)
    for y in range(top + 1, top + height - 1):
        _addstr(win, y, left, "│", attr)
        _addstr(win, y, left + width - 1, "│", attr)
    _addstr(win, top + height - 1, left, "└" + "─" * (width - 2) + "┘", attr)
    if title:
        _addstr(win, top, left + 1, title[: width - 2], attr)


def draw_keys_table(stdscr: "curses.window", app: "App", height: int, width: int) -> None:
    """Render the table of keys."""
    table = app.keys_table
    minimized = table.state.minimized
    border_attr = curses.color_pair(COLOR_PAIR_BORDER) if app.state.colored else curses.A_DIM
    draw_box(stdscr, 0, 0, height, width, attr=border_attr)
    body_height = height - 2
    rows = build_key_rows(
        table.items,
        table.selected,
        table.state.scroll,
        user_column_width(width, minimized),
        body_height,
        minimized,
        app.keyring.default_key,
    )
    margin = app.state.table_margin
    start = first_visible_row([row.height for row in rows], table.selected, body_height, margin)
    key_x = 1 + len(HIGHLIGHT_SYMBOL)
    user_x = key_x + first_column_width(minimized) + 1
    y = 1
    for index in range(start, len(rows)):
        row = rows[index]
        if y > body_height:
            break
        highlighted = index == table.selected
        attr = curses.A_BOLD if highlighted else 0
        if highlighted:
            _addstr(stdscr, y, 1, HIGHLIGHT_SYMBOL, attr)
        for offset in range(row.height):
            if y + offset > body_height:
                break
            if offset < len(row.keys):
                _addstr(stdscr, y + offset, key_x, row.keys[offset][: first_column_width(minimized)], attr)
            if offset < len(row.users):
                _addstr(stdscr, y + offset, user_x, row.users[offset][: max(0, width - user_x - 1)], attr)
        y += row.height + margin


def draw_help(stdscr: "curses.window", app: "App", height: int, width: int) -> None:
    """Render the key binding list and the description of the selected one."""
    list_width = min(36, width // 2)
    colored = app.state.colored
    border_attr = curses.color_pair(COLOR_PAIR_BORDER) if colored else curses.A_DIM
    draw_box(stdscr, 0, 0, height, list_width, "Key Bindings", border_attr)
    draw_box(stdscr, 0, list_width, height, width - list_width, "About", border_attr)
    y = 1
    for index, binding in enumerate(app.help_list.items):
        if y + 1 >= height - 1:
            break
        highlighted = index == app.help_list.selected
        key_attr = curses.color_pair(COLOR_PAIR_KEY) | curses.A_BOLD if colored else curses.A_BOLD
        _addstr(stdscr, y, 1, (HIGHLIGHT_SYMBOL if highlighted else "  ") + binding.title(), key_attr)
        action_attr = curses.A_BOLD if highlighted else 0
        _addstr(stdscr, y + 1, 3, f"└─{binding.action}"[: list_width - 4], action_attr)
        y += 3
    binding = app.help_list.selected_item()
    if binding is None:
        return
    command_attr = curses.color_pair(COLOR_PAIR_COMMAND) if colored else curses.A_BOLD
    lines = RowItem(binding.description_lines(), width - list_width - 4, height - 2, ScrollAmount())
    for offset, line in enumerate(lines):
        _addstr(stdscr, 1 + offset, list_width + 2, line, command_attr if line.startswith(":") else 0)


def draw_options_menu(stdscr: "curses.window", app: "App") -> None:
    """Render the options popup in the middle of the screen."""
    height, width = stdscr.getmaxyx()
    box_height = max(3, height * OPTIONS_HEIGHT_PERCENT // 100)
    box_width = min(width, OPTIONS_WIDTH)
    top = (height - box_height) // 2
    left = max(0, (width - box_width) // 2)
    for y in range(top, top + box_height):
        _addstr(stdscr, y, left, " " * box_width)
    attr = curses.color_pair(COLOR_PAIR_ACTION) if app.state.colored else 0
    draw_box(stdscr, top, left, box_height, box_width, "Options", attr)
    visible = box_height - 2
    selected = app.options.selected or 0
    start = max(0, selected - visible + 1)
    for row, index in enumerate(range(start, min(len(app.options.items), start + visible))):
        highlighted = index == selected
        prefix = HIGHLIGHT_SYMBOL if highlighted else "  "
        text = prefix + describe(app.options.items[index])
        if highlighted:
            item_attr = curses.color_pair(COLOR_PAIR_SELECTED) if app.state.colored else curses.A_BOLD
        else:
            item_attr = curses.color_pair(COLOR_PAIR_DIM)
        _addstr(stdscr, top + 1 + row, left + 1, text[: box_width - 2], item_attr)


def draw_ui(stdscr: "curses.window", app: "App") -> None:
    """Render the whole screen for the current application state."""
    stdscr.erase()
    height, width = stdscr.getmaxyx()
    threshold = app.keys_table.state.minimize_threshold
    if threshold:
        app.set_minimized(width < threshold)
    if height < 3 or width < 10:
        _addstr(stdscr, 0, 0, "terminal too small")
    elif app.tab.is_help:
        draw_help(stdscr, app, height - 1, width)
    else:
        draw_keys_table(stdscr, app, height - 1, width)
    if app.state.show_options and height >= 3:
        draw_options_menu(stdscr, app)
    draw_prompt(stdscr, app)
    stdscr.refresh()
