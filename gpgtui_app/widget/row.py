"""Viewport layout for multi-line table cells.

A cell may hold more lines (or longer lines) than the space it is drawn in.
:func:`layout` cuts the content down to the visible window for a given scroll
offset and marks the hidden parts:

* ``"..."`` replaces the first/last visible line when lines are hidden
  above/below,
* ``"."`` prefixes every line when it is scrolled horizontally,
* ``".."`` is appended to lines cut at the maximum width.

Widths are counted in characters (code points), never in bytes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import ParseError

VERTICAL_MARKER = "..."
HORIZONTAL_MARKER = "."
WIDTH_MARKER = ".."


class ScrollKind(enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


_SCROLL_ALIASES = {
    "up": ScrollKind.UP,
    "u": ScrollKind.UP,
    "down": ScrollKind.DOWN,
    "d": ScrollKind.DOWN,
    "left": ScrollKind.LEFT,
    "l": ScrollKind.LEFT,
    "right": ScrollKind.RIGHT,
    "r": ScrollKind.RIGHT,
    "top": ScrollKind.TOP,
    "t": ScrollKind.TOP,
    "bottom": ScrollKind.BOTTOM,
    "b": ScrollKind.BOTTOM,
}


@dataclass(frozen=True)
class ScrollDirection:
    """Scrolling direction and offset.

    ``amount`` is meaningless for ``TOP``/``BOTTOM`` and kept at 1.
    """

    kind: ScrollKind
    amount: int = 1

    @classmethod
    def up(cls, amount: int = 1) -> "ScrollDirection":
        return cls(ScrollKind.UP, amount)

    @classmethod
    def down(cls, amount: int = 1) -> "ScrollDirection":
        return cls(ScrollKind.DOWN, amount)

    @classmethod
    def left(cls, amount: int = 1) -> "ScrollDirection":
        return cls(ScrollKind.LEFT, amount)

    @classmethod
    def right(cls, amount: int = 1) -> "ScrollDirection":
        return cls(ScrollKind.RIGHT, amount)

    @classmethod
    def top(cls) -> "ScrollDirection":
        return cls(ScrollKind.TOP)

    @classmethod
    def bottom(cls) -> "ScrollDirection":
        return cls(ScrollKind.BOTTOM)

    @classmethod
    def from_str(cls, value: str) -> "ScrollDirection":
        """Parse ``"<direction> [amount]"``, e.g. ``"up 3"`` or ``"b"``."""
        parts = value.split()
        if not parts or parts[0] not in _SCROLL_ALIASES:
            raise ParseError(value, "unknown scroll direction")
        kind = _SCROLL_ALIASES[parts[0]]
        if kind in (ScrollKind.TOP, ScrollKind.BOTTOM):
            return cls(kind)
        try:
            amount = int(parts[1]) if len(parts) > 1 else 1
        except ValueError:
            amount = 1
        return cls(kind, max(0, amount))

    def __str__(self) -> str:
        if self.kind in (ScrollKind.TOP, ScrollKind.BOTTOM):
            return self.kind.value
        return f"{self.kind.value} {self.amount}"


@dataclass
class ScrollAmount:
    """Vertical/horizontal scroll offsets of one scrollable widget."""

    vertical: int = 0
    horizontal: int = 0

    def apply(self, direction: ScrollDirection, limit: Optional[int] = None) -> None:
        """Move the offsets, saturating at zero.

        ``limit`` caps the vertical offset; ``BOTTOM`` jumps to it.
        """
        if direction.kind is ScrollKind.UP:
            self.vertical = max(0, self.vertical - direction.amount)
        elif direction.kind is ScrollKind.DOWN:
            self.vertical += direction.amount
            if limit is not None:
                self.vertical = min(self.vertical, limit)
        elif direction.kind is ScrollKind.LEFT:
            self.horizontal = max(0, self.horizontal - direction.amount)
        elif direction.kind is ScrollKind.RIGHT:
            self.horizontal += direction.amount
        elif direction.kind is ScrollKind.TOP:
            self.vertical = 0
        elif direction.kind is ScrollKind.BOTTOM and limit is not None:
            self.vertical = limit

    def reset(self) -> None:
        self.vertical = 0
        self.horizontal = 0


def height_overflow(line_count: int, max_height: int) -> int:
    """Return the number of vertical scroll positions plus one."""
    return max(0, line_count - max(0, max_height)) + 1


def _scroll_vertical(lines: list[str], offset: int, overflow: int) -> list[str]:
    skipped = min(offset, overflow)
    visible = lines[skipped:]
    if skipped and visible:
        visible[0] = VERTICAL_MARKER
    return visible


def _limit_height(lines: list[str], max_height: int) -> list[str]:
    if max_height <= 0:
        return []
    visible = lines[:max_height]
    if visible:
        visible[-1] = VERTICAL_MARKER
    return visible


def _scroll_horizontal(lines: list[str], offset: int) -> list[str]:
    start = offset + 1
    return [HORIZONTAL_MARKER + line[start:] if len(line) > start else "" for line in lines]


def _limit_width(lines: list[str], max_width: int) -> list[str]:
    return [line[:max_width] + WIDTH_MARKER if len(line) > max_width else line for line in lines]


def layout(
    lines: Sequence[str],
    max_width: Optional[int],
    max_height: int,
    scroll: ScrollAmount,
) -> list[str]:
    """Return the lines of a cell as they should appear in the viewport.

    Content that already fits is returned unchanged when the scroll offsets
    are zero. Vertical offsets beyond the overflow point are clamped to it.
    """
    data = list(lines)
    overflow = height_overflow(len(data), max_height)
    if overflow != 1:
        if scroll.vertical:
            data = _scroll_vertical(data, scroll.vertical, overflow)
        if scroll.vertical < overflow:
            data = _limit_height(data, max_height)

    if max_width is not None:
        longest = max((len(line) for line in data), default=0)
        if scroll.horizontal and longest >= max_width:
            data = _scroll_horizontal(data, scroll.horizontal)
        data = _limit_width(data, max_width)
    return data


class RowItem:
    """One table cell after viewport processing."""

    def __init__(
        self,
        data: Sequence[str],
        max_width: Optional[int],
        max_height: int,
        scroll: ScrollAmount,
    ) -> None:
        self.max_width = max_width
        self.max_height = max_height
        self.height_overflow = height_overflow(len(data), max_height)
        self.scroll = ScrollAmount(scroll.vertical, scroll.horizontal)
        self.data = layout(data, max_width, max_height, self.scroll)

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)
