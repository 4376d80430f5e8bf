"""Selection state for the keys table."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

from .row import ScrollAmount, ScrollDirection

T = TypeVar("T")


class TableSize(enum.Enum):
    NORMAL = "normal"
    MINIMIZED = "minimized"

    def toggled(self) -> "TableSize":
        return TableSize.NORMAL if self is TableSize.MINIMIZED else TableSize.MINIMIZED

    @classmethod
    def for_minimized(cls, minimized: bool) -> "TableSize":
        return cls.MINIMIZED if minimized else cls.NORMAL


@dataclass
class TableState:
    """Selected row, row-level scroll offsets and size settings of a table."""

    selected: Optional[int] = 0
    scroll: ScrollAmount = field(default_factory=ScrollAmount)
    minimize_threshold: int = 0
    size: TableSize = TableSize.NORMAL

    @property
    def minimized(self) -> bool:
        return self.size is TableSize.MINIMIZED

    def snapshot(self) -> "TableState":
        """Return an independent copy, used when switching tabs."""
        return TableState(
            selected=self.selected,
            scroll=ScrollAmount(self.scroll.vertical, self.scroll.horizontal),
            minimize_threshold=self.minimize_threshold,
            size=self.size,
        )


class StatefulTable(Generic[T]):
    """Table items plus the selection state that the key handlers modify.

    ``default_items`` keeps the unfiltered sequence so a search filter can be
    undone with :meth:`reset_state`.
    """

    def __init__(self, items: Sequence[T], state: Optional[TableState] = None) -> None:
        self.items: list[T] = list(items)
        self.default_items: list[T] = list(items)
        self.state = state if state is not None else TableState()
        if self.state.selected is None and self.items:
            self.state.selected = 0

    @property
    def selected(self) -> Optional[int]:
        return self.state.selected

    def selected_item(self) -> Optional[T]:
        index = self.state.selected
        if index is None or not 0 <= index < len(self.items):
            return None
        return self.items[index]

    def select(self, index: Optional[int]) -> None:
        self.state.selected = index

    def next(self) -> None:
        """Select the next item, wrapping to the first one."""
        if not self.items:
            self.state.selected = None
        elif self.state.selected is None or self.state.selected >= len(self.items) - 1:
            self.state.selected = 0
        else:
            self.state.selected += 1
        self.reset_scroll()

    def previous(self) -> None:
        """Select the previous item, wrapping to the last one."""
        if not self.items:
            self.state.selected = None
        elif self.state.selected is None:
            self.state.selected = 0
        elif self.state.selected == 0:
            self.state.selected = len(self.items) - 1
        else:
            self.state.selected -= 1
        self.reset_scroll()

    def scroll_row(self, direction: ScrollDirection, limit: Optional[int] = None) -> None:
        """Scroll inside the selected row without changing the selection."""
        self.state.scroll.apply(direction, limit)

    def clamp_selection(self) -> None:
        """Keep the selected index inside the current items."""
        if not self.items:
            self.state.selected = None
        elif self.state.selected is not None and self.state.selected >= len(self.items):
            self.state.selected = len(self.items) - 1
            self.reset_scroll()

    def reset_scroll(self) -> None:
        self.state.scroll.reset()

    def reset_state(self) -> None:
        """Restore the unfiltered items and select the first one."""
        self.items = list(self.default_items)
        self.state.selected = 0 if self.items else None
        self.reset_scroll()
