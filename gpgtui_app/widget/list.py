"""Selection state for plain lists (options menu, help tab)."""

from __future__ import annotations

from typing import Generic, Optional, Sequence, TypeVar

T = TypeVar("T")


class StatefulList(Generic[T]):
    def __init__(self, items: Sequence[T], selected: Optional[int] = None) -> None:
        self.items: list[T] = list(items)
        self.selected = selected

    def selected_item(self) -> Optional[T]:
        if self.selected is None or not 0 <= self.selected < len(self.items):
            return None
        return self.items[self.selected]

    def next(self) -> None:
        if not self.items:
            self.selected = None
        elif self.selected is None or self.selected >= len(self.items) - 1:
            self.selected = 0
        else:
            self.selected += 1

    def previous(self) -> None:
        if not self.items:
            self.selected = None
        elif self.selected is None or self.selected == 0:
            self.selected = len(self.items) - 1
        else:
            self.selected -= 1
