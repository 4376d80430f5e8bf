"""Application modes."""

from __future__ import annotations

import enum

from .errors import ParseError


class Mode(enum.Enum):
    """Governs which key table is consulted.

    ``VISUAL`` releases the mouse so text can be selected in the terminal,
    ``COPY`` turns single keys into clipboard copies.
    """

    NORMAL = "normal"
    VISUAL = "visual"
    COPY = "copy"

    @classmethod
    def from_str(cls, value: str) -> "Mode":
        value = value.lower()
        for mode in cls:
            if value in (mode.value, mode.value[0]):
                return mode
        raise ParseError(value, "unknown mode")

    def __str__(self) -> str:
        return f"-- {self.name} --"
