"""Key chords: a modifier set plus a key code."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from .errors import ParseError


class Modifiers(enum.Flag):
    """Modifier keys held down while a key is pressed."""

    NONE = 0
    CONTROL = enum.auto()
    ALT = enum.auto()
    SHIFT = enum.auto()


class KeyCode(enum.Enum):
    """Named (non-printable) keys."""

    ENTER = "Enter"
    ESC = "Esc"
    TAB = "Tab"
    BACKTAB = "BackTab"
    BACKSPACE = "Backspace"
    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"
    PAGE_UP = "PageUp"
    PAGE_DOWN = "PageDown"
    HOME = "Home"
    END = "End"
    DELETE = "Delete"
    INSERT = "Insert"


@dataclass(frozen=True)
class FunctionKey:
    """Function key ``F<number>``."""

    number: int

    def __str__(self) -> str:
        return f"F{self.number}"


# A printable key is represented by its one-character string.
Key = Union[str, KeyCode, FunctionKey]

_NAMED_KEYS: dict[str, Key] = {code.value: code for code in KeyCode}
_NAMED_KEYS["Space"] = " "
_NAMED_KEYS["Backtab"] = KeyCode.BACKTAB
_NAMED_KEYS["Pageup"] = KeyCode.PAGE_UP
_NAMED_KEYS["Pagedown"] = KeyCode.PAGE_DOWN
_MODIFIER_PREFIXES = {
    "c-": Modifiers.CONTROL,
    "a-": Modifiers.ALT,
    "s-": Modifiers.SHIFT,
}


@dataclass(frozen=True)
class KeyChord:
    """A single key event as seen by the binding resolver.

    Printable characters compare case-sensitively, so ``'q'`` and ``'Q'``
    are different chords.
    """

    code: Key
    modifiers: Modifiers = Modifiers.NONE

    @property
    def char(self) -> str | None:
        """The printable character of the chord, if it has one."""
        return self.code if isinstance(self.code, str) else None

    def has(self, modifier: Modifiers) -> bool:
        return bool(self.modifiers & modifier)

    def __str__(self) -> str:
        if isinstance(self.code, KeyCode):
            name = self.code.value.lower()
        elif isinstance(self.code, FunctionKey):
            name = f"f{self.code.number}"
        elif self.code == " ":
            name = "space"
        else:
            name = self.code
        prefix = ""
        if self.has(Modifiers.CONTROL):
            prefix += "C-"
        if self.has(Modifiers.ALT):
            prefix += "A-"
        if self.has(Modifiers.SHIFT):
            prefix += "S-"
        return prefix + name


def parse_chord(token: str) -> KeyChord:
    """Parse a human readable key token such as ``"C-c"``, ``"f5"`` or ``"esc"``.

    Rules, first match wins:

    1. a single character is that literal character,
    2. ``f`` followed by one digit is a function key,
    3. ``c-x`` / ``a-x`` / ``s-x`` add a modifier to the literal ``x``,
    4. anything else is looked up (first letter capitalised) among the
       named keys.

    Raises:
        ParseError: if the token matches none of the rules.
    """
    if len(token) == 1:
        return KeyChord(token)

    if len(token) == 2 and token[0].lower() == "f" and token[1].isdigit():
        return KeyChord(FunctionKey(int(token[1])))

    if len(token) == 3 and token[1] == "-":
        modifiers = _MODIFIER_PREFIXES.get(token[:2].lower())
        if modifiers is None:
            raise ParseError(token, "unknown modifier")
        return KeyChord(token[2], modifiers)

    name = token[:1].upper() + token[1:]
    code = _NAMED_KEYS.get(name)
    if code is None:
        raise ParseError(token, "unknown key")
    return KeyChord(code)
