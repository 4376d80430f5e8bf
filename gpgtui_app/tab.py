"""Application tabs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .command import Command, ListKeys, ShowHelp
from .gpg.key import KeyType


@dataclass(frozen=True)
class Tab:
    """A keys tab (``key_type`` set) or the help tab."""

    key_type: Optional[KeyType] = KeyType.PUBLIC

    @classmethod
    def keys(cls, key_type: KeyType) -> "Tab":
        return cls(key_type)

    @classmethod
    def help(cls) -> "Tab":
        return cls(None)

    @property
    def is_help(self) -> bool:
        return self.key_type is None

    def get_command(self) -> Command:
        """Return the command that shows this tab."""
        if self.key_type is None:
            return ShowHelp()
        return ListKeys(self.key_type)

    def next(self) -> "Tab":
        return _ORDER[(_ORDER.index(self) + 1) % len(_ORDER)]

    def previous(self) -> "Tab":
        return _ORDER[(_ORDER.index(self) - 1) % len(_ORDER)]

    def __str__(self) -> str:
        return "help" if self.key_type is None else f"list {self.key_type}"


_ORDER = (Tab.keys(KeyType.PUBLIC), Tab.keys(KeyType.SECRET), Tab.help())
