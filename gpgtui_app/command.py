"""Commands and the colon command language.

Every user operation is a small frozen dataclass. Key bindings build them
directly, the prompt builds them with :func:`parse_command`, and
``App.run_command`` executes them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import InvalidCommand, ParseError
from .gpg.key import KeyType
from .mode import Mode
from .selection import Selection
from .widget.row import ScrollDirection

COMMAND_PREFIX = ":"
SEARCH_PREFIX = "/"


class OutputType(enum.Enum):
    """Severity of a prompt message."""

    NONE = "none"
    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"
    ACTION = "action"

    @classmethod
    def from_str(cls, value: str) -> "OutputType":
        try:
            return cls(value.lower())
        except ValueError:
            return cls.NONE

    def __str__(self) -> str:
        return _OUTPUT_PREFIXES.get(self, "")


_OUTPUT_PREFIXES = {
    OutputType.SUCCESS: "(i) ",
    OutputType.WARNING: "(w) ",
    OutputType.FAILURE: "(e) ",
}


class Command:
    """Base class of all commands."""

    def __str__(self) -> str:
        return describe(self)


@dataclass(frozen=True)
class Confirm(Command):
    command: Command


@dataclass(frozen=True)
class ShowHelp(Command):
    pass


@dataclass(frozen=True)
class ShowOutput(Command):
    output_type: OutputType
    message: str


@dataclass(frozen=True)
class ShowOptions(Command):
    pass


@dataclass(frozen=True)
class ListKeys(Command):
    key_type: KeyType = KeyType.PUBLIC


@dataclass(frozen=True)
class ImportKeys(Command):
    paths: tuple[str, ...] = ()
    from_clipboard: bool = False


@dataclass(frozen=True)
class ExportKeys(Command):
    key_type: KeyType = KeyType.PUBLIC
    patterns: tuple[str, ...] = ()
    subkeys: bool = False


@dataclass(frozen=True)
class DeleteKey(Command):
    key_type: KeyType
    key_id: str


@dataclass(frozen=True)
class SendKey(Command):
    key_id: str


@dataclass(frozen=True)
class EditKey(Command):
    key_id: str


@dataclass(frozen=True)
class SignKey(Command):
    key_id: str


@dataclass(frozen=True)
class GenerateKey(Command):
    pass


@dataclass(frozen=True)
class RefreshKeys(Command):
    pass


@dataclass(frozen=True)
class ReceiveKeys(Command):
    key_ids: tuple[str, ...]


@dataclass(frozen=True)
class Copy(Command):
    selection: Selection


@dataclass(frozen=True)
class ToggleDetail(Command):
    all: bool = False


@dataclass(frozen=True)
class ToggleTableSize(Command):
    pass


@dataclass(frozen=True)
class Scroll(Command):
    direction: ScrollDirection
    row: bool = False


@dataclass(frozen=True)
class Set(Command):
    option: str
    value: str = ""


@dataclass(frozen=True)
class Get(Command):
    option: str


@dataclass(frozen=True)
class SwitchMode(Command):
    mode: Mode


@dataclass(frozen=True)
class Paste(Command):
    pass


@dataclass(frozen=True)
class EnableInput(Command):
    pass


@dataclass(frozen=True)
class Search(Command):
    query: Optional[str] = None


@dataclass(frozen=True)
class NextTab(Command):
    pass


@dataclass(frozen=True)
class PreviousTab(Command):
    pass


@dataclass(frozen=True)
class Refresh(Command):
    pass


@dataclass(frozen=True)
class Quit(Command):
    pass


@dataclass(frozen=True)
class NoCommand(Command):
    pass


def _describe_set(command: Set) -> str:
    action = "enable" if command.value == "true" else "disable"
    if command.option == "armor":
        return f"{action} armored output"
    if command.option == "style":
        return "toggle style"
    if command.option == "margin":
        return "toggle table margin"
    if command.option == "prompt":
        if command.value == ":import ":
            return "import key(s)"
        if command.value == ":receive ":
            return "receive key(s)"
        return f"set prompt text to {command.value}"
    return f"set {command.option} to {command.value}"


def describe(command: Command) -> str:
    """Return the human readable description of ``command``."""
    if isinstance(command, Confirm):
        return describe(command.command)
    if isinstance(command, NoCommand):
        return "close"
    if isinstance(command, ShowHelp):
        return "show help"
    if isinstance(command, ShowOutput):
        return f"show {command.output_type.value} output: {command.message}"
    if isinstance(command, ShowOptions):
        return "show options"
    if isinstance(command, ListKeys):
        return f"list keys ({command.key_type})"
    if isinstance(command, ImportKeys):
        if command.from_clipboard:
            return "import key(s) from clipboard"
        return f"import key(s): {' '.join(command.paths)}".rstrip(": ")
    if isinstance(command, ExportKeys):
        what = "all the keys" if not command.patterns else "the selected key"
        if command.subkeys:
            what = f"{what} (subkeys)" if command.patterns else "all the subkeys"
        return f"export {what} ({command.key_type})"
    if isinstance(command, DeleteKey):
        return f"delete the selected key ({command.key_type})"
    if isinstance(command, SendKey):
        return "send key to the keyserver"
    if isinstance(command, EditKey):
        return "edit the selected key"
    if isinstance(command, SignKey):
        return "sign the selected key"
    if isinstance(command, GenerateKey):
        return "generate a new key pair"
    if isinstance(command, RefreshKeys):
        return "refresh the keyring"
    if isinstance(command, ReceiveKeys):
        return f"receive key(s): {' '.join(command.key_ids)}"
    if isinstance(command, Copy):
        return f"copy {str(command.selection).lower()}"
    if isinstance(command, ToggleDetail):
        return f"toggle detail ({'all' if command.all else 'selected'})"
    if isinstance(command, ToggleTableSize):
        return "toggle table size"
    if isinstance(command, Scroll):
        target = "row" if command.row else "table"
        return f"scroll {target} {command.direction}"
    if isinstance(command, Set):
        return _describe_set(command)
    if isinstance(command, Get):
        return f"get {command.option}"
    if isinstance(command, SwitchMode):
        return f"switch to {command.mode.value} mode"
    if isinstance(command, Paste):
        return "paste from clipboard"
    if isinstance(command, EnableInput):
        return "enable command input"
    if isinstance(command, Search):
        return f"search {command.query}" if command.query else "search"
    if isinstance(command, NextTab):
        return "next tab"
    if isinstance(command, PreviousTab):
        return "previous tab"
    if isinstance(command, Refresh):
        return "refresh"
    if isinstance(command, Quit):
        return "quit"
    return type(command).__name__.lower()


@dataclass
class _Input:
    raw: str
    verb: str
    args: list[str] = field(default_factory=list)

    def arg(self, index: int, default: str = "") -> str:
        return self.args[index] if index < len(self.args) else default

    def required(self, index: int) -> str:
        if index >= len(self.args):
            raise InvalidCommand(self.raw)
        return self.args[index]


def _key_type(value: str) -> KeyType:
    return KeyType.from_str(value)


def _confirm(cmd: _Input) -> Command:
    if not cmd.args:
        return Confirm(NoCommand())
    return Confirm(parse_command(" ".join(cmd.args)))


def _output(cmd: _Input) -> Command:
    return ShowOutput(OutputType.from_str(cmd.arg(0)), " ".join(cmd.args[1:]))


def _import(cmd: _Input) -> Command:
    # paths keep their case
    return ImportKeys(tuple(cmd.raw.split()[1:]))


def _export(cmd: _Input) -> Command:
    patterns = cmd.args[1:]
    subkeys = bool(patterns) and patterns[-1] == "subkey"
    if subkeys:
        patterns = patterns[:-1]
    return ExportKeys(_key_type(cmd.arg(0, "pub")), tuple(patterns), subkeys)


def _delete(cmd: _Input) -> Command:
    key_id = cmd.arg(1)
    if key_id.startswith("0x"):
        key_id = "0x" + key_id[2:].upper()
    return DeleteKey(_key_type(cmd.arg(0, "pub")), key_id)


def _refresh(cmd: _Input) -> Command:
    return RefreshKeys() if cmd.arg(0) == "keys" else Refresh()


def _receive(cmd: _Input) -> Command:
    cmd.required(0)
    return ReceiveKeys(tuple(cmd.raw.split()[1:]))


def _copy(cmd: _Input) -> Command:
    if not cmd.args:
        return SwitchMode(Mode.COPY)
    return Copy(Selection.from_str(cmd.args[0]))


def _toggle(cmd: _Input) -> Command:
    if cmd.arg(0) == "size":
        return ToggleTableSize()
    return ToggleDetail(cmd.arg(0) == "all")


def _scroll(cmd: _Input) -> Command:
    row = cmd.arg(0) == "row"
    words = cmd.args[1:] if row else cmd.args
    try:
        direction = ScrollDirection.from_str(" ".join(words))
    except ParseError:
        direction = ScrollDirection.down(1)
    return Scroll(direction, row)


def _set(cmd: _Input) -> Command:
    option = cmd.arg(0)
    if option == "prompt":
        parts = cmd.raw.split(None, 2)
        return Set(option, parts[2] if len(parts) > 2 else "")
    return Set(option, cmd.arg(1))


def _mode(cmd: _Input) -> Command:
    return SwitchMode(Mode.from_str(cmd.required(0)))


def _search(cmd: _Input) -> Command:
    return Search(cmd.args[0] if cmd.args else None)


_PARSERS: dict[tuple[str, ...], Callable[[_Input], Command]] = {
    ("confirm",): _confirm,
    ("help", "h"): lambda cmd: ShowHelp(),
    ("output", "out"): _output,
    ("options", "opt"): lambda cmd: ShowOptions(),
    ("list", "ls"): lambda cmd: ListKeys(_key_type(cmd.arg(0, "pub"))),
    ("import", "i"): _import,
    ("import-clipboard",): lambda cmd: ImportKeys((), True),
    ("export", "exp"): _export,
    ("delete", "del"): _delete,
    ("send",): lambda cmd: SendKey(cmd.required(0)),
    ("edit",): lambda cmd: EditKey(cmd.required(0)),
    ("sign",): lambda cmd: SignKey(cmd.required(0)),
    ("generate", "gen"): lambda cmd: GenerateKey(),
    ("refresh",): _refresh,
    ("r",): lambda cmd: Refresh(),
    ("receive", "recv"): _receive,
    ("copy", "c"): _copy,
    ("toggle", "t"): _toggle,
    ("scroll",): _scroll,
    ("set", "s"): _set,
    ("get", "g"): lambda cmd: Get(cmd.arg(0)),
    ("mode", "m"): _mode,
    ("normal", "n"): lambda cmd: SwitchMode(Mode.NORMAL),
    ("visual", "v"): lambda cmd: SwitchMode(Mode.VISUAL),
    ("paste", "p"): lambda cmd: Paste(),
    ("input",): lambda cmd: EnableInput(),
    ("search",): _search,
    ("next",): lambda cmd: NextTab(),
    ("previous", "prev"): lambda cmd: PreviousTab(),
    ("quit", "q", "q!"): lambda cmd: Quit(),
    ("none",): lambda cmd: NoCommand(),
}

ALIASES: dict[str, Callable[[_Input], Command]] = {
    alias: parser for aliases, parser in _PARSERS.items() for alias in aliases
}


def parse_command(text: str) -> Command:
    """Parse command text such as ``":export sec 0xABCD subkey"``.

    Raises:
        InvalidCommand: if the verb is unknown or its arguments are invalid.
    """
    raw = text.replace(COMMAND_PREFIX, "", 1) if text.startswith(COMMAND_PREFIX) else text
    words = raw.lower().split()
    if not words or words[0] not in ALIASES:
        raise InvalidCommand(text)
    cmd = _Input(raw=raw, verb=words[0], args=words[1:])
    try:
        return ALIASES[cmd.verb](cmd)
    except InvalidCommand:
        raise
    except ParseError:
        raise InvalidCommand(text) from None
