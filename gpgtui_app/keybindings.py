"""Mapping of key chords to commands.

User bindings loaded from the configuration file are checked first, in the
order they were declared. Keys they do not cover fall through to the
built-in table, which depends on the current :class:`Mode` and on a few
flags collected in :class:`InputContext`. Unmapped keys resolve to
:class:`NoCommand`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .command import (
    Command,
    Confirm,
    Copy,
    DeleteKey,
    EditKey,
    EnableInput,
    ExportKeys,
    GenerateKey,
    NextTab,
    NoCommand,
    Paste,
    PreviousTab,
    Quit,
    Refresh,
    RefreshKeys,
    Scroll,
    Search,
    SendKey,
    Set,
    ShowHelp,
    ShowOptions,
    SignKey,
    SwitchMode,
    ToggleDetail,
    ToggleTableSize,
    parse_command,
)
from .errors import ParseError
from .gpg.key import KeyType
from .keychord import FunctionKey, KeyChord, KeyCode, Modifiers, parse_chord
from .mode import Mode
from .selection import Selection
from .widget.row import ScrollDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomKeyBinding:
    """A user binding: any of ``keys`` runs ``command``."""

    keys: tuple[KeyChord, ...]
    command: Command

    def matches(self, chord: KeyChord) -> bool:
        return chord in self.keys


def load_custom_bindings(entries: Iterable[dict]) -> list[CustomKeyBinding]:
    """Build bindings from config entries like ``{"keys": [...], "command": ":quit"}``.

    An entry with an invalid key or command is logged and skipped; the
    remaining entries are still loaded.
    """
    bindings: list[CustomKeyBinding] = []
    for entry in entries:
        try:
            keys = entry.get("keys") or []
            if isinstance(keys, str):
                keys = [keys]
            chords = tuple(parse_chord(str(key)) for key in keys)
            command = parse_command(str(entry.get("command", "")))
        except (AttributeError, ParseError) as exc:
            logger.warning("Skipping key binding %r: %s", entry, exc)
            continue
        if not chords:
            logger.warning("Skipping key binding without keys: %r", entry)
            continue
        bindings.append(CustomKeyBinding(chords, command))
    return bindings


@dataclass(frozen=True)
class InputContext:
    """Application flags the built-in key table depends on."""

    key_type: KeyType = KeyType.PUBLIC
    selected_key_id: Optional[str] = None
    show_options: bool = False
    selected_option: Optional[Command] = None
    pending_command: Optional[Command] = None
    armor: bool = False
    colored: bool = False
    margin: int = 1


def resolve(
    chord: KeyChord,
    mode: Mode,
    context: InputContext,
    custom_bindings: Sequence[CustomKeyBinding] = (),
) -> Command:
    """Return the command ``chord`` stands for."""
    for binding in custom_bindings:
        if binding.matches(chord):
            return binding.command
    return _builtin(chord, mode, context)


def _with_selection(context: InputContext, build) -> Command:
    if context.selected_key_id is None:
        return NoCommand()
    return build(context.selected_key_id)


def _navigation(chord: KeyChord) -> Optional[Command]:
    code = chord.code
    if code in (KeyCode.UP, "k"):
        if chord.has(Modifiers.CONTROL):
            return Scroll(ScrollDirection.top())
        return Scroll(ScrollDirection.up(), row=chord.has(Modifiers.ALT))
    if code in (KeyCode.DOWN, "j"):
        if chord.has(Modifiers.CONTROL):
            return Scroll(ScrollDirection.bottom())
        return Scroll(ScrollDirection.down(), row=chord.has(Modifiers.ALT))
    if code in (KeyCode.RIGHT, "l"):
        if chord.has(Modifiers.ALT):
            return Scroll(ScrollDirection.right(), row=True)
        return NextTab()
    if code in (KeyCode.LEFT, "h"):
        if chord.has(Modifiers.ALT):
            return Scroll(ScrollDirection.left(), row=True)
        return PreviousTab()
    if code is KeyCode.PAGE_UP or code is KeyCode.HOME:
        return Scroll(ScrollDirection.top())
    if code is KeyCode.PAGE_DOWN or code is KeyCode.END:
        return Scroll(ScrollDirection.bottom())
    return None


_COPY_KEYS = {
    "x": Selection.KEY,
    "i": Selection.KEY_ID,
    "f": Selection.KEY_FINGERPRINT,
    "u": Selection.KEY_USER_ID,
    "1": Selection.ROW1,
    "2": Selection.ROW2,
}

_DETAIL_KEYS = {"1": "minimum", "2": "standard", "3": "full"}


def _builtin(chord: KeyChord, mode: Mode, context: InputContext) -> Command:
    code = chord.code
    char = chord.char if not chord.has(Modifiers.ALT) else None
    control = chord.has(Modifiers.CONTROL)

    if control and char in ("c", "d"):
        return Quit()
    if code is KeyCode.ESC:
        if mode is not Mode.NORMAL:
            return SwitchMode(Mode.NORMAL)
        if context.show_options or context.pending_command is not None:
            return NoCommand()
        return Quit()
    if char in ("q", "Q") and not control:
        return Quit()

    if char == "y" and not control and context.pending_command is not None:
        return context.pending_command

    if (char in ("o", " ") and not control) or code is KeyCode.ENTER:
        if context.show_options:
            return context.selected_option or NoCommand()
        return ShowOptions()

    navigation = _navigation(chord)
    if navigation is not None:
        return navigation

    if control:
        if char == "v":
            return Paste()
        if char == "r":
            return Confirm(RefreshKeys())
        if char == "s":
            return Set("style", "plain" if context.colored else "colored")
        return NoCommand()

    if isinstance(code, FunctionKey):
        return Refresh() if code.number == 5 else NoCommand()
    if code is KeyCode.TAB:
        return ToggleDetail(True)
    if code is KeyCode.BACKSPACE:
        return _with_selection(context, lambda key_id: Confirm(DeleteKey(context.key_type, key_id)))
    if char is None:
        return NoCommand()

    if mode is Mode.COPY and char in _COPY_KEYS:
        return Copy(_COPY_KEYS[char])

    if char == "?":
        return ShowHelp()
    if char == "n":
        return SwitchMode(Mode.NORMAL)
    if char == "v":
        return SwitchMode(Mode.VISUAL)
    if char == "c":
        return SwitchMode(Mode.COPY)
    if char == "p":
        return Paste()
    if char == "x":
        return _with_selection(
            context, lambda key_id: Confirm(ExportKeys(context.key_type, (key_id,)))
        )
    if char == "s":
        return _with_selection(context, lambda key_id: Confirm(SignKey(key_id)))
    if char == "e":
        return _with_selection(context, EditKey)
    if char == "i":
        return Set("prompt", ":import ")
    if char == "f":
        return Set("prompt", ":receive ")
    if char == "u":
        return _with_selection(context, lambda key_id: Confirm(SendKey(key_id)))
    if char == "g":
        return Confirm(GenerateKey())
    if char == "d":
        return _with_selection(context, lambda key_id: Confirm(DeleteKey(context.key_type, key_id)))
    if char == "a":
        return Set("armor", str(not context.armor).lower())
    if char in _DETAIL_KEYS:
        return Set("detail", _DETAIL_KEYS[char])
    if char == "t":
        return ToggleDetail(False)
    if char == "`":
        return Set("margin", "0" if context.margin == 1 else "1")
    if char == "m":
        return ToggleTableSize()
    if char == "/":
        return Search(None)
    if char == ":":
        return EnableInput()
    if char == "r":
        return Refresh()
    return NoCommand()


@dataclass(frozen=True)
class KeyBindingHelp:
    """Entry of the help tab."""

    keys: str
    action: str
    description: str

    def title(self) -> str:
        return "".join(f"[{key}] " for key in self.keys.split(",")).rstrip()

    def description_lines(self) -> list[str]:
        return [line.strip() for line in self.description.strip().splitlines()]


KEY_BINDINGS: tuple[KeyBindingHelp, ...] = (
    KeyBindingHelp(
        "?",
        "show help",
        """
        Use arrow keys / hjkl to navigate through the key bindings.
        Corresponding commands and additional information will be shown here.
        :help
        """,
    ),
    KeyBindingHelp(
        "o,space,enter",
        "show options",
        """
        Shows the options menu for the current tab.
        :options
        """,
    ),
    KeyBindingHelp(
        "hjkl,arrows,pgkeys",
        "navigate",
        """
        Scrolls the current widget or selects the next/previous tab.
        A-<key>: scroll the table rows
        C-<key>,pgup,pgdown: scroll to top/bottom
        :scroll (row) up/down/left/right <amount>
        """,
    ),
    KeyBindingHelp("n", "switch to normal mode", "Resets the application mode.\n:normal"),
    KeyBindingHelp("v", "switch to visual mode", "Disables the mouse capture.\n:visual"),
    KeyBindingHelp(
        "c",
        "switch to copy mode",
        """
        x: Copy the exported key
        i: Copy the key id
        f: Copy the key fingerprint
        u: Copy the user id
        1,2: Copy the content of the row
        :copy
        """,
    ),
    KeyBindingHelp("p,C-v", "paste from clipboard", ":paste"),
    KeyBindingHelp(
        "x",
        "export key",
        """
        Exports the key to the output directory (see --outdir).
        Append "subkey" to export only the secret subkeys.
        :export <pub/sec> <keyids> (subkey)
        """,
    ),
    KeyBindingHelp(
        "s",
        "sign key",
        """
        Signs the key with the default secret key.
        Same as `gpg --sign-key`
        :sign <keyid>
        """,
    ),
    KeyBindingHelp(
        "e",
        "edit key",
        """
        Presents a menu for key management.
        Same as `gpg --edit-key`
        :edit <keyid>
        """,
    ),
    KeyBindingHelp(
        "i",
        "import key(s)",
        """
        Imports the keys from given files.
        :import <file1> <file2>
        :import-clipboard
        """,
    ),
    KeyBindingHelp(
        "f",
        "receive key",
        """
        Imports the keys with the given key IDs from default keyserver.
        Same as `gpg --receive-keys`
        :receive <keyids>
        """,
    ),
    KeyBindingHelp(
        "u",
        "send key",
        """
        Sends the key to the default keyserver.
        :send <keyid>
        """,
    ),
    KeyBindingHelp(
        "g",
        "generate key",
        """
        Generates a new key pair with dialogs for all options.
        Same as `gpg --full-generate-key`
        :generate
        """,
    ),
    KeyBindingHelp(
        "d,backspace",
        "delete key",
        """
        Removes the public/secret key from the keyring.
        :delete <pub/sec> <keyid>
        """,
    ),
    KeyBindingHelp(
        "C-r",
        "refresh keys",
        """
        Requests updates for keys on the local keyring.
        Same as `gpg --refresh-keys`
        :refresh keys
        """,
    ),
    KeyBindingHelp(
        "a",
        "toggle armored output",
        """
        Toggles ASCII armored output.
        The default is to create the binary OpenPGP format.
        :set armor <true/false>
        """,
    ),
    KeyBindingHelp(
        "1,2,3",
        "set detail level",
        """
        1: Minimum
        2: Standard
        3: Full
        :set detail <level>
        """,
    ),
    KeyBindingHelp("t,tab", "toggle detail (all/selected)", ":toggle detail (all)"),
    KeyBindingHelp("`", "toggle table margin", ":set margin <0/1>"),
    KeyBindingHelp("m", "toggle table size", ":toggle size"),
    KeyBindingHelp("C-s", "toggle style", ":set style <plain/colored>"),
    KeyBindingHelp("/", "search", ":search <query>"),
    KeyBindingHelp(":", "run command", "Switches to command mode for running commands."),
    KeyBindingHelp("r,f5", "refresh application", ":refresh"),
    KeyBindingHelp("q,C-c/d,esc", "quit application", ":quit"),
)
