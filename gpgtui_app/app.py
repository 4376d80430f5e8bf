"""Main application: state, command dispatch and the event loop."""

from __future__ import annotations

import curses
import logging
import shutil
from typing import Optional, Sequence

from .clipboard import Clipboard
from .command import (
    Command,
    Confirm,
    Copy,
    DeleteKey,
    EditKey,
    EnableInput,
    ExportKeys,
    GenerateKey,
    Get,
    ImportKeys,
    ListKeys,
    NextTab,
    NoCommand,
    OutputType,
    Paste,
    PreviousTab,
    Quit,
    ReceiveKeys,
    Refresh,
    RefreshKeys,
    Scroll,
    Search,
    SendKey,
    Set,
    ShowHelp,
    ShowOptions,
    ShowOutput,
    SignKey,
    SwitchMode,
    ToggleDetail,
    ToggleTableSize,
)
from .config import Settings
from .curses_setup import init_curses, set_mouse_capture
from .errors import OperationError, ParseError
from .gpg.key import GpgKey, KeyDetail, KeyType, apply_detail
from .gpg.keyring import GpgKeyring
from .keybindings import KEY_BINDINGS, InputContext, KeyBindingHelp, resolve
from .keychord import KeyChord, KeyCode
from .mode import Mode
from .prompt import Prompt
from .selection import Selection
from .state import AppState
from .tab import Tab
from .term.event import EventHandler, KeyEvent, ResizeEvent, TickEvent
from .ui.layout import draw_ui, row_scroll_limit
from .widget.list import StatefulList
from .widget.row import ScrollKind
from .widget.table import StatefulTable, TableSize

logger = logging.getLogger(__name__)

_BOOLEANS = {"true": True, "false": False, "1": True, "0": False, "yes": True, "no": False}


def filter_keys(keys: Sequence[GpgKey], query: str, minimized: bool) -> list[GpgKey]:
    """Keys whose rendered text contains ``query`` (case-insensitive)."""
    if not query:
        return list(keys)
    return [key for key in keys if key.matches(query, minimized)]


class App:
    """The application context passed to every handler.

    Holds the keyring, the clipboard, the prompt and the tables; all of
    them are only touched from the thread running :meth:`run`.
    """

    def __init__(
        self,
        settings: Settings,
        keyring: GpgKeyring,
        clipboard: Clipboard,
        events: Optional[EventHandler] = None,
        modifier_monitor=None,
    ) -> None:
        self.settings = settings
        self.keyring = keyring
        self.clipboard = clipboard
        self.events = events
        self.modifier_monitor = modifier_monitor
        self.custom_bindings = list(settings.key_bindings)
        self.state = AppState(colored=settings.colored, detail=settings.detail_level)
        self.mode = Mode.NORMAL
        self.prompt = Prompt()
        self.tab = Tab.keys(KeyType.PUBLIC)
        self.options: StatefulList[Command] = StatefulList([])
        self.help_list: StatefulList[KeyBindingHelp] = StatefulList(KEY_BINDINGS, selected=0)
        self.keys: dict[KeyType, list[GpgKey]] = {}
        self.keys_table: StatefulTable[GpgKey] = StatefulTable([])
        self.stdscr: Optional["curses.window"] = None
        self._shift_held = False
        self.load_keys()

    # -- keys -------------------------------------------------------------

    @property
    def key_type(self) -> KeyType:
        return self.tab.key_type or KeyType.PUBLIC

    def load_keys(self) -> None:
        """Read both keyrings and rebuild the table of the current key type."""
        self.keys = self.keyring.get_all_keys()
        for keys in self.keys.values():
            apply_detail(keys, self.state.detail)
        state = self.keys_table.state
        self.keys_table = StatefulTable(self.keys.get(self.key_type, []))
        self.keys_table.state.size = state.size
        self.keys_table.state.minimize_threshold = state.minimize_threshold
        if state.selected is not None and state.selected < len(self.keys_table.items):
            self.keys_table.select(state.selected)

    def selected_key(self) -> Optional[GpgKey]:
        if self.tab.is_help:
            return None
        return self.keys_table.selected_item()

    def set_minimized(self, minimized: bool) -> None:
        self.keys_table.state.size = TableSize.for_minimized(minimized)

    def refresh(self) -> None:
        """Reset the application state and reload the keys."""
        colored = self.state.colored
        self.state = AppState(colored=colored, detail=self.settings.detail_level)
        self.mode = Mode.NORMAL
        if self.stdscr is not None:
            set_mouse_capture(True)
        self.prompt.clear()
        self.options.selected = 0
        self.keys_table = StatefulTable([])
        if self.tab.is_help:
            self.tab = Tab.keys(KeyType.PUBLIC)
        self.load_keys()

    # -- input ------------------------------------------------------------

    def input_context(self) -> InputContext:
        key = self.selected_key()
        return InputContext(
            key_type=self.key_type,
            selected_key_id=key.get_id() if key is not None else None,
            show_options=self.state.show_options,
            selected_option=self.options.selected_item(),
            pending_command=self.prompt.command,
            armor=self.keyring.armor,
            colored=self.state.colored,
            margin=self.state.table_margin,
        )

    def _select_and_quit(self) -> Optional[Command]:
        key = self.selected_key()
        if key is None:
            return None
        try:
            self.state.selected_output = self.selection_value(Selection.from_str(self.settings.select), key)
        except (OperationError, ParseError) as exc:
            self.prompt.set_output(OutputType.FAILURE, str(exc))
            return None
        return Quit()

    def handle_key(self, chord: KeyChord) -> Optional[Command]:
        """Turn a key press into the command to run, if any."""
        if self.prompt.is_enabled():
            was_search = self.prompt.is_search_enabled()
            command = self.prompt.handle_key(chord)
            if was_search and chord.code is KeyCode.ESC:
                self.keys_table.reset_state()
            return command

        if (
            self.settings.select
            and not self.state.show_options
            and (chord.code is KeyCode.ENTER or chord.code == " ")
        ):
            return self._select_and_quit()

        command = resolve(chord, self.mode, self.input_context(), self.custom_bindings)
        if self.prompt.command is not None:
            # answered or dismissed
            self.prompt.clear()
        return command

    # -- commands ---------------------------------------------------------

    def selection_value(self, selection: Selection, key: GpgKey) -> str:
        minimized = self.keys_table.state.minimized
        if selection is Selection.ROW1:
            return "\n".join(key.get_subkey_info(self.keyring.default_key, minimized))
        if selection is Selection.ROW2:
            return "\n".join(key.get_user_info(minimized))
        if selection is Selection.KEY:
            data = self.keyring.get_exported_keys(self.key_type, [key.get_id()])
            return data.decode("utf-8", errors="replace")
        if selection is Selection.KEY_ID:
            return key.get_id()
        if selection is Selection.KEY_FINGERPRINT:
            return key.get_fingerprint()
        return key.get_user_id()

    def options_menu(self) -> list[Command]:
        """Commands offered in the options popup for the current tab."""
        mode_switch = SwitchMode(Mode.NORMAL if self.mode is Mode.VISUAL else Mode.VISUAL)
        style = Set("style", "plain" if self.state.colored else "colored")
        if self.tab.is_help:
            return [NoCommand(), ListKeys(KeyType.PUBLIC), ListKeys(KeyType.SECRET), style, mode_switch]

        key_type = self.key_type
        options: list[Command] = [NoCommand(), Refresh()]
        key = self.selected_key()
        if key is not None:
            key_id = key.get_id()
            options.append(ExportKeys(key_type, (key_id,)))
            if key_type is KeyType.SECRET:
                options.append(ExportKeys(key_type, (key_id,), True))
        options.append(ExportKeys(key_type))
        if key is not None:
            options += [
                Confirm(DeleteKey(key_type, key.get_id())),
                Confirm(SendKey(key.get_id())),
                EditKey(key.get_id()),
                Confirm(SignKey(key.get_id())),
            ]
        options += [Confirm(GenerateKey()), Confirm(RefreshKeys())]
        if key is not None:
            options += [Copy(selection) for selection in Selection]
        options += [
            Paste(),
            ToggleDetail(False),
            ToggleDetail(True),
            Set("detail", "minimum"),
            Set("detail", "standard"),
            Set("detail", "full"),
            Set("armor", str(not self.keyring.armor).lower()),
            Set("margin", "0" if self.state.table_margin == 1 else "1"),
            ToggleTableSize(),
            style,
            mode_switch,
        ]
        return options

    def _show_options(self) -> None:
        previous = self.options.selected
        previous_count = len(self.options.items)
        self.options = StatefulList(self.options_menu())
        if previous_count == 0 or previous_count == len(self.options.items):
            self.options.selected = previous if previous is not None else 0
        else:
            self.options.selected = 0

    def _save_table_state(self) -> None:
        if self.tab.is_help:
            return
        current = self.key_type
        self.state.table_states[current] = self.keys_table.state.snapshot()
        self.keys[current] = self.keys_table.default_items

    def _list_keys(self, key_type: KeyType) -> None:
        self._save_table_state()
        size = self.keys_table.state.size
        threshold = self.keys_table.state.minimize_threshold
        self.keys_table = StatefulTable(self.keys.get(key_type, []))
        saved = self.state.table_states.get(key_type)
        if saved is not None:
            self.keys_table.state = saved.snapshot()
            # the keyring may have changed since the snapshot
            self.keys_table.clamp_selection()
        self.keys_table.state.size = size
        self.keys_table.state.minimize_threshold = threshold
        self.tab = Tab.keys(key_type)

    def _scroll(self, command: Scroll, show_options: bool) -> bool:
        direction = command.direction
        if command.row:
            if not self.tab.is_help:
                self.keys_table.scroll_row(direction, self._row_scroll_limit())
            return False
        if self.state.show_options:
            target = self.options
            show_options = True
        elif self.tab.is_help:
            target = self.help_list
        else:
            target = self.keys_table
        steps = max(1, direction.amount)
        if direction.kind is ScrollKind.DOWN:
            for _ in range(steps):
                target.next()
        elif direction.kind is ScrollKind.UP:
            for _ in range(steps):
                target.previous()
        elif direction.kind is ScrollKind.TOP:
            self._select(target, 0)
        elif direction.kind is ScrollKind.BOTTOM:
            self._select(target, len(target.items) - 1)
        return show_options

    def _row_scroll_limit(self) -> int:
        if self.stdscr is not None:
            height, width = self.stdscr.getmaxyx()
        else:
            size = shutil.get_terminal_size()
            height, width = size.lines, size.columns
        return row_scroll_limit(self, height, width)

    @staticmethod
    def _select(target, index: int) -> None:
        index = index if target.items else None
        if isinstance(target, StatefulTable):
            target.select(index)
            target.reset_scroll()
        else:
            target.selected = index

    def _toggle_detail(self, all_keys: bool) -> None:
        if all_keys:
            self.state.detail = self.state.detail.increased()
            apply_detail(self.keys_table.items, self.state.detail)
            apply_detail(self.keys_table.default_items, self.state.detail)
            return
        key = self.keys_table.selected_item()
        if key is not None:
            # default_items share the key objects
            key.detail = key.detail.increased()

    def _set(self, option: str, value: str) -> tuple[OutputType, str]:
        if option == "mode":
            try:
                self.mode = Mode.from_str(value)
            except ParseError:
                return OutputType.FAILURE, "invalid mode"
            return OutputType.SUCCESS, f"mode: {self.mode.value}"
        if option == "armor":
            if value not in _BOOLEANS:
                return OutputType.FAILURE, "usage: set armor <true/false>"
            self.keyring.armor = _BOOLEANS[value]
            return OutputType.SUCCESS, f"armor: {str(self.keyring.armor).lower()}"
        if option == "signer":
            self.keyring.default_key = value
            return OutputType.SUCCESS, f"signer: {self.keyring.default_key or '-'}"
        if option == "minimize":
            try:
                threshold = max(0, int(value))
            except ValueError:
                threshold = 0
            self.keys_table.state.minimize_threshold = threshold
            return OutputType.SUCCESS, f"minimize threshold: {threshold}"
        if option == "detail":
            try:
                detail = KeyDetail.from_str(value)
            except ParseError:
                return OutputType.FAILURE, "usage: set detail <level>"
            key = self.keys_table.selected_item()
            if key is not None:
                key.detail = detail
            return OutputType.SUCCESS, f"detail: {detail}"
        if option == "margin":
            try:
                self.state.table_margin = max(0, int(value))
            except ValueError:
                self.state.table_margin = 0
            return OutputType.SUCCESS, f"table margin: {self.state.table_margin}"
        if option == "style":
            if value not in ("plain", "colored"):
                return OutputType.FAILURE, "usage: set style <plain/colored>"
            self.state.colored = value == "colored"
            return OutputType.SUCCESS, f"style: {value}"
        if option:
            return OutputType.FAILURE, f"unknown option: {option}"
        return OutputType.FAILURE, "usage: set <option> <value>"

    def _get(self, option: str) -> tuple[OutputType, str]:
        if option == "mode":
            return OutputType.SUCCESS, f"mode: {self.mode.value}"
        if option == "armor":
            return OutputType.SUCCESS, f"armor: {str(self.keyring.armor).lower()}"
        if option == "signer":
            return OutputType.SUCCESS, f"signer: {self.keyring.default_key or '-'}"
        if option == "minimize":
            return OutputType.SUCCESS, f"minimize threshold: {self.keys_table.state.minimize_threshold}"
        if option == "detail":
            key = self.keys_table.selected_item()
            if key is None:
                return OutputType.FAILURE, "invalid selection"
            return OutputType.SUCCESS, f"detail: {key.detail}"
        if option == "margin":
            return OutputType.SUCCESS, f"table margin: {self.state.table_margin}"
        if option == "style":
            return OutputType.SUCCESS, f"style: {'colored' if self.state.colored else 'plain'}"
        if option:
            return OutputType.FAILURE, f"unknown option: {option}"
        return OutputType.FAILURE, "usage: get <option>"

    def _search(self, query: Optional[str]) -> None:
        if query is None:
            self.prompt.enable_search()
            self.keys_table.items = list(self.keys_table.default_items)
        else:
            self.prompt.text = f"/{query}"
            self.keys_table.items = filter_keys(
                self.keys_table.default_items, query, self.keys_table.state.minimized
            )
        self._select(self.keys_table, 0)

    def run_interactive(self, cmd: Sequence[str]) -> None:
        """Hand the terminal to ``cmd`` and take it back afterwards."""
        if self.events is not None:
            self.events.pause()
        if self.stdscr is not None:
            curses.def_prog_mode()
            curses.endwin()
        try:
            self.keyring.run_interactive(cmd)
        finally:
            if self.stdscr is not None:
                curses.reset_prog_mode()
                self.stdscr.clear()
            if self.events is not None:
                self.events.resume()

    def _selected_or_fail(self) -> GpgKey:
        key = self.selected_key()
        if key is None:
            raise OperationError("invalid selection")
        return key

    def run_command(self, command: Command) -> None:
        """Run ``command``; failures of external tools end up in the prompt."""
        logger.debug("running command %r", command)
        try:
            show_options = self._dispatch(command)
        except OperationError as exc:
            self.prompt.set_output(OutputType.FAILURE, f"{_failure_prefix(command)}{exc.message}")
            show_options = False
        self.state.show_options = show_options

    def _dispatch(self, command: Command) -> bool:
        show_options = False
        if isinstance(command, Confirm):
            self.prompt.set_command(command.command)
        elif isinstance(command, ShowHelp):
            self._save_table_state()
            self.tab = Tab.help()
        elif isinstance(command, ShowOutput):
            self.prompt.set_output(command.output_type, command.message)
        elif isinstance(command, ShowOptions):
            self._show_options()
            show_options = True
        elif isinstance(command, ListKeys):
            self._list_keys(command.key_type)
        elif isinstance(command, ImportKeys):
            if command.from_clipboard:
                count = self.keyring.import_text(self.clipboard.get())
            else:
                count = self.keyring.import_keys(command.paths)
            self.load_keys()
            self.prompt.set_output(OutputType.SUCCESS, f"import: {count} key(s) imported")
        elif isinstance(command, ExportKeys):
            path = self.keyring.export_keys(command.key_type, command.patterns, command.subkeys)
            self.prompt.set_output(OutputType.SUCCESS, f"export: {path}")
        elif isinstance(command, DeleteKey):
            self.keyring.delete_key(command.key_type, command.key_id)
            self.load_keys()
            self.prompt.set_output(OutputType.SUCCESS, f"deleted: {command.key_id}")
        elif isinstance(command, SendKey):
            self.keyring.send_key(command.key_id)
            self.prompt.set_output(OutputType.SUCCESS, f"key sent: {command.key_id}")
        elif isinstance(command, EditKey):
            self.run_interactive(self.keyring.edit_key_command(command.key_id))
            self.load_keys()
        elif isinstance(command, SignKey):
            self.run_interactive(self.keyring.sign_key_command(command.key_id))
            self.load_keys()
        elif isinstance(command, GenerateKey):
            self.run_interactive(self.keyring.generate_key_command())
            self.load_keys()
        elif isinstance(command, RefreshKeys):
            self.keyring.refresh_keys()
            self.load_keys()
            self.prompt.set_output(OutputType.SUCCESS, "keyring refreshed")
        elif isinstance(command, ReceiveKeys):
            count = self.keyring.receive_keys(command.key_ids)
            self.load_keys()
            self.prompt.set_output(OutputType.SUCCESS, f"receive: {count} key(s) imported")
        elif isinstance(command, Copy):
            key = self._selected_or_fail()
            self.clipboard.set(self.selection_value(command.selection, key))
            self.prompt.set_output(OutputType.SUCCESS, f"{command.selection} copied to clipboard")
            self.mode = Mode.NORMAL
        elif isinstance(command, ToggleDetail):
            self._toggle_detail(command.all)
        elif isinstance(command, ToggleTableSize):
            state = self.keys_table.state
            state.minimize_threshold = 0
            state.size = state.size.toggled()
        elif isinstance(command, Scroll):
            show_options = self._scroll(command, show_options)
        elif isinstance(command, Set):
            if command.option == "prompt":
                if command.value:
                    self.prompt.clear()
                    self.prompt.text = command.value
                else:
                    self.prompt.set_output(OutputType.FAILURE, "usage: set prompt <text>")
            else:
                self.prompt.set_output(*self._set(command.option, command.value))
        elif isinstance(command, Get):
            self.prompt.set_output(*self._get(command.option))
        elif isinstance(command, SwitchMode):
            if not (command.mode is Mode.COPY and not self.keys_table.items):
                self.mode = command.mode
                if self.stdscr is not None:
                    set_mouse_capture(command.mode is not Mode.VISUAL)
                self.prompt.set_output(OutputType.ACTION, str(command.mode))
        elif isinstance(command, Paste):
            text = self.clipboard.get()
            self.prompt.clear()
            self.prompt.text = f":{text}"
        elif isinstance(command, EnableInput):
            self.prompt.enable_command_input()
        elif isinstance(command, Search):
            self._search(command.query)
        elif isinstance(command, NextTab):
            self._dispatch(self.tab.next().get_command())
        elif isinstance(command, PreviousTab):
            self._dispatch(self.tab.previous().get_command())
        elif isinstance(command, Refresh):
            self.refresh()
        elif isinstance(command, Quit):
            self.state.running = False
        elif isinstance(command, NoCommand):
            if self.prompt.command is not None:
                self.prompt.clear()
        return show_options

    # -- loop -------------------------------------------------------------

    def tick(self) -> None:
        self.prompt.tick()
        if self.modifier_monitor is None or self.stdscr is None or self.mode is Mode.VISUAL:
            return
        # holding shift releases the mouse for text selection
        shift_held = self.modifier_monitor.is_shift_pressed()
        if shift_held != self._shift_held:
            set_mouse_capture(not shift_held)
            self.state.mouse_enabled = not shift_held
            self._shift_held = shift_held

    def resize(self) -> None:
        if self.stdscr is None:
            return
        size = shutil.get_terminal_size()
        curses.resizeterm(size.lines, size.columns)
        self.stdscr.clear()

    def run(self, stdscr: "curses.window") -> None:
        """Event loop; returns when a :class:`Quit` command ran."""
        self.stdscr = stdscr
        init_curses()
        if self.events is None:
            self.events = EventHandler(self.settings.tick_rate, modifier_monitor=self.modifier_monitor)
        self.events.start()
        try:
            while self.state.running:
                draw_ui(stdscr, self)
                event = self.events.next()
                if isinstance(event, KeyEvent):
                    command = self.handle_key(event.chord)
                    if command is not None:
                        self.run_command(command)
                elif isinstance(event, TickEvent):
                    self.tick()
                elif isinstance(event, ResizeEvent):
                    self.resize()
        finally:
            self.events.stop()
            self.stdscr = None


def _failure_prefix(command: Command) -> str:
    if isinstance(command, ExportKeys):
        return "export error: "
    if isinstance(command, ImportKeys):
        return "import error: "
    if isinstance(command, DeleteKey):
        return "delete error: "
    if isinstance(command, (SendKey, ReceiveKeys, RefreshKeys)):
        return "keyserver error: "
    return ""
