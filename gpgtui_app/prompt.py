"""Prompt line: command input, search input, confirmations and messages."""

from __future__ import annotations

import logging
import time
from typing import Optional

from .command import (
    COMMAND_PREFIX,
    SEARCH_PREFIX,
    Command,
    OutputType,
    Search,
    ShowOutput,
    describe,
    parse_command,
)
from .errors import ParseError
from .keychord import KeyChord, KeyCode, Modifiers

logger = logging.getLogger(__name__)

# Seconds an output message stays on screen.
MESSAGE_DURATION = 1

_LOG_LEVELS = {
    OutputType.NONE: logging.DEBUG,
    OutputType.SUCCESS: logging.INFO,
    OutputType.WARNING: logging.WARNING,
    OutputType.FAILURE: logging.ERROR,
    OutputType.ACTION: logging.INFO,
}


class Prompt:
    """State of the bottom line.

    ``text`` starts with ``:`` while a command is typed and with ``/``
    while searching. ``clock`` is set while a message (or a confirmation
    question) is shown, and ``command`` holds the command waiting for
    confirmation.
    """

    def __init__(self) -> None:
        self.text = ""
        self.output_type = OutputType.NONE
        self.clock: Optional[float] = None
        self.command: Optional[Command] = None
        self.history: list[str] = []
        self.history_index = 0
        self._draft: Optional[str] = None

    def _enable(self, prefix: str) -> None:
        if not self.text or self.clock is not None:
            self.text = prefix
        else:
            self.text = prefix + self.text[1:]
        self.output_type = OutputType.NONE
        self.clock = None
        self.command = None
        self.history_index = 0
        self._draft = None

    def enable_command_input(self) -> None:
        self._enable(COMMAND_PREFIX)

    def enable_search(self) -> None:
        self._enable(SEARCH_PREFIX)

    def is_enabled(self) -> bool:
        return bool(self.text) and self.clock is None and self.command is None

    def is_command_input_enabled(self) -> bool:
        return self.is_enabled() and self.text.startswith(COMMAND_PREFIX)

    def is_search_enabled(self) -> bool:
        return self.is_enabled() and self.text.startswith(SEARCH_PREFIX)

    def set_output(self, output_type: OutputType, message: str) -> None:
        logger.log(_LOG_LEVELS[output_type], "%s", message)
        if self.is_command_input_enabled():
            # shown again once the message expires
            self._draft = self.text
        self.output_type = output_type
        self.text = message
        self.clock = time.monotonic()
        self.command = None

    def set_command(self, command: Command) -> None:
        """Ask for confirmation of ``command``."""
        self.text = f"press 'y' to {describe(command)}"
        self.output_type = OutputType.ACTION
        self.command = command
        self.clock = time.monotonic()
        self._draft = None

    def next(self) -> None:
        """Move forward in the command history."""
        if self.history_index > 1:
            self.history_index -= 1
            self.text = self.history[len(self.history) - self.history_index]
        elif self.history_index == 1:
            self.text = COMMAND_PREFIX
            self.history_index = 0

    def previous(self) -> None:
        """Move back in the command history."""
        if len(self.history) > self.history_index:
            self.text = self.history[len(self.history) - (self.history_index + 1)]
            self.history_index += 1

    def clear(self) -> None:
        self.text = ""
        self.output_type = OutputType.NONE
        self.clock = None
        self.command = None
        self.history_index = 0
        self._draft = None

    def tick(self, now: Optional[float] = None) -> None:
        """Expire the output message once it has been shown long enough."""
        if self.clock is None or self.command is not None:
            return
        now = time.monotonic() if now is None else now
        if now - self.clock > MESSAGE_DURATION:
            draft = self._draft
            self.clear()
            if draft:
                self.text = draft

    def _submit(self) -> Optional[Command]:
        text = self.text
        if self.is_search_enabled() or text == COMMAND_PREFIX:
            self.clear()
            return None
        try:
            command = parse_command(text)
        except ParseError:
            logger.debug("rejected command text %r", text)
            return ShowOutput(OutputType.FAILURE, f"invalid command: {text}")
        self.history.append(text)
        self.clear()
        return command

    def _search_query(self) -> Optional[Command]:
        if self.is_search_enabled():
            return Search(self.text[len(SEARCH_PREFIX) :])
        return None

    def handle_key(self, chord: KeyChord) -> Optional[Command]:
        """Edit the prompt with ``chord`` while it is enabled.

        Returns the command to run, if the key produced one: the parsed
        command on Enter, an error message for invalid command text, or
        the updated query while searching.
        """
        code = chord.code
        if code is KeyCode.ENTER:
            return self._submit()
        if code is KeyCode.ESC:
            self.clear()
            return None
        if code is KeyCode.TAB:
            if self.is_command_input_enabled():
                self.enable_search()
            else:
                self.enable_command_input()
            return self._search_query()
        if code is KeyCode.BACKSPACE:
            self.text = self.text[:-1]
            if not self.text:
                self.clear()
                return None
            return self._search_query()
        if code is KeyCode.UP:
            if self.is_command_input_enabled():
                self.previous()
            return None
        if code is KeyCode.DOWN:
            if self.is_command_input_enabled():
                self.next()
            return None
        if chord.char is not None and not chord.has(Modifiers.CONTROL | Modifiers.ALT):
            self.text += chord.char
            return self._search_query()
        return None
