"""System clipboard access through pyperclip."""

from __future__ import annotations

import logging

import pyperclip

from .errors import OperationError

logger = logging.getLogger(__name__)


class Clipboard:
    """Thin wrapper that turns clipboard failures into :class:`OperationError`."""

    def get(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as exc:
            logger.debug("clipboard read failed: %s", exc)
            raise OperationError(f"clipboard error: {exc}") from exc

    def set(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            logger.debug("clipboard write failed: %s", exc)
            raise OperationError(f"clipboard error: {exc}") from exc
