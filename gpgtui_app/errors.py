"""Exception types shared across the application."""

from __future__ import annotations


class ParseError(ValueError):
    """Raised when a key chord or command text does not match any rule."""

    def __init__(self, raw: str, reason: str = "") -> None:
        self.raw = raw
        self.reason = reason
        message = f"invalid input: {raw!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidCommand(ParseError):
    """Command text that could not be turned into a command."""

    def __init__(self, raw: str) -> None:
        super().__init__(raw, "unknown or malformed command")


class OperationError(RuntimeError):
    """An external collaborator (gpg, clipboard) failed."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
