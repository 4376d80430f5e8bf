"""Properties of the selected key that can be copied to the clipboard."""

from __future__ import annotations

import enum

from .errors import ParseError


class Selection(enum.Enum):
    ROW1 = "row1"
    ROW2 = "row2"
    KEY = "key"
    KEY_ID = "key_id"
    KEY_FINGERPRINT = "key_fingerprint"
    KEY_USER_ID = "key_user_id"

    @classmethod
    def from_str(cls, value: str) -> "Selection":
        try:
            return _ALIASES[value.lower()]
        except KeyError:
            raise ParseError(value, "unknown selection") from None

    def __str__(self) -> str:
        return _DESCRIPTIONS[self]


_ALIASES = {
    "row1": Selection.ROW1,
    "row_1": Selection.ROW1,
    "1": Selection.ROW1,
    "row2": Selection.ROW2,
    "row_2": Selection.ROW2,
    "2": Selection.ROW2,
    "key": Selection.KEY,
    "key_id": Selection.KEY_ID,
    "keyid": Selection.KEY_ID,
    "id": Selection.KEY_ID,
    "key_fingerprint": Selection.KEY_FINGERPRINT,
    "key_fpr": Selection.KEY_FINGERPRINT,
    "fingerprint": Selection.KEY_FINGERPRINT,
    "fpr": Selection.KEY_FINGERPRINT,
    "key_user_id": Selection.KEY_USER_ID,
    "user_id": Selection.KEY_USER_ID,
    "userid": Selection.KEY_USER_ID,
    "user": Selection.KEY_USER_ID,
}

_DESCRIPTIONS = {
    Selection.ROW1: "table row (1)",
    Selection.ROW2: "table row (2)",
    Selection.KEY: "exported key",
    Selection.KEY_ID: "key ID",
    Selection.KEY_FINGERPRINT: "key fingerprint",
    Selection.KEY_USER_ID: "user ID",
}
