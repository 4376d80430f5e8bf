"""Key model built from ``gpg --with-colons`` listings."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..errors import ParseError

# Char shown for values gpg did not report.
NONE_CHAR = "?"

ALGORITHMS = {
    "1": "rsa",
    "2": "rsa",
    "3": "rsa",
    "16": "elg",
    "17": "dsa",
    "18": "ecdh",
    "19": "ecdsa",
    "22": "eddsa",
}

VALIDITY = {
    "o": "?",
    "i": "i",
    "d": "d",
    "r": "r",
    "e": "e",
    "-": "?",
    "q": "?",
    "n": "n",
    "m": "m",
    "f": "f",
    "u": "u",
    "w": "?",
    "s": "s",
}


class KeyType(enum.Enum):
    PUBLIC = "pub"
    SECRET = "sec"

    @classmethod
    def from_str(cls, value: str) -> "KeyType":
        value = value.lower()
        if value in ("pub", "public"):
            return cls.PUBLIC
        if value in ("sec", "secret"):
            return cls.SECRET
        raise ParseError(value, "unknown key type")

    def __str__(self) -> str:
        return self.value


class KeyDetail(enum.Enum):
    """How much of a key is shown in the table."""

    MINIMUM = "minimum"
    STANDARD = "standard"
    FULL = "full"

    @classmethod
    def from_str(cls, value: str) -> "KeyDetail":
        value = value.lower()
        for index, detail in enumerate(cls, start=1):
            if value in (detail.value, detail.value[:3], str(index)):
                return detail
        raise ParseError(value, "unknown detail level")

    def increased(self) -> "KeyDetail":
        members = list(KeyDetail)
        return members[(members.index(self) + 1) % len(members)]

    def __str__(self) -> str:
        return self.value


def _timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        # --fixed-list-mode prints seconds since epoch.
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except ValueError:
        try:
            return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            return None


def _unescape(value: str) -> str:
    """Decode the ``\\xHH`` escapes gpg uses inside colon listings."""
    if "\\x" not in value:
        return value
    raw = value.encode("latin-1", errors="replace")
    out = bytearray()
    i = 0
    while i < len(raw):
        if raw[i : i + 2] == b"\\x" and i + 4 <= len(raw):
            try:
                out.append(int(raw[i + 2 : i + 4], 16))
                i += 4
                continue
            except ValueError:
                pass
        out.append(raw[i])
        i += 1
    return out.decode("utf-8", errors="replace")


def _field(fields: list[str], index: int) -> str:
    return fields[index] if index < len(fields) else ""


def _format_time(created: Optional[datetime], expires: Optional[datetime], fmt: str) -> str:
    text = f"({created.strftime(fmt)})" if created else f"[{NONE_CHAR}]"
    if expires:
        text += f" ─> ({expires.strftime(fmt)})"
    return text


@dataclass
class Signature:
    key_id: str
    user_id: str
    created: Optional[datetime] = None
    expires: Optional[datetime] = None
    sig_class: str = ""
    revocation: bool = False

    @property
    def exportable(self) -> bool:
        return not self.sig_class.endswith("l")

    def describe(self, truncate: bool) -> str:
        fmt = "%Y" if truncate else "%F"
        flags = ""
        if self.revocation:
            flags += " [rev]"
        if not self.exportable:
            flags += " [!x]"
        user = self.user_id or f"[{NONE_CHAR}]"
        if truncate and "<" in user:
            user = user[user.index("<") :]
        class_code = self.sig_class[:2] or NONE_CHAR
        return f"[{class_code}] 0x{self.key_id} {user} {_format_time(self.created, self.expires, fmt)}{flags}"


@dataclass
class UserId:
    uid: str
    validity: str = "?"
    signatures: list[Signature] = field(default_factory=list)

    @property
    def email(self) -> str:
        if "<" in self.uid and self.uid.endswith(">"):
            return self.uid[self.uid.index("<") :]
        return self.uid


@dataclass
class Subkey:
    key_id: str
    algorithm: str
    capabilities: str = ""
    fingerprint: str = ""
    created: Optional[datetime] = None
    expires: Optional[datetime] = None
    validity: str = ""

    @property
    def flags(self) -> str:
        """``s``ign, ``c``ertify, ``e``ncrypt and ``a``uthenticate flags."""
        caps = self.capabilities.lower()
        return "".join(flag if flag in caps else "-" for flag in "scea")

    def describe_time(self, truncate: bool) -> str:
        text = _format_time(self.created, self.expires, "%Y" if truncate else "%F")
        if self.validity == "e":
            text += " [exp]"
        elif self.validity == "r":
            text += " [rev]"
        elif self.validity == "d":
            text += " [d]"
        elif self.validity == "i":
            text += " [i]"
        return text


@dataclass
class GpgKey:
    """A public or secret key with its subkeys and user IDs."""

    subkeys: list[Subkey] = field(default_factory=list)
    user_ids: list[UserId] = field(default_factory=list)
    detail: KeyDetail = KeyDetail.MINIMUM

    @property
    def primary(self) -> Subkey:
        return self.subkeys[0]

    def get_id(self) -> str:
        return f"0x{self.primary.key_id}" if self.subkeys else NONE_CHAR

    def get_fingerprint(self) -> str:
        return self.primary.fingerprint if self.subkeys else NONE_CHAR

    def get_user_id(self) -> str:
        return self.user_ids[0].uid if self.user_ids else NONE_CHAR

    def matches(self, query: str, truncate: bool) -> bool:
        """Return ``True`` when ``query`` appears in the rendered key text."""
        query = query.lower()
        text = "\n".join(self.get_subkey_info(None, truncate) + self.get_user_info(truncate))
        return query in text.lower()

    def get_subkey_info(self, default_key: Optional[str], truncate: bool) -> list[str]:
        """Lines of the first table column."""
        default = (default_key or "").lower().removeprefix("0x")
        lines: list[str] = []
        for index, subkey in enumerate(self.subkeys):
            is_default = bool(default) and default in (
                subkey.key_id.lower(),
                subkey.fingerprint.lower(),
            )
            ident = subkey.key_id if truncate else (subkey.fingerprint or subkey.key_id)
            lines.append(f"[{subkey.flags}]{'*' if is_default else ' '}{subkey.algorithm}/{ident}")
            if self.detail is KeyDetail.MINIMUM:
                break
            branch = "|" if index != len(self.subkeys) - 1 else " "
            lines.append(f"{branch}      └─{subkey.describe_time(truncate)}")
        return lines

    def get_user_info(self, truncate: bool) -> list[str]:
        """Lines of the second table column."""
        lines: list[str] = []
        for index, user in enumerate(self.user_ids):
            prefix = "" if index == 0 else " ├─"
            lines.append(f"{prefix}[{user.validity}] {user.email if truncate else user.uid}")
            if self.detail is KeyDetail.MINIMUM:
                break
            if self.detail is KeyDetail.FULL:
                padding = " " if index == len(self.user_ids) - 1 else "│"
                for sig_index, signature in enumerate(user.signatures):
                    branch = "└─" if sig_index == len(user.signatures) - 1 else "├─"
                    indent = "" if index == 0 else " "
                    lines.append(f"{indent}{padding}  {branch}{signature.describe(truncate)}")
        return lines


def parse_colon_listing(text: str) -> list[GpgKey]:
    """Parse the output of ``gpg --with-colons --fixed-list-mode``."""
    keys: list[GpgKey] = []
    key: Optional[GpgKey] = None
    last_subkey: Optional[Subkey] = None
    last_uid: Optional[UserId] = None

    for line in text.splitlines():
        fields = line.split(":")
        record = fields[0]
        if record in ("pub", "sec", "sub", "ssb"):
            algo = ALGORITHMS.get(_field(fields, 3), NONE_CHAR)
            curve = _field(fields, 16)
            subkey = Subkey(
                key_id=_field(fields, 4),
                algorithm=curve if curve else f"{algo}{_field(fields, 2)}",
                capabilities=_field(fields, 11),
                created=_timestamp(_field(fields, 5)),
                expires=_timestamp(_field(fields, 6)),
                validity=_field(fields, 1),
            )
            if record in ("pub", "sec"):
                key = GpgKey(subkeys=[subkey])
                keys.append(key)
                last_uid = None
            elif key is not None:
                key.subkeys.append(subkey)
            last_subkey = subkey
        elif record == "fpr" and last_subkey is not None and not last_subkey.fingerprint:
            last_subkey.fingerprint = _field(fields, 9)
        elif record == "uid" and key is not None:
            validity = _field(fields, 1)
            last_uid = UserId(
                uid=_unescape(_field(fields, 9)),
                validity=VALIDITY.get(validity, NONE_CHAR),
            )
            key.user_ids.append(last_uid)
            last_subkey = None
        elif record in ("sig", "rev") and last_uid is not None:
            last_uid.signatures.append(
                Signature(
                    key_id=_field(fields, 4),
                    user_id=_unescape(_field(fields, 9)),
                    created=_timestamp(_field(fields, 5)),
                    expires=_timestamp(_field(fields, 6)),
                    sig_class=_field(fields, 10),
                    revocation=record == "rev",
                )
            )
    return keys


def apply_detail(keys: Iterable[GpgKey], detail: KeyDetail) -> None:
    for key in keys:
        key.detail = detail
