"""Keyring operations backed by the ``gpg`` executable."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config import GpgSettings
from ..errors import OperationError
from .key import GpgKey, KeyType, parse_colon_listing

logger = logging.getLogger(__name__)

GPG = "gpg"


def _error_message(result: subprocess.CompletedProcess) -> str:
    stderr = result.stderr.decode("utf-8", errors="replace") if isinstance(result.stderr, bytes) else result.stderr
    lines = [line.strip() for line in (stderr or "").splitlines() if line.strip()]
    if lines:
        return lines[-1].removeprefix("gpg: ")
    return f"gpg exited with status {result.returncode}"


class GpgKeyring:
    """Run keyring operations with ``gpg`` and report failures as :class:`OperationError`."""

    def __init__(self, settings: GpgSettings) -> None:
        self.settings = settings

    @property
    def armor(self) -> bool:
        return self.settings.armor

    @armor.setter
    def armor(self, value: bool) -> None:
        self.settings.armor = value

    @property
    def default_key(self) -> Optional[str]:
        return self.settings.default_key

    @default_key.setter
    def default_key(self, value: Optional[str]) -> None:
        self.settings.default_key = value or None

    def command(self, *args: str, batch: bool = True) -> list[str]:
        cmd = [GPG]
        if batch:
            cmd.append("--batch")
        if self.settings.homedir is not None:
            cmd += ["--homedir", str(self.settings.homedir)]
        cmd += list(args)
        return cmd

    def _run(self, args: Sequence[str], stdin: Optional[bytes] = None, batch: bool = True) -> subprocess.CompletedProcess:
        cmd = self.command(*args, batch=batch)
        logger.debug("running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                input=stdin,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=None if stdin is not None else subprocess.DEVNULL,
            )
        except FileNotFoundError as exc:
            raise OperationError(f"{GPG} executable not found") from exc
        if result.returncode != 0:
            message = _error_message(result)
            logger.warning("%s failed: %s", " ".join(cmd), message)
            raise OperationError(message)
        return result

    def get_keys(self, key_type: KeyType, patterns: Iterable[str] = ()) -> list[GpgKey]:
        listing = "--list-sigs" if key_type is KeyType.PUBLIC else "--list-secret-keys"
        result = self._run(
            ["--with-colons", "--fixed-list-mode", "--with-fingerprint", listing, *patterns]
        )
        return parse_colon_listing(result.stdout.decode("utf-8", errors="replace"))

    def get_all_keys(self) -> dict[KeyType, list[GpgKey]]:
        return {key_type: self.get_keys(key_type) for key_type in KeyType}

    def get_exported_keys(
        self, key_type: KeyType, patterns: Sequence[str] = (), subkeys: bool = False
    ) -> bytes:
        """Return the exported key material."""
        if key_type is KeyType.PUBLIC:
            export = "--export"
        elif subkeys:
            export = "--export-secret-subkeys"
        else:
            export = "--export-secret-keys"
        args = ["--armor"] if self.settings.armor else []
        # Secret exports may need a passphrase from the agent.
        result = self._run([*args, export, *patterns], batch=key_type is KeyType.PUBLIC)
        if not result.stdout:
            raise OperationError("nothing exported")
        return result.stdout

    def export_path(self, key_type: KeyType, patterns: Sequence[str], subkeys: bool = False) -> Path:
        kind = "ssb" if subkeys and key_type is KeyType.SECRET else str(key_type)
        query = "_".join(patterns) if patterns else "all"
        name = self.settings.outfile.format(
            type=kind,
            query=query,
            ext="asc" if self.settings.armor else "pgp",
        )
        return self.settings.output_dir / name

    def export_keys(self, key_type: KeyType, patterns: Sequence[str] = (), subkeys: bool = False) -> Path:
        """Write the exported keys to the output directory and return the file path."""
        data = self.get_exported_keys(key_type, patterns, subkeys)
        path = self.export_path(key_type, patterns, subkeys)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise OperationError(f"cannot write {path}: {exc.strerror or exc}") from exc
        logger.info("exported %s keys to %s", key_type, path)
        return path

    @staticmethod
    def _imported_count(result: subprocess.CompletedProcess) -> int:
        status = result.stdout.decode("utf-8", errors="replace")
        return sum(1 for line in status.splitlines() if line.startswith("[GNUPG:] IMPORT_OK"))

    def import_keys(self, paths: Sequence[str]) -> int:
        """Import key files and return how many keys gpg reported as imported."""
        if not paths:
            raise OperationError("no files given")
        result = self._run(["--status-fd", "1", "--import", *paths])
        return self._imported_count(result)

    def import_text(self, text: str) -> int:
        if not text.strip():
            raise OperationError("nothing to import")
        result = self._run(["--status-fd", "1", "--import"], stdin=text.encode("utf-8"))
        return self._imported_count(result)

    def delete_key(self, key_type: KeyType, key_id: str) -> None:
        keys = self.get_keys(key_type, [key_id])
        if not keys:
            raise OperationError(f"key not found: {key_id}")
        # batch deletion only accepts fingerprints
        fingerprint = keys[0].get_fingerprint()
        if key_type is KeyType.SECRET:
            self._run(["--yes", "--delete-secret-keys", fingerprint])
        else:
            self._run(["--yes", "--delete-keys", fingerprint])

    def send_key(self, key_id: str) -> None:
        self._run(["--send-keys", key_id])

    def receive_keys(self, key_ids: Sequence[str]) -> int:
        result = self._run(["--status-fd", "1", "--receive-keys", *key_ids])
        return self._imported_count(result)

    def refresh_keys(self) -> None:
        self._run(["--refresh-keys"])

    def edit_key_command(self, key_id: str) -> list[str]:
        return self.command("--edit-key", key_id, batch=False)

    def sign_key_command(self, key_id: str) -> list[str]:
        args = ["--sign-key", key_id]
        if self.settings.default_key:
            args = ["--default-key", self.settings.default_key, *args]
        return self.command(*args, batch=False)

    def generate_key_command(self) -> list[str]:
        return self.command("--full-generate-key", batch=False)

    def run_interactive(self, cmd: Sequence[str]) -> None:
        """Run ``cmd`` attached to the terminal."""
        logger.debug("running interactively: %s", " ".join(cmd))
        try:
            result = subprocess.run(list(cmd))
        except FileNotFoundError as exc:
            raise OperationError(f"{GPG} executable not found") from exc
        if result.returncode != 0:
            raise OperationError(f"{GPG} exited with status {result.returncode}")
