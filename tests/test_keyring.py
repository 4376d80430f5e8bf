import unittest
from unittest.mock import patch, MagicMock
import sys
import os
import subprocess
import tempfile
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.config import GpgSettings  # noqa: E402
from gpgtui_app.errors import OperationError  # noqa: E402
from gpgtui_app.gpg.key import KeyType  # noqa: E402
from gpgtui_app.gpg.keyring import GpgKeyring  # noqa: E402

LISTING = (
    "pub:u:3072:1:ABCDEF0123456789:1600000000::::::scESC:\n"
    "fpr:::::::::0123456789ABCDEF0123456789ABCDEF01234567:\n"
    "uid:u::::1600000000::HASH::Alice <alice@example.com>::::\n"
)


def completed(stdout=b"", stderr=b"", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGpgKeyring(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.settings = GpgSettings(homedir=Path("/tmp/gnupg"), outdir=Path(self.tmpdir.name))
        self.keyring = GpgKeyring(self.settings)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_command(self):
        self.assertEqual(
            self.keyring.command("--list-keys"),
            ["gpg", "--batch", "--homedir", "/tmp/gnupg", "--list-keys"],
        )
        self.assertEqual(self.keyring.command("--edit-key", "0x1", batch=False)[:2], ["gpg", "--homedir"])

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_get_keys(self, mock_run):
        mock_run.return_value = completed(LISTING.encode())
        keys = self.keyring.get_keys(KeyType.PUBLIC)
        self.assertEqual(len(keys), 1)
        self.assertEqual(keys[0].get_id(), "0xABCDEF0123456789")
        args = mock_run.call_args[0][0]
        self.assertIn("--with-colons", args)
        self.assertIn("--list-sigs", args)

        self.keyring.get_keys(KeyType.SECRET, ["alice"])
        args = mock_run.call_args[0][0]
        self.assertIn("--list-secret-keys", args)
        self.assertEqual(args[-1], "alice")

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_failure_reports_last_stderr_line(self, mock_run):
        mock_run.return_value = completed(stderr=b"gpg: first\ngpg: keyserver receive failed: No data\n", returncode=2)
        with self.assertRaises(OperationError) as ctx:
            self.keyring.refresh_keys()
        self.assertEqual(ctx.exception.message, "keyserver receive failed: No data")

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_missing_executable(self, mock_run):
        mock_run.side_effect = FileNotFoundError()
        with self.assertRaises(OperationError) as ctx:
            self.keyring.get_all_keys()
        self.assertIn("not found", ctx.exception.message)

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_export_keys_writes_file(self, mock_run):
        mock_run.return_value = completed(b"-----BEGIN PGP PUBLIC KEY BLOCK-----")
        self.keyring.armor = True
        path = self.keyring.export_keys(KeyType.PUBLIC, ["0x1", "0x2"])
        self.assertEqual(path, Path(self.tmpdir.name) / "pub_0x1_0x2.asc")
        self.assertTrue(path.read_bytes().startswith(b"-----BEGIN"))
        args = mock_run.call_args[0][0]
        self.assertIn("--armor", args)
        self.assertIn("--export", args)

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_export_secret_subkeys(self, mock_run):
        mock_run.return_value = completed(b"\x99\x01")
        path = self.keyring.export_keys(KeyType.SECRET, [], subkeys=True)
        self.assertEqual(path.name, "ssb_all.pgp")
        self.assertIn("--export-secret-subkeys", mock_run.call_args[0][0])

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_export_nothing(self, mock_run):
        mock_run.return_value = completed(b"")
        with self.assertRaises(OperationError):
            self.keyring.get_exported_keys(KeyType.PUBLIC, ["nobody"])

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_import_counts_keys(self, mock_run):
        mock_run.return_value = completed(b"[GNUPG:] IMPORT_OK 1 AAAA\n[GNUPG:] IMPORT_OK 0 BBBB\n[GNUPG:] IMPORT_RES 2\n")
        self.assertEqual(self.keyring.import_keys(["a.asc"]), 2)
        self.assertEqual(self.keyring.import_text("-----BEGIN PGP"), 2)
        self.assertEqual(mock_run.call_args[1]["input"], b"-----BEGIN PGP")
        with self.assertRaises(OperationError):
            self.keyring.import_text("  ")
        with self.assertRaises(OperationError):
            self.keyring.import_keys([])

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_delete_uses_fingerprint(self, mock_run):
        mock_run.side_effect = [completed(LISTING.encode()), completed()]
        self.keyring.delete_key(KeyType.SECRET, "0xABCDEF0123456789")
        args = mock_run.call_args[0][0]
        self.assertEqual(args[-2:], ["--delete-secret-keys", "0123456789ABCDEF0123456789ABCDEF01234567"])

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_delete_unknown_key(self, mock_run):
        mock_run.return_value = completed(b"")
        with self.assertRaises(OperationError):
            self.keyring.delete_key(KeyType.PUBLIC, "0x1")

    def test_sign_uses_default_key(self):
        self.keyring.default_key = "0xFEED"
        self.assertEqual(
            self.keyring.sign_key_command("0x1")[-4:],
            ["--default-key", "0xFEED", "--sign-key", "0x1"],
        )
        self.keyring.default_key = ""
        self.assertIsNone(self.keyring.default_key)

    @patch('gpgtui_app.gpg.keyring.subprocess.run')
    def test_run_interactive(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0)
        self.keyring.run_interactive(self.keyring.generate_key_command())
        self.assertIn("--full-generate-key", mock_run.call_args[0][0])
        mock_run.return_value = MagicMock(returncode=2)
        with self.assertRaises(OperationError):
            self.keyring.run_interactive(["gpg"])


class TestGpgSettings(unittest.TestCase):

    def test_output_dir(self):
        self.assertEqual(GpgSettings(outdir=Path("/x")).output_dir, Path("/x"))
        self.assertEqual(GpgSettings(homedir=Path("/h")).output_dir, Path("/h/out"))


if __name__ == '__main__':
    unittest.main()
