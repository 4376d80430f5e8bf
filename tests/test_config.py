import unittest
from unittest.mock import patch
import sys
import os
import tempfile
from argparse import Namespace
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.command import Quit  # noqa: E402
from gpgtui_app.config import (  # noqa: E402
    EXAMPLE_CONFIG,
    Settings,
    apply_args,
    find_config_path,
    load_config,
    load_settings,
    save_example_config,
    settings_from_config,
)
from gpgtui_app.gpg.key import KeyDetail  # noqa: E402


def make_args(**overrides):
    values = dict(
        config=None,
        tick_rate=None,
        style=None,
        detail_level=None,
        log_file=None,
        select=None,
        armor=False,
        homedir=None,
        outdir=None,
        outfile=None,
        default_key=None,
    )
    values.update(overrides)
    return Namespace(**values)


class TestConfigFiles(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, text):
        path = self.dir / "gpgtui.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_example_config_loads(self):
        settings = settings_from_config(load_config(self.write(EXAMPLE_CONFIG)))
        self.assertEqual(settings.tick_rate, 250)
        self.assertFalse(settings.colored)
        self.assertEqual(len(settings.key_bindings), 1)
        self.assertEqual(settings.key_bindings[0].command, Quit())
        self.assertEqual(settings.gpg.outfile, "{type}_{query}.{ext}")

    def test_values(self):
        path = self.write(
            "general:\n"
            "  tick_rate: 100\n"
            "  style: colored\n"
            "  detail_level: full\n"
            "gpg:\n"
            "  armor: true\n"
            "  homedir: /tmp/gnupg\n"
            "  default_key: '0xFEED'\n"
        )
        settings = settings_from_config(load_config(path))
        self.assertEqual(settings.tick_rate, 100)
        self.assertTrue(settings.colored)
        self.assertIs(settings.detail_level, KeyDetail.FULL)
        self.assertTrue(settings.gpg.armor)
        self.assertEqual(settings.gpg.homedir, Path("/tmp/gnupg"))
        self.assertEqual(settings.gpg.default_key, "0xFEED")

    def test_invalid_values_keep_defaults(self):
        path = self.write("general:\n  tick_rate: fast\n  detail_level: huge\n  key_bindings: 3\ngpg: []\n")
        with self.assertLogs("gpgtui_app.config", level="WARNING"):
            settings = settings_from_config(load_config(path))
        self.assertEqual(settings.tick_rate, 250)
        self.assertIs(settings.detail_level, KeyDetail.MINIMUM)
        self.assertEqual(settings.key_bindings, [])

    def test_broken_yaml(self):
        path = self.write("general: [unclosed\n")
        with self.assertLogs("gpgtui_app.config", level="ERROR"):
            self.assertEqual(load_config(path), {})

    def test_missing_and_non_mapping(self):
        self.assertEqual(load_config(None), {})
        with self.assertLogs("gpgtui_app.config", level="WARNING"):
            self.assertEqual(load_config(self.dir / "missing.yaml"), {})
        with self.assertLogs("gpgtui_app.config", level="ERROR"):
            self.assertEqual(load_config(self.write("- a\n- b\n")), {})
        self.assertEqual(load_config(self.write("")), {})

    def test_find_config_path(self):
        explicit = self.dir / "custom.yaml"
        self.assertEqual(find_config_path(str(explicit)), explicit)
        with patch.dict(os.environ, {"GPGTUI_CONFIG": str(explicit)}):
            self.assertEqual(find_config_path(), explicit)
        with patch('gpgtui_app.config.CONFIG_DIR', self.dir), patch.dict(os.environ, {}, clear=True):
            self.assertIsNone(find_config_path())
            path = self.write("")
            self.assertEqual(find_config_path(), path)

    def test_save_example_config(self):
        path = save_example_config(self.dir / "sub" / "gpgtui.yaml")
        self.assertEqual(path.read_text(encoding="utf-8"), EXAMPLE_CONFIG)
        path.write_text("general: {}\n", encoding="utf-8")
        save_example_config(path)
        self.assertEqual(path.read_text(encoding="utf-8"), "general: {}\n")


class TestArguments(unittest.TestCase):

    def test_arguments_override_config(self):
        settings = settings_from_config({"general": {"tick_rate": 100}, "gpg": {"armor": False}})
        settings = apply_args(
            settings,
            make_args(tick_rate=50, armor=True, detail_level="standard", outdir="/tmp/out", select="key_id"),
        )
        self.assertEqual(settings.tick_rate, 50)
        self.assertTrue(settings.gpg.armor)
        self.assertIs(settings.detail_level, KeyDetail.STANDARD)
        self.assertEqual(settings.gpg.outdir, Path("/tmp/out"))
        self.assertEqual(settings.select, "key_id")

    def test_defaults_untouched(self):
        settings = apply_args(Settings(), make_args())
        self.assertEqual(settings, Settings())

    def test_load_settings(self):
        with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as handle:
            handle.write("general:\n  style: colored\n")
        try:
            settings = load_settings(make_args(config=handle.name, style="plain"))
        finally:
            os.unlink(handle.name)
        self.assertFalse(settings.colored)


if __name__ == '__main__':
    unittest.main()
