"""YAML configuration loading.

Settings are merged in this order: built-in defaults, the config file,
command line flags. The file is read once at startup; a missing or broken
file falls back to the defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml
from platformdirs import user_config_dir

from .constants import APP_NAME, CONFIG_ENV, CONFIG_FILE_NAMES, DEFAULT_OUTFILE
from .gpg.key import KeyDetail
from .keybindings import CustomKeyBinding, load_custom_bindings

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))

EXAMPLE_CONFIG = """# gpgtui configuration
general:
  tick_rate: 250
  style: plain
  detail_level: minimum
  log_file: null
  modifier_monitor: false
  key_bindings:
    - keys: ["C-d", "Q"]
      command: ":quit"
gpg:
  armor: false
  homedir: null
  outdir: null
  outfile: "{type}_{query}.{ext}"
  default_key: null
"""


@dataclass
class GpgSettings:
    armor: bool = False
    homedir: Optional[Path] = None
    outdir: Optional[Path] = None
    outfile: str = DEFAULT_OUTFILE
    default_key: Optional[str] = None

    @property
    def output_dir(self) -> Path:
        """Directory exported keys are written to."""
        if self.outdir is not None:
            return self.outdir
        home = self.homedir or Path(os.environ.get("GNUPGHOME", Path.home() / ".gnupg"))
        return home / "out"


@dataclass
class Settings:
    tick_rate: int = 250
    style: str = "plain"
    detail_level: KeyDetail = KeyDetail.MINIMUM
    log_file: Optional[Path] = None
    modifier_monitor: bool = False
    select: Optional[str] = None
    key_bindings: list[CustomKeyBinding] = field(default_factory=list)
    gpg: GpgSettings = field(default_factory=GpgSettings)

    @property
    def colored(self) -> bool:
        return self.style == "colored"


def find_config_path(explicit: Optional[str] = None) -> Optional[Path]:
    """Return the config file to read, if any exists."""
    candidate = explicit or os.environ.get(CONFIG_ENV)
    if candidate:
        return Path(candidate).expanduser()
    for name in CONFIG_FILE_NAMES:
        path = CONFIG_DIR / name
        if path.exists():
            return path
    return None


def load_config(path: Optional[Path]) -> dict[str, Any]:
    """Load the YAML mapping at ``path``; empty when missing or malformed."""
    if path is None:
        return {}
    try:
        with open(path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except FileNotFoundError:
        logger.warning("Config file %s does not exist", path)
        return {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error("Failed to load config %s: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error("Config %s is not a mapping, ignoring it", path)
        return {}
    return data


def _path(value: Any) -> Optional[Path]:
    if value in (None, ""):
        return None
    return Path(str(value)).expanduser()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        logger.warning("Ignoring config section %r: not a mapping", name)
        return {}
    return section


def settings_from_config(data: dict[str, Any], base: Optional[Settings] = None) -> Settings:
    """Apply a loaded config mapping on top of ``base``."""
    settings = base or Settings()
    general = _section(data, "general")
    gpg = _section(data, "gpg")

    if "tick_rate" in general:
        try:
            settings.tick_rate = max(1, int(general["tick_rate"]))
        except (TypeError, ValueError):
            logger.warning("Invalid tick_rate %r", general["tick_rate"])
    if general.get("style") in ("plain", "colored"):
        settings.style = general["style"]
    if "detail_level" in general:
        try:
            settings.detail_level = KeyDetail.from_str(str(general["detail_level"]))
        except ValueError as exc:
            logger.warning("Invalid detail_level: %s", exc)
    if general.get("log_file"):
        settings.log_file = _path(general["log_file"])
    if "modifier_monitor" in general:
        settings.modifier_monitor = bool(general["modifier_monitor"])
    bindings = general.get("key_bindings") or []
    if isinstance(bindings, list):
        settings.key_bindings = load_custom_bindings(bindings)
    else:
        logger.warning("Ignoring key_bindings: not a list")

    gpg_settings = replace(settings.gpg)
    if "armor" in gpg:
        gpg_settings.armor = bool(gpg["armor"])
    if gpg.get("homedir"):
        gpg_settings.homedir = _path(gpg["homedir"])
    if gpg.get("outdir"):
        gpg_settings.outdir = _path(gpg["outdir"])
    if gpg.get("outfile"):
        gpg_settings.outfile = str(gpg["outfile"])
    if gpg.get("default_key"):
        gpg_settings.default_key = str(gpg["default_key"])
    settings.gpg = gpg_settings
    return settings


def apply_args(settings: Settings, args: Any) -> Settings:
    """Override ``settings`` with the flags given on the command line."""
    if args.tick_rate is not None:
        settings.tick_rate = max(1, args.tick_rate)
    if args.style is not None:
        settings.style = args.style
    if args.detail_level is not None:
        settings.detail_level = KeyDetail.from_str(args.detail_level)
    if args.log_file is not None:
        settings.log_file = _path(args.log_file)
    if args.select is not None:
        settings.select = args.select
    if args.armor:
        settings.gpg.armor = True
    if args.homedir is not None:
        settings.gpg.homedir = _path(args.homedir)
    if args.outdir is not None:
        settings.gpg.outdir = _path(args.outdir)
    if args.outfile is not None:
        settings.gpg.outfile = args.outfile
    if args.default_key is not None:
        settings.gpg.default_key = args.default_key
    return settings


def load_settings(args: Any) -> Settings:
    path = find_config_path(args.config)
    if path is not None:
        logger.info("Loading config from %s", path)
    return apply_args(settings_from_config(load_config(path)), args)


def save_example_config(path: Optional[Path] = None) -> Path:
    """Write :data:`EXAMPLE_CONFIG` unless a file already exists there."""
    path = path or CONFIG_DIR / CONFIG_FILE_NAMES[0]
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
        logger.info("Created example config at %s", path)
    return path
