"""CLI entry point for gpgtui."""

from __future__ import annotations

import argparse
import curses
import logging
import sys

from .app import App
from .clipboard import Clipboard
from .config import load_settings, save_example_config
from .errors import OperationError
from .gpg.keyring import GpgKeyring
from .selection import Selection

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gpgtui", description="Terminal user interface for GnuPG keyrings.")
    parser.add_argument("--config", help="path of the YAML config file")
    parser.add_argument("--init-config", action="store_true", help="write an example config file and exit")
    parser.add_argument("--homedir", help="GnuPG home directory")
    parser.add_argument("-a", "--armor", action="store_true", help="export keys in ASCII armored format")
    parser.add_argument("-o", "--outdir", help="directory exported keys are written to")
    parser.add_argument("--outfile", help="export file name template ({type}, {query}, {ext})")
    parser.add_argument("-d", "--default-key", help="default key used for signing")
    parser.add_argument("-t", "--tick-rate", type=int, help="UI refresh interval in milliseconds")
    parser.add_argument("-s", "--style", choices=("plain", "colored"), help="color style")
    parser.add_argument("--detail-level", choices=("minimum", "standard", "full"), help="initial key detail level")
    parser.add_argument(
        "--select",
        choices=sorted(selection.value for selection in Selection),
        help="print the chosen property of the selected key on exit",
    )
    parser.add_argument("--log-file", help="write debug logs to this file")
    return parser


def setup_logging(log_file) -> None:
    """Log to ``log_file`` when given; the terminal belongs to curses."""
    root = logging.getLogger()
    if log_file is None:
        root.addHandler(logging.NullHandler())
        return
    logging.basicConfig(filename=str(log_file), level=logging.DEBUG, format=LOG_FORMAT)


def start_monitor():
    """Start the pynput modifier monitor, or return ``None`` if it is unavailable."""
    try:
        from .input_listener import start_modifier_monitor
    except ImportError as exc:
        logger.warning("modifier monitor disabled: %s", exc)
        return None
    return start_modifier_monitor()


def main(argv: list[str] | None = None) -> int:
    """Run the curses application."""
    if argv is None:
        argv = sys.argv[1:]
    args = build_parser().parse_args(argv)
    if args.init_config:
        print(save_example_config())
        return 0

    settings = load_settings(args)
    setup_logging(settings.log_file)

    try:
        app = App(settings, GpgKeyring(settings.gpg), Clipboard())
    except OperationError as exc:
        print(f"gpgtui: {exc.message}", file=sys.stderr)
        return 1

    monitor = start_monitor() if settings.modifier_monitor else None
    app.modifier_monitor = monitor
    try:
        curses.wrapper(app.run)
    finally:
        if monitor is not None:
            monitor.stop()

    if app.state.selected_output is not None:
        print(app.state.selected_output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
