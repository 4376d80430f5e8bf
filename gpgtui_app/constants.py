"""Shared constant values for the gpgtui application."""

# Widths of the first table column in minimized/normal size.
KEYS_ROW_LENGTH = (31, 55)
# Border and highlight symbol around the table rows.
TABLE_PADDING = 7

OPTIONS_WIDTH = 38
OPTIONS_HEIGHT_PERCENT = 50
HIGHLIGHT_SYMBOL = "> "

# Color pairs
COLOR_PAIR_SELECTED = 1
COLOR_PAIR_BORDER = 2
COLOR_PAIR_SUCCESS = 3
COLOR_PAIR_WARNING = 4
COLOR_PAIR_FAILURE = 5
COLOR_PAIR_ACTION = 6
COLOR_PAIR_KEY = 7
COLOR_PAIR_DIM = 8
COLOR_PAIR_COMMAND = 9

APP_NAME = "gpgtui"
CONFIG_FILE_NAMES = ("gpgtui.yaml", "config.yaml")
CONFIG_ENV = "GPGTUI_CONFIG"
DEFAULT_OUTFILE = "{type}_{query}.{ext}"
