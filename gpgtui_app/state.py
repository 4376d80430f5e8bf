"""Application state containers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .gpg.key import KeyDetail, KeyType
from .widget.table import TableState


@dataclass
class AppState:
    """Encapsulate mutable application flags."""

    running: bool = True
    show_options: bool = False
    colored: bool = False
    mouse_enabled: bool = True
    table_margin: int = 1
    detail: KeyDetail = KeyDetail.MINIMUM
    table_states: dict[KeyType, TableState] = field(default_factory=dict)
    # Printed on exit when started with --select.
    selected_output: Optional[str] = None
