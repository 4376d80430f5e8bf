"""Background listener for modifier keys the terminal does not report.

Most terminals send the same bytes for ``F5`` and ``S-F5`` or for ``Up`` and
``S-Up``. When enabled in the configuration, this monitor watches the real
keyboard through pynput so the event reader can add the shift modifier.
Holding shift also releases the mouse so text can be selected.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable

from pynput import keyboard

logger = logging.getLogger(__name__)


class ModifierKeyMonitor:
    """Track the state of modifier keys using a background listener."""

    _SHIFT_KEYS: tuple[keyboard.Key, ...] = (
        keyboard.Key.shift,
        keyboard.Key.shift_l,
        keyboard.Key.shift_r,
    )

    def __init__(self) -> None:
        self._pressed_keys: set[keyboard.Key | keyboard.KeyCode] = set()
        self._lock = threading.Lock()
        self._listener: keyboard.Listener | None = None

    @property
    def running(self) -> bool:
        return self._listener is not None

    def start(self) -> None:
        """Start the pynput listener if it isn't already running."""
        if self._listener is not None:
            return

        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
        )
        self._listener.daemon = True
        self._listener.start()
        logger.debug("modifier monitor started")

    def stop(self) -> None:
        """Stop the listener and forget the pressed keys."""
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        with self._lock:
            self._pressed_keys.clear()

    def _on_press(self, key: keyboard.Key | keyboard.KeyCode) -> None:
        with self._lock:
            self._pressed_keys.add(key)

    def _on_release(self, key: keyboard.Key | keyboard.KeyCode) -> None:
        with self._lock:
            self._pressed_keys.discard(key)

    def _any_pressed(self, keys: Iterable[keyboard.Key]) -> bool:
        with self._lock:
            return any(key in self._pressed_keys for key in keys)

    def is_shift_pressed(self) -> bool:
        return self._any_pressed(self._SHIFT_KEYS)


def start_modifier_monitor(monitor: ModifierKeyMonitor | None = None) -> ModifierKeyMonitor:
    """Start ``monitor`` (or a new one) and return it."""
    monitor = monitor or ModifierKeyMonitor()
    monitor.start()
    return monitor
