"""Terminal events.

One background thread reads raw bytes from stdin, decodes them into
:class:`KeyChord` values and puts them on a bounded queue together with
periodic tick events and resize notifications. The main loop blocks on
:meth:`EventHandler.next`.
"""

from __future__ import annotations

import logging
import os
import queue
import select
import signal
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..keychord import FunctionKey, KeyChord, KeyCode, Modifiers

logger = logging.getLogger(__name__)

ESC_SEQUENCE_TIMEOUT_MS = 25
QUEUE_SIZE = 64

ByteReader = Callable[[int], Optional[bytes]]


@dataclass(frozen=True)
class KeyEvent:
    chord: KeyChord


@dataclass(frozen=True)
class ResizeEvent:
    pass


@dataclass(frozen=True)
class TickEvent:
    pass


Event = Union[KeyEvent, ResizeEvent, TickEvent]

_CSI_LETTERS = {
    b"A": KeyCode.UP,
    b"B": KeyCode.DOWN,
    b"C": KeyCode.RIGHT,
    b"D": KeyCode.LEFT,
    b"H": KeyCode.HOME,
    b"F": KeyCode.END,
    b"Z": KeyCode.BACKTAB,
    b"P": FunctionKey(1),
    b"Q": FunctionKey(2),
    b"R": FunctionKey(3),
    b"S": FunctionKey(4),
}

_CSI_NUMBERS = {
    1: KeyCode.HOME,
    2: KeyCode.INSERT,
    3: KeyCode.DELETE,
    4: KeyCode.END,
    5: KeyCode.PAGE_UP,
    6: KeyCode.PAGE_DOWN,
    7: KeyCode.HOME,
    8: KeyCode.END,
    11: FunctionKey(1),
    12: FunctionKey(2),
    13: FunctionKey(3),
    14: FunctionKey(4),
    15: FunctionKey(5),
    17: FunctionKey(6),
    18: FunctionKey(7),
    19: FunctionKey(8),
    20: FunctionKey(9),
    21: FunctionKey(10),
    23: FunctionKey(11),
    24: FunctionKey(12),
}

# xterm modifier parameter minus one is a shift/alt/control bit set.
_MODIFIER_BITS = ((1, Modifiers.SHIFT), (2, Modifiers.ALT), (4, Modifiers.CONTROL))

# X10 mouse wheel buttons
_WHEEL_UP = 64
_WHEEL_DOWN = 65


def _modifiers(param: int) -> Modifiers:
    modifiers = Modifiers.NONE
    for bit, modifier in _MODIFIER_BITS:
        if (param - 1) & bit:
            modifiers |= modifier
    return modifiers


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_csi(read: ByteReader) -> Optional[KeyChord]:
    params = b""
    while True:
        part = read(ESC_SEQUENCE_TIMEOUT_MS)
        if part is None:
            return KeyChord(KeyCode.ESC)
        if part == b"M" and not params:
            data = [read(ESC_SEQUENCE_TIMEOUT_MS) for _ in range(3)]
            if data[0] is None:
                return None
            button = data[0][0] - 32
            if button == _WHEEL_UP:
                return KeyChord(KeyCode.UP)
            if button == _WHEEL_DOWN:
                return KeyChord(KeyCode.DOWN)
            return None
        if part.isalpha() or part == b"~":
            break
        params += part
        if len(params) > 16:
            return None

    numbers = []
    for value in params.split(b";"):
        try:
            numbers.append(int(value))
        except ValueError:
            numbers.append(1)
    modifiers = _modifiers(numbers[1]) if len(numbers) > 1 else Modifiers.NONE

    if part == b"~":
        code = _CSI_NUMBERS.get(numbers[0])
    else:
        code = _CSI_LETTERS.get(part)
    if code is None:
        return None
    return KeyChord(code, modifiers)


def decode_key(first: bytes, read: ByteReader) -> Optional[KeyChord]:
    """Decode one key press starting with the byte ``first``.

    ``read(timeout_ms)`` returns the next pending byte or ``None``. Returns
    ``None`` for sequences that do not map to a key.
    """
    if first in (b"\r", b"\n"):
        return KeyChord(KeyCode.ENTER)
    if first == b"\t":
        return KeyChord(KeyCode.TAB)
    if first in (b"\x7f", b"\x08"):
        return KeyChord(KeyCode.BACKSPACE)
    if first == b"\x00":
        return KeyChord(" ", Modifiers.CONTROL)
    if first != b"\x1b" and first[0] < 0x20:
        return KeyChord(chr(first[0] + 0x60), Modifiers.CONTROL)

    if first != b"\x1b":
        data = first
        for _ in range(_utf8_length(first[0]) - 1):
            part = read(ESC_SEQUENCE_TIMEOUT_MS)
            if part is None:
                break
            data += part
        return KeyChord(data.decode("utf-8", errors="replace"))

    seq = read(ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None or seq == b"\x1b":
        return KeyChord(KeyCode.ESC)
    if seq == b"[":
        return _decode_csi(read)
    if seq == b"O":
        part = read(ESC_SEQUENCE_TIMEOUT_MS)
        code = _CSI_LETTERS.get(part) if part is not None else None
        return KeyChord(code) if code is not None else KeyChord(KeyCode.ESC)
    # ESC followed by a key is how terminals send Alt.
    chord = decode_key(seq, read)
    if chord is None:
        return None
    return KeyChord(chord.code, chord.modifiers | Modifiers.ALT)


def _read_ready_byte(fd: int, timeout_ms: int) -> Optional[bytes]:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def read_key(fd: int, timeout_ms: int) -> Optional[KeyChord]:
    """Wait up to ``timeout_ms`` for a key press on ``fd``."""
    first = _read_ready_byte(fd, timeout_ms)
    if first is None:
        return None
    return decode_key(first, lambda timeout: _read_ready_byte(fd, timeout))


class EventHandler:
    """Owns the reader thread and the event queue."""

    def __init__(self, tick_rate_ms: int, fd: Optional[int] = None, modifier_monitor=None) -> None:
        self.tick_rate = max(1, tick_rate_ms) / 1000.0
        self.fd = fd
        self.modifier_monitor = modifier_monitor
        self.events: "queue.Queue[Event]" = queue.Queue(maxsize=QUEUE_SIZE)
        self._stop = threading.Event()
        self._paused = threading.Event()
        self._idle = threading.Event()
        self._resized = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._previous_handler = None
        self._owns_fd = False

    def start(self) -> None:
        """Start the reader thread; must be called from the main thread."""
        if self._thread is not None:
            return
        if self.fd is None:
            if os.isatty(0):
                self.fd = 0
            else:
                self.fd = os.open("/dev/tty", os.O_RDONLY)
                self._owns_fd = True
        if hasattr(signal, "SIGWINCH"):
            self._previous_handler = signal.signal(signal.SIGWINCH, self._on_resize)
        self._thread = threading.Thread(target=self._run, name="event-reader", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1)
            self._thread = None
        if self._previous_handler is not None:
            signal.signal(signal.SIGWINCH, self._previous_handler)
            self._previous_handler = None
        if self._owns_fd:
            os.close(self.fd)
            self.fd = None
            self._owns_fd = False

    def pause(self) -> None:
        """Stop reading stdin until :meth:`resume` so a child process can use it."""
        self._paused.set()
        if self._thread is not None:
            self._idle.wait(timeout=1)

    def resume(self) -> None:
        self._idle.clear()
        self._paused.clear()

    def next(self, timeout: Optional[float] = None) -> Event:
        """Block until the next event; raises :class:`queue.Empty` on timeout."""
        return self.events.get(timeout=timeout)

    def _on_resize(self, signum, frame) -> None:
        self._resized.set()

    def _put(self, event: Event, block: bool = True) -> None:
        try:
            self.events.put(event, block=block, timeout=self.tick_rate if block else None)
        except queue.Full:
            logger.debug("dropping %s: event queue is full", type(event).__name__)

    def _add_shift(self, chord: KeyChord) -> KeyChord:
        if self.modifier_monitor is None or isinstance(chord.code, str):
            return chord
        if self.modifier_monitor.is_shift_pressed():
            return KeyChord(chord.code, chord.modifiers | Modifiers.SHIFT)
        return chord

    def _run(self) -> None:
        next_tick = time.monotonic() + self.tick_rate
        while not self._stop.is_set():
            if self._paused.is_set():
                self._idle.set()
                time.sleep(0.05)
                next_tick = time.monotonic() + self.tick_rate
                continue
            timeout_ms = int(max(0.0, next_tick - time.monotonic()) * 1000)
            try:
                chord = read_key(self.fd, timeout_ms)
            except OSError as exc:
                logger.error("stopped reading terminal input: %s", exc)
                return
            if chord is not None:
                self._put(KeyEvent(self._add_shift(chord)))
            if self._resized.is_set():
                self._resized.clear()
                self._put(ResizeEvent(), block=False)
            if time.monotonic() >= next_tick:
                self._put(TickEvent(), block=False)
                next_tick = time.monotonic() + self.tick_rate
