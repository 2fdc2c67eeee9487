"""
Keyboard input decoding for terminal applications.

Turns raw terminal input into `KeyEvent`s. Supports legacy xterm/VT
sequences (CSI and SS3), xterm modifier parameters (`ESC[1;5A`), the
CSI-u form (`ESC[99;5u`), Alt/Meta prefixes and bracketed paste.

API:
- decode_key(data) - Decode one complete sequence into a KeyEvent
- KeyEvent.matches(key_id) - Check an event against "ctrl+c", "up", ...
- Key - Helper object for building key identifiers
- KeyReader - Blocking reader with timeout over a KeySource
"""

from __future__ import annotations

import logging
import re
import time
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ralph_tui.config import ESCAPE_TIMEOUT_MS
from ralph_tui.stdin_buffer import InputChunk, StdinBuffer

if TYPE_CHECKING:
    from ralph_tui.terminal import KeySource

logger = logging.getLogger(__name__)


# =============================================================================
# Key Names
# =============================================================================

class KeyName:
    """Names carried by `KeyEvent.name`."""
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    HOME = "home"
    END = "end"
    PAGE_UP = "pageup"
    PAGE_DOWN = "pagedown"
    INSERT = "insert"
    DELETE = "delete"
    ENTER = "enter"
    ESCAPE = "escape"
    TAB = "tab"
    BACKSPACE = "backspace"
    SPACE = "space"
    CLEAR = "clear"
    F1 = "f1"
    F2 = "f2"
    F3 = "f3"
    F4 = "f4"
    F5 = "f5"
    F6 = "f6"
    F7 = "f7"
    F8 = "f8"
    F9 = "f9"
    F10 = "f10"
    F11 = "f11"
    F12 = "f12"
    CHAR = "char"
    PASTE = "paste"
    UNKNOWN = "unknown"


_NAME_ALIASES = {
    "esc": KeyName.ESCAPE,
    "return": KeyName.ENTER,
    "pageUp": KeyName.PAGE_UP,
    "pageDown": KeyName.PAGE_DOWN,
}

_MODIFIER_ORDER = ("ctrl", "alt", "shift")


# =============================================================================
# Key Event
# =============================================================================

@dataclass(frozen=True)
class KeyEvent:
    """
    One decoded keypress.

    Printable keys use name "char" with the character in `char`; Ctrl+letter
    is reported the same way with `ctrl=True` (Ctrl+C is `char="c", ctrl=True`).
    """
    name: str
    char: str | None = None
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    text: str | None = None

    @property
    def is_ctrl_c(self) -> bool:
        return self.name == KeyName.CHAR and self.ctrl and self.char == "c"

    @property
    def printable(self) -> str | None:
        """Text this key inserts into a line buffer, if any."""
        if self.ctrl or self.alt:
            return None
        if self.name == KeyName.CHAR:
            return self.char
        if self.name == KeyName.SPACE:
            return " "
        return None

    @property
    def key_id(self) -> str:
        """Canonical identifier such as "ctrl+c", "shift+tab" or "g"."""
        if self.name == KeyName.CHAR and self.char is not None:
            base = self.char.lower()
            mods = [m for m in ("ctrl", "alt") if getattr(self, m)]
        else:
            base = self.name
            mods = [m for m in _MODIFIER_ORDER if getattr(self, m)]
        return "+".join([*mods, base])

    def matches(self, key_id: str) -> bool:
        """
        Match this event against a key identifier.

        Letters compare case-insensitively ("g" matches both g and G).

        Args:
            key_id: Identifier like "escape", "ctrl+c", Key.ctrl("u")

        Returns:
            True if the identifier names this key
        """
        return canonical_key_id(key_id) == self.key_id


def canonical_key_id(key_id: str) -> str:
    """Normalise a key identifier to the form produced by `KeyEvent.key_id`."""
    parts = key_id.split("+") if key_id != "+" else ["+"]
    if len(parts) > 1 and parts[-1] == "":
        # "ctrl++" style identifiers name the plus key
        parts = [*parts[:-2], "+"]
    base = parts[-1]
    mods = {p.lower() for p in parts[:-1]}
    base = _NAME_ALIASES.get(base, base)
    if len(base) == 1:
        base = base.lower()
        mods.discard("shift")
    else:
        base = base.lower()
    return "+".join([*(m for m in _MODIFIER_ORDER if m in mods), base])


# =============================================================================
# Key Helper Class
# =============================================================================

class _KeyHelper:
    """
    Helper object for building key identifiers.

    Usage:
    - Key.escape, Key.enter, Key.up for special keys
    - Key.ctrl("c"), Key.alt("x") for modified keys
    """

    escape = KeyName.ESCAPE
    enter = KeyName.ENTER
    tab = KeyName.TAB
    space = KeyName.SPACE
    backspace = KeyName.BACKSPACE
    delete = KeyName.DELETE
    insert = KeyName.INSERT
    home = KeyName.HOME
    end = KeyName.END
    page_up = KeyName.PAGE_UP
    page_down = KeyName.PAGE_DOWN
    up = KeyName.UP
    down = KeyName.DOWN
    left = KeyName.LEFT
    right = KeyName.RIGHT

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"

    @staticmethod
    def ctrl_alt(key: str) -> str:
        return f"ctrl+alt+{key}"


Key = _KeyHelper()


# =============================================================================
# Sequence Tables
# =============================================================================

MODIFIERS = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

# Plain escape sequences without modifier parameters
LEGACY_SEQUENCE_KEYS: dict[str, str] = {
    "\x1b[A": KeyName.UP,
    "\x1b[B": KeyName.DOWN,
    "\x1b[C": KeyName.RIGHT,
    "\x1b[D": KeyName.LEFT,
    "\x1bOA": KeyName.UP,
    "\x1bOB": KeyName.DOWN,
    "\x1bOC": KeyName.RIGHT,
    "\x1bOD": KeyName.LEFT,
    "\x1b[H": KeyName.HOME,
    "\x1b[F": KeyName.END,
    "\x1bOH": KeyName.HOME,
    "\x1bOF": KeyName.END,
    "\x1b[E": KeyName.CLEAR,
    "\x1bOE": KeyName.CLEAR,
    "\x1bOM": KeyName.ENTER,
    "\x1bOP": KeyName.F1,
    "\x1bOQ": KeyName.F2,
    "\x1bOR": KeyName.F3,
    "\x1bOS": KeyName.F4,
    "\x1b[[A": KeyName.F1,
    "\x1b[[B": KeyName.F2,
    "\x1b[[C": KeyName.F3,
    "\x1b[[D": KeyName.F4,
    "\x1b[[E": KeyName.F5,
}

# Numeric `ESC [ n ~` sequences
TILDE_KEYS: dict[int, str] = {
    1: KeyName.HOME,
    2: KeyName.INSERT,
    3: KeyName.DELETE,
    4: KeyName.END,
    5: KeyName.PAGE_UP,
    6: KeyName.PAGE_DOWN,
    7: KeyName.HOME,
    8: KeyName.END,
    11: KeyName.F1,
    12: KeyName.F2,
    13: KeyName.F3,
    14: KeyName.F4,
    15: KeyName.F5,
    17: KeyName.F6,
    18: KeyName.F7,
    19: KeyName.F8,
    20: KeyName.F9,
    21: KeyName.F10,
    23: KeyName.F11,
    24: KeyName.F12,
}

_FINAL_KEYS = {
    "A": KeyName.UP,
    "B": KeyName.DOWN,
    "C": KeyName.RIGHT,
    "D": KeyName.LEFT,
    "H": KeyName.HOME,
    "F": KeyName.END,
    "E": KeyName.CLEAR,
    "P": KeyName.F1,
    "Q": KeyName.F2,
    "R": KeyName.F3,
    "S": KeyName.F4,
}

# rxvt shift/ctrl variants
_RXVT_KEYS: dict[str, tuple[str, int]] = {
    "\x1b[a": (KeyName.UP, MODIFIERS["shift"]),
    "\x1b[b": (KeyName.DOWN, MODIFIERS["shift"]),
    "\x1b[c": (KeyName.RIGHT, MODIFIERS["shift"]),
    "\x1b[d": (KeyName.LEFT, MODIFIERS["shift"]),
    "\x1bOa": (KeyName.UP, MODIFIERS["ctrl"]),
    "\x1bOb": (KeyName.DOWN, MODIFIERS["ctrl"]),
    "\x1bOc": (KeyName.RIGHT, MODIFIERS["ctrl"]),
    "\x1bOd": (KeyName.LEFT, MODIFIERS["ctrl"]),
    "\x1b[Z": (KeyName.TAB, MODIFIERS["shift"]),
}

_CSI_CODEPOINTS = {
    27: KeyName.ESCAPE,
    13: KeyName.ENTER,
    9: KeyName.TAB,
    127: KeyName.BACKSPACE,
    32: KeyName.SPACE,
}

_MODIFIED_FINAL = re.compile(r"^\x1b\[1;(\d+)([ABCDHFPQRS])$")
_MODIFIED_TILDE = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?~$")
_CSI_U = re.compile(r"^\x1b\[(\d+)(?:;(\d+))?u$")


# =============================================================================
# Decoding
# =============================================================================

def _with_modifiers(name: str, modifier: int, char: str | None = None) -> KeyEvent:
    return KeyEvent(
        name=name,
        char=char,
        shift=bool(modifier & MODIFIERS["shift"]),
        alt=bool(modifier & MODIFIERS["alt"]),
        ctrl=bool(modifier & MODIFIERS["ctrl"]),
    )


def _decode_char(char: str) -> KeyEvent:
    """Decode a single character."""
    code = ord(char)

    if char in ("\r", "\n"):
        return KeyEvent(KeyName.ENTER)
    if char == "\t":
        return KeyEvent(KeyName.TAB)
    if char in ("\x7f", "\x08"):
        return KeyEvent(KeyName.BACKSPACE)
    if char == "\x1b":
        return KeyEvent(KeyName.ESCAPE)
    if char == " ":
        return KeyEvent(KeyName.SPACE, char=" ")
    if code == 0:
        return KeyEvent(KeyName.SPACE, char=" ", ctrl=True)
    # Ctrl+A .. Ctrl+Z
    if 1 <= code <= 26:
        return KeyEvent(KeyName.CHAR, char=chr(code + 96), ctrl=True)
    # Ctrl+\ Ctrl+] Ctrl+^ Ctrl+_
    if 28 <= code <= 31:
        return KeyEvent(KeyName.CHAR, char=chr(code + 64), ctrl=True)
    if code < 32 or 0x80 <= code < 0xA0:
        return KeyEvent(KeyName.UNKNOWN)
    return KeyEvent(KeyName.CHAR, char=char, shift=char.isupper())


def _decode_csi_u(codepoint: int, modifier: int) -> KeyEvent:
    if codepoint in _CSI_CODEPOINTS:
        name = _CSI_CODEPOINTS[codepoint]
        return _with_modifiers(name, modifier, " " if name == KeyName.SPACE else None)
    if 32 < codepoint < 0x110000:
        char = chr(codepoint)
        event = _with_modifiers(KeyName.CHAR, modifier, char)
        return event
    return KeyEvent(KeyName.UNKNOWN)


def decode_key(data: str) -> KeyEvent:
    """
    Decode one complete input sequence.

    Unrecognised sequences decode to name "unknown" and never raise.

    Args:
        data: One sequence as split by StdinBuffer

    Returns:
        The decoded key event
    """
    if not data:
        return KeyEvent(KeyName.UNKNOWN)

    if len(data) == 1:
        return _decode_char(data)

    if data in LEGACY_SEQUENCE_KEYS:
        return KeyEvent(LEGACY_SEQUENCE_KEYS[data])

    if data in _RXVT_KEYS:
        name, modifier = _RXVT_KEYS[data]
        return _with_modifiers(name, modifier)

    match = _MODIFIED_FINAL.match(data)
    if match:
        return _with_modifiers(_FINAL_KEYS[match.group(2)], int(match.group(1)) - 1)

    match = _MODIFIED_TILDE.match(data)
    if match:
        name = TILDE_KEYS.get(int(match.group(1)))
        if name is not None:
            modifier = int(match.group(2)) - 1 if match.group(2) else 0
            return _with_modifiers(name, modifier)

    match = _CSI_U.match(data)
    if match:
        modifier = int(match.group(2)) - 1 if match.group(2) else 0
        return _decode_csi_u(int(match.group(1)), modifier)

    # Alt/Meta: ESC followed by one key
    if data.startswith("\x1b") and len(data) == 2:
        inner = _decode_char(data[1])
        if inner.name != KeyName.UNKNOWN:
            return KeyEvent(
                inner.name,
                char=inner.char,
                ctrl=inner.ctrl,
                alt=True,
                shift=inner.shift,
            )

    logger.debug("Unrecognised input sequence %r", data)
    return KeyEvent(KeyName.UNKNOWN)


def _chunk_to_event(chunk: InputChunk) -> KeyEvent:
    if chunk.kind == "paste":
        return KeyEvent(KeyName.PASTE, text=chunk.data)
    return decode_key(chunk.data)


# =============================================================================
# Key Reader
# =============================================================================

class KeyReader:
    """
    Reads key events from a KeySource, one event per call.

    Events are delivered strictly in arrival order. A lone ESC is told apart
    from the start of an escape sequence by a short secondary read. Line-mode
    sources cannot be polled, so with `join_sequences=False` whatever is
    buffered is taken as complete.
    """

    def __init__(
        self,
        source: KeySource,
        escape_timeout: float = ESCAPE_TIMEOUT_MS / 1000.0,
        clock: Callable[[], float] = time.monotonic,
        join_sequences: bool = True,
    ) -> None:
        self._source = source
        self._escape_timeout = escape_timeout
        self._clock = clock
        self._join_sequences = join_sequences
        self._buffer = StdinBuffer()
        self._pending: deque[KeyEvent] = deque()

    def read_key(self, timeout: float | None = None) -> KeyEvent | None:
        """
        Block until a key arrives.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            The next key event, or None if the timeout elapsed

        Raises:
            InputClosed: If the source reached end of input
        """
        if self._pending:
            return self._pending.popleft()

        deadline = None if timeout is None else self._clock() + timeout

        while True:
            remaining = None if deadline is None else max(0.0, deadline - self._clock())
            chunk = self._source.read(remaining)
            if chunk:
                self._feed(chunk)
                if self._pending:
                    return self._pending.popleft()
            if deadline is not None and self._clock() >= deadline:
                return None

    def _feed(self, data: str) -> None:
        for chunk in self._buffer.process(data):
            self._pending.append(_chunk_to_event(chunk))

        while self._buffer.pending:
            more = self._source.read(self._escape_timeout) if self._join_sequences else ""
            if not more:
                for chunk in self._buffer.flush():
                    self._pending.append(_chunk_to_event(chunk))
                return
            for chunk in self._buffer.process(more):
                self._pending.append(_chunk_to_event(chunk))

    def discard_pending(self) -> None:
        """Drop buffered and type-ahead input."""
        self._pending.clear()
        self._buffer.clear()
        while self._source.read(0):
            pass
