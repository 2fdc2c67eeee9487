"""
Terminal interface for ralph-tui

One implementation with a platform seam: raw-mode enable/disable and the
key-byte read are the only parts that differ between POSIX (termios) and
Windows (msvcrt).
"""

from __future__ import annotations

import atexit
import codecs
import logging
import os
import shutil
import signal
import sys
import time
from typing import Any, Protocol, TextIO

from ralph_tui.errors import InputClosed, TerminalUnavailable

logger = logging.getLogger(__name__)

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"
BRACKETED_PASTE_ON = "\x1b[?2004h"
BRACKETED_PASTE_OFF = "\x1b[?2004l"

# msvcrt reports special keys as a prefix character followed by a scan code
_WINDOWS_SCAN_CODES = {
    "H": "\x1b[A",
    "P": "\x1b[B",
    "M": "\x1b[C",
    "K": "\x1b[D",
    "G": "\x1b[H",
    "O": "\x1b[F",
    "I": "\x1b[5~",
    "Q": "\x1b[6~",
    "R": "\x1b[2~",
    "S": "\x1b[3~",
    ";": "\x1bOP",
    "<": "\x1bOQ",
    "=": "\x1bOR",
    ">": "\x1bOS",
    "?": "\x1b[15~",
    "@": "\x1b[17~",
    "A": "\x1b[18~",
    "B": "\x1b[19~",
    "C": "\x1b[20~",
    "D": "\x1b[21~",
    "\x85": "\x1b[23~",
    "\x86": "\x1b[24~",
}


class KeySource(Protocol):
    """Anything that yields raw terminal input."""

    def read(self, timeout: float | None) -> str:
        """
        Read whatever input is available.

        Args:
            timeout: Seconds to wait, None to block until data arrives

        Returns:
            Decoded input, or "" if the timeout elapsed

        Raises:
            InputClosed: At end of input
        """
        ...


class Terminal(KeySource, Protocol):
    """
    Terminal interface - protocol for terminal implementations.
    """

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    @property
    def interactive(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...


class ProcessTerminal:
    """
    Terminal implementation using process stdin/stdout in raw mode.

    Raw mode disables echo, line buffering and signal generation (so Ctrl+C
    arrives as a key) but keeps output post-processing, so "\\n" still
    moves to column 0.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._old_term_settings: Any = None
        self._started = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._previous_handlers: dict[int, Any] = {}
        self._atexit_registered = False

    @property
    def columns(self) -> int:
        return shutil.get_terminal_size((80, 24)).columns

    @property
    def rows(self) -> int:
        return shutil.get_terminal_size((80, 24)).lines

    @property
    def interactive(self) -> bool:
        return True

    @property
    def started(self) -> bool:
        return self._started

    def write(self, data: str) -> None:
        self._stdout.write(data)
        self._stdout.flush()

    def hide_cursor(self) -> None:
        self.write(HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(SHOW_CURSOR)

    # -------------------------------------------------------------------------
    # Raw mode
    # -------------------------------------------------------------------------

    def _enable_raw_mode(self) -> None:
        if sys.platform == "win32":
            # Turns on VT processing for ANSI output on Windows 10+ consoles
            os.system("")
            return

        import termios

        fd = self._stdin.fileno()
        try:
            self._old_term_settings = termios.tcgetattr(fd)
            mode = termios.tcgetattr(fd)
            mode[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK
                         | termios.ISTRIP | termios.IXON)
            mode[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
            mode[6][termios.VMIN] = 1
            mode[6][termios.VTIME] = 0
            termios.tcsetattr(fd, termios.TCSAFLUSH, mode)
        except (termios.error, OSError) as exc:
            self._old_term_settings = None
            raise TerminalUnavailable(f"cannot enter raw mode: {exc}") from exc

    def _disable_raw_mode(self) -> None:
        if sys.platform == "win32":
            return

        import termios

        if self._old_term_settings is not None:
            try:
                termios.tcsetattr(
                    self._stdin.fileno(),
                    termios.TCSADRAIN,
                    self._old_term_settings,
                )
            except (termios.error, OSError):
                logger.warning("Failed to restore terminal settings", exc_info=True)
            self._old_term_settings = None

    def _on_termination(self, signum: int, frame: object) -> None:
        previous = self._previous_handlers.get(signum)
        self.stop()
        if callable(previous):
            previous(signum, frame)
        else:
            raise SystemExit(128 + signum)

    def _install_restore_hooks(self) -> None:
        if not self._atexit_registered:
            atexit.register(self.stop)
            self._atexit_registered = True
        if sys.platform == "win32":
            return
        for signum in (signal.SIGTERM, signal.SIGHUP):
            try:
                self._previous_handlers[signum] = signal.signal(signum, self._on_termination)
            except (ValueError, OSError):
                # Not on the main thread
                pass

    def _remove_restore_hooks(self) -> None:
        for signum, handler in self._previous_handlers.items():
            try:
                signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
            except (ValueError, OSError):
                pass
        self._previous_handlers.clear()

    def start(self) -> None:
        """
        Acquire raw mode and hide the cursor.

        Raises:
            TerminalUnavailable: If stdin is not an interactive terminal
        """
        if self._started:
            return
        try:
            is_tty = self._stdin.isatty()
        except (AttributeError, ValueError):
            is_tty = False
        if not is_tty:
            raise TerminalUnavailable("stdin is not a terminal")

        self._enable_raw_mode()
        self._started = True
        self._install_restore_hooks()
        self.write(BRACKETED_PASTE_ON)
        self.hide_cursor()
        logger.debug("Raw mode acquired")

    def stop(self) -> None:
        """Restore the terminal. Safe to call more than once."""
        if not self._started:
            return
        self._started = False
        try:
            self.write(BRACKETED_PASTE_OFF)
            self.show_cursor()
        except (OSError, ValueError):
            pass
        self._disable_raw_mode()
        self._remove_restore_hooks()
        logger.debug("Raw mode released")

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def read(self, timeout: float | None) -> str:
        if sys.platform == "win32":
            return self._read_windows(timeout)
        return self._read_posix(timeout)

    def _read_posix(self, timeout: float | None) -> str:
        import select

        fd = self._stdin.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return ""
        data = os.read(fd, 1024)
        if not data:
            raise InputClosed("stdin closed")
        return self._decoder.decode(data)

    def _read_windows(self, timeout: float | None) -> str:
        import msvcrt

        deadline = None if timeout is None else time.monotonic() + timeout
        while not msvcrt.kbhit():  # type: ignore[attr-defined]
            if deadline is not None and time.monotonic() >= deadline:
                return ""
            time.sleep(0.01)

        chars: list[str] = []
        while msvcrt.kbhit():  # type: ignore[attr-defined]
            char = msvcrt.getwch()  # type: ignore[attr-defined]
            if char in ("\x00", "\xe0"):
                code = msvcrt.getwch()  # type: ignore[attr-defined]
                chars.append(_WINDOWS_SCAN_CODES.get(code, ""))
            else:
                chars.append(char)
        return "".join(chars)


class StreamTerminal:
    """
    Degraded terminal over plain streams (pipes, files, CI logs).

    Input is consumed one character at a time with no raw mode. A pipe
    cannot be polled portably, so a zero timeout returns nothing and any
    other timeout blocks.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None,
                 columns: int = 80, rows: int = 24) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._columns = columns
        self._rows = rows

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def interactive(self) -> bool:
        return False

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def write(self, data: str) -> None:
        self._stdout.write(data)
        self._stdout.flush()

    def hide_cursor(self) -> None:
        pass

    def show_cursor(self) -> None:
        pass

    def read(self, timeout: float | None) -> str:
        if timeout == 0:
            return ""
        char = self._stdin.read(1)
        if not char:
            raise InputClosed("end of input")
        return char
