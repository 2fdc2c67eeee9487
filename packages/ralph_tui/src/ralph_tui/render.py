"""
Render surfaces.

Interactive components draw whole frames (a list of lines). A surface
replaces the previous frame in place by moving the cursor up over the
lines it drew last time and repainting, so redraw cost is proportional to
the frame height rather than the screen.
"""

from __future__ import annotations

from typing import Callable, Protocol

from ralph_tui.utils import truncate_to_width


class RenderSurface(Protocol):
    """Where components draw."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def render(self, lines: list[str]) -> None:
        """Replace the current frame with `lines`."""
        ...

    def commit(self) -> None:
        """Keep the current frame on screen; the next frame starts below it."""
        ...

    def clear(self) -> None:
        """Erase the current frame."""
        ...

    def write(self, text: str) -> None:
        """Print a permanent line below any committed output."""
        ...

    def write_inline(self, data: str) -> None:
        """Send raw output at the cursor (used by the line editor)."""
        ...


class TerminalSurface:
    """
    Surface writing ANSI cursor movement to a terminal.

    Args:
        write: Raw output function (Terminal.write)
        size: Returns (columns, rows)
    """

    def __init__(self, write: Callable[[str], None], size: Callable[[], tuple[int, int]]) -> None:
        self._write = write
        self._size = size
        self._previous_lines = 0

    @property
    def width(self) -> int:
        return self._size()[0]

    @property
    def height(self) -> int:
        return self._size()[1]

    def render(self, lines: list[str]) -> None:
        width = self.width
        buffer = "\r"
        if self._previous_lines > 0:
            buffer += f"\x1b[{self._previous_lines}A"
        for line in lines:
            buffer += "\x1b[2K" + truncate_to_width(line, max(1, width - 1)) + "\n"
        # Drop leftovers when the new frame is shorter
        buffer += "\x1b[J"
        self._write(buffer)
        self._previous_lines = len(lines)

    def commit(self) -> None:
        self._previous_lines = 0

    def clear(self) -> None:
        if self._previous_lines > 0:
            self._write(f"\r\x1b[{self._previous_lines}A\x1b[J")
        self._previous_lines = 0

    def write(self, text: str) -> None:
        self.commit()
        self._write(f"\r\x1b[2K{text}\n")

    def write_inline(self, data: str) -> None:
        self._write(data)


class PlainSurface:
    """
    Surface for non-interactive output.

    Cursor movement is unavailable, so only the first frame of each
    component is printed; later frames of the same component are dropped.
    """

    def __init__(self, write: Callable[[str], None], columns: int = 80, rows: int = 24) -> None:
        self._write = write
        self._columns = columns
        self._rows = rows
        self._shown = False

    @property
    def width(self) -> int:
        return self._columns

    @property
    def height(self) -> int:
        return self._rows

    def render(self, lines: list[str]) -> None:
        if self._shown:
            return
        self._write("".join(f"{line}\n" for line in lines))
        self._shown = True

    def commit(self) -> None:
        self._shown = False

    def clear(self) -> None:
        self._shown = False

    def write(self, text: str) -> None:
        self._shown = False
        self._write(f"{text}\n")

    def write_inline(self, data: str) -> None:
        self._write(data)
