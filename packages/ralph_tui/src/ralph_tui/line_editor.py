"""
Single-line text editor for prompts.

Each edit redraws only the part of the line that changed: the cursor moves
back to the first changed column, the new tail is written, the rest of the
line is cleared and the cursor is put back in place.
"""

from __future__ import annotations

from typing import Callable, Literal

from ralph_tui.keys import Key, KeyEvent, KeyName
from ralph_tui.types import CANCELLED, PromptResult

EditStatus = Literal["commit", "cancel"]


class LineEditor:
    """
    Line editing state machine.

    Args:
        output: Raw output function (RenderSurface.write_inline)
        value: Initial buffer
        cursor: Initial cursor position, defaults to the end of the buffer
        mask: Character echoed instead of the typed ones (passwords)
        max_length: Maximum number of characters kept
    """

    def __init__(
        self,
        output: Callable[[str], None],
        value: str = "",
        cursor: int | None = None,
        mask: str | None = None,
        max_length: int | None = None,
    ) -> None:
        if max_length is not None:
            value = value[:max_length]
        self._output = output
        self._value = value
        self._cursor = len(value) if cursor is None else min(max(cursor, 0), len(value))
        self._mask = mask
        self._max_length = max_length

    @property
    def value(self) -> str:
        return self._value

    @property
    def cursor(self) -> int:
        return self._cursor

    def _display(self, text: str) -> str:
        if self._mask is None:
            return text
        return self._mask * len(text)

    def start(self) -> None:
        """Draw the initial buffer and place the cursor."""
        self._output(self._display(self._value))
        self._move(len(self._value), self._cursor)

    def _move(self, from_col: int, to_col: int) -> None:
        if to_col < from_col:
            self._output(f"\x1b[{from_col - to_col}D")
        elif to_col > from_col:
            self._output(f"\x1b[{to_col - from_col}C")

    def _apply(self, value: str, cursor: int) -> None:
        """Replace the buffer and redraw from the first changed column."""
        old_value, old_cursor = self._value, self._cursor
        start = 0
        limit = min(len(old_value), len(value))
        while start < limit and old_value[start] == value[start]:
            start += 1

        self._value = value
        self._cursor = cursor

        if value == old_value:
            self._move(old_cursor, cursor)
            return

        self._move(old_cursor, start)
        tail = self._display(value[start:])
        out = tail
        if len(value) < len(old_value):
            out += "\x1b[K"
        self._output(out)
        self._move(len(value), cursor)

    def _room(self) -> int | None:
        if self._max_length is None:
            return None
        return max(0, self._max_length - len(self._value))

    def insert(self, text: str) -> None:
        room = self._room()
        if room is not None:
            text = text[:room]
        if not text:
            return
        value = self._value[:self._cursor] + text + self._value[self._cursor:]
        self._apply(value, self._cursor + len(text))

    def paste(self, text: str) -> None:
        self.insert(text.replace("\r\n", "").replace("\r", "").replace("\n", ""))

    def backspace(self) -> None:
        if self._cursor > 0:
            value = self._value[:self._cursor - 1] + self._value[self._cursor:]
            self._apply(value, self._cursor - 1)

    def delete_forward(self) -> None:
        if self._cursor < len(self._value):
            self._apply(self._value[:self._cursor] + self._value[self._cursor + 1:], self._cursor)

    def kill_to_start(self) -> None:
        if self._cursor > 0:
            self._apply(self._value[self._cursor:], 0)

    def kill_to_end(self) -> None:
        if self._cursor < len(self._value):
            self._apply(self._value[:self._cursor], self._cursor)

    def kill_word(self) -> None:
        """Delete the word before the cursor."""
        if self._cursor == 0:
            return
        new_cursor = self._cursor
        while new_cursor > 0 and self._value[new_cursor - 1].isspace():
            new_cursor -= 1
        while new_cursor > 0 and not self._value[new_cursor - 1].isspace():
            new_cursor -= 1
        self._apply(self._value[:new_cursor] + self._value[self._cursor:], new_cursor)

    def handle_key(self, event: KeyEvent) -> EditStatus | None:
        """
        Apply one key.

        Returns:
            "commit" on Enter, "cancel" on Escape or Ctrl+C, otherwise None
        """
        if event.matches(Key.enter):
            return "commit"
        if event.matches(Key.escape) or event.is_ctrl_c:
            return "cancel"

        if event.name == KeyName.PASTE:
            self.paste(event.text or "")
        elif event.matches(Key.backspace):
            self.backspace()
        elif event.matches(Key.delete) or event.matches(Key.ctrl("d")):
            self.delete_forward()
        elif event.matches(Key.left) or event.matches(Key.ctrl("b")):
            self._apply(self._value, max(0, self._cursor - 1))
        elif event.matches(Key.right) or event.matches(Key.ctrl("f")):
            self._apply(self._value, min(len(self._value), self._cursor + 1))
        elif event.matches(Key.home) or event.matches(Key.ctrl("a")):
            self._apply(self._value, 0)
        elif event.matches(Key.end) or event.matches(Key.ctrl("e")):
            self._apply(self._value, len(self._value))
        elif event.matches(Key.ctrl("u")):
            self.kill_to_start()
        elif event.matches(Key.ctrl("k")):
            self.kill_to_end()
        elif event.matches(Key.ctrl("w")) or event.matches(Key.alt("backspace")):
            self.kill_word()
        elif event.printable is not None:
            self.insert(event.printable)
        return None


def read_line(
    next_key: Callable[[], KeyEvent],
    output: Callable[[str], None],
    value: str = "",
    mask: str | None = None,
    max_length: int | None = None,
) -> PromptResult[str]:
    """
    Edit a line until Enter or cancellation.

    The prompt label must already be on screen; editing starts at the cursor.

    Returns:
        The committed text, or CANCELLED on Escape/Ctrl+C
    """
    editor = LineEditor(output, value=value, mask=mask, max_length=max_length)
    editor.start()
    while True:
        status = editor.handle_key(next_key())
        if status == "commit":
            output("\n")
            return editor.value
        if status == "cancel":
            output("\n")
            return CANCELLED
