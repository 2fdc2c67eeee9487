"""
Multi-select menu with min/max constraints.
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

from ralph_tui.config import SCROLL_MARGIN
from ralph_tui.keys import Key, KeyEvent
from ralph_tui.menu import SEPARATOR_LINE, FocusList, MenuItem, coerce_items, render_window
from ralph_tui.theme import CHECKED, POINTER, UNCHECKED, DefaultTheme, Theme
from ralph_tui.types import CANCELLED, MenuOutcome, Selected
from ralph_tui.utils import normalize_to_single_line
from ralph_tui.viewport import ViewportState

logger = logging.getLogger(__name__)

MULTISELECT_HELP = "↑↓ Move  Space Toggle  A All  N None  Enter Confirm  Esc Cancel"


class MultiSelectItem(MenuItem):
    """Menu row with a checkbox."""
    checked: bool = False


class MultiSelectMenu:
    """
    Multi-select menu.

    Checking beyond `max_select` is ignored. Enter only resolves when at least
    `min_select` rows are checked (and at least one unless `allow_empty`);
    otherwise the counter line is highlighted and the menu stays open.
    """

    def __init__(
        self,
        items: Iterable[Union[MultiSelectItem, MenuItem, str]],
        title: str | None = None,
        min_select: int = 0,
        max_select: int | None = None,
        allow_empty: bool = False,
        visible_height: int = 10,
        default_index: int | None = None,
        theme: Theme | None = None,
        margin: int = SCROLL_MARGIN,
    ) -> None:
        if min_select < 0:
            raise ValueError("min_select must not be negative")
        if max_select is not None and max_select < max(min_select, 1):
            raise ValueError("max_select must be at least max(min_select, 1)")

        self.items: list[MultiSelectItem] = coerce_items(items, MultiSelectItem)
        self.title = title
        self.min_select = min_select
        self.max_select = max_select
        self.allow_empty = allow_empty
        self._theme = theme or DefaultTheme()
        self._focus = FocusList(self.items, visible_height, default_index, margin)
        self._requirement_unmet = False
        self.outcome: MenuOutcome | None = None

        # Preset checks beyond the maximum are dropped, first ones win
        kept = 0
        for item in self.items:
            if item.checked:
                if not item.selectable or (max_select is not None and kept >= max_select):
                    item.checked = False
                else:
                    kept += 1

    @property
    def focus_index(self) -> int:
        return self._focus.focus_index

    @property
    def viewport(self) -> ViewportState:
        return self._focus.viewport

    @property
    def checked_count(self) -> int:
        return sum(1 for item in self.items if item.checked)

    @property
    def checked_values(self) -> list:
        return [item.value for item in self.items if item.checked]

    @property
    def selectable_count(self) -> int:
        return self._focus.focusable_count

    def _at_max(self) -> bool:
        return self.max_select is not None and self.checked_count >= self.max_select

    def toggle(self, index: int) -> None:
        item = self.items[index]
        if not item.selectable:
            return
        if item.checked:
            item.checked = False
        elif not self._at_max():
            item.checked = True

    def select_all(self) -> None:
        for item in self.items:
            if self._at_max():
                break
            if item.selectable:
                item.checked = True

    def select_none(self) -> None:
        for item in self.items:
            item.checked = False

    def can_confirm(self) -> bool:
        count = self.checked_count
        if count < self.min_select:
            return False
        return count > 0 or self.allow_empty

    def handle_key(self, event: KeyEvent) -> bool:
        """
        Apply one key.

        Returns:
            True once the menu has resolved (see `outcome`)
        """
        if self.outcome is not None:
            return True
        self._requirement_unmet = False

        if event.matches(Key.escape) or event.is_ctrl_c:
            self.outcome = CANCELLED
        elif event.matches(Key.enter):
            if self.can_confirm():
                self.outcome = Selected(self.checked_values)
            else:
                logger.debug("Confirm blocked: %d checked, min %d", self.checked_count, self.min_select)
                self._requirement_unmet = True
        elif event.matches(Key.space):
            self.toggle(self._focus.focus_index)
        elif self._focus.navigate(event):
            pass
        elif event.matches("a"):
            self.select_all()
        elif event.matches("n"):
            self.select_none()
        return self.outcome is not None

    def counter_line(self) -> str:
        text = f"{self.checked_count}/{self.selectable_count} selected"
        if self.min_select > 0:
            text += f" (min: {self.min_select})"
        if self.max_select is not None:
            text += f" (max: {self.max_select})"
        if self._requirement_unmet:
            return self._theme.error(text)
        return self._theme.hint(text)

    def _row(self, index: int, item: MultiSelectItem, focused: bool) -> str:
        theme = self._theme
        if item.kind == "separator":
            return theme.disabled(f"  {item.text or SEPARATOR_LINE}")
        if item.kind == "header":
            return theme.header(normalize_to_single_line(item.text))

        box = CHECKED if item.checked else UNCHECKED
        text = f"{box} {normalize_to_single_line(item.text)}"
        if item.disabled:
            reason = f" ({item.disabled_reason})" if item.disabled_reason else ""
            return theme.disabled(f"  {text}{reason}")
        if focused:
            line = theme.focused(f"{POINTER} {text}")
            if item.description:
                line += theme.description(f"  {normalize_to_single_line(item.description)}")
            return line
        return f"  {text}"

    def render(self) -> list[str]:
        lines: list[str] = []
        if self.title:
            lines.append(self._theme.title(self.title))
        lines.append(self.counter_line())
        lines.extend(render_window(self.items, self._focus, self._theme, self._row))
        lines.append(self._theme.hint(MULTISELECT_HELP))
        return lines
