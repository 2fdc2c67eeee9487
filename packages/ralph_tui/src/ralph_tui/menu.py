"""
Single-select menu.

`SelectMenu` is a pure state machine: feed it KeyEvents with `handle_key`
and draw `render()` after every key until `outcome` is set.
"""

from __future__ import annotations

from typing import Any, Iterable, Literal, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ralph_tui.config import SCROLL_MARGIN
from ralph_tui.errors import NoSelectableItems
from ralph_tui.keys import Key, KeyEvent, KeyName
from ralph_tui.theme import MORE_ABOVE, MORE_BELOW, POINTER, DefaultTheme, Theme
from ralph_tui.types import CANCELLED, MenuOutcome, Selected
from ralph_tui.utils import normalize_to_single_line
from ralph_tui.viewport import ViewportState, update, visible_range

ItemKind = Literal["item", "separator", "header"]

SELECT_HELP = "↑↓ Navigate  Enter Select  Esc Cancel"
SEPARATOR_LINE = "─" * 24


class MenuItem(BaseModel):
    """
    One menu row.

    Separators and headers are drawn but never focusable. An item's value
    defaults to its text.
    """

    model_config = ConfigDict(populate_by_name=True)

    text: str = ""
    value: Any = None
    hotkey: str | None = None
    disabled: bool = False
    disabled_reason: str | None = Field(default=None, alias="disabledReason")
    description: str | None = None
    group: str | None = None
    kind: ItemKind = "item"

    @field_validator("hotkey")
    @classmethod
    def _single_printable(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if len(value) != 1 or not value.isprintable() or value.isspace():
            raise ValueError("hotkey must be exactly one printable character")
        return value

    @model_validator(mode="after")
    def _check_kind(self) -> MenuItem:
        if self.kind == "item":
            if not self.text:
                raise ValueError("menu item text must not be empty")
            if self.value is None:
                self.value = self.text
        elif self.hotkey is not None:
            raise ValueError(f"a {self.kind} cannot have a hotkey")
        return self

    @classmethod
    def separator(cls, text: str = "") -> MenuItem:
        return cls(text=text, kind="separator")

    @classmethod
    def header(cls, text: str) -> MenuItem:
        return cls(text=text, kind="header")

    @property
    def renderable(self) -> bool:
        return True

    @property
    def selectable(self) -> bool:
        return self.kind == "item" and not self.disabled


MenuItemLike = Union[MenuItem, str]


def coerce_items(items: Iterable[MenuItemLike], model: type[MenuItem] = MenuItem) -> list[Any]:
    """
    Copy items into a list owned by one menu.

    Plain strings are shorthand for items with that text.
    """
    result = []
    for item in items:
        if isinstance(item, str):
            result.append(model(text=item))
        elif isinstance(item, model):
            result.append(item.model_copy())
        else:
            result.append(model.model_validate(item.model_dump()))
    return result


class FocusList:
    """
    Focus movement over the selectable rows of a list.

    Focus walks only selectable rows; the viewport scrolls over all rows so
    headers and separators stay visible around the focus.
    """

    def __init__(
        self,
        items: Sequence[MenuItem],
        visible_height: int,
        default_index: int | None = None,
        margin: int = SCROLL_MARGIN,
    ) -> None:
        self._focusable = [i for i, item in enumerate(items) if item.selectable]
        if not self._focusable:
            raise NoSelectableItems("menu has no selectable items")
        self._margin = margin
        self._page = max(1, visible_height)
        self._pos = 0
        if default_index is not None and default_index in self._focusable:
            self._pos = self._focusable.index(default_index)
        self.viewport = update(
            ViewportState(total_items=len(items), visible_height=max(1, visible_height)),
            self._focusable[self._pos],
            margin,
        )

    @property
    def focus_index(self) -> int:
        """Index of the focused row in the full item list."""
        return self._focusable[self._pos]

    @property
    def focusable_count(self) -> int:
        return len(self._focusable)

    def focus_position(self, position: int) -> None:
        self._pos = position
        self.viewport = update(self.viewport, self._focusable[position], self._margin)

    def focus_item(self, index: int) -> bool:
        if index not in self._focusable:
            return False
        self.focus_position(self._focusable.index(index))
        return True

    def navigate(self, event: KeyEvent, wrap: bool = True) -> bool:
        """
        Apply a navigation key.

        Returns:
            True if the key was a navigation key
        """
        count = len(self._focusable)
        if event.matches(Key.up):
            pos = (self._pos - 1) % count if wrap else max(0, self._pos - 1)
        elif event.matches(Key.down):
            pos = (self._pos + 1) % count if wrap else min(count - 1, self._pos + 1)
        elif event.matches(Key.home):
            pos = 0
        elif event.matches(Key.end):
            pos = count - 1
        elif event.matches(Key.page_up):
            pos = max(0, self._pos - self._page)
        elif event.matches(Key.page_down):
            pos = min(count - 1, self._pos + self._page)
        else:
            return False
        self.focus_position(pos)
        return True


def render_window(
    items: Sequence[MenuItem],
    focus: FocusList,
    theme: Theme,
    row: Any,
) -> list[str]:
    """Draw the visible rows with scroll indicators above and below."""
    window = visible_range(focus.viewport)
    scrolls = focus.viewport.total_items > focus.viewport.visible_height
    lines: list[str] = []
    if scrolls:
        lines.append(theme.hint(f"  {MORE_ABOVE}") if window.has_more_above else "")
    for index in range(window.start, window.end + 1):
        lines.append(row(index, items[index], index == focus.focus_index))
    if scrolls:
        lines.append(theme.hint(f"  {MORE_BELOW}") if window.has_more_below else "")
    return lines


class SelectMenu:
    """
    Single-select menu.

    Args:
        items: Menu rows (strings are shorthand for plain items)
        title: Optional title line
        visible_height: Rows of items shown at once
        default_index: Row focused initially, if selectable
        theme: Styling
    """

    def __init__(
        self,
        items: Iterable[MenuItemLike],
        title: str | None = None,
        visible_height: int = 10,
        default_index: int | None = None,
        theme: Theme | None = None,
        margin: int = SCROLL_MARGIN,
    ) -> None:
        self.items: list[MenuItem] = coerce_items(items)
        self.title = title
        self._theme = theme or DefaultTheme()
        self._focus = FocusList(self.items, visible_height, default_index, margin)
        self.outcome: MenuOutcome | None = None

    @property
    def focus_index(self) -> int:
        return self._focus.focus_index

    @property
    def viewport(self) -> ViewportState:
        return self._focus.viewport

    @property
    def focused_item(self) -> MenuItem:
        return self.items[self._focus.focus_index]

    def _hotkey_target(self, char: str) -> int | None:
        wanted = char.lower()
        for index, item in enumerate(self.items):
            if item.selectable and item.hotkey is not None and item.hotkey.lower() == wanted:
                return index
        return None

    def handle_key(self, event: KeyEvent) -> bool:
        """
        Apply one key.

        Returns:
            True once the menu has resolved (see `outcome`)
        """
        if self.outcome is not None:
            return True

        if event.matches(Key.escape) or event.is_ctrl_c:
            self.outcome = CANCELLED
        elif event.matches(Key.enter):
            self.outcome = Selected(self.focused_item.value)
        elif self._focus.navigate(event):
            pass
        elif event.name == KeyName.CHAR and not event.ctrl and not event.alt and event.char:
            target = self._hotkey_target(event.char)
            if target is not None:
                self._focus.focus_item(target)
                self.outcome = Selected(self.focused_item.value)
        return self.outcome is not None

    def _row(self, index: int, item: MenuItem, focused: bool) -> str:
        theme = self._theme
        if item.kind == "separator":
            return theme.disabled(f"  {item.text or SEPARATOR_LINE}")
        if item.kind == "header":
            return theme.header(normalize_to_single_line(item.text))

        text = normalize_to_single_line(item.text)
        if item.hotkey:
            text = f"{text} ({item.hotkey})"
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
        lines.extend(render_window(self.items, self._focus, self._theme, self._row))
        lines.append(self._theme.hint(SELECT_HELP))
        return lines
