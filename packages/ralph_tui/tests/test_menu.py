"""
Tests for ralph_tui/menu.py - single-select menu.
"""

import pytest
from pydantic import ValidationError

from ralph_tui.errors import NoSelectableItems
from ralph_tui.keys import decode_key
from ralph_tui.menu import MenuItem, SelectMenu
from ralph_tui.theme import PlainTheme
from ralph_tui.types import CANCELLED, Selected

UP = decode_key("\x1b[A")
DOWN = decode_key("\x1b[B")
HOME = decode_key("\x1b[H")
END = decode_key("\x1b[F")
PAGE_UP = decode_key("\x1b[5~")
PAGE_DOWN = decode_key("\x1b[6~")
ENTER = decode_key("\r")
ESCAPE = decode_key("\x1b")
CTRL_C = decode_key("\x03")


def colours():
    return [
        MenuItem(text="Red", hotkey="R"),
        MenuItem(text="Green", hotkey="G"),
        MenuItem(text="Blue", hotkey="B"),
    ]


def make_menu(items, **options):
    options.setdefault("theme", PlainTheme())
    return SelectMenu(items, **options)


# =============================================================================
# Menu Items
# =============================================================================


class TestMenuItem:
    """Tests for MenuItem validation."""

    def test_value_defaults_to_text(self):
        assert MenuItem(text="Red").value == "Red"

    def test_explicit_value(self):
        assert MenuItem(text="Red", value=1).value == 1

    @pytest.mark.parametrize("hotkey", ["", "ab", " ", "\x01"])
    def test_hotkey_must_be_one_printable_char(self, hotkey):
        with pytest.raises(ValidationError):
            MenuItem(text="Red", hotkey=hotkey)

    def test_item_needs_text(self):
        with pytest.raises(ValidationError):
            MenuItem(text="")

    def test_separator_and_header_not_selectable(self):
        assert not MenuItem.separator().selectable
        assert not MenuItem.header("Group").selectable
        assert MenuItem.header("Group").renderable

    def test_disabled_not_selectable(self):
        item = MenuItem(text="Old", disabled=True, disabledReason="archived")
        assert not item.selectable
        assert item.disabled_reason == "archived"

    def test_separator_cannot_have_hotkey(self):
        with pytest.raises(ValidationError):
            MenuItem(kind="separator", hotkey="x")


# =============================================================================
# Navigation
# =============================================================================


class TestNavigation:
    """Tests for focus movement."""

    def test_no_selectable_items(self):
        with pytest.raises(NoSelectableItems):
            make_menu([MenuItem.header("Nothing"), MenuItem(text="Off", disabled=True)])

    def test_skips_unselectable_rows(self):
        menu = make_menu([
            MenuItem.header("Group"),
            MenuItem(text="One"),
            MenuItem.separator(),
            MenuItem(text="Two", disabled=True),
            MenuItem(text="Three"),
        ])
        assert menu.focus_index == 1
        menu.handle_key(DOWN)
        assert menu.focus_index == 4

    @pytest.mark.parametrize("start", [0, 1, 2, 3, 4])
    def test_down_wraps_around(self, start):
        items = [f"Item {i}" for i in range(5)]
        menu = make_menu(items, default_index=start)
        for _ in range(len(items)):
            menu.handle_key(DOWN)
        assert menu.focus_index == start

    def test_up_wraps_to_last(self):
        menu = make_menu(colours())
        menu.handle_key(UP)
        assert menu.focused_item.text == "Blue"

    def test_home_end(self):
        menu = make_menu([f"Item {i}" for i in range(10)], default_index=4)
        menu.handle_key(END)
        assert menu.focus_index == 9
        menu.handle_key(HOME)
        assert menu.focus_index == 0

    def test_page_keys_clamp(self):
        menu = make_menu([f"Item {i}" for i in range(12)], visible_height=5)
        menu.handle_key(PAGE_DOWN)
        assert menu.focus_index == 5
        menu.handle_key(PAGE_DOWN)
        menu.handle_key(PAGE_DOWN)
        assert menu.focus_index == 11
        menu.handle_key(PAGE_UP)
        assert menu.focus_index == 6
        menu.handle_key(PAGE_UP)
        menu.handle_key(PAGE_UP)
        assert menu.focus_index == 0

    def test_default_index_ignored_when_not_selectable(self):
        menu = make_menu([MenuItem.header("H"), MenuItem(text="A")], default_index=0)
        assert menu.focus_index == 1

    def test_viewport_follows_focus(self):
        menu = make_menu([f"Item {i}" for i in range(30)], visible_height=5)
        for _ in range(10):
            menu.handle_key(DOWN)
        state = menu.viewport
        assert state.scroll_offset <= menu.focus_index <= state.scroll_offset + 4


# =============================================================================
# Resolution
# =============================================================================


class TestResolution:
    """Tests for selecting and cancelling."""

    def test_enter_selects_focused(self):
        menu = make_menu(colours())
        menu.handle_key(DOWN)
        assert menu.handle_key(ENTER) is True
        assert menu.outcome == Selected("Green")

    def test_hotkey_resolves_immediately(self):
        menu = make_menu(colours())
        assert menu.handle_key(decode_key("G")) is True
        assert menu.outcome == Selected("Green")

    def test_hotkey_is_case_insensitive(self):
        menu = make_menu(colours())
        menu.handle_key(decode_key("b"))
        assert menu.outcome == Selected("Blue")

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_hotkey_equals_navigation(self, index):
        by_hotkey = make_menu(colours())
        by_hotkey.handle_key(decode_key("RGB"[index]))

        by_arrows = make_menu(colours())
        for _ in range(index):
            by_arrows.handle_key(DOWN)
        by_arrows.handle_key(ENTER)

        assert by_hotkey.outcome == by_arrows.outcome

    def test_hotkey_of_disabled_item_ignored(self):
        menu = make_menu([MenuItem(text="A", hotkey="a"), MenuItem(text="B", hotkey="b", disabled=True)])
        assert menu.handle_key(decode_key("b")) is False
        assert menu.outcome is None

    def test_unbound_key_ignored(self):
        menu = make_menu(colours())
        assert menu.handle_key(decode_key("z")) is False

    @pytest.mark.parametrize("key", [ESCAPE, CTRL_C])
    def test_cancel(self, key):
        menu = make_menu(colours())
        assert menu.handle_key(key) is True
        assert menu.outcome is CANCELLED


# =============================================================================
# Rendering
# =============================================================================


class TestRender:
    """Tests for SelectMenu.render()."""

    def test_layout(self):
        menu = make_menu(colours(), title="Pick a colour")
        lines = menu.render()
        assert lines[0] == "Pick a colour"
        assert lines[1] == "❯ Red (R)"
        assert lines[2] == "  Green (G)"
        assert lines[-1] == "↑↓ Navigate  Enter Select  Esc Cancel"

    def test_scroll_indicators(self):
        menu = make_menu([f"Item {i}" for i in range(20)], visible_height=5)
        lines = menu.render()
        assert lines[0] == ""
        assert "more below" in lines[6]
        menu.handle_key(END)
        lines = menu.render()
        assert "more above" in lines[0]
        assert lines[6] == ""

    def test_frame_height_is_bounded_by_window(self):
        menu = make_menu([f"Item {i}" for i in range(200)], visible_height=5)
        assert len(menu.render()) == 5 + 3

    def test_disabled_reason_shown(self):
        menu = make_menu([MenuItem(text="A"), MenuItem(text="B", disabled=True, disabled_reason="busy")])
        assert "  B (busy)" in menu.render()
