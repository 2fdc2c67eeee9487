"""
Tests for ralph_tui/session.py - the engine facade driven by scripted input.
"""

import io

import pytest

from ralph_tui.errors import TerminalUnavailable
from ralph_tui.menu import MenuItem
from ralph_tui.prompts import TextPrompt
from ralph_tui.terminal import StreamTerminal
from ralph_tui.types import (
    CANCELLED,
    InterruptChoice,
    InterruptState,
    Selected,
    SessionMenuResult,
)

DOWN = "\x1b[B"
ENTER = "\r"
ESC = "\x1b"
CTRL_C = "\x03"
PAUSE = None


# =============================================================================
# Menus
# =============================================================================


class TestShowMenu:
    """Tests for Session.show_menu()."""

    def test_hotkey_selects(self, make_session, surface):
        # Scenario A
        session = make_session("G")
        items = [MenuItem(text=t, hotkey=t[0]) for t in ("Red", "Green", "Blue")]
        assert session.show_menu(items, title="Colour") == Selected("Green")
        assert surface.lines[-1] == "✓ Colour: Green"

    def test_navigate_and_enter(self, make_session):
        session = make_session(DOWN, DOWN, ENTER)
        assert session.show_menu(["a", "b", "c"]) == Selected("c")

    def test_escape_prints_cancelled(self, make_session, surface):
        session = make_session(ESC)
        assert session.show_menu(["a", "b"]) is CANCELLED
        assert surface.lines[-1] == "(cancelled)"

    def test_terminal_released_after_menu(self, make_session):
        session = make_session(ENTER)
        session.show_menu(["a"])
        assert session.terminal.start_count == 1
        assert session.terminal.stop_count == 1
        assert not session.terminal.started

    def test_terminal_released_on_error(self, make_session):
        session = make_session()

        class Boom:
            def render(self):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            session._drive(Boom())
        assert session.terminal.stop_count == 1

    def test_end_of_input_cancels(self, make_session):
        session = make_session()
        assert session.show_menu(["a"]) is CANCELLED

    def test_frames_redrawn_per_key(self, make_session, surface):
        session = make_session(DOWN, ENTER)
        session.show_menu(["a", "b"])
        assert surface.frames[0][0] == "❯ a"
        assert surface.frames[1][1] == "❯ b"


class TestShowMultiselect:
    """Tests for Session.show_multiselect()."""

    def test_min_select_blocks_enter(self, make_session, surface):
        # Scenario B
        session = make_session(ENTER, " ", ENTER)
        outcome = session.show_multiselect(["one", "two"], min_select=1)
        assert outcome == Selected(["one"])
        # The blocked Enter redrew the menu instead of resolving
        assert len(surface.frames) == 3


class TestSessionMenu:
    """Tests for Session.show_session_menu()."""

    def test_select_session(self, make_session):
        session = make_session(ENTER)
        assert session.show_session_menu(["s1", "s2"]) == SessionMenuResult("select", "s1")

    def test_new_by_hotkey(self, make_session):
        session = make_session("n")
        assert session.show_session_menu(["s1"]) == SessionMenuResult("new")

    def test_cancel_means_quit(self, make_session):
        session = make_session(ESC)
        assert session.show_session_menu(["s1"]) == SessionMenuResult("quit")

    def test_delete_flow(self, make_session):
        session = make_session("d", DOWN, ENTER, "y")
        assert session.show_session_menu(["s1", "s2"]) == SessionMenuResult("delete", "s2")

    def test_delete_declined_returns_to_picker(self, make_session):
        session = make_session("d", ENTER, "n", "q")
        assert session.show_session_menu(["s1"]) == SessionMenuResult("quit")

    def test_delete_disabled_without_sessions(self, make_session):
        session = make_session("d", ENTER)
        assert session.show_session_menu([]) == SessionMenuResult("new")


# =============================================================================
# Prompts
# =============================================================================


class TestPrompts:
    """Tests for line prompts."""

    def test_required_reprompts(self, make_session, surface):
        # Scenario D
        session = make_session(ENTER, "x", ENTER)
        assert session.prompt_text(TextPrompt(message="Name", required=True)) == "x"
        assert "✗ This field is required" in surface.lines
        assert surface.lines.count("? Name") == 2

    def test_text_cancel(self, make_session, surface):
        session = make_session("ab", ESC)
        assert session.prompt_text("Name") is CANCELLED
        assert surface.lines[-1] == "(cancelled)"

    def test_password_is_masked(self, make_session, surface):
        session = make_session("hunter2", ENTER)
        assert session.prompt_password("Token") == "hunter2"
        assert "hunter2" not in "".join(surface.inline)

    def test_number_retries(self, make_session, surface):
        session = make_session("abc", ENTER, "\x15", "7", ENTER)
        assert session.prompt_number("Count", min=1, max=10) == 7
        assert "✗ Please enter a valid number" in surface.lines

    def test_path(self, make_session, tmp_path):
        session = make_session("@sub", ENTER)
        assert session.prompt_path("Dir", base_dir=str(tmp_path)) == str(tmp_path / "sub")

    def test_path_empty(self, make_session):
        session = make_session(ENTER)
        assert session.prompt_path("Dir") is None

    def test_choice(self, make_session):
        session = make_session("x", "s")
        assert session.prompt_choice("Mode", choices=[("A", "Auto"), ("s", "Skip")]) == "S"

    def test_choice_default_on_enter(self, make_session):
        session = make_session(ENTER)
        assert session.prompt_choice("Mode", choices=[("A", "Auto"), ("s", "Skip")]) == "A"

    @pytest.mark.parametrize("keys,default,expected", [
        (("y",), False, True),
        (("n",), True, False),
        ((ENTER,), True, True),
        ((ENTER,), False, False),
    ])
    def test_confirm(self, make_session, keys, default, expected):
        session = make_session(*keys)
        assert session.confirm("Proceed?", default_yes=default) is expected

    def test_confirm_cancel(self, make_session, surface):
        session = make_session(ESC)
        assert session.confirm("Proceed?") is CANCELLED
        assert surface.lines[-1] == "(cancelled)"

    def test_danger_confirm(self, make_session):
        assert make_session("DELETE", ENTER).danger_confirm("Wipe everything") is True
        assert make_session("delete", ENTER).danger_confirm("Wipe everything") is False

    def test_search(self, make_session):
        session = make_session("an", DOWN, ENTER)
        assert session.prompt_search("Fruit", candidates=["banana", "mango", "kiwi"]) == "mango"


# =============================================================================
# Output
# =============================================================================


class TestOutput:
    """Tests for tables and progress through the session."""

    def test_table_written_as_lines(self, make_session, surface):
        make_session().table(["Name", "Status"], [["auth", "done"]])
        assert surface.lines == ["  Name  Status", "  " + "─" * 14, "  auth  done"]

    def test_progress_redraws_then_finishes(self, make_session, surface):
        session = make_session()
        session.progress(1, 4, "Sync", width=4)
        session.progress(4, 4, "Sync", width=4)
        assert len(surface.frames) == 2
        assert surface.last_frame == ["  Sync [████] 100% (4/4)"]
        session.progress_done("Synced")
        assert surface.current == []
        assert surface.lines[-1] == "✓ Synced"


# =============================================================================
# Ctrl+C
# =============================================================================


class TestCtrlC:
    """Tests for the Ctrl+C policy at the session level."""

    def test_single_ctrl_c_cancels_prompt(self, make_session):
        session = make_session(CTRL_C)
        assert session.prompt_text("Name") is CANCELLED

    def test_double_ctrl_c_forces_exit(self, make_session):
        session = make_session(CTRL_C, CTRL_C)
        with pytest.raises(SystemExit) as exc_info:
            session.show_menu(["a"])
            session.show_menu(["a"])
        assert exc_info.value.code == 130
        assert not session.terminal.started
        assert session.terminal.writes[-1] == "\x1b[?25h"

    def test_slow_presses_do_not_exit(self, make_session, clock):
        session = make_session(CTRL_C)
        assert session.show_menu(["a"]) is CANCELLED
        clock.advance(2.5)
        session.terminal.feed(CTRL_C)
        assert session.show_menu(["a"]) is CANCELLED


# =============================================================================
# Interrupt Menu
# =============================================================================


class TestInterruptMenu:
    """Tests for Session.show_interrupt_menu()."""

    def test_stop_after(self, make_session, surface):
        session = make_session(PAUSE, "2")
        assert session.show_interrupt_menu("build") == InterruptChoice.STOP_AFTER
        assert session.get_interrupt_state() == InterruptState.STOP_AFTER_ITERATION
        assert "→ Selected: Finish This Iteration, Then Stop" in surface.lines
        assert any("Loop will stop after this iteration" in line for line in surface.lines)

    def test_reentrant_menu_continues(self, make_session, context):
        session = make_session("1")
        with context.menu_guard():
            assert session.show_interrupt_menu() == InterruptChoice.CONTINUE
        assert context.state == InterruptState.NONE

    def test_reset(self, make_session):
        session = make_session(PAUSE, "1")
        session.show_interrupt_menu()
        assert session.get_interrupt_state() == InterruptState.CANCEL_REQUESTED
        session.reset_interrupt_state()
        assert session.get_interrupt_state() == InterruptState.NONE


# =============================================================================
# Degraded Mode
# =============================================================================


class TestDegradedMode:
    """Tests for running without a raw-mode terminal."""

    def test_switches_once_on_terminal_unavailable(self, make_session, monkeypatch):
        session = make_session()
        attempts = []

        def refuse():
            attempts.append(1)
            raise TerminalUnavailable("not a tty")

        monkeypatch.setattr(session.terminal, "start", refuse)
        monkeypatch.setattr("sys.stdin", io.StringIO("b\nq\n"))
        assert session.show_menu(["a", MenuItem(text="b", hotkey="b")]) == Selected("b")
        assert session.degraded
        assert isinstance(session.terminal, StreamTerminal)
        with session.interactive():
            pass
        assert len(attempts) == 1

    def test_interrupt_menu_skipped(self, make_session):
        session = make_session(interactive=False)
        assert session.degraded
        assert session.show_interrupt_menu() == InterruptChoice.CONTINUE
