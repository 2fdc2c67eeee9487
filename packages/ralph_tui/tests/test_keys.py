"""
Tests for ralph_tui/keys.py - key decoding and reading.
"""

import pytest

from ralph_tui.errors import InputClosed
from ralph_tui.keys import Key, KeyEvent, KeyName, KeyReader, canonical_key_id, decode_key


class TestKeyHelper:
    """Tests for the Key helper object."""

    def test_constants(self):
        assert Key.escape == "escape"
        assert Key.enter == "enter"
        assert Key.page_up == "pageup"

    def test_modifiers(self):
        assert Key.ctrl("c") == "ctrl+c"
        assert Key.alt("x") == "alt+x"
        assert Key.shift("tab") == "shift+tab"
        assert Key.ctrl_alt("d") == "ctrl+alt+d"


class TestDecodeSingleChars:
    """Tests for single-character input."""

    def test_printable(self):
        assert decode_key("a") == KeyEvent(KeyName.CHAR, char="a")

    def test_uppercase_sets_shift(self):
        event = decode_key("G")
        assert event.char == "G"
        assert event.shift is True

    def test_enter_variants(self):
        assert decode_key("\r").name == KeyName.ENTER
        assert decode_key("\n").name == KeyName.ENTER

    def test_backspace_variants(self):
        assert decode_key("\x7f").name == KeyName.BACKSPACE
        assert decode_key("\x08").name == KeyName.BACKSPACE

    def test_tab_and_space(self):
        assert decode_key("\t").name == KeyName.TAB
        assert decode_key(" ").name == KeyName.SPACE

    def test_lone_escape(self):
        assert decode_key("\x1b").name == KeyName.ESCAPE

    def test_ctrl_c_is_a_key(self):
        event = decode_key("\x03")
        assert event.is_ctrl_c
        assert event.char == "c"
        assert event.ctrl is True

    def test_ctrl_letters(self):
        assert decode_key("\x01").matches(Key.ctrl("a"))
        assert decode_key("\x15").matches(Key.ctrl("u"))

    def test_unicode(self):
        assert decode_key("é").char == "é"


class TestDecodeSequences:
    """Tests for escape sequences."""

    @pytest.mark.parametrize("seq,name", [
        ("\x1b[A", "up"),
        ("\x1b[B", "down"),
        ("\x1b[C", "right"),
        ("\x1b[D", "left"),
        ("\x1bOA", "up"),
        ("\x1b[H", "home"),
        ("\x1b[F", "end"),
        ("\x1bOH", "home"),
        ("\x1bOF", "end"),
    ])
    def test_cursor_keys(self, seq, name):
        assert decode_key(seq).name == name

    @pytest.mark.parametrize("seq,name", [
        ("\x1b[1~", "home"),
        ("\x1b[2~", "insert"),
        ("\x1b[3~", "delete"),
        ("\x1b[4~", "end"),
        ("\x1b[5~", "pageup"),
        ("\x1b[6~", "pagedown"),
        ("\x1b[7~", "home"),
        ("\x1b[8~", "end"),
    ])
    def test_tilde_keys(self, seq, name):
        assert decode_key(seq).name == name

    @pytest.mark.parametrize("seq,name", [
        ("\x1bOP", "f1"),
        ("\x1bOS", "f4"),
        ("\x1b[15~", "f5"),
        ("\x1b[24~", "f12"),
        ("\x1b[[A", "f1"),
    ])
    def test_function_keys(self, seq, name):
        assert decode_key(seq).name == name

    def test_xterm_modifiers(self):
        event = decode_key("\x1b[1;5A")
        assert event.name == KeyName.UP
        assert event.ctrl is True
        assert event.matches("ctrl+up")

    def test_modified_tilde(self):
        event = decode_key("\x1b[3;3~")
        assert event.name == KeyName.DELETE
        assert event.alt is True

    def test_shift_tab(self):
        assert decode_key("\x1b[Z").matches("shift+tab")

    def test_alt_char(self):
        event = decode_key("\x1bx")
        assert event.alt is True
        assert event.char == "x"
        assert event.matches(Key.alt("x"))

    def test_csi_u(self):
        assert decode_key("\x1b[99;5u").is_ctrl_c
        assert decode_key("\x1b[13u").name == KeyName.ENTER

    @pytest.mark.parametrize("seq", ["\x1b[99Q", "\x1b]0;title\x07", "\x1b[<0;1;2M", ""])
    def test_unknown_never_raises(self, seq):
        assert decode_key(seq).name == KeyName.UNKNOWN


class TestMatching:
    """Tests for key identifiers."""

    def test_letters_case_insensitive(self):
        assert decode_key("G").matches("g")
        assert decode_key("g").matches("G")

    def test_aliases(self):
        assert decode_key("\x1b").matches("esc")
        assert decode_key("\r").matches("return")

    def test_modifier_order_is_normalised(self):
        assert canonical_key_id("shift+ctrl+up") == "ctrl+shift+up"

    def test_plain_does_not_match_modified(self):
        assert not decode_key("\x1b[1;5A").matches("up")

    def test_printable(self):
        assert decode_key("x").printable == "x"
        assert decode_key(" ").printable == " "
        assert decode_key("\x01").printable is None
        assert decode_key("\x1b[A").printable is None


class FakeSource:
    def __init__(self, *chunks):
        self.chunks = list(chunks)
        self.timeouts = []

    def read(self, timeout):
        self.timeouts.append(timeout)
        if self.chunks:
            chunk = self.chunks.pop(0)
            return chunk or ""
        if timeout is None:
            raise InputClosed("done")
        return ""


class TestKeyReader:
    """Tests for KeyReader."""

    def test_fast_typing_in_arrival_order(self):
        reader = KeyReader(FakeSource("ab\x1b[Ac"))
        names = [reader.read_key().key_id for _ in range(4)]
        assert names == ["a", "b", "up", "c"]

    def test_split_sequence_is_joined(self):
        reader = KeyReader(FakeSource("\x1b", "[5", "~"))
        assert reader.read_key().name == KeyName.PAGE_UP

    def test_lone_escape_after_timeout(self):
        source = FakeSource("\x1b", None, "a")
        reader = KeyReader(source, escape_timeout=0.1)
        assert reader.read_key().name == KeyName.ESCAPE
        assert 0.1 in source.timeouts
        assert reader.read_key().char == "a"

    def test_line_mode_escape_is_complete(self):
        source = FakeSource("\x1b", "\n")
        reader = KeyReader(source, join_sequences=False)
        assert reader.read_key().name == KeyName.ESCAPE
        assert reader.read_key().matches("enter")
        assert source.timeouts == [None, None]

    def test_timeout_returns_none(self):
        now = [0.0]

        def clock():
            return now[0]

        class Idle:
            def read(self, timeout):
                now[0] += timeout
                return ""

        reader = KeyReader(Idle(), clock=clock)
        assert reader.read_key(timeout=0.5) is None

    def test_bracketed_paste(self):
        reader = KeyReader(FakeSource("\x1b[200~hello\nworld\x1b[201~x"))
        event = reader.read_key()
        assert event.name == KeyName.PASTE
        assert event.text == "hello\nworld"
        assert reader.read_key().char == "x"

    def test_end_of_input_raises(self):
        reader = KeyReader(FakeSource())
        with pytest.raises(InputClosed):
            reader.read_key()
