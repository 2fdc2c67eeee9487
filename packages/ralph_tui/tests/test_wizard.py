"""
Tests for ralph_tui/wizard.py - multi-step prompts with back navigation.
"""

import pytest

from ralph_tui.prompts import ConfirmPrompt, NumberPrompt, TextPrompt
from ralph_tui.types import CANCELLED

ENTER = "\r"
ESC = "\x1b"
PAUSE = None


def steps():
    return [
        TextPrompt(name="name", message="Project name", required=True),
        NumberPrompt(name="count", message="Iterations", min=1),
        ConfirmPrompt(name="go", message="Start now?"),
    ]


class TestRunWizard:
    """Tests for Session.run_wizard()."""

    def test_all_steps(self, make_session):
        session = make_session("ralph", ENTER, "3", ENTER, "y")
        assert session.run_wizard(steps()) == {"name": "ralph", "count": 3, "go": True}

    def test_step_headers(self, make_session, surface):
        make_session("ralph", ENTER, "3", ENTER, "y").run_wizard(steps())
        assert [line for line in surface.lines if line.startswith("Step")] == [
            "Step 1/3", "Step 2/3", "Step 3/3",
        ]

    def test_cancel_goes_back_with_previous_answer_as_default(self, make_session):
        session = make_session("ralph", ENTER, ESC, PAUSE, ENTER, "5", ENTER, "n")
        assert session.run_wizard(steps()) == {"name": "ralph", "count": 5, "go": False}

    def test_cancel_on_first_step_cancels(self, make_session):
        assert make_session(ESC).run_wizard(steps()) is CANCELLED

    def test_back_to_start_then_cancel(self, make_session):
        session = make_session("ralph", ENTER, ESC, PAUSE, ESC)
        assert session.run_wizard(steps()) is CANCELLED

    def test_duplicate_names_rejected(self, make_session):
        with pytest.raises(ValueError):
            make_session().run_wizard([TextPrompt(name="a", message="x"), TextPrompt(name="a", message="y")])
