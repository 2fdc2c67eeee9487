"""
Multi-step prompt wizard with back navigation.

Cancelling step k > 0 goes back to step k - 1 with the previous answer as
its default; cancelling the first step cancels the wizard.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from ralph_tui.prompts import PromptSpec
from ralph_tui.types import CANCELLED, Cancelled, is_cancelled

if TYPE_CHECKING:
    from ralph_tui.session import Session


def run_wizard(session: Session, steps: Sequence[PromptSpec]) -> dict[str, Any] | Cancelled:
    """
    Ask each step in order.

    Returns:
        Answers keyed by step name (or message when unnamed), or CANCELLED
    """
    keys = [step.key for step in steps]
    if len(set(keys)) != len(keys):
        raise ValueError("wizard step names must be unique")

    answers: dict[str, Any] = {}
    index = 0
    while index < len(steps):
        step = steps[index]
        if step.key in answers and answers[step.key] is not None:
            step = step.with_default(answers[step.key])

        session.surface.write(session.theme.hint(f"Step {index + 1}/{len(steps)}"))
        answer = session.ask(step)
        if is_cancelled(answer):
            if index == 0:
                return CANCELLED
            index -= 1
            continue

        answers[step.key] = answer
        index += 1

    return {key: answers[key] for key in keys}
