"""
Minimal build-loop driver honouring the cancellation checkpoints.

The loop checks the cancellation context at the top of every iteration and
again after each step returns:

- cancel requested: abort immediately
- stop after iteration: print the notice, reset the state and stop
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Literal, Optional

from ralph_tui.prompts import TextPrompt
from ralph_tui.types import CANCELLED, CheckpointDecision, PromptResult, is_cancelled

if TYPE_CHECKING:
    from ralph_tui.session import Session

logger = logging.getLogger(__name__)

LoopReason = Literal["completed", "limit", "stopped", "cancelled"]

# A step gets the 1-based iteration number and returns True when all work is done
Step = Callable[[int], Optional[bool]]


@dataclass(frozen=True)
class LoopOutcome:
    iterations: int
    reason: LoopReason


class IterationLoop:
    """
    Run `step` until it reports completion, the limit is hit or the
    operator interrupts.
    """

    def __init__(self, session: Session, step: Step, max_iterations: int | None = None) -> None:
        if max_iterations is not None and max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.session = session
        self.step = step
        self.max_iterations = max_iterations

    def _stop(self, iterations: int) -> LoopOutcome:
        self.session.stop_after_notice(escape_hint=False)
        self.session.context.reset()
        return LoopOutcome(iterations, "stopped")

    def run(self) -> LoopOutcome:
        context = self.session.context
        iteration = 0
        while True:
            decision = context.checkpoint()
            if decision == CheckpointDecision.ABORT:
                self.session.warning("Loop cancelled")
                return LoopOutcome(iteration, "cancelled")
            if decision == CheckpointDecision.STOP:
                return self._stop(iteration)
            if self.max_iterations is not None and iteration >= self.max_iterations:
                self.session.info(f"Reached iteration limit ({self.max_iterations})")
                return LoopOutcome(iteration, "limit")

            iteration += 1
            logger.info("Starting iteration %d", iteration)
            self.session.info(f"Iteration {iteration}")
            done = self.step(iteration)

            decision = context.checkpoint()
            if decision == CheckpointDecision.ABORT:
                self.session.warning("Loop cancelled")
                return LoopOutcome(iteration, "cancelled")
            if decision == CheckpointDecision.STOP:
                return self._stop(iteration)
            if done:
                self.session.success(f"All work done after {iteration} iteration(s)")
                return LoopOutcome(iteration, "completed")


def _limit_error(value: str) -> str | None:
    if value == "" or value.lower() == "q":
        return None
    if not value.isdigit() or int(value) < 1:
        return "Please enter a positive number, Enter for unlimited or q to quit"
    return None


def prompt_iteration_limit(session: Session) -> PromptResult[Optional[int]]:
    """
    Ask for the iteration limit.

    Returns:
        The limit, None for unlimited, or CANCELLED on q/Escape
    """
    spec = TextPrompt(
        message="Max iterations (Enter for unlimited, q to quit)",
        validate=_limit_error,
    )
    answer = session.prompt_text(spec)
    if is_cancelled(answer):
        return CANCELLED
    if answer.lower() == "q":
        session.surface.write(session.theme.hint("(cancelled)"))
        return CANCELLED
    if answer == "":
        return None
    return int(answer)
