"""
Interrupt subsystem: double Ctrl+C detection, the cancellation context read
by the build loop, and the three-option interrupt menu.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator

from ralph_tui.config import DOUBLE_PRESS_MS, FORCE_EXIT_CODE
from ralph_tui.errors import ReentrantInterrupt
from ralph_tui.keys import Key, KeyEvent, KeyName
from ralph_tui.theme import POINTER, DefaultTheme, Theme
from ralph_tui.types import (
    CheckpointDecision,
    InterruptChoice,
    InterruptSignal,
    InterruptState,
)

logger = logging.getLogger(__name__)

INTERRUPT_OPTIONS: list[tuple[InterruptChoice, str, str]] = [
    (InterruptChoice.CANCEL, "Cancel Instantly", "Kill process, exit loop now"),
    (InterruptChoice.STOP_AFTER, "Finish This Iteration, Then Stop", "Complete current task, then stop"),
    (InterruptChoice.CONTINUE, "Continue", "Resume without interruption"),
]

INTERRUPT_HINT = "Use ↑/↓ arrows and Enter to select, or press 1/2/3"
STOP_AFTER_NOTICE = "Loop will stop after this iteration"
STOP_AFTER_SUBNOTICE = "(Press ESC again to cancel immediately)"


class CtrlCTimer:
    """
    Double-press detector for Ctrl+C.

    A press within `threshold_ms` of the previous one means force exit;
    otherwise it is a soft cancel and starts a new window.
    """

    def __init__(
        self,
        threshold_ms: int = DOUBLE_PRESS_MS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.threshold_ms = threshold_ms
        self._clock = clock
        self.last_press: float | None = None

    def press(self) -> InterruptSignal:
        now = self._clock()
        last = self.last_press
        if last is not None and (now - last) * 1000.0 < self.threshold_ms:
            self.last_press = None
            return InterruptSignal.FORCE_EXIT
        self.last_press = now
        return InterruptSignal.CANCEL

    def reset(self) -> None:
        self.last_press = None


class CancellationContext:
    """
    Cancellation state shared between the interactive session and the loop.

    Reads and writes are serialised with a lock so a watcher thread can poll
    `state` while the interrupt menu runs. Only one interrupt menu may be
    active at a time (see `menu_guard`).
    """

    def __init__(self, exit_code: int = FORCE_EXIT_CODE) -> None:
        self.exit_code = exit_code
        self._lock = threading.Lock()
        self._state = InterruptState.NONE
        self._menu_active = False

    @property
    def state(self) -> InterruptState:
        with self._lock:
            return self._state

    @property
    def menu_active(self) -> bool:
        with self._lock:
            return self._menu_active

    def set_state(self, state: InterruptState) -> None:
        with self._lock:
            previous, self._state = self._state, state
        if previous != state:
            logger.info("Interrupt state %s -> %s", previous.value, state.value)

    def reset(self) -> None:
        self.set_state(InterruptState.NONE)

    def apply(self, choice: InterruptChoice) -> None:
        """Record the operator's interrupt menu choice."""
        if choice == InterruptChoice.CANCEL:
            self.set_state(InterruptState.CANCEL_REQUESTED)
        elif choice == InterruptChoice.STOP_AFTER:
            self.set_state(InterruptState.STOP_AFTER_ITERATION)

    @contextmanager
    def menu_guard(self) -> Iterator[None]:
        """
        Claim the interrupt menu.

        Raises:
            ReentrantInterrupt: If another interrupt menu is already showing
        """
        with self._lock:
            if self._menu_active:
                raise ReentrantInterrupt("interrupt menu already active")
            self._menu_active = True
        try:
            yield
        finally:
            with self._lock:
                self._menu_active = False

    def checkpoint(self) -> CheckpointDecision:
        """Decision for the loop at the top of an iteration or after a step."""
        state = self.state
        if state == InterruptState.CANCEL_REQUESTED:
            return CheckpointDecision.ABORT
        if state == InterruptState.STOP_AFTER_ITERATION:
            return CheckpointDecision.STOP
        return CheckpointDecision.PROCEED


class InterruptMenu:
    """
    Three-option interrupt dialog.

    Focus starts on "Continue" and arrows clamp at the ends. Digits 1-3
    resolve immediately; a lone Escape or Ctrl+C resolves as continue.
    """

    def __init__(self, context_label: str = "", theme: Theme | None = None) -> None:
        self.context_label = context_label
        self.focus = len(INTERRUPT_OPTIONS) - 1
        self._theme = theme or DefaultTheme()
        self.outcome: InterruptChoice | None = None

    def handle_key(self, event: KeyEvent) -> bool:
        if self.outcome is not None:
            return True

        if event.matches(Key.escape) or event.is_ctrl_c:
            self.outcome = InterruptChoice.CONTINUE
        elif event.matches(Key.enter):
            self.outcome = INTERRUPT_OPTIONS[self.focus][0]
        elif event.matches(Key.up):
            self.focus = max(0, self.focus - 1)
        elif event.matches(Key.down):
            self.focus = min(len(INTERRUPT_OPTIONS) - 1, self.focus + 1)
        elif event.name == KeyName.CHAR and not event.ctrl and event.char in ("1", "2", "3"):
            self.focus = int(event.char) - 1
            self.outcome = INTERRUPT_OPTIONS[self.focus][0]
        return self.outcome is not None

    def render(self) -> list[str]:
        theme = self._theme
        title = "Interrupt"
        if self.context_label:
            title += f": {self.context_label}"
        lines = [theme.warning(f"⚠ {title}"), ""]
        for index, (_choice, label, description) in enumerate(INTERRUPT_OPTIONS):
            text = f"{index + 1}. {label}"
            if index == self.focus:
                lines.append(theme.focused(f"{POINTER} {text}") + theme.description(f"  {description}"))
            else:
                lines.append(f"  {text}")
        lines.append("")
        lines.append(theme.hint(INTERRUPT_HINT))
        return lines

    def result_line(self) -> str:
        if self.outcome in (None, InterruptChoice.CONTINUE):
            return "→ Continuing..."
        label = next(label for choice, label, _ in INTERRUPT_OPTIONS if choice == self.outcome)
        return f"→ Selected: {label}"
