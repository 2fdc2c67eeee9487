"""
Supervise a child process while listening for the interrupt key.
"""

from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ralph_tui.keys import Key
from ralph_tui.types import InterruptChoice

if TYPE_CHECKING:
    from ralph_tui.session import Session

logger = logging.getLogger(__name__)

FRAMES = ["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"]

POLL_INTERVAL = 0.1
GRACE_PERIOD = 5.0


@dataclass
class MonitorResult:
    """How a supervised process ended."""
    returncode: int | None
    cancelled: bool = False
    elapsed: float = 0.0


def terminate_process(process: subprocess.Popen, grace_period: float = GRACE_PERIOD) -> int | None:
    """SIGTERM the process, then SIGKILL it if it outlives the grace period."""
    if process.poll() is not None:
        return process.returncode
    logger.warning("Terminating process %s", process.pid)
    process.terminate()
    try:
        return process.wait(timeout=grace_period)
    except subprocess.TimeoutExpired:
        logger.warning("Process %s ignored SIGTERM, killing", process.pid)
        process.kill()
        return process.wait()


def _format_elapsed(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


def monitor_process(
    process: subprocess.Popen,
    session: Session,
    label: str = "",
    poll_interval: float = POLL_INTERVAL,
    grace_period: float = GRACE_PERIOD,
    clock: Callable[[], float] = time.monotonic,
) -> MonitorResult:
    """
    Wait for a process, opening the interrupt menu on Escape or Ctrl+C.

    Choosing "cancel" in the menu kills the process. "Stop after" and
    "continue" keep waiting; the stop request is left in the session's
    cancellation context for the loop to act on.

    Without an interactive terminal this simply waits.
    """
    start = clock()
    if session.degraded:
        returncode = process.wait()
        return MonitorResult(returncode, elapsed=clock() - start)

    frame = 0
    with session.interactive():
        while True:
            returncode = process.poll()
            if returncode is not None:
                session.surface.clear()
                return MonitorResult(returncode, elapsed=clock() - start)

            spinner = session.theme.focused(FRAMES[frame % len(FRAMES)])
            status = f"{spinner} {label or 'Running'} ({_format_elapsed(clock() - start)})"
            session.surface.render([status + session.theme.hint("  Esc to interrupt")])
            frame += 1

            event = session.next_key(timeout=poll_interval)
            if event is None or not (event.matches(Key.escape) or event.is_ctrl_c):
                continue

            session.surface.clear()
            choice = session.show_interrupt_menu(label)
            if choice == InterruptChoice.CANCEL:
                returncode = terminate_process(process, grace_period)
                return MonitorResult(returncode, cancelled=True, elapsed=clock() - start)
