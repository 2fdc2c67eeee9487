"""
Build Loop Example

Runs a fake "agent" subprocess per iteration. Press Esc while it runs to
open the interrupt menu:

  1. Cancel Instantly                  - kill the agent, exit the loop
  2. Finish This Iteration, Then Stop  - let the agent finish, then stop
  3. Continue                          - resume

Press Ctrl+C twice within two seconds to force an exit.
"""

import subprocess
import sys

from ralph_tui import IterationLoop, Session, is_cancelled, prompt_iteration_limit
from ralph_tui.config import TuiSettings, configure_logging

FAKE_AGENT = "import time, random; time.sleep(random.uniform(2, 5))"


def main():
    settings = TuiSettings.from_env()
    configure_logging(settings)
    session = Session(settings=settings)

    sessions = ["2024-06-01-auth", "2024-06-03-billing"]
    picked = session.show_session_menu(sessions)
    if picked.action == "quit":
        return
    session.info(f"Session action: {picked.action} {picked.value or ''}".rstrip())

    limit = prompt_iteration_limit(session)
    if is_cancelled(limit):
        return

    def step(iteration: int) -> bool:
        process = subprocess.Popen([sys.executable, "-c", FAKE_AGENT])
        result = session.monitor_process(process, label=f"Iteration {iteration}")
        if result.cancelled:
            session.warning("Agent killed")
        else:
            session.success(f"Agent finished in {result.elapsed:.1f}s")
        return False

    outcome = IterationLoop(session, step, max_iterations=limit).run()
    session.info(f"Loop ended: {outcome.reason} after {outcome.iterations} iteration(s)")


if __name__ == "__main__":
    main()
