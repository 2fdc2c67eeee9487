"""
Shared pytest fixtures for ralph_tui tests.
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

import pytest

from ralph_tui.config import TuiSettings
from ralph_tui.errors import InputClosed
from ralph_tui.interrupt import CancellationContext
from ralph_tui.session import Session
from ralph_tui.theme import PlainTheme
from ralph_tui.utils import strip_ansi

# Marks a pause in scripted input: the read that reaches it times out
PAUSE = None


# =============================================================================
# Clock Fixtures
# =============================================================================


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Terminal Mock Fixtures
# =============================================================================


class ScriptedTerminal:
    """
    Terminal replaying raw input chunks.

    A PAUSE entry makes one read time out. Once the script is exhausted,
    timed reads return "" and blocking reads raise InputClosed.
    """

    def __init__(
        self,
        chunks: Iterable[Optional[str]] = (),
        width: int = 80,
        height: int = 24,
        interactive: bool = True,
        clock: FakeClock | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self._columns = width
        self._rows = height
        self._interactive = interactive
        self._clock = clock
        self.writes: list[str] = []
        self.started = False
        self.start_count = 0
        self.stop_count = 0

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def interactive(self) -> bool:
        return self._interactive

    def start(self) -> None:
        self.started = True
        self.start_count += 1

    def stop(self) -> None:
        self.started = False
        self.stop_count += 1

    def write(self, data: str) -> None:
        self.writes.append(data)

    def hide_cursor(self) -> None:
        self.writes.append("\x1b[?25l")

    def show_cursor(self) -> None:
        self.writes.append("\x1b[?25h")

    def feed(self, *chunks: Optional[str]) -> None:
        self.chunks.extend(chunks)

    def read(self, timeout: float | None) -> str:
        if self.chunks:
            chunk = self.chunks.pop(0)
            if chunk is PAUSE:
                if self._clock is not None and timeout:
                    self._clock.advance(timeout)
                return ""
            return chunk
        if timeout is None:
            raise InputClosed("script exhausted")
        if self._clock is not None:
            self._clock.advance(timeout)
        return ""


class VirtualSurface:
    """Render surface capturing frames instead of emitting ANSI."""

    def __init__(self, width: int = 80, height: int = 24) -> None:
        self._width = width
        self._height = height
        self.frames: list[list[str]] = []
        self.current: list[str] = []
        self.lines: list[str] = []
        self.inline: list[str] = []
        self.commits = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def render(self, lines: list[str]) -> None:
        self.frames.append(list(lines))
        self.current = list(lines)

    def commit(self) -> None:
        self.commits += 1
        self.current = []

    def clear(self) -> None:
        self.current = []

    def write(self, text: str) -> None:
        self.lines.append(strip_ansi(text))

    def write_inline(self, data: str) -> None:
        self.inline.append(data)

    @property
    def last_frame(self) -> list[str]:
        return [strip_ansi(line) for line in self.frames[-1]] if self.frames else []

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


@pytest.fixture
def surface() -> VirtualSurface:
    return VirtualSurface()


@pytest.fixture
def make_terminal(clock: FakeClock) -> Callable[..., ScriptedTerminal]:
    def _make(*chunks: Optional[str], **options) -> ScriptedTerminal:
        return ScriptedTerminal(chunks, clock=clock, **options)
    return _make


# =============================================================================
# Session Fixtures
# =============================================================================


@pytest.fixture
def settings() -> TuiSettings:
    return TuiSettings(color=False)


@pytest.fixture
def context() -> CancellationContext:
    return CancellationContext()


@pytest.fixture
def make_session(
    clock: FakeClock,
    surface: VirtualSurface,
    settings: TuiSettings,
    context: CancellationContext,
) -> Callable[..., Session]:
    """Build a session whose terminal replays the given input chunks."""

    def _make(*chunks: Optional[str], **options) -> Session:
        terminal = ScriptedTerminal(chunks, clock=clock, **options)
        return Session(
            terminal=terminal,
            surface=surface,
            context=context,
            settings=settings,
            clock=clock,
            theme=PlainTheme(),
        )

    return _make
