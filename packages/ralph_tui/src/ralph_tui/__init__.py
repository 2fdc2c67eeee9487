"""
ralph-tui - interactive terminal UI and cancellation control for build loops.

Menus, validated prompts and the double Ctrl+C / interrupt-menu subsystem,
driven from a raw-mode terminal or, when none is available, plain streams.
"""

from ralph_tui.config import VERSION, TuiSettings, configure_logging
from ralph_tui.errors import (
    InputCancelled,
    InputClosed,
    NoSelectableItems,
    ReentrantInterrupt,
    TerminalUnavailable,
    TuiError,
    ValidationFailed,
)
from ralph_tui.interrupt import CancellationContext, CtrlCTimer, InterruptMenu
from ralph_tui.keys import Key, KeyEvent, KeyName, KeyReader, decode_key
from ralph_tui.line_editor import LineEditor, read_line
from ralph_tui.loop import IterationLoop, LoopOutcome, prompt_iteration_limit
from ralph_tui.menu import MenuItem, SelectMenu
from ralph_tui.monitor import MonitorResult, monitor_process, terminate_process
from ralph_tui.multiselect import MultiSelectItem, MultiSelectMenu
from ralph_tui.paths import normalize_path
from ralph_tui.prompts import (
    ChoicePrompt,
    ConfirmPrompt,
    DangerConfirmPrompt,
    NumberPrompt,
    PasswordPrompt,
    PathPrompt,
    SearchMenu,
    SearchPrompt,
    TextPrompt,
)
from ralph_tui.render import PlainSurface, RenderSurface, TerminalSurface
from ralph_tui.session import Session
from ralph_tui.stdin_buffer import StdinBuffer
from ralph_tui.terminal import KeySource, ProcessTerminal, StreamTerminal, Terminal
from ralph_tui.theme import DefaultTheme, PlainTheme, Theme
from ralph_tui.types import (
    CANCELLED,
    Cancelled,
    CheckpointDecision,
    InterruptChoice,
    InterruptSignal,
    InterruptState,
    Selected,
    SessionMenuResult,
    is_cancelled,
)
from ralph_tui.viewport import ViewportRange, ViewportState, update, visible_range
from ralph_tui.wizard import run_wizard

__version__ = VERSION

__all__ = [
    # Session
    "Session",
    # Results
    "CANCELLED",
    "Cancelled",
    "Selected",
    "SessionMenuResult",
    "is_cancelled",
    # Interrupts
    "CancellationContext",
    "CheckpointDecision",
    "CtrlCTimer",
    "InterruptChoice",
    "InterruptMenu",
    "InterruptSignal",
    "InterruptState",
    # Keys and terminal
    "Key",
    "KeyEvent",
    "KeyName",
    "KeyReader",
    "KeySource",
    "ProcessTerminal",
    "StdinBuffer",
    "StreamTerminal",
    "Terminal",
    "decode_key",
    # Rendering
    "DefaultTheme",
    "PlainSurface",
    "PlainTheme",
    "RenderSurface",
    "TerminalSurface",
    "Theme",
    # Components
    "LineEditor",
    "MenuItem",
    "MultiSelectItem",
    "MultiSelectMenu",
    "SearchMenu",
    "SelectMenu",
    "ViewportRange",
    "ViewportState",
    "read_line",
    "update",
    "visible_range",
    # Prompts
    "ChoicePrompt",
    "ConfirmPrompt",
    "DangerConfirmPrompt",
    "NumberPrompt",
    "PasswordPrompt",
    "PathPrompt",
    "SearchPrompt",
    "TextPrompt",
    "normalize_path",
    "run_wizard",
    # Loop
    "IterationLoop",
    "LoopOutcome",
    "MonitorResult",
    "monitor_process",
    "prompt_iteration_limit",
    "terminate_process",
    # Config and errors
    "TuiSettings",
    "configure_logging",
    "InputCancelled",
    "InputClosed",
    "NoSelectableItems",
    "ReentrantInterrupt",
    "TerminalUnavailable",
    "TuiError",
    "ValidationFailed",
]
