"""
Error taxonomy for ralph-tui.

Cancellation is never reported to callers as an exception: the public API
returns the ``CANCELLED`` sentinel instead. The exceptions below either stay
internal (``InputCancelled``, ``ValidationFailed``, ``ReentrantInterrupt``,
``InputClosed``) or are reported to the caller once (``NoSelectableItems``,
``TerminalUnavailable``).
"""

from __future__ import annotations


class TuiError(Exception):
    """Base class for all ralph-tui errors."""


class InputCancelled(TuiError):
    """Escape or Ctrl+C pressed inside a prompt."""


class InputClosed(TuiError):
    """The key source reached end of input."""


class ValidationFailed(TuiError):
    """A prompt value was rejected; the message is shown inline."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoSelectableItems(TuiError):
    """A menu was built without a single enabled item."""


class TerminalUnavailable(TuiError):
    """Raw input mode cannot be acquired (stdin is not a TTY)."""


class ReentrantInterrupt(TuiError):
    """The interrupt menu is already showing."""
