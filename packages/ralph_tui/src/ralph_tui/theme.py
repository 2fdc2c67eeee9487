"""
Styling for menus, prompts and messages.
"""

from __future__ import annotations

from typing import Protocol


POINTER = "❯"
CHECKED = "[✓]"
UNCHECKED = "[ ]"
MORE_ABOVE = "▲ more above"
MORE_BELOW = "▼ more below"

ICON_INFO = "ℹ"
ICON_SUCCESS = "✓"
ICON_WARNING = "⚠"
ICON_ERROR = "✗"


class Theme(Protocol):
    """Theme used by every interactive component."""

    def title(self, text: str) -> str: ...
    def focused(self, text: str) -> str: ...
    def disabled(self, text: str) -> str: ...
    def header(self, text: str) -> str: ...
    def description(self, text: str) -> str: ...
    def hint(self, text: str) -> str: ...
    def info(self, text: str) -> str: ...
    def success(self, text: str) -> str: ...
    def warning(self, text: str) -> str: ...
    def error(self, text: str) -> str: ...


class DefaultTheme:
    """ANSI colour theme."""

    def title(self, text: str) -> str:
        return f"\x1b[1m{text}\x1b[22m"

    def focused(self, text: str) -> str:
        return f"\x1b[36m{text}\x1b[39m"

    def disabled(self, text: str) -> str:
        return f"\x1b[90m{text}\x1b[39m"

    def header(self, text: str) -> str:
        return f"\x1b[1;33m{text}\x1b[22;39m"

    def description(self, text: str) -> str:
        return f"\x1b[90m{text}\x1b[39m"

    def hint(self, text: str) -> str:
        return f"\x1b[90m{text}\x1b[39m"

    def info(self, text: str) -> str:
        return f"\x1b[34m{text}\x1b[39m"

    def success(self, text: str) -> str:
        return f"\x1b[32m{text}\x1b[39m"

    def warning(self, text: str) -> str:
        return f"\x1b[33m{text}\x1b[39m"

    def error(self, text: str) -> str:
        return f"\x1b[31m{text}\x1b[39m"


class PlainTheme:
    """Theme without escape codes, used when colour is disabled."""

    def title(self, text: str) -> str:
        return text

    def focused(self, text: str) -> str:
        return text

    def disabled(self, text: str) -> str:
        return text

    def header(self, text: str) -> str:
        return text

    def description(self, text: str) -> str:
        return text

    def hint(self, text: str) -> str:
        return text

    def info(self, text: str) -> str:
        return text

    def success(self, text: str) -> str:
        return text

    def warning(self, text: str) -> str:
        return text

    def error(self, text: str) -> str:
        return text


def theme_for(color: bool) -> Theme:
    """Pick the theme matching the colour setting."""
    return DefaultTheme() if color else PlainTheme()
