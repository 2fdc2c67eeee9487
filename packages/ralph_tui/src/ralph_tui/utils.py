"""
ANSI-aware width helpers.

Key functions:
- strip_ansi: Remove escape sequences
- visible_width: Terminal columns taken by text, ignoring ANSI codes
- truncate_to_width: Cut text to a column budget, preserving ANSI codes
"""

from __future__ import annotations

import re

from wcwidth import wcwidth


ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")
OSC_ESCAPE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")


def strip_ansi(text: str) -> str:
    """Remove all ANSI/OSC escape sequences from text."""
    return OSC_ESCAPE.sub("", ANSI_ESCAPE.sub("", text))


def visible_width(text: str) -> int:
    """
    Calculate the visible width of text, ignoring ANSI codes.

    Example:
        >>> visible_width("\\x1b[31mHello\\x1b[0m")
        5
    """
    return sum(max(0, wcwidth(c)) for c in strip_ansi(text))


def truncate_to_width(text: str, max_width: int, ellipsis: str = "…") -> str:
    """
    Truncate text to max_width columns, preserving ANSI codes.

    Args:
        text: Input text
        max_width: Maximum visible width
        ellipsis: Appended when the text is cut

    Returns:
        Text no wider than max_width
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    budget = max_width - visible_width(ellipsis)
    if budget <= 0:
        return ellipsis[:max_width]

    result: list[str] = []
    width = 0
    pos = 0
    while pos < len(text):
        match = ANSI_ESCAPE.match(text, pos) or OSC_ESCAPE.match(text, pos)
        if match:
            result.append(match.group(0))
            pos = match.end()
            continue
        char_width = max(0, wcwidth(text[pos]))
        if width + char_width > budget:
            break
        result.append(text[pos])
        width += char_width
        pos += 1

    tail = "\x1b[0m" if any(part.startswith("\x1b") for part in result) else ""
    return "".join(result) + tail + ellipsis


def normalize_to_single_line(text: str) -> str:
    return text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ").strip()
