"""
One-line status messages, boxed banners, tables and progress bars.
"""

from __future__ import annotations

from typing import Iterable, Literal, Sequence

from ralph_tui.theme import ICON_ERROR, ICON_INFO, ICON_SUCCESS, ICON_WARNING, Theme
from ralph_tui.utils import visible_width

MessageLevel = Literal["info", "success", "warning", "error"]

PROGRESS_WIDTH = 40

_ICONS: dict[str, str] = {
    "info": ICON_INFO,
    "success": ICON_SUCCESS,
    "warning": ICON_WARNING,
    "error": ICON_ERROR,
}


def format_message(level: MessageLevel, text: str, theme: Theme) -> str:
    style = getattr(theme, level)
    return f"{style(_ICONS[level])} {text}"


def banner(lines: list[str], theme: Theme, width: int | None = None) -> list[str]:
    """Draw lines inside a rounded box, padded to the widest line."""
    inner = max((visible_width(line) for line in lines), default=0)
    if width is not None:
        inner = max(inner, width - 4)
    out = [theme.hint("╭" + "─" * (inner + 2) + "╮")]
    for line in lines:
        pad = " " * (inner - visible_width(line))
        out.append(theme.hint("│") + f" {line}{pad} " + theme.hint("│"))
    out.append(theme.hint("╰" + "─" * (inner + 2) + "╯"))
    return out


def table(headers: Sequence[str], rows: Iterable[Sequence[str]], theme: Theme) -> list[str]:
    """
    Lay out rows in columns sized to their widest cell.

    Short rows are padded with empty cells.

    Raises:
        ValueError: If a row has more cells than there are headers
    """
    body = [list(row) for row in rows]
    for row in body:
        if len(row) > len(headers):
            raise ValueError(f"row has {len(row)} cells for {len(headers)} columns")
        row.extend([""] * (len(headers) - len(row)))

    widths = [visible_width(header) for header in headers]
    for row in body:
        for column, cell in enumerate(row):
            widths[column] = max(widths[column], visible_width(cell))

    def line(cells: Sequence[str]) -> str:
        padded = (cell + " " * (widths[i] - visible_width(cell) + 2) for i, cell in enumerate(cells))
        return ("  " + "".join(padded)).rstrip()

    out = [theme.title(line(headers))]
    out.append(theme.hint("  " + "".join("─" * (width + 2) for width in widths)))
    out.extend(line(row) for row in body)
    return out


def progress_bar(current: int, total: int, theme: Theme, label: str | None = None,
                 width: int = PROGRESS_WIDTH) -> str:
    """Render `[███░░░] 50% (5/10)`; the percentage is clamped to 0-100."""
    percent = current * 100 // total if total > 0 else 0
    percent = min(100, max(0, percent))
    filled = percent * width // 100
    bar = theme.success("█" * filled) + theme.hint("░" * (width - filled))
    prefix = f"  {label} " if label else "  "
    return f"{prefix}[{bar}] {theme.warning(f'{percent}%')} ({current}/{total})"
