"""
Viewport model: which slice of a long list is on screen.

Pure functions over an immutable state, recomputed on every focus change.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ralph_tui.config import SCROLL_MARGIN


@dataclass(frozen=True)
class ViewportState:
    total_items: int
    visible_height: int
    scroll_offset: int = 0
    focus_index: int = 0

    @property
    def max_offset(self) -> int:
        return max(0, self.total_items - self.visible_height)


@dataclass(frozen=True)
class ViewportRange:
    start: int
    end: int  # inclusive
    has_more_above: bool
    has_more_below: bool


def update(state: ViewportState, focus: int, margin: int = SCROLL_MARGIN) -> ViewportState:
    """
    Move focus and scroll so it stays inside the window.

    The focus keeps `margin` rows of context above and below when the list
    allows it. Applying the same focus twice yields the same state.

    Args:
        state: Current viewport
        focus: Requested focus index (clamped to the list)
        margin: Rows of context kept around the focus

    Returns:
        New viewport state
    """
    total = state.total_items
    height = max(1, state.visible_height)
    if total <= 0:
        return replace(state, scroll_offset=0, focus_index=0)

    focus = min(max(focus, 0), total - 1)
    # A margin that fills half the window would make scrolling oscillate
    margin = max(0, min(margin, (height - 1) // 2))

    offset = state.scroll_offset
    if focus < offset + margin:
        offset = focus - margin
    elif focus > offset + height - margin - 1:
        offset = focus - height + margin + 1
    offset = min(max(offset, 0), max(0, total - height))

    return replace(state, scroll_offset=offset, focus_index=focus)


def visible_range(state: ViewportState) -> ViewportRange:
    """Get the inclusive index range currently on screen."""
    if state.total_items <= 0:
        return ViewportRange(start=0, end=-1, has_more_above=False, has_more_below=False)
    start = state.scroll_offset
    end = min(state.total_items, start + max(1, state.visible_height)) - 1
    return ViewportRange(
        start=start,
        end=end,
        has_more_above=start > 0,
        has_more_below=end < state.total_items - 1,
    )
