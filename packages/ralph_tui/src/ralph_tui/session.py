"""
Session - the engine facade used by the build loop.

A Session owns the terminal while an interactive component runs, routes
every key through the Ctrl+C double-press detector, and turns
cancellation into the CANCELLED value at every public method.

Usage:
    session = Session()
    choice = session.show_menu(["Red", "Green", "Blue"], title="Colour")
    if not is_cancelled(choice):
        print(choice.value)
"""

from __future__ import annotations

import logging
import subprocess
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Sequence

from ralph_tui.config import TuiSettings
from ralph_tui.errors import (
    InputCancelled,
    InputClosed,
    ReentrantInterrupt,
    TerminalUnavailable,
    ValidationFailed,
)
from ralph_tui.interrupt import (
    STOP_AFTER_NOTICE,
    STOP_AFTER_SUBNOTICE,
    CancellationContext,
    CtrlCTimer,
    InterruptMenu,
)
from ralph_tui.keys import KeyEvent, KeyName, KeyReader
from ralph_tui.line_editor import read_line
from ralph_tui.menu import MenuItem, MenuItemLike, SelectMenu
from ralph_tui.messages import (
    PROGRESS_WIDTH,
    MessageLevel,
    banner,
    format_message,
    progress_bar,
    table,
)
from ralph_tui.multiselect import MultiSelectItem, MultiSelectMenu
from ralph_tui.prompts import (
    ChoicePrompt,
    ConfirmPrompt,
    DangerConfirmPrompt,
    NumberPrompt,
    PasswordPrompt,
    PathPrompt,
    PromptSpec,
    SearchMenu,
    SearchPrompt,
    TextPrompt,
    describe,
)
from ralph_tui.render import PlainSurface, RenderSurface, TerminalSurface
from ralph_tui.terminal import ProcessTerminal, StreamTerminal, Terminal
from ralph_tui.theme import Theme, theme_for
from ralph_tui.types import (
    CANCELLED,
    InterruptChoice,
    InterruptSignal,
    InterruptState,
    MenuOutcome,
    PromptResult,
    SessionMenuResult,
    is_cancelled,
)

if TYPE_CHECKING:
    from ralph_tui.monitor import MonitorResult

logger = logging.getLogger(__name__)

CANCELLED_NOTICE = "(cancelled)"

# Rows kept free around a menu for title, counters and help
MENU_CHROME_ROWS = 8
MULTISELECT_CHROME_ROWS = 10
MIN_VISIBLE_ROWS = 3


class Session:
    """
    Interactive engine facade.

    Args:
        terminal: Terminal to drive (default: the process terminal)
        surface: Render surface override (tests use a virtual surface)
        context: Cancellation state shared with the build loop
        settings: Runtime settings (default: from the environment)
        clock: Monotonic clock used for Ctrl+C timing
        theme: Styling override
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        surface: RenderSurface | None = None,
        context: CancellationContext | None = None,
        settings: TuiSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        theme: Theme | None = None,
    ) -> None:
        self.settings = settings or TuiSettings.from_env()
        self.terminal: Terminal = terminal or ProcessTerminal()
        self.context = context or CancellationContext(self.settings.force_exit_code)
        self.theme = theme or theme_for(self.settings.color)
        self.timer = CtrlCTimer(self.settings.double_press_ms, clock)
        self._clock = clock
        self._surface_override = surface
        self._depth = 0
        self._started = False
        self._degraded = not self.terminal.interactive
        self._reader = self._make_reader(clock)
        self.surface: RenderSurface = surface or self._make_surface()

    def _make_reader(self, clock: Callable[[], float]) -> KeyReader:
        return KeyReader(
            self.terminal,
            self.settings.escape_timeout_ms / 1000.0,
            clock,
            join_sequences=self.terminal.interactive,
        )

    def _make_surface(self) -> RenderSurface:
        if self._degraded:
            return PlainSurface(self.terminal.write, self.terminal.columns, self.terminal.rows)
        return TerminalSurface(
            self.terminal.write,
            lambda: (self.terminal.columns, self.terminal.rows),
        )

    @property
    def degraded(self) -> bool:
        """True when no raw-mode terminal is available."""
        return self._degraded

    # -------------------------------------------------------------------------
    # Terminal ownership
    # -------------------------------------------------------------------------

    def _enter_degraded_mode(self, reason: TerminalUnavailable) -> None:
        logger.warning("Interactive terminal unavailable, using line mode: %s", reason)
        self._degraded = True
        self.terminal = StreamTerminal()
        self._reader = self._make_reader(self._clock)
        if self._surface_override is None:
            self.surface = self._make_surface()

    @contextmanager
    def interactive(self) -> Iterator[Session]:
        """
        Hold raw mode for the duration of the block.

        Nested blocks share the outer acquisition. The terminal is restored
        on every exit path, including SystemExit.
        """
        if self._depth == 0 and not self._degraded:
            try:
                self.terminal.start()
                self._started = True
            except TerminalUnavailable as exc:
                self._enter_degraded_mode(exc)
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._release()

    def _release(self) -> None:
        if self._started:
            self._started = False
            self.terminal.stop()
        self.terminal.show_cursor()

    def _force_exit(self) -> None:
        logger.warning("Double Ctrl+C, exiting with status %d", self.context.exit_code)
        self.surface.write(self.theme.warning("Force exit"))
        self._release()
        raise SystemExit(self.context.exit_code)

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def next_key(self, timeout: float | None = None) -> KeyEvent | None:
        """
        Read one key, applying the Ctrl+C policy.

        A first Ctrl+C is returned like any key (components treat it as
        cancel); a second one within the double-press window exits the
        process. End of input reads as Escape.

        Returns:
            The key, or None if the timeout elapsed
        """
        try:
            event = self._reader.read_key(timeout)
        except InputClosed:
            logger.debug("Input closed, treating as cancel")
            return KeyEvent(KeyName.ESCAPE)
        if event is not None and event.is_ctrl_c:
            if self.timer.press() == InterruptSignal.FORCE_EXIT:
                self._force_exit()
        return event

    def _read_key(self) -> KeyEvent:
        event = None
        while event is None:
            event = self.next_key()
        return event

    def _finish_line(self) -> None:
        """In line mode, drop the rest of a line after a single-key answer."""
        if not self._degraded:
            return
        while not self._read_key().matches("enter"):
            pass

    def _drive(self, component: Any) -> Any:
        """Run a component state machine until it resolves."""
        with self.interactive():
            self.surface.render(component.render())
            while not component.handle_key(self._read_key()):
                self.surface.render(component.render())
            self.surface.clear()
        return component.outcome

    def _visible_rows(self, chrome: int) -> int:
        return max(MIN_VISIBLE_ROWS, self.surface.height - chrome)

    def _cancelled(self) -> Any:
        self.surface.write(self.theme.hint(CANCELLED_NOTICE))
        return CANCELLED

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def message(self, level: MessageLevel, text: str) -> None:
        self.surface.write(format_message(level, text, self.theme))

    def info(self, text: str) -> None:
        self.message("info", text)

    def success(self, text: str) -> None:
        self.message("success", text)

    def warning(self, text: str) -> None:
        self.message("warning", text)

    def error(self, text: str) -> None:
        self.message("error", text)

    def banner(self, lines: list[str]) -> None:
        for line in banner(lines, self.theme):
            self.surface.write(line)

    def table(self, headers: Sequence[str], rows: Iterable[Sequence[str]]) -> None:
        for line in table(headers, rows, self.theme):
            self.surface.write(line)

    def progress(self, current: int, total: int, label: str | None = None,
                 width: int = PROGRESS_WIDTH) -> None:
        """Redraw the progress bar in place; finish with `progress_done`."""
        self.surface.render([progress_bar(current, total, self.theme, label, width)])

    def progress_done(self, message: str = "Done") -> None:
        self.surface.clear()
        self.success(message)

    def stop_after_notice(self, escape_hint: bool = True) -> None:
        lines = [self.theme.warning(STOP_AFTER_NOTICE)]
        if escape_hint:
            lines.append(self.theme.hint(STOP_AFTER_SUBNOTICE))
        self.banner(lines)

    # -------------------------------------------------------------------------
    # Menus
    # -------------------------------------------------------------------------

    def show_menu(
        self,
        items: Iterable[MenuItemLike],
        title: str | None = None,
        default_index: int | None = None,
    ) -> MenuOutcome:
        """
        Single-select menu.

        Returns:
            Selected(value) or CANCELLED

        Raises:
            NoSelectableItems: If no item can be selected
        """
        menu = SelectMenu(
            items,
            title=title,
            visible_height=self._visible_rows(MENU_CHROME_ROWS),
            default_index=default_index,
            theme=self.theme,
            margin=self.settings.scroll_margin,
        )
        outcome = self._drive(menu)
        if is_cancelled(outcome):
            return self._cancelled()
        label = f"{title}: " if title else ""
        self.surface.write(f"{self.theme.success('✓')} {label}{menu.focused_item.text}")
        return outcome

    def show_multiselect(
        self,
        items: Iterable[MultiSelectItem | MenuItem | str],
        title: str | None = None,
        min_select: int = 0,
        max_select: int | None = None,
        allow_empty: bool = False,
    ) -> MenuOutcome:
        """
        Multi-select menu.

        Returns:
            Selected(list of checked values, in declaration order) or CANCELLED
        """
        menu = MultiSelectMenu(
            items,
            title=title,
            min_select=min_select,
            max_select=max_select,
            allow_empty=allow_empty,
            visible_height=self._visible_rows(MULTISELECT_CHROME_ROWS),
            theme=self.theme,
            margin=self.settings.scroll_margin,
        )
        outcome = self._drive(menu)
        if is_cancelled(outcome):
            return self._cancelled()
        texts = [item.text for item in menu.items if item.checked]
        label = f"{title}: " if title else ""
        self.surface.write(f"{self.theme.success('✓')} {label}{', '.join(texts) or '(none)'}")
        return outcome

    def show_session_menu(self, sessions: Sequence[str]) -> SessionMenuResult:
        """
        Session picker: resume, create, delete or quit.

        Cancelling the picker means quit; cancelling the delete sub-menu or
        its confirmation returns to the picker.
        """
        while True:
            items: list[MenuItem] = []
            if sessions:
                items.append(MenuItem.header("Sessions"))
                items.extend(MenuItem(text=name, value=("select", name)) for name in sessions)
            else:
                items.append(MenuItem.header("No sessions yet"))
            items.append(MenuItem.separator())
            items.append(MenuItem(text="New session", value=("new", None), hotkey="n"))
            items.append(MenuItem(
                text="Delete session",
                value=("delete", None),
                hotkey="d",
                disabled=not sessions,
                disabled_reason="no sessions" if not sessions else None,
            ))
            items.append(MenuItem(text="Quit", value=("quit", None), hotkey="q"))

            outcome = self.show_menu(items, title="Select a session")
            if is_cancelled(outcome):
                return SessionMenuResult("quit")
            action, value = outcome.value
            if action != "delete":
                return SessionMenuResult(action, value)

            target = self.show_menu(list(sessions), title="Delete which session?")
            if is_cancelled(target):
                continue
            confirmed = self.confirm(f"Delete session {target.value}?", default_yes=False)
            if confirmed is True:
                return SessionMenuResult("delete", target.value)

    # -------------------------------------------------------------------------
    # Interrupt
    # -------------------------------------------------------------------------

    def show_interrupt_menu(self, context_label: str = "") -> InterruptChoice:
        """
        Ask the operator how to handle an interrupt and record the answer.

        A second trigger while the menu is already showing, or a terminal
        without raw mode, resolves as continue.
        """
        if self._degraded:
            return InterruptChoice.CONTINUE
        try:
            with self.context.menu_guard():
                # Type-ahead such as a double-tapped Esc must not answer the menu
                self._reader.discard_pending()
                menu = InterruptMenu(context_label, theme=self.theme)
                choice: InterruptChoice = self._drive(menu)
        except ReentrantInterrupt:
            logger.debug("Interrupt menu already active, continuing")
            return InterruptChoice.CONTINUE

        self.context.apply(choice)
        self.surface.write(menu.result_line())
        if choice == InterruptChoice.STOP_AFTER:
            self.stop_after_notice()
        return choice

    def get_interrupt_state(self) -> InterruptState:
        return self.context.state

    def reset_interrupt_state(self) -> None:
        self.context.reset()

    # -------------------------------------------------------------------------
    # Prompts
    # -------------------------------------------------------------------------

    def _label(self, spec: PromptSpec) -> str:
        return f"{self.theme.title('?')} {describe(spec)}"

    def _edit_line(self, mask: str | None = None, max_length: int | None = None) -> str:
        """
        Read one edited line.

        Raises:
            InputCancelled: On Escape or Ctrl+C
        """
        self.surface.write_inline("> ")
        raw = read_line(self._read_key, self.surface.write_inline, mask=mask, max_length=max_length)
        if is_cancelled(raw):
            raise InputCancelled()
        return raw

    def _prompt_line(self, spec: Any, mask: str | None = None,
                     max_length: int | None = None) -> Any:
        """Read, validate and retry until a value parses or the operator cancels."""
        with self.interactive():
            try:
                while True:
                    self.surface.write(self._label(spec))
                    raw = self._edit_line(mask=mask, max_length=max_length)
                    try:
                        return spec.parse(raw)
                    except ValidationFailed as exc:
                        self.error(exc.message)
            except InputCancelled:
                return self._cancelled()

    def prompt_text(self, spec: TextPrompt | str, **options: Any) -> PromptResult[str]:
        if isinstance(spec, str):
            spec = TextPrompt(message=spec, **options)
        return self._prompt_line(spec, max_length=spec.max_length)

    def prompt_password(self, spec: PasswordPrompt | str, **options: Any) -> PromptResult[str]:
        if isinstance(spec, str):
            spec = PasswordPrompt(message=spec, **options)
        return self._prompt_line(spec, mask=spec.mask)

    def prompt_number(self, spec: NumberPrompt | str, **options: Any) -> PromptResult[float]:
        if isinstance(spec, str):
            spec = NumberPrompt(message=spec, **options)
        return self._prompt_line(spec)

    def prompt_path(self, spec: PathPrompt | str, **options: Any) -> PromptResult[str | None]:
        """Path prompt; blank input with no default yields None."""
        if isinstance(spec, str):
            spec = PathPrompt(message=spec, **options)
        return self._prompt_line(spec)

    def _single_key(self, spec: ChoicePrompt | ConfirmPrompt) -> Any:
        with self.interactive():
            self.surface.write_inline(f"{self._label(spec)} ")
            while True:
                event = self._read_key()
                answer = spec.resolve(event)
                if answer is None:
                    continue
                if is_cancelled(answer):
                    self.surface.write_inline("\n")
                    return self._cancelled()
                if not event.matches("enter"):
                    self._finish_line()
                return answer

    def prompt_choice(self, spec: ChoicePrompt | str, **options: Any) -> PromptResult[str]:
        """Single-key choice; returns the uppercase key."""
        if isinstance(spec, str):
            spec = ChoicePrompt(message=spec, **options)
        answer = self._single_key(spec)
        if not is_cancelled(answer):
            label = next(text for key, text in spec.choices if key.upper() == answer)
            self.surface.write_inline(f"{label}\n")
        return answer

    def confirm(self, message: str | ConfirmPrompt, default_yes: bool = True) -> PromptResult[bool]:
        spec = message if isinstance(message, ConfirmPrompt) else ConfirmPrompt(
            message=message, default=default_yes)
        answer = self._single_key(spec)
        if not is_cancelled(answer):
            self.surface.write_inline("Yes\n" if answer else "No\n")
        return answer

    def danger_confirm(self, message: str | DangerConfirmPrompt,
                       confirm_word: str = "DELETE") -> PromptResult[bool]:
        """Require the operator to type a confirmation word exactly."""
        spec = message if isinstance(message, DangerConfirmPrompt) else DangerConfirmPrompt(
            message=message, confirm_word=confirm_word)
        with self.interactive():
            self.warning(spec.message)
            self.surface.write(f"{self.theme.title('?')} Type {spec.confirm_word} to confirm")
            try:
                raw = self._edit_line()
            except InputCancelled:
                return self._cancelled()
        if raw.strip() != spec.confirm_word:
            self.error("Confirmation did not match")
            return False
        return True

    def prompt_search(self, spec: SearchPrompt | str, **options: Any) -> PromptResult[str]:
        if isinstance(spec, str):
            spec = SearchPrompt(message=spec, **options)
        outcome = self._drive(SearchMenu(spec, theme=self.theme))
        if is_cancelled(outcome):
            return self._cancelled()
        self.surface.write(f"{self.theme.success('✓')} {spec.message} {outcome}")
        return outcome

    def ask(self, spec: PromptSpec) -> Any:
        """Run any prompt spec."""
        if isinstance(spec, TextPrompt):
            return self.prompt_text(spec)
        if isinstance(spec, PasswordPrompt):
            return self.prompt_password(spec)
        if isinstance(spec, NumberPrompt):
            return self.prompt_number(spec)
        if isinstance(spec, PathPrompt):
            return self.prompt_path(spec)
        if isinstance(spec, ChoicePrompt):
            return self.prompt_choice(spec)
        if isinstance(spec, ConfirmPrompt):
            return self.confirm(spec)
        if isinstance(spec, DangerConfirmPrompt):
            return self.danger_confirm(spec)
        if isinstance(spec, SearchPrompt):
            return self.prompt_search(spec)
        raise TypeError(f"unsupported prompt spec: {type(spec).__name__}")

    def run_wizard(self, steps: Sequence[PromptSpec]) -> dict[str, Any] | Any:
        from ralph_tui.wizard import run_wizard

        return run_wizard(self, steps)

    # -------------------------------------------------------------------------
    # Processes
    # -------------------------------------------------------------------------

    def monitor_process(self, process: subprocess.Popen, label: str = "",
                        **options: Any) -> MonitorResult:
        from ralph_tui.monitor import monitor_process

        return monitor_process(process, self, label, **options)
