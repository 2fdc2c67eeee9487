"""
Prompt specifications and validation.

Each prompt kind is a pydantic model validated at construction. The
`parse` methods turn the committed text into a value or raise
`ValidationFailed` with the message shown under the prompt; the session
runs the read/validate/retry loop.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ralph_tui.errors import ValidationFailed
from ralph_tui.keys import Key, KeyEvent, KeyName
from ralph_tui.paths import PathKind, check_path, normalize_path
from ralph_tui.theme import POINTER, DefaultTheme, Theme
from ralph_tui.types import CANCELLED, Cancelled

SEARCH_HELP = "↑↓ Move  Enter Select  Esc Cancel"
DEFAULT_MAX_RESULTS = 8

Validator = Callable[[str], Optional[str]]


class PromptSpec(BaseModel):
    """Fields shared by every prompt."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    message: str
    name: str | None = None

    @property
    def key(self) -> str:
        """Name used for the answer in wizard results."""
        return self.name or self.message

    def with_default(self, value: Any) -> PromptSpec:
        """Copy of this spec whose default is a previous answer."""
        if "default" in type(self).model_fields:
            return self.model_copy(update={"default": value})
        return self


class TextPrompt(PromptSpec):
    kind: Literal["text"] = "text"
    default: str | None = None
    required: bool = False
    max_length: int | None = Field(default=None, gt=0, alias="maxLength")
    validate_fn: Validator | None = Field(default=None, alias="validate")

    def parse(self, raw: str) -> str:
        value = raw.strip()
        if not value and self.default is not None:
            value = self.default
        if not value and self.required:
            raise ValidationFailed("This field is required")
        if self.max_length is not None and len(value) > self.max_length:
            raise ValidationFailed(f"Maximum length is {self.max_length} characters")
        if self.validate_fn is not None:
            error = self.validate_fn(value)
            if error:
                raise ValidationFailed(error)
        return value


class PasswordPrompt(PromptSpec):
    kind: Literal["password"] = "password"
    mask: str = "*"
    required: bool = True
    min_length: int = Field(default=0, ge=0, alias="minLength")

    @field_validator("mask")
    @classmethod
    def _single_char(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("mask must be a single character")
        return value

    def parse(self, raw: str) -> str:
        if not raw:
            if self.required:
                raise ValidationFailed("Password is required")
            return raw
        if len(raw) < self.min_length:
            raise ValidationFailed(f"Password must be at least {self.min_length} characters")
        return raw


class NumberPrompt(PromptSpec):
    kind: Literal["number"] = "number"
    default: float | None = None
    minimum: float | None = Field(default=None, alias="min")
    maximum: float | None = Field(default=None, alias="max")
    integer: bool = True

    @model_validator(mode="after")
    def _check_bounds(self) -> NumberPrompt:
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError("min must not exceed max")
        return self

    def _format(self, value: float) -> str:
        if self.integer or float(value).is_integer():
            return str(int(value))
        return str(value)

    def parse(self, raw: str) -> int | float:
        text = raw.strip()
        if not text:
            if self.default is None:
                raise ValidationFailed("Please enter a valid number")
            return int(self.default) if self.integer else self.default
        try:
            value: int | float = int(text) if self.integer else float(text)
        except ValueError:
            raise ValidationFailed("Please enter a valid number") from None
        if isinstance(value, float) and not math.isfinite(value):
            raise ValidationFailed("Please enter a valid number")
        if self.minimum is not None and value < self.minimum:
            raise ValidationFailed(f"Value must be at least {self._format(self.minimum)}")
        if self.maximum is not None and value > self.maximum:
            raise ValidationFailed(f"Value must be at most {self._format(self.maximum)}")
        return value

    def constraints(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"{self._format(self.minimum)}-{self._format(self.maximum)}"
        if self.minimum is not None:
            return f">= {self._format(self.minimum)}"
        if self.maximum is not None:
            return f"<= {self._format(self.maximum)}"
        return ""


class PathPrompt(PromptSpec):
    kind: Literal["path"] = "path"
    default: str | None = None
    must_exist: bool = Field(default=False, alias="mustExist")
    path_kind: PathKind = Field(default="any", alias="pathKind")
    base_dir: str | None = Field(default=None, alias="baseDir")

    def parse(self, raw: str) -> str | None:
        text = raw.strip() or (self.default or "")
        if not text:
            return None
        path = normalize_path(text, base_dir=self.base_dir)
        check_path(path, must_exist=self.must_exist, kind=self.path_kind)
        return path


class ChoicePrompt(PromptSpec):
    """
    Single-key choice. An uppercase key marks the default taken on Enter.
    """

    kind: Literal["choice"] = "choice"
    choices: list[tuple[str, str]]
    default: str | None = None

    @field_validator("choices")
    @classmethod
    def _check_choices(cls, value: list[tuple[str, str]]) -> list[tuple[str, str]]:
        if not value:
            raise ValueError("choice prompt needs at least one choice")
        seen: set[str] = set()
        for key, _label in value:
            if len(key) != 1 or not key.isprintable() or key.isspace():
                raise ValueError(f"choice key must be one printable character: {key!r}")
            if key.upper() in seen:
                raise ValueError(f"duplicate choice key: {key!r}")
            seen.add(key.upper())
        if sum(1 for key, _ in value if key.isupper()) > 1:
            raise ValueError("only one choice can be the default")
        return value

    @property
    def default_key(self) -> str | None:
        if self.default:
            return self.default.upper()
        for key, _label in self.choices:
            if key.isupper():
                return key
        return None

    def keys_hint(self) -> str:
        default = self.default_key
        keys = [key.upper() if key.upper() == default else key.lower() for key, _ in self.choices]
        return "/".join(keys)

    def resolve(self, event: KeyEvent) -> str | Cancelled | None:
        """Map a key to a choice, CANCELLED, or None when the key means nothing."""
        if event.matches(Key.escape) or event.is_ctrl_c:
            return CANCELLED
        if event.matches(Key.enter):
            return self.default_key
        if event.name == KeyName.CHAR and not event.ctrl and not event.alt and event.char:
            wanted = event.char.upper()
            for key, _label in self.choices:
                if key.upper() == wanted:
                    return wanted
        return None


class ConfirmPrompt(PromptSpec):
    kind: Literal["confirm"] = "confirm"
    default: bool = Field(default=True, alias="defaultYes")

    def resolve(self, event: KeyEvent) -> bool | Cancelled | None:
        if event.matches(Key.escape) or event.is_ctrl_c:
            return CANCELLED
        if event.matches(Key.enter):
            return self.default
        if event.matches("y"):
            return True
        if event.matches("n"):
            return False
        return None


class DangerConfirmPrompt(PromptSpec):
    kind: Literal["danger_confirm"] = "danger_confirm"
    confirm_word: str = Field(default="DELETE", min_length=1, alias="confirmWord")


class SearchPrompt(PromptSpec):
    kind: Literal["search"] = "search"
    candidates: list[str]
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, gt=0, alias="maxResults")


WizardStep = Union[
    TextPrompt, PasswordPrompt, NumberPrompt, PathPrompt,
    ChoicePrompt, ConfirmPrompt, SearchPrompt,
]


def describe(spec: PromptSpec) -> str:
    """Prompt label with its default or constraints."""
    label = spec.message
    if isinstance(spec, TextPrompt) and spec.default:
        label += f" ({spec.default})"
    elif isinstance(spec, NumberPrompt):
        hints = [h for h in (spec.constraints(),
                             f"default {spec._format(spec.default)}" if spec.default is not None else "")
                 if h]
        if hints:
            label += f" [{', '.join(hints)}]"
    elif isinstance(spec, PathPrompt) and spec.default:
        label += f" ({spec.default})"
    elif isinstance(spec, ChoicePrompt):
        label += " " + ", ".join(f"[{k}] {text}" for k, text in spec.choices)
        label += f" ({spec.keys_hint()})"
    elif isinstance(spec, ConfirmPrompt):
        label += " (Y/n)" if spec.default else " (y/N)"
    elif isinstance(spec, DangerConfirmPrompt):
        label += f" Type {spec.confirm_word} to confirm"
    return label


# =============================================================================
# Search
# =============================================================================

class SearchMenu:
    """
    Incremental search over candidates.

    Every keystroke refilters (case-insensitive substring match) and moves
    focus back to the first match.
    """

    def __init__(self, spec: SearchPrompt, theme: Theme | None = None) -> None:
        self.spec = spec
        self.query = ""
        self.focus = 0
        self._theme = theme or DefaultTheme()
        self.matches: list[str] = list(spec.candidates)
        self.outcome: str | Cancelled | None = None

    def _set_query(self, query: str) -> None:
        if query == self.query:
            return
        self.query = query
        needle = query.lower()
        self.matches = [c for c in self.spec.candidates if needle in c.lower()]
        self.focus = 0

    def handle_key(self, event: KeyEvent) -> bool:
        if self.outcome is not None:
            return True

        if event.matches(Key.escape) or event.is_ctrl_c:
            self.outcome = CANCELLED
        elif event.matches(Key.enter):
            if self.matches:
                self.outcome = self.matches[self.focus]
        elif event.matches(Key.up):
            self.focus = max(0, self.focus - 1)
        elif event.matches(Key.down):
            shown = min(len(self.matches), self.spec.max_results)
            self.focus = min(max(0, shown - 1), self.focus + 1)
        elif event.matches(Key.backspace):
            self._set_query(self.query[:-1])
        elif event.matches(Key.ctrl("u")):
            self._set_query("")
        elif event.name == KeyName.PASTE:
            self._set_query(self.query + (event.text or "").replace("\n", " ").strip())
        elif event.printable is not None:
            self._set_query(self.query + event.printable)
        return self.outcome is not None

    def render(self) -> list[str]:
        theme = self._theme
        lines = [f"{theme.title(self.spec.message)} {self.query}"]
        shown = self.matches[:self.spec.max_results]
        if not shown:
            lines.append(theme.hint("  No matches"))
        for index, candidate in enumerate(shown):
            if index == self.focus:
                lines.append(theme.focused(f"{POINTER} {candidate}"))
            else:
                lines.append(f"  {candidate}")
        hidden = len(self.matches) - len(shown)
        if hidden > 0:
            lines.append(theme.hint(f"  … {hidden} more"))
        lines.append(theme.hint(SEARCH_HELP))
        return lines
