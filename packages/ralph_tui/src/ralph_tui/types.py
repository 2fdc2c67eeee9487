"""
Shared result and state types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Literal, TypeVar, Union

T = TypeVar("T")


class Cancelled:
    """Sentinel returned when the operator backs out of a prompt or menu."""

    _instance: Cancelled | None = None

    def __new__(cls) -> Cancelled:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "CANCELLED"

    def __bool__(self) -> bool:
        return False


CANCELLED = Cancelled()


@dataclass(frozen=True)
class Selected(Generic[T]):
    """Terminal state of a menu that resolved with a value."""
    value: T


MenuOutcome = Union[Selected[Any], Cancelled]
PromptResult = Union[T, Cancelled]


def is_cancelled(result: object) -> bool:
    """Check whether a prompt or menu result is the cancellation sentinel."""
    return result is CANCELLED


class InterruptState(str, Enum):
    """Process-wide cancellation state read by the build loop."""
    NONE = "none"
    STOP_AFTER_ITERATION = "stop-after-iteration"
    CANCEL_REQUESTED = "cancel-requested"


class InterruptChoice(str, Enum):
    """Operator choice in the interrupt menu."""
    CANCEL = "cancel"
    STOP_AFTER = "stop-after"
    CONTINUE = "continue"


class InterruptSignal(str, Enum):
    """Outcome of a Ctrl+C press fed through the double-press detector."""
    CANCEL = "cancel"
    FORCE_EXIT = "force-exit"


class CheckpointDecision(str, Enum):
    """What the build loop should do at a checkpoint."""
    PROCEED = "proceed"
    STOP = "stop"
    ABORT = "abort"


SessionAction = Literal["select", "new", "delete", "quit"]


@dataclass(frozen=True)
class SessionMenuResult:
    """Outcome of the session picker."""
    action: SessionAction
    value: str | None = None
