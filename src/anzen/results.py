"""Tagged success/failure results for steps that must never raise."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A step that produced a usable value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failed:
    """A step that failed; ``reason`` is kept for logs and reports."""

    reason: str

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Failed]


__all__ = ["Ok", "Failed", "Result"]
