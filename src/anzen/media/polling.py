"""Bounded polling for long-running generation operations."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, TypeVar

LOGGER = logging.getLogger(__name__)


class Operation(Protocol):
    """Anything with a completion flag and an optional error message."""

    @property
    def done(self) -> bool: ...

    @property
    def error(self) -> str | None: ...


OpT = TypeVar("OpT", bound=Operation)


class PollState(str, enum.Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class PollOutcome(Generic[OpT]):
    state: PollState
    operation: OpT
    attempts: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PollState.SUCCEEDED


def poll_operation(
    refresh: Callable[[OpT], OpT],
    operation: OpT,
    *,
    interval: float = 20.0,
    backoff: float = 1.5,
    max_interval: float = 120.0,
    max_attempts: int = 30,
    sleep: Callable[[float], Any] = time.sleep,
) -> PollOutcome[OpT]:
    """Refresh ``operation`` until it settles or the attempt budget runs out.

    The wait before each refresh starts at ``interval`` and grows by
    ``backoff`` up to ``max_interval``. A refresh that raises ends the poll
    in the ``FAILED`` state.
    """

    delay = max(interval, 0.0)
    attempts = 0
    current = operation
    while True:
        if current.done:
            if current.error:
                return PollOutcome(PollState.FAILED, current, attempts, str(current.error))
            return PollOutcome(PollState.SUCCEEDED, current, attempts)
        if attempts >= max_attempts:
            LOGGER.warning("Operation still pending after %d refreshes", attempts)
            return PollOutcome(PollState.TIMED_OUT, current, attempts, "poll attempts exhausted")
        sleep(delay)
        attempts += 1
        try:
            current = refresh(current)
        except Exception as exc:
            LOGGER.warning("Operation refresh failed on attempt %d: %s", attempts, exc)
            return PollOutcome(PollState.FAILED, current, attempts, str(exc))
        delay = min(delay * backoff, max_interval)


__all__ = ["Operation", "PollOutcome", "PollState", "poll_operation"]
