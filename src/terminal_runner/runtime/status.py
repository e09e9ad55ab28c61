"""Lifecycle status of a process handle."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = ["Status", "StatusKind"]


class StatusKind(str, Enum):
    """Lifecycle stage. Stages only move forward."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


_ORDER = {
    StatusKind.IDLE: 0,
    StatusKind.RUNNING: 1,
    StatusKind.COMPLETED: 2,
}


@dataclass(frozen=True)
class Status:
    """Status value: Idle, Running or Completed(exit_code).

    Attributes:
        kind: Lifecycle stage
        exit_code: Exit code, only set when completed
    """

    kind: StatusKind
    exit_code: Optional[int] = None

    @classmethod
    def idle(cls) -> Status:
        return cls(StatusKind.IDLE)

    @classmethod
    def running(cls) -> Status:
        return cls(StatusKind.RUNNING)

    @classmethod
    def completed(cls, exit_code: int) -> Status:
        return cls(StatusKind.COMPLETED, exit_code)

    @property
    def is_idle(self) -> bool:
        return self.kind is StatusKind.IDLE

    @property
    def is_running(self) -> bool:
        return self.kind is StatusKind.RUNNING

    @property
    def is_completed(self) -> bool:
        return self.kind is StatusKind.COMPLETED

    @property
    def succeeded(self) -> bool:
        """True only for Completed(0)."""
        return self.is_completed and self.exit_code == 0

    def advance(self, new: Status) -> Status:
        """Return ``new`` if it is the next stage after this status.

        Raises:
            RuntimeError: On a backward, repeated or skipped transition
        """
        if _ORDER[new.kind] != _ORDER[self.kind] + 1:
            raise RuntimeError(
                f"invalid status transition: {self} -> {new}"
            )
        return new

    def __str__(self) -> str:
        if self.is_completed:
            return f"completed({self.exit_code})"
        return self.kind.value
