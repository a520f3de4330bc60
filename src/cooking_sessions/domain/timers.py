"""Domain models for in-memory step timers."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


class TimerHandle(Protocol):
    """Opaque handle to a pending delayed callback."""

    def cancel(self) -> None:
        """Cancel the pending callback."""


@dataclass(frozen=True)
class ActiveTimer:
    """A live countdown for the current step of a session."""

    session_id: UUID
    step_index: int
    start_time: datetime
    duration_ms: int
    handle: TimerHandle

    def remaining_ms(self, now: datetime) -> int:
        elapsed_ms = int((now - self.start_time).total_seconds() * 1000)
        return max(0, self.duration_ms - elapsed_ms)


@dataclass(frozen=True)
class PausedTimer:
    """Snapshot of a countdown captured when its session was paused."""

    session_id: UUID
    paused_at: datetime
    remaining_ms: int


@dataclass(frozen=True)
class TimerExpired:
    """Event published when a step countdown elapses naturally."""

    session_id: UUID
    step_index: int
