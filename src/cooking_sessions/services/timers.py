"""In-memory registry of per-session step timers."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from cooking_sessions.domain.timers import (
    ActiveTimer,
    PausedTimer,
    TimerExpired,
    TimerHandle,
)

_logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Interface for arming one-shot delayed callbacks."""

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Run callback once after delay_seconds and return a cancellable handle."""


@dataclass
class AsyncioScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop."""

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> TimerHandle:
        """Arm callback on the current event loop."""
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_seconds, callback)


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class TimerRegistry:
    """Tracks at most one live countdown or paused snapshot per session.

    Expired countdowns are removed from the registry and announced as
    ``TimerExpired`` events on ``events``; the registry never calls back into
    the session state machine.
    """

    scheduler: Scheduler = field(default_factory=AsyncioScheduler)
    clock: Callable[[], datetime] = utc_now
    events: asyncio.Queue[TimerExpired] = field(default_factory=asyncio.Queue)
    _active: dict[UUID, ActiveTimer] = field(default_factory=dict, init=False)
    _paused: dict[UUID, PausedTimer] = field(default_factory=dict, init=False)

    def schedule(self, session_id: UUID, step_index: int, duration_ms: int) -> bool:
        """Arm a countdown for the session's current step.

        Returns False without arming anything when duration_ms is not positive.
        """
        if duration_ms <= 0:
            return False
        self.cancel(session_id)
        timer: ActiveTimer | None = None

        def fire() -> None:
            if timer is not None:
                self._expire(timer)

        handle = self.scheduler.call_later(duration_ms / 1000, fire)
        timer = ActiveTimer(
            session_id=session_id,
            step_index=step_index,
            start_time=self.clock(),
            duration_ms=duration_ms,
            handle=handle,
        )
        self._active[session_id] = timer
        _logger.info(
            "Timer armed: session=%s step=%s duration_ms=%s",
            session_id,
            step_index,
            duration_ms,
        )
        return True

    def cancel(self, session_id: UUID) -> None:
        """Cancel any live countdown and drop any snapshot for the session."""
        timer = self._active.pop(session_id, None)
        if timer is not None:
            timer.handle.cancel()
        self._paused.pop(session_id, None)

    def remaining_ms(self, session_id: UUID, now: datetime | None = None) -> int:
        """Return the time left on the session's live countdown, 0 if none."""
        timer = self._active.get(session_id)
        if timer is None:
            return 0
        return timer.remaining_ms(now or self.clock())

    def pause(self, session_id: UUID) -> PausedTimer | None:
        """Freeze the live countdown into a snapshot, if one is running."""
        timer = self._active.pop(session_id, None)
        if timer is None:
            return None
        timer.handle.cancel()
        now = self.clock()
        snapshot = PausedTimer(
            session_id=session_id,
            paused_at=now,
            remaining_ms=timer.remaining_ms(now),
        )
        self._paused[session_id] = snapshot
        return snapshot

    def store_snapshot(self, snapshot: PausedTimer) -> None:
        """Record a paused snapshot for a session without a live countdown."""
        self.cancel(snapshot.session_id)
        self._paused[snapshot.session_id] = snapshot

    def take_snapshot(self, session_id: UUID) -> PausedTimer | None:
        """Remove and return the session's paused snapshot."""
        return self._paused.pop(session_id, None)

    def active_timer(self, session_id: UUID) -> ActiveTimer | None:
        return self._active.get(session_id)

    def paused_timer(self, session_id: UUID) -> PausedTimer | None:
        return self._paused.get(session_id)

    def cancel_all(self) -> None:
        """Cancel every pending callback and forget all snapshots."""
        for timer in self._active.values():
            timer.handle.cancel()
        count = len(self._active)
        self._active.clear()
        self._paused.clear()
        _logger.info("Timer registry cleared: cancelled=%s", count)

    def publish_expired(self, session_id: UUID, step_index: int) -> None:
        """Announce that the step countdown of a session has run out."""
        self.events.put_nowait(
            TimerExpired(session_id=session_id, step_index=step_index)
        )

    def _expire(self, timer: ActiveTimer) -> None:
        if self._active.get(timer.session_id) is not timer:
            return
        del self._active[timer.session_id]
        self.publish_expired(timer.session_id, timer.step_index)
