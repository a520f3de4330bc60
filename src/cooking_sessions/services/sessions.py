"""Session state machine for guided cooking."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol
from uuid import UUID

from cooking_sessions.domain.errors import InvalidStateError, NotFoundError
from cooking_sessions.domain.notifications import StepNotificationKind
from cooking_sessions.domain.sessions import CookingSession, SessionStatus
from cooking_sessions.domain.steps import CookingStep
from cooking_sessions.domain.timers import PausedTimer, TimerExpired
from cooking_sessions.services.notifications import NotificationDispatcher
from cooking_sessions.services.steps import StepCatalog
from cooking_sessions.services.timers import TimerRegistry, utc_now

_logger = logging.getLogger(__name__)


class CookingSessionRepository(Protocol):
    """Persistence interface for cooking sessions."""

    def create_session(  # noqa: PLR0913
        self,
        user_id: UUID,
        recipe_id: UUID,
        status: SessionStatus,
        current_step_index: int,
        started_at: datetime,
        total_paused_duration: int,
    ) -> CookingSession:
        """Create a new session and return it."""

    def get_session(self, session_id: UUID) -> CookingSession | None:
        """Return a session by id, if present."""

    def update_session(
        self, session_id: UUID, fields: dict[str, object]
    ) -> CookingSession | None:
        """Apply a partial update and return the updated session, if present."""

    def list_active_sessions(self) -> list[CookingSession]:
        """Return every session persisted with the active status."""

    def list_paused_sessions(self) -> list[CookingSession]:
        """Return every session persisted with the paused status."""

    def list_user_sessions(self, user_id: UUID) -> list[CookingSession]:
        """Return a user's sessions, newest first."""


@dataclass
class _SessionLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


@dataclass
class CookingSessionService:
    """State machine driving a user through a recipe's steps."""

    step_catalog: StepCatalog
    session_repository: CookingSessionRepository
    timer_registry: TimerRegistry
    dispatcher: NotificationDispatcher
    clock: Callable[[], datetime] = utc_now
    _locks: dict[UUID, _SessionLock] = field(default_factory=dict, init=False)

    async def start_session(self, user_id: UUID, recipe_id: UUID) -> CookingSession:
        """Create an active session positioned on the recipe's first step."""
        steps = self.step_catalog.steps_for_start(recipe_id)
        session = self.session_repository.create_session(
            user_id=user_id,
            recipe_id=recipe_id,
            status=SessionStatus.ACTIVE,
            current_step_index=0,
            started_at=self.clock(),
            total_paused_duration=0,
        )
        async with self._lock(session.id):
            await self.dispatcher.notify_step(
                user_id, steps[0], 0, StepNotificationKind.START, session_id=session.id
            )
            self._arm_timer(session.id, 0, steps[0])
        _logger.info(
            "Cooking session started: session=%s user=%s recipe=%s",
            session.id,
            user_id,
            recipe_id,
        )
        return session

    async def pause_session(self, session_id: UUID) -> CookingSession:
        """Pause an active session, freezing its step timer."""
        async with self._lock(session_id):
            session = self._require_session(session_id)
            if session.status is SessionStatus.PAUSED:
                return session
            if session.status.is_terminal:
                raise InvalidStateError(
                    f"Cannot pause session {session_id} "
                    f"in status {session.status.value}"
                )
            self.timer_registry.pause(session_id)
            updated = self._update(
                session_id,
                status=SessionStatus.PAUSED,
                paused_at=self.clock(),
            )
        _logger.info("Cooking session paused: session=%s", session_id)
        return updated

    async def resume_session(self, session_id: UUID) -> CookingSession:
        """Resume a paused session, re-arming the remaining step time."""
        async with self._lock(session_id):
            session = self._require_session(session_id)
            if session.status is not SessionStatus.PAUSED:
                raise InvalidStateError(
                    f"Session {session_id} is not paused ({session.status.value})"
                )
            steps = self.step_catalog.steps_for_session(session.recipe_id)
            snapshot = self.timer_registry.take_snapshot(session_id)
            now = self.clock()
            paused_at = session.paused_at or (snapshot.paused_at if snapshot else None)
            paused_seconds = 0
            if paused_at is not None:
                paused_seconds = max(0, int((now - paused_at).total_seconds()))
            updated = self._update(
                session_id,
                status=SessionStatus.ACTIVE,
                paused_at=None,
                total_paused_duration=session.total_paused_duration + paused_seconds,
            )
            step = _step_at(steps, session.current_step_index)
            if snapshot is not None and step is not None and step.is_timer_required:
                if snapshot.remaining_ms > 0:
                    self.timer_registry.schedule(
                        session_id, session.current_step_index, snapshot.remaining_ms
                    )
                else:
                    # Countdown ran out while paused.
                    self.timer_registry.publish_expired(
                        session_id, session.current_step_index
                    )
        _logger.info(
            "Cooking session resumed: session=%s paused_seconds=%s",
            session_id,
            paused_seconds,
        )
        return updated

    async def advance_step(self, session_id: UUID) -> CookingSession:
        """Move an active session to its next step, completing it after the last."""
        async with self._lock(session_id):
            session = self._require_session(session_id)
            return await self._advance(session)

    async def cancel_session(self, session_id: UUID) -> CookingSession:
        """Cancel a session and drop its timers; terminal sessions are left as-is."""
        async with self._lock(session_id):
            session = self._require_session(session_id)
            self.timer_registry.cancel(session_id)
            if session.status.is_terminal:
                return session
            updated = self._update(
                session_id,
                status=SessionStatus.CANCELLED,
                completed_at=self.clock(),
            )
        _logger.info("Cooking session cancelled: session=%s", session_id)
        return updated

    async def get_session(self, session_id: UUID) -> CookingSession:
        return self._require_session(session_id)

    async def list_user_sessions(self, user_id: UUID) -> list[CookingSession]:
        return self.session_repository.list_user_sessions(user_id)

    async def handle_timer_expired(self, event: TimerExpired) -> bool:
        """Complete the expired step and auto-advance or finish the session.

        Returns False when the event is stale or handling failed; failures are
        logged and never raised.
        """
        async with self._lock(event.session_id):
            try:
                return await self._on_timer_expired(event)
            except Exception:
                _logger.exception(
                    "Failed to handle step timer expiry",
                    extra={
                        "session_id": str(event.session_id),
                        "step_index": event.step_index,
                    },
                )
                return False

    async def process_timer_events(self) -> int:
        """Handle every queued expiry event and return how many were handled."""
        handled = 0
        while True:
            try:
                event = self.timer_registry.events.get_nowait()
            except asyncio.QueueEmpty:
                return handled
            await self.handle_timer_expired(event)
            self.timer_registry.events.task_done()
            handled += 1

    async def run_timer_listener(self) -> None:
        """Consume expiry events until cancelled."""
        events = self.timer_registry.events
        while True:
            event = await events.get()
            try:
                await self.handle_timer_expired(event)
            finally:
                events.task_done()

    async def recover_active_sessions(self) -> list[CookingSession]:
        """Pause sessions left active by a previous process.

        Timers do not survive a restart, so each recovered session is paused
        with the full duration of its current timed step and the user is told
        to resume. Sessions that were already paused get the same snapshot
        without a notification.
        """
        recovered: list[CookingSession] = []
        for session in self.session_repository.list_paused_sessions():
            if self.timer_registry.paused_timer(session.id) is not None:
                continue
            try:
                async with self._lock(session.id):
                    steps = self.step_catalog.get_steps(session.recipe_id)
                    step = _step_at(steps, session.current_step_index)
                    if self._restore_snapshot(session, step):
                        recovered.append(session)
            except Exception:
                _logger.exception(
                    "Failed to recover cooking session",
                    extra={"session_id": str(session.id)},
                )
        for session in self.session_repository.list_active_sessions():
            if self.timer_registry.active_timer(session.id) is not None:
                continue
            try:
                async with self._lock(session.id):
                    recovered.append(await self._recover(session))
            except Exception:
                _logger.exception(
                    "Failed to recover cooking session",
                    extra={"session_id": str(session.id)},
                )
        if recovered:
            _logger.info("Recovered cooking sessions: count=%s", len(recovered))
        return recovered

    def shutdown(self) -> None:
        """Cancel every pending step timer."""
        self.timer_registry.cancel_all()
        self._locks.clear()

    async def _advance(self, session: CookingSession) -> CookingSession:
        if session.status is not SessionStatus.ACTIVE:
            raise InvalidStateError(
                f"Session {session.id} is not active ({session.status.value})"
            )
        steps = self.step_catalog.steps_for_session(session.recipe_id)
        self.timer_registry.cancel(session.id)
        next_index = session.current_step_index + 1
        if next_index >= len(steps):
            updated = self._update(
                session.id,
                status=SessionStatus.COMPLETED,
                completed_at=self.clock(),
            )
            _logger.info("Cooking session completed: session=%s", session.id)
            return updated

        updated = self._update(session.id, current_step_index=next_index)
        next_step = steps[next_index]
        await self.dispatcher.notify_step(
            session.user_id,
            next_step,
            next_index,
            StepNotificationKind.START,
            session_id=session.id,
        )
        self._arm_timer(session.id, next_index, next_step)
        _logger.info(
            "Cooking session advanced: session=%s step=%s", session.id, next_index + 1
        )
        return updated

    async def _on_timer_expired(self, event: TimerExpired) -> bool:
        session = self.session_repository.get_session(event.session_id)
        if (
            session is not None
            and session.status is SessionStatus.PAUSED
            and session.current_step_index == event.step_index
            and self.timer_registry.paused_timer(session.id) is None
        ):
            self.timer_registry.store_snapshot(
                PausedTimer(
                    session_id=session.id,
                    paused_at=session.paused_at or self.clock(),
                    remaining_ms=0,
                )
            )
            _logger.info(
                "Deferring timer expiry until resume: session=%s step=%s",
                session.id,
                event.step_index,
            )
            return False
        if (
            session is None
            or session.status is not SessionStatus.ACTIVE
            or session.current_step_index != event.step_index
        ):
            _logger.info(
                "Ignoring stale timer: session=%s step=%s",
                event.session_id,
                event.step_index,
            )
            return False

        steps = self.step_catalog.steps_for_session(session.recipe_id)
        step = _step_at(steps, event.step_index)
        if step is None:
            raise NotFoundError(
                f"Step {event.step_index} not found for recipe {session.recipe_id}"
            )
        await self.dispatcher.notify_step(
            session.user_id,
            step,
            event.step_index,
            StepNotificationKind.COMPLETE,
            session_id=session.id,
        )
        if event.step_index + 1 < len(steps):
            await self._advance(session)
            return True

        self.timer_registry.cancel(session.id)
        self._update(
            session.id,
            status=SessionStatus.COMPLETED,
            completed_at=self.clock(),
        )
        await self.dispatcher.notify_cooking_complete(
            session.user_id, session_id=session.id
        )
        _logger.info("Cooking session completed by timer: session=%s", session.id)
        return True

    async def _recover(self, session: CookingSession) -> CookingSession:
        steps = self.step_catalog.steps_for_session(session.recipe_id)
        step = _step_at(steps, session.current_step_index)
        updated = self._update(
            session.id, status=SessionStatus.PAUSED, paused_at=self.clock()
        )
        self._restore_snapshot(updated, step)
        if step is not None:
            await self.dispatcher.notify_paused(
                session.user_id,
                step,
                session.current_step_index,
                session_id=session.id,
            )
        return updated

    def _restore_snapshot(
        self, session: CookingSession, step: CookingStep | None
    ) -> bool:
        if step is None or not step.has_timer:
            return False
        self.timer_registry.store_snapshot(
            PausedTimer(
                session_id=session.id,
                paused_at=session.paused_at or self.clock(),
                remaining_ms=step.timer_duration_ms,
            )
        )
        return True

    def _arm_timer(self, session_id: UUID, step_index: int, step: CookingStep) -> None:
        if step.has_timer:
            self.timer_registry.schedule(session_id, step_index, step.timer_duration_ms)

    def _require_session(self, session_id: UUID) -> CookingSession:
        session = self.session_repository.get_session(session_id)
        if session is None:
            raise NotFoundError(f"Cooking session {session_id} not found")
        return session

    def _update(self, session_id: UUID, **fields: object) -> CookingSession:
        updated = self.session_repository.update_session(session_id, fields)
        if updated is None:
            raise NotFoundError(f"Cooking session {session_id} not found")
        return updated

    @asynccontextmanager
    async def _lock(self, session_id: UUID) -> AsyncIterator[None]:
        """Serialize work on one session; the entry lives while it has users."""
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = _SessionLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if not entry.users:
                self._locks.pop(session_id, None)


def _step_at(steps: list[CookingStep], index: int) -> CookingStep | None:
    if 0 <= index < len(steps):
        return steps[index]
    return None
