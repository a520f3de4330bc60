"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from cooking_sessions.adapters.expo_push_client import DeviceTokenRepository
from cooking_sessions.config import Settings
from cooking_sessions.containers import AppContainer
from cooking_sessions.domain.notifications import DeviceToken, NotificationMessage
from cooking_sessions.domain.sessions import CookingSession, SessionStatus
from cooking_sessions.domain.steps import CookingStep
from cooking_sessions.services.notifications import (
    NotificationClient,
    NotificationDispatcher,
)
from cooking_sessions.services.sessions import (
    CookingSessionRepository,
    CookingSessionService,
)
from cooking_sessions.services.steps import StepCatalog, StepRepository
from cooking_sessions.services.timers import Scheduler, TimerRegistry


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 1, 18, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeHandle:
    """Handle for a callback armed on the fake scheduler."""

    due: datetime
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler(Scheduler):
    """Scheduler that fires callbacks when its clock is advanced."""

    clock: FakeClock
    handles: list[FakeHandle] = field(default_factory=list)

    def call_later(
        self, delay_seconds: float, callback: Callable[[], None]
    ) -> FakeHandle:
        handle = FakeHandle(
            due=self.clock() + timedelta(seconds=delay_seconds), callback=callback
        )
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        self.clock.advance(seconds)
        for handle in sorted(self.handles, key=lambda item: item.due):
            if handle.cancelled or handle.fired or handle.due > self.clock():
                continue
            handle.fired = True
            handle.callback()

    @property
    def pending(self) -> list[FakeHandle]:
        return [
            handle
            for handle in self.handles
            if not handle.cancelled and not handle.fired
        ]


@dataclass
class InMemoryStepRepository(StepRepository):
    """In-memory step repository for tests."""

    steps: dict[UUID, list[CookingStep]] = field(default_factory=dict)

    def get_steps_for_recipe(self, recipe_id: UUID) -> list[CookingStep]:
        return list(self.steps.get(recipe_id, []))

    def add_recipe(self, *steps: CookingStep) -> UUID:
        recipe_id = steps[0].recipe_id if steps else uuid4()
        self.steps[recipe_id] = list(steps)
        return recipe_id


@dataclass
class InMemoryCookingSessionRepository(CookingSessionRepository):
    """In-memory cooking session repository for tests."""

    sessions: dict[UUID, CookingSession] = field(default_factory=dict)
    updates: list[tuple[UUID, dict[str, object]]] = field(default_factory=list)

    def create_session(  # noqa: PLR0913
        self,
        user_id: UUID,
        recipe_id: UUID,
        status: SessionStatus,
        current_step_index: int,
        started_at: datetime,
        total_paused_duration: int,
    ) -> CookingSession:
        session = CookingSession(
            id=uuid4(),
            user_id=user_id,
            recipe_id=recipe_id,
            status=status,
            current_step_index=current_step_index,
            started_at=started_at,
            total_paused_duration=total_paused_duration,
        )
        self.sessions[session.id] = session
        return session

    def get_session(self, session_id: UUID) -> CookingSession | None:
        return self.sessions.get(session_id)

    def update_session(
        self, session_id: UUID, fields: dict[str, object]
    ) -> CookingSession | None:
        session = self.sessions.get(session_id)
        if session is None:
            return None
        self.updates.append((session_id, dict(fields)))
        updated = replace(session, **fields)
        self.sessions[session_id] = updated
        return updated

    def list_active_sessions(self) -> list[CookingSession]:
        return self._with_status(SessionStatus.ACTIVE)

    def list_paused_sessions(self) -> list[CookingSession]:
        return self._with_status(SessionStatus.PAUSED)

    def list_user_sessions(self, user_id: UUID) -> list[CookingSession]:
        sessions = [
            session for session in self.sessions.values() if session.user_id == user_id
        ]
        return sorted(sessions, key=lambda item: item.started_at, reverse=True)

    def _with_status(self, status: SessionStatus) -> list[CookingSession]:
        return [
            session for session in self.sessions.values() if session.status is status
        ]


@dataclass
class FakeNotificationClient(NotificationClient):
    """Notification client that records deliveries."""

    sent: list[tuple[UUID, NotificationMessage]] = field(default_factory=list)
    fail: bool = False

    async def send_notification(
        self, user_id: UUID, message: NotificationMessage
    ) -> None:
        if self.fail:
            raise RuntimeError("push service unavailable")
        self.sent.append((user_id, message))

    @property
    def titles(self) -> list[str]:
        return [message.title for _, message in self.sent]


@dataclass
class InMemoryDeviceTokenRepository(DeviceTokenRepository):
    """In-memory device token repository for tests."""

    tokens: list[DeviceToken] = field(default_factory=list)

    def get_active_device_tokens(self, user_id: UUID) -> list[DeviceToken]:
        return [
            token
            for token in self.tokens
            if token.user_id == user_id and token.is_active
        ]


def make_step(  # noqa: PLR0913
    recipe_id: UUID,
    step_number: int,
    description: str = "Stir",
    instructions: str = "Stir the pot.",
    is_timer_required: bool = False,
    duration_minutes: int | None = None,
    duration_seconds: int | None = None,
) -> CookingStep:
    return CookingStep(
        id=uuid4(),
        recipe_id=recipe_id,
        step_number=step_number,
        description=description,
        instructions=instructions,
        is_timer_required=is_timer_required,
        duration_minutes=duration_minutes,
        duration_seconds=duration_seconds,
    )


@dataclass
class Engine:
    """Bundle of a session service and its fakes."""

    service: CookingSessionService
    clock: FakeClock
    scheduler: FakeScheduler
    registry: TimerRegistry
    steps: InMemoryStepRepository
    sessions: InMemoryCookingSessionRepository
    notifications: FakeNotificationClient

    def advance(self, seconds: float) -> None:
        self.scheduler.advance(seconds)


def build_engine() -> Engine:
    clock = FakeClock()
    scheduler = FakeScheduler(clock)
    registry = TimerRegistry(scheduler=scheduler, clock=clock)
    steps = InMemoryStepRepository()
    sessions = InMemoryCookingSessionRepository()
    notifications = FakeNotificationClient()
    service = CookingSessionService(
        step_catalog=StepCatalog(steps),
        session_repository=sessions,
        timer_registry=registry,
        dispatcher=NotificationDispatcher(notifications),
        clock=clock,
    )
    return Engine(
        service=service,
        clock=clock,
        scheduler=scheduler,
        registry=registry,
        steps=steps,
        sessions=sessions,
        notifications=notifications,
    )


@pytest.fixture
def engine() -> Engine:
    return build_engine()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        recover_active_sessions=False,
    )


@pytest.fixture
def container(settings: Settings, engine: Engine) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        step_catalog=engine.service.step_catalog,
        timer_registry=engine.registry,
        dispatcher=engine.service.dispatcher,
        session_service=engine.service,
        close_resources=close_resources,
    )
