"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from cooking_sessions.adapters.expo_push_client import HttpxExpoPushClient
from cooking_sessions.adapters.supabase_device_token_repository import (
    SupabaseDeviceTokenRepository,
)
from cooking_sessions.adapters.supabase_session_repository import (
    SupabaseCookingSessionRepository,
)
from cooking_sessions.adapters.supabase_step_repository import SupabaseStepRepository
from cooking_sessions.config import Settings
from cooking_sessions.services.notifications import NotificationDispatcher
from cooking_sessions.services.sessions import CookingSessionService
from cooking_sessions.services.steps import StepCatalog
from cooking_sessions.services.timers import TimerRegistry


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    step_catalog: StepCatalog
    timer_registry: TimerRegistry
    dispatcher: NotificationDispatcher
    session_service: CookingSessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    step_catalog = StepCatalog(SupabaseStepRepository(supabase_client))
    session_repository = SupabaseCookingSessionRepository(supabase_client)
    push_client = HttpxExpoPushClient.create(
        token_repository=SupabaseDeviceTokenRepository(supabase_client),
        push_url=resolved_settings.expo_push_url,
        access_token=resolved_settings.expo_access_token,
        timeout_seconds=resolved_settings.push_timeout_seconds,
    )
    dispatcher = NotificationDispatcher(push_client)
    timer_registry = TimerRegistry()
    session_service = CookingSessionService(
        step_catalog=step_catalog,
        session_repository=session_repository,
        timer_registry=timer_registry,
        dispatcher=dispatcher,
    )

    async def close_resources() -> None:
        await push_client.close()

    return AppContainer(
        settings=resolved_settings,
        step_catalog=step_catalog,
        timer_registry=timer_registry,
        dispatcher=dispatcher,
        session_service=session_service,
        close_resources=close_resources,
    )
