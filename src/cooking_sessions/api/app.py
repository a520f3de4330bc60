"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from cooking_sessions.api.cooking import router as cooking_router
from cooking_sessions.app_logging import configure_logging
from cooking_sessions.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        service = state_container.session_service
        listener = asyncio.create_task(service.run_timer_listener())
        if state_container.settings.recover_active_sessions:
            try:
                await service.recover_active_sessions()
            except Exception:
                logger.exception("Failed to recover active cooking sessions")
        yield
        listener.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await listener
        service.shutdown()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(cooking_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
