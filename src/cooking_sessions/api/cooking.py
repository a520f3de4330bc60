"""Cooking session API endpoints."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, HTTPException, Request, status

from cooking_sessions.api.models import (
    CookingSessionResponse,
    CookingStepResponse,
    StartSessionRequest,
)
from cooking_sessions.domain.errors import (
    CookingSessionError,
    InvalidStateError,
    NoStepsError,
    NotFoundError,
)

if TYPE_CHECKING:
    from cooking_sessions.containers import AppContainer
    from cooking_sessions.domain.sessions import CookingSession

router = APIRouter(tags=["cooking"])
_logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[CookingSessionError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    NoStepsError: 422,
    InvalidStateError: status.HTTP_409_CONFLICT,
}


def _container(request: Request) -> AppContainer:
    return request.app.state.container


async def _run(
    request: Request, action: str, operation: Awaitable[CookingSession]
) -> CookingSessionResponse:
    """Await a state transition, mapping engine errors to HTTP failures."""
    try:
        session = await operation
    except CookingSessionError as exc:
        _logger.info("Failed to %s cooking session: %s", action, exc)
        raise HTTPException(
            status_code=_STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST),
            detail=_error_detail(request, action, exc),
        ) from exc
    return CookingSessionResponse.from_domain(session)


def _error_detail(request: Request, action: str, exc: Exception) -> str:
    message = f"Failed to {action} cooking session: {exc}"
    if _container(request).settings.environment == "local":
        return f"{message} ({type(exc).__name__})"
    return message


@router.get("/cooking-sessions")
async def list_sessions(
    user_id: UUID, request: Request
) -> dict[str, list[CookingSessionResponse]]:
    """Return a user's cooking sessions, newest first."""
    service = _container(request).session_service
    sessions = await service.list_user_sessions(user_id)
    return {
        "sessions": [CookingSessionResponse.from_domain(item) for item in sessions]
    }


@router.get("/cooking-sessions/{session_id}")
async def get_session(session_id: UUID, request: Request) -> CookingSessionResponse:
    """Return a single cooking session."""
    service = _container(request).session_service
    return await _run(request, "fetch", service.get_session(session_id))


@router.post("/cooking-sessions/start/{recipe_id}")
async def start_session(
    recipe_id: UUID, payload: StartSessionRequest, request: Request
) -> CookingSessionResponse:
    """Start a cooking session for the recipe."""
    service = _container(request).session_service
    return await _run(
        request, "start", service.start_session(payload.user_id, recipe_id)
    )


@router.put("/cooking-sessions/{session_id}/pause")
async def pause_session(session_id: UUID, request: Request) -> CookingSessionResponse:
    """Pause a cooking session."""
    service = _container(request).session_service
    return await _run(request, "pause", service.pause_session(session_id))


@router.put("/cooking-sessions/{session_id}/resume")
async def resume_session(
    session_id: UUID, request: Request
) -> CookingSessionResponse:
    """Resume a paused cooking session."""
    service = _container(request).session_service
    return await _run(request, "resume", service.resume_session(session_id))


@router.put("/cooking-sessions/{session_id}/next-step")
async def next_step(session_id: UUID, request: Request) -> CookingSessionResponse:
    """Advance a cooking session to its next step."""
    service = _container(request).session_service
    return await _run(request, "advance", service.advance_step(session_id))


@router.delete("/cooking-sessions/{session_id}")
async def cancel_session(session_id: UUID, request: Request) -> dict[str, str]:
    """Cancel a cooking session."""
    service = _container(request).session_service
    await _run(request, "cancel", service.cancel_session(session_id))
    return {"message": "Cooking session cancelled successfully"}


@router.get("/recipes/{recipe_id}/cooking-steps")
async def list_steps(
    recipe_id: UUID, request: Request
) -> dict[str, list[CookingStepResponse]]:
    """Return a recipe's cooking steps in order."""
    steps = _container(request).step_catalog.get_steps(recipe_id)
    return {"steps": [CookingStepResponse.from_domain(step) for step in steps]}
