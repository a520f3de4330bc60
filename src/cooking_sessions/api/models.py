"""Pydantic models for the cooking session API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from cooking_sessions.domain.sessions import CookingSession, SessionStatus
from cooking_sessions.domain.steps import CookingStep


class StartSessionRequest(BaseModel):
    """Payload for starting a cooking session."""

    user_id: UUID


class CookingSessionResponse(BaseModel):
    """Cooking session payload."""

    id: UUID
    user_id: UUID
    recipe_id: UUID
    status: SessionStatus
    current_step_index: int
    started_at: datetime
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    total_paused_duration: int = 0

    @classmethod
    def from_domain(cls, session: CookingSession) -> "CookingSessionResponse":
        return cls(
            id=session.id,
            user_id=session.user_id,
            recipe_id=session.recipe_id,
            status=session.status,
            current_step_index=session.current_step_index,
            started_at=session.started_at,
            paused_at=session.paused_at,
            completed_at=session.completed_at,
            total_paused_duration=session.total_paused_duration,
        )


class CookingStepResponse(BaseModel):
    """Cooking step payload."""

    id: UUID
    recipe_id: UUID
    step_number: int
    description: str
    instructions: str
    is_timer_required: bool
    duration_minutes: int | None = None
    duration_seconds: int | None = None

    @classmethod
    def from_domain(cls, step: CookingStep) -> "CookingStepResponse":
        return cls(
            id=step.id,
            recipe_id=step.recipe_id,
            step_number=step.step_number,
            description=step.description,
            instructions=step.instructions,
            is_timer_required=step.is_timer_required,
            duration_minutes=step.duration_minutes,
            duration_seconds=step.duration_seconds,
        )
