"""Formatting and hand-off of cooking notifications."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cooking_sessions.domain.notifications import (
    NotificationMessage,
    StepNotificationKind,
)
from cooking_sessions.domain.steps import CookingStep

_logger = logging.getLogger(__name__)

COMPLETION_STEP_INDEX = -1


class NotificationClient(Protocol):
    """Interface for delivering notifications to a user's devices."""

    async def send_notification(
        self, user_id: UUID, message: NotificationMessage
    ) -> None:
        """Deliver a notification to every active device of the user."""


def format_duration(minutes: int | None, seconds: int | None) -> str:
    """Render a step duration as compact tokens such as ``5m 30s``."""
    parts: list[str] = []
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    return " ".join(parts)


def step_notification(
    step: CookingStep,
    step_index: int,
    kind: StepNotificationKind,
    session_id: UUID | None = None,
) -> NotificationMessage:
    """Build the start or completion message for a step."""
    step_number = step_index + 1
    duration = format_duration(step.duration_minutes, step.duration_seconds)
    if kind is StepNotificationKind.START:
        title = f"🍳 Step {step_number}: {step.description}"
        body = step.instructions
        if step.is_timer_required and duration:
            body = f"{body}\n⏰ Timer: {duration}"
    else:
        title = f"✅ Step {step_number} Complete!"
        if step.is_timer_required:
            body = f"{step.description} timer finished. Ready for next step!"
        else:
            body = f"{step.description} completed. Ready for next step!"
    return NotificationMessage(
        title=title,
        body=body,
        metadata=_metadata(
            session_id=session_id,
            step_index=step_index,
            kind=kind,
            session_data={
                "stepDescription": step.description,
                "instructions": step.instructions,
                "isTimerRequired": step.is_timer_required,
                "duration": duration,
            },
        ),
    )


def completion_notification(session_id: UUID | None = None) -> NotificationMessage:
    """Build the message sent once the whole recipe is done."""
    return NotificationMessage(
        title="🎉 Cooking Complete!",
        body="Congratulations! Your meal is ready to enjoy.",
        metadata=_metadata(
            session_id=session_id,
            step_index=COMPLETION_STEP_INDEX,
            kind=StepNotificationKind.COMPLETE,
            session_data={
                "stepDescription": "Cooking Complete",
                "instructions": "Your delicious meal is ready!",
                "isTimerRequired": False,
                "duration": "",
            },
        ),
    )


def paused_notification(
    step: CookingStep, step_index: int, session_id: UUID | None = None
) -> NotificationMessage:
    """Build the message sent when a session was paused on the user's behalf."""
    return NotificationMessage(
        title=f"⏸️ Step {step_index + 1} paused",
        body=(
            f"Your cooking session was paused at {step.description}. "
            "Resume when you are ready."
        ),
        metadata=_metadata(
            session_id=session_id,
            step_index=step_index,
            kind=StepNotificationKind.START,
            session_data={
                "stepDescription": step.description,
                "instructions": step.instructions,
                "isTimerRequired": step.is_timer_required,
                "duration": format_duration(
                    step.duration_minutes, step.duration_seconds
                ),
            },
        ),
    )


def _metadata(
    session_id: UUID | None,
    step_index: int,
    kind: StepNotificationKind,
    session_data: dict[str, object],
) -> dict[str, object]:
    return {
        "type": "cooking_step",
        "sessionId": str(session_id) if session_id else None,
        "stepIndex": step_index,
        "stepType": kind.value,
        "sessionData": session_data,
    }


@dataclass
class NotificationDispatcher:
    """Hands formatted cooking messages to the delivery client."""

    client: NotificationClient

    async def notify_step(
        self,
        user_id: UUID,
        step: CookingStep,
        step_index: int,
        kind: StepNotificationKind,
        session_id: UUID | None = None,
    ) -> bool:
        """Send a step start/complete notification."""
        message = step_notification(step, step_index, kind, session_id=session_id)
        return await self.dispatch(user_id, message)

    async def notify_cooking_complete(
        self, user_id: UUID, session_id: UUID | None = None
    ) -> bool:
        """Send the cooking-complete notification."""
        return await self.dispatch(user_id, completion_notification(session_id))

    async def notify_paused(
        self,
        user_id: UUID,
        step: CookingStep,
        step_index: int,
        session_id: UUID | None = None,
    ) -> bool:
        """Send a notification that the session was paused."""
        message = paused_notification(step, step_index, session_id=session_id)
        return await self.dispatch(user_id, message)

    async def dispatch(self, user_id: UUID, message: NotificationMessage) -> bool:
        """Deliver a message; failures are logged and reported as False."""
        try:
            await self.client.send_notification(user_id, message)
        except Exception:
            _logger.exception(
                "Failed to send cooking notification",
                extra={"user_id": str(user_id), "title": message.title},
            )
            return False
        _logger.info(
            "Cooking notification sent: user=%s title=%s", user_id, message.title
        )
        return True
