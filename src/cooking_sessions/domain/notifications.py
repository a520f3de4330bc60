"""Domain models for outbound cooking notifications."""

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID


class StepNotificationKind(str, Enum):
    """Whether a step notification announces a step or its completion."""

    START = "start"
    COMPLETE = "complete"


@dataclass(frozen=True)
class NotificationMessage:
    """A formatted notification ready for delivery."""

    title: str
    body: str
    metadata: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class DeviceToken:
    """A push token registered by one of the user's devices."""

    id: UUID
    user_id: UUID
    token: str
    platform: str | None = None
    is_active: bool = True
