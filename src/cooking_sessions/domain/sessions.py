"""Domain models for cooking sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class SessionStatus(str, Enum):
    """Lifecycle states of a cooking session."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset({SessionStatus.COMPLETED, SessionStatus.CANCELLED})


@dataclass(frozen=True)
class CookingSession:
    """Represents a persisted cooking session."""

    id: UUID
    user_id: UUID
    recipe_id: UUID
    status: SessionStatus
    current_step_index: int
    started_at: datetime
    paused_at: datetime | None = None
    completed_at: datetime | None = None
    total_paused_duration: int = 0
