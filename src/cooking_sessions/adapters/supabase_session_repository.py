"""Supabase-backed cooking session repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

from supabase import Client

from cooking_sessions.domain.sessions import CookingSession, SessionStatus
from cooking_sessions.services.sessions import CookingSessionRepository

_TABLE = "cooking_sessions"
_COLUMNS = (
    "id, user_id, recipe_id, status, current_step_index, started_at, paused_at, "
    "completed_at, total_paused_duration"
)


@dataclass
class SupabaseCookingSessionRepository(CookingSessionRepository):
    """Supabase implementation for cooking sessions."""

    client: Client

    def create_session(  # noqa: PLR0913
        self,
        user_id: UUID,
        recipe_id: UUID,
        status: SessionStatus,
        current_step_index: int,
        started_at: datetime,
        total_paused_duration: int,
    ) -> CookingSession:
        """Create a session row and return it."""
        response = (
            self.client.table(_TABLE)
            .insert(
                {
                    "user_id": str(user_id),
                    "recipe_id": str(recipe_id),
                    "status": status.value,
                    "current_step_index": current_step_index,
                    "started_at": started_at.isoformat(),
                    "total_paused_duration": total_paused_duration,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create cooking session")
        return _parse_row(response.data[0])

    def get_session(self, session_id: UUID) -> CookingSession | None:
        """Return a session by id, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(session_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def update_session(
        self, session_id: UUID, fields: dict[str, object]
    ) -> CookingSession | None:
        """Apply a partial update and return the updated row."""
        payload = {key: _serialize(value) for key, value in fields.items()}
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table(_TABLE)
            .update(payload)
            .eq("id", str(session_id))
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def list_active_sessions(self) -> list[CookingSession]:
        """Return sessions persisted with the active status."""
        return self._list_by_status(SessionStatus.ACTIVE)

    def list_paused_sessions(self) -> list[CookingSession]:
        """Return sessions persisted with the paused status."""
        return self._list_by_status(SessionStatus.PAUSED)

    def list_user_sessions(self, user_id: UUID) -> list[CookingSession]:
        """Return a user's sessions, newest first."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def _list_by_status(self, status: SessionStatus) -> list[CookingSession]:
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("status", status.value)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _serialize(value: object) -> object:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    return value


def _parse_datetime(raw: object) -> datetime | None:
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw)
    return None


def _parse_row(row: dict[str, object]) -> CookingSession:
    return CookingSession(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        recipe_id=UUID(str(row["recipe_id"])),
        status=SessionStatus(row["status"]),
        current_step_index=int(row.get("current_step_index") or 0),
        started_at=_parse_datetime(row.get("started_at")) or datetime.now(tz=UTC),
        paused_at=_parse_datetime(row.get("paused_at")),
        completed_at=_parse_datetime(row.get("completed_at")),
        total_paused_duration=int(row.get("total_paused_duration") or 0),
    )
