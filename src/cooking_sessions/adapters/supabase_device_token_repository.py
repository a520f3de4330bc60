"""Supabase repository for push device tokens."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cooking_sessions.adapters.expo_push_client import DeviceTokenRepository
from cooking_sessions.domain.notifications import DeviceToken


@dataclass
class SupabaseDeviceTokenRepository(DeviceTokenRepository):
    """Supabase implementation for device token lookups."""

    client: Client

    def get_active_device_tokens(self, user_id: UUID) -> list[DeviceToken]:
        """Return the user's active push tokens."""
        response = (
            self.client.table("device_tokens")
            .select("id, user_id, token, platform, is_active")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .execute()
        )
        return [
            DeviceToken(
                id=UUID(str(row["id"])),
                user_id=UUID(str(row["user_id"])),
                token=str(row["token"]),
                platform=row.get("platform"),
                is_active=bool(row.get("is_active", True)),
            )
            for row in response.data or []
        ]
