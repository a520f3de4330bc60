"""Expo push notification client adapter."""

import logging
import re
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import httpx

from cooking_sessions.domain.notifications import DeviceToken, NotificationMessage
from cooking_sessions.services.notifications import NotificationClient

_logger = logging.getLogger(__name__)

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"
_CHUNK_SIZE = 100
_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")


class DeviceTokenRepository(Protocol):
    """Persistence interface for push device tokens."""

    def get_active_device_tokens(self, user_id: UUID) -> list[DeviceToken]:
        """Return the user's active push tokens."""


def is_expo_push_token(token: str) -> bool:
    """Return true when the token looks like an Expo push token."""
    return bool(_TOKEN_PATTERN.match(token))


@dataclass
class HttpxExpoPushClient(NotificationClient):
    """Notification client that delivers through the Expo push service."""

    token_repository: DeviceTokenRepository
    http_client: httpx.AsyncClient
    push_url: str = EXPO_PUSH_URL
    access_token: str | None = None
    timeout_seconds: float = 10

    @classmethod
    def create(
        cls,
        token_repository: DeviceTokenRepository,
        push_url: str = EXPO_PUSH_URL,
        access_token: str | None = None,
        timeout_seconds: float = 10,
    ) -> "HttpxExpoPushClient":
        """Create a push client with a managed httpx session."""
        return cls(
            token_repository=token_repository,
            http_client=httpx.AsyncClient(),
            push_url=push_url,
            access_token=access_token,
            timeout_seconds=timeout_seconds,
        )

    async def send_notification(
        self, user_id: UUID, message: NotificationMessage
    ) -> None:
        """Send the message to every valid active device of the user."""
        tokens = self.token_repository.get_active_device_tokens(user_id)
        messages = []
        for device_token in tokens:
            if not is_expo_push_token(device_token.token):
                _logger.warning("Skipping invalid Expo push token: %s", device_token.id)
                continue
            messages.append(_push_message(device_token, message))
        if not messages:
            _logger.info("No active device tokens for user %s", user_id)
            return

        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        for start in range(0, len(messages), _CHUNK_SIZE):
            chunk = messages[start : start + _CHUNK_SIZE]
            response = await self.http_client.post(
                self.push_url,
                json=chunk,
                headers=headers,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            _log_ticket_errors(response)

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _push_message(
    device_token: DeviceToken, message: NotificationMessage
) -> dict[str, object]:
    return {
        "to": device_token.token,
        "title": message.title,
        "body": message.body,
        "sound": "default",
        "priority": "high",
        "channelId": "cooking-reminders",
        "data": {**message.metadata, "userId": str(device_token.user_id)},
    }


def _log_ticket_errors(response: httpx.Response) -> None:
    tickets = response.json().get("data", [])
    if not isinstance(tickets, list):
        return
    for ticket in tickets:
        if isinstance(ticket, dict) and ticket.get("status") == "error":
            _logger.warning("Expo push ticket error: %s", ticket.get("message"))
