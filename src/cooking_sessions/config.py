"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from cooking_sessions.adapters.expo_push_client import EXPO_PUSH_URL

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    expo_push_url: str = EXPO_PUSH_URL
    expo_access_token: str | None = None
    push_timeout_seconds: float = 10
    recover_active_sessions: bool = True
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
