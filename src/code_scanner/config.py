"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    scans_table: str = "scanned_codes"
    off_base_url: str = "https://world.openfoodfacts.org/api/v0"
    off_user_agent: str = "code-scanner/0.1"
    lookup_timeout_seconds: float = 10.0
    dedup_cooldown_seconds: float = 2.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
