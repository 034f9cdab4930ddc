"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting overridable through environment variables or .env
    - get_settings() is cached (lru_cache) — single instance per process
    - create_app() accepts an explicit Settings, bypassing the cache

Design Decisions:
    - Defaults provided for all settings: works out-of-the-box locally
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Service identity
    app_name: str = "boundary-api"
    app_version: str = "1.0.0"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Auth guard
    auth_cookie_name: str = "session_token"
    login_url: str = "/login"

    # Pipeline: timeout bounds the service stage only; None disables it
    service_timeout_seconds: float | None = 30.0
    disconnect_poll_seconds: float = 0.25

    @field_validator("service_timeout_seconds", mode="before")
    @classmethod
    def disable_timeout_when_zero(cls, v):
        """SERVICE_TIMEOUT_SECONDS=0 (or empty) means no timeout."""
        if v in (0, "0", ""):
            return None
        return v

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
