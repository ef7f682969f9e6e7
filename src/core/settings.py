"""
Application Configuration

Centralized configuration using Pydantic Settings for type-safe
environment variable management with validation.

Per-proposal passwords are not declared fields: they are looked up by key
(PROPOSAL_PASSWORD_<ID>) from the environment or the .env file.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory containing this file, then go up to the project root
_CONFIG_DIR = Path(__file__).parent.parent.parent

PASSWORD_ENV_PREFIX = "PROPOSAL_PASSWORD_"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=_CONFIG_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    # Server Configuration
    environment: Literal["development", "production"] = "development"
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    debug: bool = False
    site_name: str = "launch.zto1ai.com"
    allowed_origins: str = "http://localhost:3000"

    # Session Configuration
    session_secret: str = ""
    session_cookie_name: str = "auth-session"
    session_max_age: int = 60 * 60 * 24  # 24 hours

    # Gate Configuration
    default_resource_id: str = "adb"
    auth_max_attempts: int = 10
    auth_window_seconds: int = 15 * 60
    auth_cooldown_seconds: int = 15 * 60
    auth_cleanup_threshold: int = 1000
    auth_retention_seconds: int = 60 * 60

    # Bot Protection Configuration
    bot_protection_enabled: bool = True
    bot_rate_limit_capacity: int = 60
    bot_rate_limit_refill_rate: float = 1.0  # requests per second

    # Email (SendGrid) Configuration
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = ""

    # Voice (ElevenLabs) Configuration
    elevenlabs_agent_id: str = ""
    elevenlabs_api_key: str = ""

    # Outbound HTTP
    http_timeout_seconds: float = 10.0

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once
    and reused throughout the application lifecycle.
    """
    return Settings()


def get_allowed_origins() -> list[str]:
    """Parse allowed origins from comma-separated string."""
    settings = get_settings()
    if not settings.allowed_origins:
        return []
    return [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]


def password_env_key(resource_id: str) -> str:
    """Configuration key holding the expected password for a resource."""
    return f"{PASSWORD_ENV_PREFIX}{resource_id.upper()}"


def get_resource_password(resource_id: str) -> str | None:
    """
    Look up the expected password for a gated resource.

    The process environment wins over the .env file. Empty values count as
    not configured.
    """
    key = password_env_key(resource_id)
    value = os.environ.get(key)
    if value is None:
        extras = get_settings().model_extra or {}
        value = extras.get(key.lower())
    return value or None
