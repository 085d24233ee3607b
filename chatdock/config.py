"""Application settings for the chatdock API."""

from __future__ import annotations

import json
from typing import Annotated, Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_list(value: str | list[str] | None) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return []
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(item) for item in parsed]
            except json.JSONDecodeError:
                pass
        return [item.strip() for item in raw.split(",") if item.strip()]
    return []


class Settings(BaseSettings):
    """Central configuration entrypoint for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    app_version: str = Field(
        default="1.0.0",
        validation_alias=AliasChoices("APP_VERSION", "VERSION"),
    )

    # Server
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:5000"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "CORS_ORIGINS"),
    )

    # Observability
    log_level: str = "INFO"
    metrics_username: str = "prometheus"
    metrics_password: str | None = None

    # CSRF protection
    csrf_cookie_name: str = "__Host-csrf-token"
    csrf_readable_cookie_name: str = "csrf-token-readable"
    csrf_header_name: str = "X-CSRF-Token"
    csrf_token_bytes: int = Field(default=32, ge=16)
    csrf_cookie_max_age: int = 24 * 60 * 60
    # Browsers drop __Host- cookies without Secure; http://localhost still accepts them.
    csrf_cookie_secure: bool = True
    csrf_exempt_paths: Annotated[list[str], NoDecode] = []

    # Rate limiting
    rate_limit_enabled: bool = True
    csrf_token_rate_limit: str = "60/minute"

    @field_validator("allowed_origins", "csrf_exempt_paths", mode="before")
    @classmethod
    def parse_list(cls, value: str | list[str] | None) -> list[str]:
        """Normalize list-valued env input."""
        return _split_list(value)

    @field_validator("api_prefix")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        value = "/" + value.strip().strip("/")
        return value if value != "/" else ""

    @property
    def is_production(self) -> bool:
        """Return True when running in production."""
        return self.environment == "production"

    @property
    def csrf_secure_cookies(self) -> bool:
        return self.csrf_cookie_secure

    @property
    def cors_origins(self) -> list[str]:
        """Expose allowed CORS origins for middleware wiring."""
        return self.allowed_origins


settings = Settings()
