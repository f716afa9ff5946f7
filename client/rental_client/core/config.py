"""
Configuration module for the rental marketplace client.

The Settings object centralizes environment-driven configuration with strict
typing and validation rules so that the gateway, the socket channel and the
services can rely on a single source of truth. Values are read once at
startup; there is no runtime reconfiguration.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationInfo,
    computed_field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SOCKET_PATH = "/socket"


class Settings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    project_name: str = Field(default="Rental Marketplace Client", alias="PROJECT_NAME")
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        alias="APP_ENV",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    backend_url: str = Field(
        default="http://localhost:4000",
        alias="BACKEND_URL",
        validation_alias=AliasChoices("BACKEND_URL", "BASE_URL"),
        description="Backend origin without the API prefix.",
    )
    api_prefix: str = Field(default="/api", alias="API_PREFIX")
    socket_url: str | None = Field(
        default=None,
        alias="SOCKET_URL",
        description="Explicit socket endpoint. Derived from BACKEND_URL when unset.",
    )

    google_maps_api_key: SecretStr | None = Field(default=None, alias="GOOGLE_MAPS_API_KEY")
    stripe_publishable_key: SecretStr | None = Field(
        default=None,
        alias="STRIPE_PUBLISHABLE_KEY",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        alias="HTTP_TIMEOUT_SECONDS",
        description="Timeout applied to every outbound HTTP call.",
    )
    sign_in_path: str = Field(
        default="/login",
        alias="SIGN_IN_PATH",
        description="Application path users are sent to when the session ends.",
    )
    socket_connect_attempts: int = Field(
        default=3,
        alias="SOCKET_CONNECT_ATTEMPTS",
        ge=1,
        description="Connection attempts before the live channel gives up.",
    )

    @field_validator("backend_url", mode="before")
    @classmethod
    def _normalize_backend_url(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be provided.")
        trimmed = str(value).strip().rstrip("/")
        if not trimmed:
            raise ValueError("BACKEND_URL must not be empty.")
        if not (trimmed.startswith("http://") or trimmed.startswith("https://")):
            raise ValueError("BACKEND_URL must include the http:// or https:// scheme.")
        return trimmed

    @field_validator("api_prefix")
    @classmethod
    def _normalize_api_prefix(cls, value: str) -> str:
        candidate = value.strip().rstrip("/")
        if not candidate:
            return ""
        if not candidate.startswith("/"):
            candidate = f"/{candidate}"
        return candidate

    @field_validator("socket_url")
    @classmethod
    def _normalize_socket_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        candidate = value.strip()
        return candidate or None

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive.")
        return value

    @field_validator("sign_in_path")
    @classmethod
    def _validate_sign_in_path(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate.startswith("/"):
            raise ValueError("SIGN_IN_PATH must be an absolute application path.")
        return candidate

    @field_validator("stripe_publishable_key", mode="after")
    @classmethod
    def _validate_stripe_key(cls, secret: SecretStr | None) -> SecretStr | None:
        if secret is None:
            return None
        raw = secret.get_secret_value().strip()
        if not raw:
            return None
        if not raw.startswith("pk_"):
            raise ValueError("STRIPE_PUBLISHABLE_KEY must be a publishable key (pk_...).")
        return SecretStr(raw)

    @computed_field(return_type=str)
    def api_base_url(self) -> str:
        """Return the REST base URL the gateway resolves relative paths against."""
        return f"{self.backend_url}{self.api_prefix}"

    @property
    def resolved_socket_url(self) -> str:
        """
        Return the socket endpoint.

        SOCKET_URL wins when configured; otherwise the backend origin is reused
        with the default socket path.
        """
        if self.socket_url:
            return self.socket_url
        parts = urlsplit(self.backend_url)
        return urlunsplit((parts.scheme, parts.netloc, DEFAULT_SOCKET_PATH, "", ""))


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    return Settings()


settings = get_settings()
