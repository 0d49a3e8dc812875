"""Application settings."""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tracking_webhook_service.core.exceptions import ConfigError
from tracking_webhook_service.domain.models import Credentials

DEFAULT_API_BASE_URL = "https://api.timeular.com/api/v3"


class Settings(BaseSettings):
    """Core configuration for the Tracking Webhook Service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    env: Literal["development", "staging", "production"] = "development"
    app_name: str = "tracking-webhook-service"
    host: str = "0.0.0.0"
    port: int = 8000

    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str = Field(default="", validation_alias=AliasChoices("API_KEY", "TMLR_API_KEY"))
    api_secret: SecretStr = Field(
        default=SecretStr(""), validation_alias=AliasChoices("API_SECRET", "TMLR_API_SECRET")
    )
    # Publicly reachable base URL of this listener (e.g. a tunnel address)
    public_base_url: str = ""

    provider_request_timeout_seconds: float = 5.0
    subscribe_on_startup: bool = True
    prune_stale_subscriptions: bool = False

    sink_queue_size: int = 1000
    sink_shutdown_timeout_seconds: float = 5.0

    log_level: str = "INFO"
    log_format: Literal["kv", "json"] = "kv"

    @field_validator("api_base_url", "public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    def credentials(self) -> Credentials:
        """Return provider credentials, raising ConfigError when either part is missing."""
        missing = []
        if not self.api_key.strip():
            missing.append("API_KEY")
        if not self.api_secret.get_secret_value().strip():
            missing.append("API_SECRET")
        if missing:
            raise ConfigError(f"{', '.join(missing)} needs to be set")
        return Credentials(api_key=self.api_key, api_secret=self.api_secret)

    def require_public_base_url(self) -> str:
        if not self.public_base_url:
            raise ConfigError("PUBLIC_BASE_URL needs to be set to compute webhook target URLs")
        if not self.public_base_url.startswith(("http://", "https://")):
            raise ConfigError(f"PUBLIC_BASE_URL must be an http(s) URL, got {self.public_base_url!r}")
        return self.public_base_url


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
