"""Error taxonomy shared by startup and request handling."""
from __future__ import annotations

from typing import Any


class TrackingWebhookError(Exception):
    """Base error for the service."""


class ConfigError(TrackingWebhookError):
    """Raised when required configuration is missing or invalid."""


class AuthError(TrackingWebhookError):
    """Raised when signing in to the provider fails."""


class UpstreamError(TrackingWebhookError):
    """Raised when an authenticated provider call fails."""

    def __init__(self, message: str, *, path: str, status: int | None = None):
        super().__init__(message)
        self.path = path
        self.status = status

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return f"{base} ({self.path})"
        return f"{base} ({self.path}, HTTP {self.status})"


class DecodeError(TrackingWebhookError):
    """Raised when an inbound webhook payload does not match the expected shape."""

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def as_dict(self) -> dict[str, Any]:
        return {"error": str(self), "details": self.errors}


class SinkError(TrackingWebhookError):
    """Raised by an event sink that could not accept an event."""
