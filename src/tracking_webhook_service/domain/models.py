"""Provider-side primitives: credentials, tokens and webhook subscriptions."""
from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, SecretStr

EventKind = str

TRACKING_STARTED: EventKind = "trackingStarted"
TRACKING_STOPPED: EventKind = "trackingStopped"

# Listener paths the provider calls back, relative to the public base URL
STARTED_ROUTE = "/started-tracking"
STOPPED_ROUTE = "/stopped-tracking"

ROUTES_BY_KIND: dict[EventKind, str] = {
    TRACKING_STARTED: STARTED_ROUTE,
    TRACKING_STOPPED: STOPPED_ROUTE,
}


class Credentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    api_secret: SecretStr

    def as_sign_in_body(self) -> dict[str, str]:
        return {
            "apiKey": self.api_key.get_secret_value(),
            "apiSecret": self.api_secret.get_secret_value(),
        }


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str = Field(repr=False)

    def bearer(self) -> str:
        return f"Bearer {self.value}"


class Me(BaseModel):
    """Profile of the signed-in principal."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_id: str = Field(alias="userId")
    name: str | None = None
    email: str | None = None
    default_space_id: str | None = Field(default=None, alias="defaultSpaceId")


class Subscription(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    event_kind: EventKind = Field(alias="event")
    target_url: str = Field(alias="targetUrl")

    def matches(self, binding: DesiredBinding) -> bool:
        return self.event_kind == binding.event_kind and self.target_url == binding.target_url


class DesiredBinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_kind: EventKind
    target_url: str

    def as_request_body(self) -> dict[str, str]:
        return {"event": self.event_kind, "targetUrl": self.target_url}


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass.

    ``subscriptions`` holds every subscription that satisfies a desired binding,
    whether it already existed or was created in this pass.
    """

    subscriptions: list[Subscription] = field(default_factory=list)
    created: list[Subscription] = field(default_factory=list)
    failed: list[tuple[DesiredBinding, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed
