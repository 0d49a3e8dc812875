"""Webhook event kinds offered by the provider."""
from __future__ import annotations

from typing import Iterable

import structlog

from tracking_webhook_service.core.exceptions import ConfigError, UpstreamError
from tracking_webhook_service.domain.models import EventKind
from tracking_webhook_service.services.auth import AuthSession

logger = structlog.get_logger(__name__)

EVENTS_PATH = "/webhooks/event"


class EventCatalog:
    def __init__(self, auth: AuthSession, *, attempts: int = 2):
        self._auth = auth
        self._attempts = max(1, attempts)

    async def list_event_kinds(self) -> frozenset[EventKind]:
        last_error: UpstreamError | None = None
        for attempt in range(1, self._attempts + 1):
            try:
                payload = await self._auth.request("GET", EVENTS_PATH)
                break
            except UpstreamError as exc:
                last_error = exc
                logger.warning(
                    "event catalog fetch failed",
                    attempt=attempt,
                    attempts=self._attempts,
                    error=str(exc),
                )
        else:
            assert last_error is not None
            raise last_error

        events = payload.get("events")
        if not isinstance(events, list) or not all(isinstance(e, str) for e in events):
            raise UpstreamError("Event catalog response is not a list of strings", path=EVENTS_PATH)
        return frozenset(events)

    async def ensure_supported(self, kinds: Iterable[EventKind]) -> frozenset[EventKind]:
        """Fail fast when any wanted kind is unknown to the provider."""
        available = await self.list_event_kinds()
        missing = sorted(set(kinds) - available)
        if missing:
            raise ConfigError(
                f"Provider does not offer event kind(s) {', '.join(missing)}; "
                f"available: {', '.join(sorted(available)) or 'none'}"
            )
        return available
