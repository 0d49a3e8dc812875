"""Decoding of inbound webhook envelopes into domain events."""
from __future__ import annotations

from typing import Any, Callable

import structlog
from pydantic import ValidationError

from tracking_webhook_service.core.exceptions import DecodeError
from tracking_webhook_service.domain.events import (
    DomainEvent,
    Envelope,
    TrackingStarted,
    TrackingStartedEnvelope,
    TrackingStopped,
    TrackingStoppedEnvelope,
)
from tracking_webhook_service.domain.models import TRACKING_STARTED, TRACKING_STOPPED, EventKind

logger = structlog.get_logger(__name__)


def _validate(model: type[Envelope], body: dict[str, Any]) -> Envelope:
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        raise DecodeError(f"Invalid {model.__name__} payload", errors=errors) from exc


def _check_declared_kind(envelope: Envelope, expected: EventKind) -> None:
    declared = envelope.event_type
    if declared is not None and declared != expected:
        logger.warning(
            "webhook event type does not match route",
            declared=declared,
            expected=expected,
            user_id=envelope.user_id,
        )


def decode_started(body: dict[str, Any]) -> TrackingStarted:
    envelope = _validate(TrackingStartedEnvelope, body)
    _check_declared_kind(envelope, TRACKING_STARTED)
    return TrackingStarted(user_id=envelope.user_id, tracking=envelope.data.current_tracking)


def decode_stopped(body: dict[str, Any]) -> TrackingStopped:
    envelope = _validate(TrackingStoppedEnvelope, body)
    _check_declared_kind(envelope, TRACKING_STOPPED)
    time_entry = envelope.data.new_time_entry if envelope.data is not None else None
    return TrackingStopped(user_id=envelope.user_id, time_entry=time_entry)


DECODERS: dict[EventKind, Callable[[dict[str, Any]], DomainEvent]] = {
    TRACKING_STARTED: decode_started,
    TRACKING_STOPPED: decode_stopped,
}


def decode_event(kind: EventKind, body: dict[str, Any]) -> DomainEvent:
    """Decode ``body`` as the event variant bound to ``kind``.

    The variant is chosen by the receiving route, never inferred from the
    payload, so a payload that lacks the route's data fails instead of being
    coerced into the other variant.
    """
    try:
        decoder = DECODERS[kind]
    except KeyError:
        raise DecodeError(f"Unsupported event kind {kind!r}") from None
    return decoder(body)
