"""Shared dependency providers for aiohttp handlers."""
from __future__ import annotations

from aiohttp import web

from tracking_webhook_service.domain.models import ReconcileResult
from tracking_webhook_service.services.sinks import EventSink

_EVENT_SINK_KEY = "event_sink"
_RECONCILE_RESULT_KEY = "reconcile_result"


def set_event_sink(app: web.Application, sink: EventSink) -> None:
    app[_EVENT_SINK_KEY] = sink


def get_event_sink(request: web.Request) -> EventSink:
    try:
        return request.app[_EVENT_SINK_KEY]
    except KeyError:
        raise web.HTTPServiceUnavailable(text="No event sink configured") from None


def set_reconcile_result(app: web.Application, result: ReconcileResult) -> None:
    app[_RECONCILE_RESULT_KEY] = result


def get_reconcile_result(app: web.Application) -> ReconcileResult | None:
    return app.get(_RECONCILE_RESULT_KEY)
