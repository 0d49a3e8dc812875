"""Inbound webhook endpoints called by the provider."""
from __future__ import annotations

import json

import structlog
from aiohttp import web

from tracking_webhook_service.aiohttp_app import read_json
from tracking_webhook_service.core.exceptions import DecodeError
from tracking_webhook_service.domain.models import (
    STARTED_ROUTE,
    STOPPED_ROUTE,
    TRACKING_STARTED,
    TRACKING_STOPPED,
    EventKind,
)
from tracking_webhook_service.services.decoding import decode_event
from tracking_webhook_service.services.dependencies import get_event_sink

logger = structlog.get_logger(__name__)

routes = web.RouteTableDef()


async def _ingest(request: web.Request, kind: EventKind) -> web.Response:
    body = await read_json(request)
    try:
        event = decode_event(kind, body)
    except DecodeError as exc:
        logger.warning("webhook payload rejected", kind=kind, error=str(exc), details=exc.errors)
        raise web.HTTPBadRequest(
            text=json.dumps(exc.as_dict(), default=str),
            content_type="application/json",
        ) from exc

    sink = get_event_sink(request)
    try:
        await sink.handle(event)
    except Exception:
        # The event was decoded and is acknowledged; sink trouble stays on our side
        logger.exception("event sink failed", kind=kind, user_id=event.user_id)

    return web.json_response({"status": "accepted", "kind": kind})


@routes.post(STARTED_ROUTE)
async def tracking_started(request: web.Request) -> web.Response:
    return await _ingest(request, TRACKING_STARTED)


@routes.post(STOPPED_ROUTE)
async def tracking_stopped(request: web.Request) -> web.Response:
    return await _ingest(request, TRACKING_STOPPED)
