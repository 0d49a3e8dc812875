"""aiohttp application helpers."""
from __future__ import annotations

from typing import Any, Literal, Protocol

from aiohttp import web

from tracking_webhook_service.middleware.trace import create_trace_middleware


class SettingsProtocol(Protocol):
    """Protocol for settings objects used by the app helpers."""

    app_name: str
    env: Literal["development", "staging", "production"]


def create_base_app(settings: SettingsProtocol) -> web.Application:
    """Create a base aiohttp app with tracing middleware configured."""
    app = web.Application()
    app.middlewares.append(create_trace_middleware(settings.app_name))
    return app


def add_healthcheck(app: web.Application, settings: SettingsProtocol) -> None:
    """Register a liveness endpoint.

    Answers 200 regardless of provider sign-in or subscription state.
    """

    async def healthcheck(_request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "service": settings.app_name, "env": settings.env})

    app.router.add_get("/health", healthcheck)


async def read_json(request: web.Request) -> dict[str, Any]:
    """Parse JSON body from request, raising HTTPBadRequest on invalid input."""
    try:
        data = await request.json()
    except ValueError as exc:
        raise web.HTTPBadRequest(text="Invalid JSON payload") from exc
    if not isinstance(data, dict):
        raise web.HTTPBadRequest(text="JSON body must be an object")
    return data
