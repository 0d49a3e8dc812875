"""aiohttp application entrypoint."""
from __future__ import annotations

import sys

import structlog
from aiohttp import web

from tracking_webhook_service.aiohttp_app import add_healthcheck, create_base_app
from tracking_webhook_service.api.router import setup_routes
from tracking_webhook_service.clients.provider import ProviderClient
from tracking_webhook_service.core.exceptions import TrackingWebhookError
from tracking_webhook_service.logging_config import configure_logging
from tracking_webhook_service.services.bootstrap import establish_subscriptions
from tracking_webhook_service.services.dependencies import set_event_sink, set_reconcile_result
from tracking_webhook_service.services.sinks import EventSink, LoggingEventSink, QueueingEventSink
from tracking_webhook_service.settings import Settings, settings as default_settings

logger = structlog.get_logger(__name__)


def _subscription_hook(app_settings: Settings):
    async def establish_on_startup(app: web.Application) -> None:
        """Sign in and reconcile subscriptions before the listener binds."""
        async with ProviderClient(
            base_url=app_settings.api_base_url,
            timeout_s=app_settings.provider_request_timeout_seconds,
        ) as client:
            result = await establish_subscriptions(app_settings, client)
        set_reconcile_result(app, result)

    return establish_on_startup


def create_app(app_settings: Settings | None = None, *, sink: EventSink | None = None) -> web.Application:
    app_settings = app_settings or default_settings
    app = create_base_app(app_settings)

    add_healthcheck(app, app_settings)
    setup_routes(app)

    if sink is None:
        queueing = QueueingEventSink(
            LoggingEventSink(),
            maxsize=app_settings.sink_queue_size,
            shutdown_timeout=app_settings.sink_shutdown_timeout_seconds,
        )
        app.on_startup.append(queueing.start)
        app.on_cleanup.append(queueing.stop)
        sink = queueing
    set_event_sink(app, sink)

    # Registered last so the sink is already draining when callbacks can arrive
    if app_settings.subscribe_on_startup:
        app.on_startup.append(_subscription_hook(app_settings))

    return app


def main() -> None:
    configure_logging(default_settings.log_level, default_settings.log_format)
    try:
        web.run_app(
            create_app(default_settings),
            host=default_settings.host,
            port=default_settings.port,
            access_log=None,
        )
    except TrackingWebhookError as exc:
        logger.error("startup failed", error=str(exc), error_type=type(exc).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
