"""Startup sequence: sign in, check the event catalog, reconcile subscriptions."""
from __future__ import annotations

import structlog

from tracking_webhook_service.clients.provider import ProviderClient
from tracking_webhook_service.core.exceptions import UpstreamError
from tracking_webhook_service.domain.models import (
    ROUTES_BY_KIND,
    DesiredBinding,
    ReconcileResult,
)
from tracking_webhook_service.services.auth import AuthSession
from tracking_webhook_service.services.catalog import EventCatalog
from tracking_webhook_service.services.subscriptions import SubscriptionReconciler
from tracking_webhook_service.settings import Settings

logger = structlog.get_logger(__name__)


def desired_bindings(public_base_url: str) -> list[DesiredBinding]:
    base = public_base_url.rstrip("/")
    return [
        DesiredBinding(event_kind=kind, target_url=f"{base}{route}")
        for kind, route in ROUTES_BY_KIND.items()
    ]


async def establish_subscriptions(app_settings: Settings, client: ProviderClient) -> ReconcileResult:
    """Run the startup chain once. Every step must succeed except individual creates.

    Raises ConfigError, AuthError or UpstreamError; callers treat them as fatal.
    """
    credentials = app_settings.credentials()
    public_base_url = app_settings.require_public_base_url()
    desired = desired_bindings(public_base_url)

    logger.info("signing in", api_base_url=app_settings.api_base_url)
    auth = AuthSession(client, credentials)
    await auth.sign_in()

    try:
        me = await auth.fetch_me()
    except UpstreamError as exc:
        logger.warning("could not fetch signed-in profile", error=str(exc))
    else:
        logger.info("signed in as", user_id=me.user_id, name=me.name)

    catalog = EventCatalog(auth)
    await catalog.ensure_supported(binding.event_kind for binding in desired)

    reconciler = SubscriptionReconciler(auth)
    if app_settings.prune_stale_subscriptions:
        removed = await reconciler.prune_stale(desired, scope_prefix=f"{public_base_url}/")
        logger.info("stale subscriptions pruned", count=len(removed))

    result = await reconciler.reconcile(desired)
    logger.info(
        "webhook subscriptions reconciled",
        active=len(result.subscriptions),
        created=len(result.created),
        failed=len(result.failed),
    )
    for binding, error in result.failed:
        logger.error(
            "webhook subscription missing",
            event_kind=binding.event_kind,
            target_url=binding.target_url,
            error=str(error),
        )
    return result
