"""Webhook subscription reconciliation against the provider."""
from __future__ import annotations

from typing import Sequence

import structlog
from pydantic import ValidationError

from tracking_webhook_service.core.exceptions import AuthError, UpstreamError
from tracking_webhook_service.domain.models import (
    DesiredBinding,
    EventKind,
    ReconcileResult,
    Subscription,
)
from tracking_webhook_service.services.auth import AuthSession

logger = structlog.get_logger(__name__)

SUBSCRIPTIONS_PATH = "/webhooks/subscription"


def _parse_subscription(payload: object) -> Subscription:
    try:
        return Subscription.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamError("Unexpected subscription shape", path=SUBSCRIPTIONS_PATH) from exc


class SubscriptionReconciler:
    """Converges provider-side subscriptions onto a desired set of bindings.

    Bindings are keyed by the (event kind, target URL) pair: a subscription for
    the same kind pointing elsewhere does not satisfy a binding. Only missing
    bindings are created, so repeated passes never produce duplicates.
    """

    def __init__(self, auth: AuthSession):
        self._auth = auth

    async def list_subscriptions(self) -> list[Subscription]:
        payload = await self._auth.request("GET", SUBSCRIPTIONS_PATH)
        items = payload.get("subscriptions")
        if not isinstance(items, list):
            raise UpstreamError("Subscription list response has no 'subscriptions' array", path=SUBSCRIPTIONS_PATH)
        return [_parse_subscription(item) for item in items]

    async def create_subscription(self, event_kind: EventKind, target_url: str) -> Subscription:
        binding = DesiredBinding(event_kind=event_kind, target_url=target_url)
        payload = await self._auth.request("POST", SUBSCRIPTIONS_PATH, json=binding.as_request_body())
        return _parse_subscription(payload)

    async def delete_subscription(self, subscription: Subscription) -> None:
        await self._auth.request("DELETE", f"{SUBSCRIPTIONS_PATH}/{subscription.id}")
        logger.info(
            "webhook subscription deleted",
            subscription_id=subscription.id,
            event_kind=subscription.event_kind,
            target_url=subscription.target_url,
        )

    async def reconcile(self, desired: Sequence[DesiredBinding]) -> ReconcileResult:
        existing = await self.list_subscriptions()
        result = ReconcileResult()

        # dict.fromkeys keeps first-seen order while dropping duplicates
        for binding in dict.fromkeys(desired):
            match = next((sub for sub in existing if sub.matches(binding)), None)
            if match is not None:
                result.subscriptions.append(match)
                continue

            try:
                created = await self.create_subscription(binding.event_kind, binding.target_url)
            except (UpstreamError, AuthError) as exc:
                logger.error(
                    "webhook subscription create failed",
                    event_kind=binding.event_kind,
                    target_url=binding.target_url,
                    error=str(exc),
                )
                result.failed.append((binding, exc))
                continue

            logger.info(
                "webhook subscription created",
                subscription_id=created.id,
                event_kind=created.event_kind,
                target_url=created.target_url,
            )
            result.subscriptions.append(created)
            result.created.append(created)

        return result

    async def prune_stale(self, desired: Sequence[DesiredBinding], *, scope_prefix: str) -> list[Subscription]:
        """Delete subscriptions under ``scope_prefix`` that no desired binding covers.

        Subscriptions pointing anywhere else belong to other consumers and are
        left untouched.
        """
        wanted = set(desired)
        removed: list[Subscription] = []
        for sub in await self.list_subscriptions():
            if not sub.target_url.startswith(scope_prefix):
                continue
            if any(sub.matches(binding) for binding in wanted):
                continue
            await self.delete_subscription(sub)
            removed.append(sub)
        return removed
