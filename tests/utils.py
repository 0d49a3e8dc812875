from __future__ import annotations

import asyncio
import copy
from typing import Any

from aiohttp import web

API_KEY = "test-key"
API_SECRET = "test-secret"
PUBLIC_BASE_URL = "https://hooks.example.com"


class FakeProvider:
    """In-memory stand-in for the provider API.

    Implements:
      - POST /developer/sign-in
      - GET /me
      - GET /webhooks/event
      - GET/POST /webhooks/subscription
      - DELETE /webhooks/subscription/{id}
    """

    def __init__(self) -> None:
        self.events: list[str] = ["trackingStarted", "trackingStopped", "trackingEdited"]
        self.subscriptions: list[dict[str, str]] = []
        self.valid_tokens: set[str] = set()
        self.sign_ins = 0
        self.sign_in_payload: dict[str, Any] | None = None
        self.catalog_failures = 0
        self.fail_create_for: set[str] = set()
        self.created_requests: list[dict[str, Any]] = []
        self.deleted_ids: list[str] = []
        # Seconds every handler waits before answering
        self.delay_seconds = 0.0
        # Reject bearer tokens even when freshly issued
        self.reject_all_tokens = False
        # After this many creates, revoke tokens and stop accepting the secret
        self.rotate_secret_after_creates: int | None = None
        self.api_secret = API_SECRET
        self._next_id = 1

    def add_subscription(self, event: str, target_url: str) -> dict[str, str]:
        sub = {"id": str(self._next_id), "event": event, "targetUrl": target_url}
        self._next_id += 1
        self.subscriptions.append(sub)
        return sub

    def revoke_tokens(self) -> None:
        self.valid_tokens.clear()

    def _authorized(self, request: web.Request) -> bool:
        if self.reject_all_tokens:
            return False
        auth = request.headers.get("Authorization", "")
        return auth.startswith("Bearer ") and auth[len("Bearer "):] in self.valid_tokens

    @web.middleware
    async def _delay_middleware(self, request: web.Request, handler):
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        return await handler(request)

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._delay_middleware])

        async def sign_in(request: web.Request) -> web.Response:
            body = await request.json()
            if body.get("apiKey") != API_KEY or body.get("apiSecret") != self.api_secret:
                return web.json_response({"error": "invalid credentials"}, status=401)
            self.sign_ins += 1
            if self.sign_in_payload is not None:
                return web.json_response(self.sign_in_payload)
            token = f"token-{self.sign_ins}"
            self.valid_tokens.add(token)
            return web.json_response({"token": token})

        async def me(request: web.Request) -> web.Response:
            if not self._authorized(request):
                return web.json_response({"error": "Unauthorized"}, status=401)
            return web.json_response(
                {
                    "data": {
                        "userId": "1",
                        "name": "Ann Example",
                        "email": "ann@example.com",
                        "defaultSpaceId": "10",
                    }
                }
            )

        async def list_events(request: web.Request) -> web.Response:
            if not self._authorized(request):
                return web.json_response({"error": "Unauthorized"}, status=401)
            if self.catalog_failures > 0:
                self.catalog_failures -= 1
                return web.json_response({"error": "unavailable"}, status=503)
            return web.json_response({"events": list(self.events)})

        async def list_subscriptions(request: web.Request) -> web.Response:
            if not self._authorized(request):
                return web.json_response({"error": "Unauthorized"}, status=401)
            return web.json_response({"subscriptions": copy.deepcopy(self.subscriptions)})

        async def create_subscription(request: web.Request) -> web.Response:
            if not self._authorized(request):
                return web.json_response({"error": "Unauthorized"}, status=401)
            body = await request.json()
            self.created_requests.append(body)
            if body["targetUrl"] in self.fail_create_for:
                return web.json_response({"error": "boom"}, status=500)
            sub = self.add_subscription(body["event"], body["targetUrl"])
            rotate_after = self.rotate_secret_after_creates
            if rotate_after is not None and len(self.created_requests) >= rotate_after:
                self.revoke_tokens()
                self.api_secret = "rotated-secret"
            return web.json_response(sub, status=201)

        async def delete_subscription(request: web.Request) -> web.Response:
            if not self._authorized(request):
                return web.json_response({"error": "Unauthorized"}, status=401)
            sub_id = request.match_info["subscription_id"]
            self.subscriptions = [s for s in self.subscriptions if s["id"] != sub_id]
            self.deleted_ids.append(sub_id)
            return web.Response(status=204)

        app.router.add_post("/developer/sign-in", sign_in)
        app.router.add_get("/me", me)
        app.router.add_get("/webhooks/event", list_events)
        app.router.add_get("/webhooks/subscription", list_subscriptions)
        app.router.add_post("/webhooks/subscription", create_subscription)
        app.router.add_delete("/webhooks/subscription/{subscription_id}", delete_subscription)
        return app


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[Any] = []

    async def handle(self, event: Any) -> None:
        self.events.append(event)


def _activity() -> dict[str, Any]:
    return {
        "id": "1217348",
        "name": "Deep work",
        "color": "#a1b2c3",
        "integration": "zei",
        "spaceId": "10",
        "deviceSide": 3,
    }


def _note() -> dict[str, Any]:
    return {
        "text": "pairing with @Bob #review",
        "tags": [{"id": 7, "key": "review", "label": "review", "scope": "timeular", "spaceId": "10"}],
        "mentions": [{"id": 8, "key": "bob", "label": "Bob", "scope": "timeular", "spaceId": "10"}],
    }


def started_payload(user_id: str = "1", **overrides: Any) -> dict[str, Any]:
    payload = {
        "userId": user_id,
        "eventType": "trackingStarted",
        "data": {
            "currentTracking": {
                "id": 42,
                "activity": _activity(),
                "startedAt": "2024-03-01T09:00:00.000",
                "note": _note(),
            }
        },
    }
    payload.update(overrides)
    return payload


def stopped_payload(user_id: str = "1", **overrides: Any) -> dict[str, Any]:
    payload = {
        "userId": user_id,
        "eventType": "trackingStopped",
        "data": {
            "newTimeEntry": {
                "id": "99",
                "activity": _activity(),
                "duration": {
                    "startedAt": "2024-03-01T09:00:00.000",
                    "stoppedAt": "2024-03-01T10:30:00.000",
                },
                "note": _note(),
            }
        },
    }
    payload.update(overrides)
    return payload
