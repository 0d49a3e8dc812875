"""Thin JSON-over-HTTP client for the time-tracking provider API."""
from __future__ import annotations

import asyncio
from typing import Any

import structlog
from aiohttp import ClientError, ClientSession, ClientTimeout

from tracking_webhook_service.core.exceptions import UpstreamError
from tracking_webhook_service.domain.models import Token

logger = structlog.get_logger(__name__)


class ProviderClient:
    """Owns one aiohttp session for all outbound provider calls.

    Every failure (network error, timeout, non-2xx status, undecodable body)
    surfaces as :class:`UpstreamError`; callers decide whether it is fatal.
    """

    def __init__(self, *, base_url: str, timeout_s: float = 5.0, session: ClientSession | None = None):
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "ProviderClient":
        if self._session is None:
            self._session = ClientSession(timeout=ClientTimeout(total=self._timeout_s))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        token: Token | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if self._session is None:
            raise RuntimeError("Client is not started; use 'async with ProviderClient(...)'.")

        headers = {"Accept": "application/json"}
        if token is not None:
            headers["Authorization"] = token.bearer()

        try:
            async with self._session.request(method, self.url(path), json=json, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    text = await resp.text()
                    logger.warning(
                        "provider call rejected",
                        method=method,
                        path=path,
                        status_code=resp.status,
                        body=text[:500],
                    )
                    raise UpstreamError(f"{method} rejected: {text[:200]}", path=path, status=resp.status)
                if resp.status == 204:
                    return {}
                payload = await resp.json(content_type=None)
        except ValueError as exc:
            raise UpstreamError(f"{method} returned malformed JSON", path=path) from exc
        except asyncio.TimeoutError as exc:
            raise UpstreamError(f"{method} timed out after {self._timeout_s}s", path=path) from exc
        except ClientError as exc:
            raise UpstreamError(f"{method} failed: {exc}", path=path) from exc

        if payload is None:
            return {}
        if not isinstance(payload, dict):
            raise UpstreamError(f"{method} returned {type(payload).__name__}, expected an object", path=path)
        return payload
