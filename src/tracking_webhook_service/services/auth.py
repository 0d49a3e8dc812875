"""Provider sign-in and bearer-token handling."""
from __future__ import annotations

from typing import Any

import structlog
from pydantic import ValidationError

from tracking_webhook_service.clients.provider import ProviderClient
from tracking_webhook_service.core.exceptions import AuthError, ConfigError, UpstreamError
from tracking_webhook_service.domain.models import Credentials, Me, Token

logger = structlog.get_logger(__name__)

SIGN_IN_PATH = "/developer/sign-in"
ME_PATH = "/me"


class AuthSession:
    """Exchanges credentials for a bearer token and signs provider calls with it.

    A call rejected with 401 triggers one fresh sign-in and one retry. The
    token is replaced, never mutated, so concurrent callers always read a
    complete value.
    """

    def __init__(self, client: ProviderClient, credentials: Credentials):
        self._client = client
        self._credentials = credentials
        self._token: Token | None = None

    @property
    def token(self) -> Token:
        if self._token is None:
            raise AuthError("Not signed in")
        return self._token

    async def sign_in(self) -> Token:
        if not self._credentials.api_key.get_secret_value() or not self._credentials.api_secret.get_secret_value():
            raise ConfigError("API key and secret must both be non-empty")

        try:
            payload = await self._client.request_json(
                "POST", SIGN_IN_PATH, json=self._credentials.as_sign_in_body()
            )
        except UpstreamError as exc:
            raise AuthError(f"Sign-in failed: {exc}") from exc

        value = payload.get("token")
        if not isinstance(value, str) or not value:
            raise AuthError("Sign-in response did not contain a token")

        self._token = Token(value=value)
        logger.info("signed in to provider")
        return self._token

    async def refresh(self) -> Token:
        logger.info("refreshing provider token")
        return await self.sign_in()

    async def request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> dict[str, Any]:
        """Perform an authenticated call, re-authenticating once on 401."""
        token = self._token if self._token is not None else await self.sign_in()
        try:
            return await self._client.request_json(method, path, token=token, json=json)
        except UpstreamError as exc:
            if exc.status != 401:
                raise
            logger.warning("provider rejected token", method=method, path=path)
        token = await self.refresh()
        return await self._client.request_json(method, path, token=token, json=json)

    async def fetch_me(self) -> Me:
        payload = await self.request("GET", ME_PATH)
        try:
            return Me.model_validate(payload.get("data"))
        except ValidationError as exc:
            raise UpstreamError("Unexpected /me response shape", path=ME_PATH) from exc
