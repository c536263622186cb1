"""Spotify Connect: the admin OAuth flow that links the host's account.

The refresh token obtained here is persisted in the config store and
handed to the playback gateway, so connecting or disconnecting takes
effect without a restart.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.common.exceptions import (
    InvalidOAuthStateError,
    SpotifyNotConfiguredError,
    UpstreamFailureError,
)
from spotiqueue.configstore.service import ConfigService

logger = logging.getLogger(__name__)

SCOPES = "user-read-playback-state user-modify-playback-state user-read-currently-playing"
STATE_MAX_AGE = 600  # seconds

REFRESH_TOKEN_KEY = "spotify_refresh_token"
USER_ID_KEY = "spotify_user_id"

_PLACEHOLDERS = ("your_refresh_token", "placeholder")


def _usable(token: Optional[str]) -> bool:
    return bool(token and token.strip()) and not any(p in token for p in _PLACEHOLDERS)


class SpotifyConnect:
    def __init__(
        self,
        settings: SpotiQueueSettings,
        config_service: ConfigService,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.config_service = config_service
        self._http_client = http_client
        self._state = URLSafeTimedSerializer(settings.secret_key, salt="spotify-connect")

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.spotify_timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ── Authorize ──

    def authorize_url(self) -> str:
        if not self.settings.spotify_client_id:
            raise SpotifyNotConfiguredError()
        query = urlencode({
            "client_id": self.settings.spotify_client_id,
            "response_type": "code",
            "redirect_uri": self.settings.spotify_redirect_uri,
            "scope": SCOPES,
            "state": self._state.dumps("connect"),
        })
        return f"{self.settings.spotify_authorize_url}?{query}"

    def verify_state(self, state: str) -> None:
        try:
            value = self._state.loads(state, max_age=STATE_MAX_AGE)
        except (BadSignature, SignatureExpired) as e:
            raise InvalidOAuthStateError() from e
        if value != "connect":
            raise InvalidOAuthStateError()

    # ── Callback ──

    async def _exchange_code(self, code: str) -> tuple[str, str]:
        """Trade an authorization code for ``(access_token, refresh_token)``."""
        if not self.settings.spotify_configured:
            raise SpotifyNotConfiguredError("Spotify credentials not configured")

        client = self._get_http_client()
        try:
            resp = await client.post(
                self.settings.spotify_accounts_url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.settings.spotify_redirect_uri,
                },
                auth=(self.settings.spotify_client_id, self.settings.spotify_client_secret),
            )
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Token exchange failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if resp.status_code != 200 or not body.get("refresh_token"):
            message = body.get("error_description") or body.get("error") or f"HTTP {resp.status_code}"
            logger.error("Spotify token exchange failed: %s", message)
            raise UpstreamFailureError(f"Token exchange failed: {message}")
        return body["access_token"], body["refresh_token"]

    async def _fetch_user_id(self, access_token: str) -> str:
        client = self._get_http_client()
        try:
            resp = await client.get(
                f"{self.settings.spotify_api_base}/me",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Failed to read Spotify profile: {e}") from e
        if not resp.is_success:
            raise UpstreamFailureError(f"Failed to read Spotify profile: HTTP {resp.status_code}")
        return resp.json().get("id") or ""

    async def connect(self, session: AsyncSession, state: str, code: str) -> str:
        """Finish the OAuth round-trip and store the account. Returns the refresh token."""
        self.verify_state(state)
        access_token, refresh_token = await self._exchange_code(code)
        user_id = await self._fetch_user_id(access_token)
        await self.config_service.set_value(session, REFRESH_TOKEN_KEY, refresh_token)
        await self.config_service.set_value(session, USER_ID_KEY, user_id)
        logger.info("Spotify account connected: %s", user_id or "unknown user")
        return refresh_token

    async def disconnect(self, session: AsyncSession) -> None:
        # An empty stored token overrides SPOTIQUEUE_SPOTIFY_REFRESH_TOKEN
        await self.config_service.set_value(session, REFRESH_TOKEN_KEY, "")
        await self.config_service.set_value(session, USER_ID_KEY, "")
        logger.info("Spotify account disconnected")

    # ── Status ──

    async def refresh_token(self, session: AsyncSession) -> str:
        """Stored token if one was ever written, else the environment's."""
        stored = await self.config_service.get_value(session, REFRESH_TOKEN_KEY)
        if stored is not None:
            return stored
        return self.settings.spotify_refresh_token

    async def status(self, session: AsyncSession) -> dict[str, Any]:
        has_refresh_token = _usable(await self.refresh_token(session))
        has_client_id = bool(self.settings.spotify_client_id.strip())
        has_client_secret = bool(self.settings.spotify_client_secret.strip())
        return {
            "connected": has_refresh_token and has_client_id and has_client_secret,
            "has_refresh_token": has_refresh_token,
            "has_client_id": has_client_id,
            "has_client_secret": has_client_secret,
            "user_id": await self.config_service.get_value(session, USER_ID_KEY) or None,
        }
