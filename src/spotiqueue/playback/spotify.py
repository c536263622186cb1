"""Spotify Web API adapter implementing the Playback Queue Gateway."""

import asyncio
import logging
import math
import time
from typing import Any, Callable, Optional

import httpx

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.common.exceptions import (
    InvalidReferenceError,
    NoActiveDeviceError,
    UpstreamFailureError,
)
from spotiqueue.playback.cache import TTLCache
from spotiqueue.playback.gateway import QueueSnapshot, TrackMetadata

logger = logging.getLogger(__name__)

TOKEN_REFRESH_MARGIN = 60  # seconds
DEFAULT_RETRY_AFTER = 5  # seconds


def track_from_api(item: dict[str, Any]) -> TrackMetadata:
    """Flatten a Spotify track object."""
    album = item.get("album") or {}
    images = album.get("images") or []
    return TrackMetadata(
        id=item["id"],
        name=item.get("name", ""),
        artists=", ".join(a.get("name", "") for a in item.get("artists") or []),
        uri=item.get("uri", f"spotify:track:{item['id']}"),
        duration_ms=item.get("duration_ms") or 0,
        explicit=bool(item.get("explicit", False)),
        album=album.get("name", ""),
        album_art=images[0].get("url") if images else None,
    )


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {resp.status_code}"
    if isinstance(error, str):
        return body.get("error_description") or error
    return f"HTTP {resp.status_code}"


class SpotifyGateway:
    """Search, resolve, enqueue and poll against the Spotify Web API.

    Owns the access-token cache, the provider back-off state and the
    short-TTL queue snapshot cache.
    """

    def __init__(
        self,
        settings: SpotiQueueSettings,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self._http_client = http_client
        self._clock = clock
        self._access_token: str | None = None
        self._token_expires_at = 0.0
        self._refresh_token = settings.spotify_refresh_token
        self._retry_at = 0.0
        self.queue_cache: TTLCache[QueueSnapshot] = TTLCache(
            settings.queue_cache_ttl, clock=clock
        )

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.spotify_timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def clear_token_cache(self) -> None:
        self._access_token = None
        self._token_expires_at = 0.0

    def set_refresh_token(self, refresh_token: str) -> None:
        """Switch to a newly connected (or, with "", a disconnected) account."""
        self._refresh_token = refresh_token
        self.clear_token_cache()
        self.queue_cache.invalidate()

    # ── Auth ──

    async def get_access_token(self) -> str:
        if self._access_token and self._token_expires_at > self._clock() + TOKEN_REFRESH_MARGIN:
            return self._access_token

        if not self.settings.spotify_configured:
            raise UpstreamFailureError("Spotify credentials not configured")

        if self._refresh_token:
            data = {"grant_type": "refresh_token", "refresh_token": self._refresh_token}
        else:
            # Client credentials cannot touch the player, but search still works
            data = {"grant_type": "client_credentials"}

        client = self._get_http_client()
        try:
            resp = await client.post(
                self.settings.spotify_accounts_url,
                data=data,
                auth=(self.settings.spotify_client_id, self.settings.spotify_client_secret),
            )
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Failed to authenticate with Spotify: {e}") from e

        if resp.status_code != 200:
            message = _error_message(resp)
            logger.error("Spotify token request failed: %s", message)
            if "invalid_client" in resp.text:
                raise UpstreamFailureError(
                    "Invalid Spotify credentials. Check SPOTIQUEUE_SPOTIFY_CLIENT_ID and "
                    "SPOTIQUEUE_SPOTIFY_CLIENT_SECRET"
                )
            if "invalid_grant" in resp.text:
                raise UpstreamFailureError(
                    "Invalid refresh token. Obtain a new one and update SPOTIQUEUE_SPOTIFY_REFRESH_TOKEN"
                )
            raise UpstreamFailureError(f"Failed to authenticate with Spotify: {message}")

        body = resp.json()
        self._access_token = body["access_token"]
        self._token_expires_at = self._clock() + int(body.get("expires_in", 3600))
        if body.get("refresh_token"):
            self._refresh_token = body["refresh_token"]
        return self._access_token

    # ── Transport ──

    async def _wait_for_rate_limit(self) -> None:
        delay = self._retry_at - self._clock()
        if delay > self.settings.max_rate_limit_wait:
            raise UpstreamFailureError(
                f"Spotify rate limit active, retry in {math.ceil(delay)}s"
            )
        if delay > 0:
            logger.warning("Spotify rate limit active, waiting %.1fs", delay)
            await asyncio.sleep(delay)

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        await self._wait_for_rate_limit()
        token = await self.get_access_token()

        client = self._get_http_client()
        try:
            resp = await client.request(
                method,
                f"{self.settings.spotify_api_base}{path}",
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
        except httpx.TimeoutException as e:
            raise UpstreamFailureError("Spotify request timed out") from e
        except httpx.HTTPError as e:
            raise UpstreamFailureError(f"Spotify request failed: {e}") from e

        if resp.status_code == 429:
            retry_after = resp.headers.get("retry-after")
            wait = int(retry_after) if retry_after and retry_after.isdigit() else DEFAULT_RETRY_AFTER
            self._retry_at = self._clock() + wait
            logger.warning("Rate limited by Spotify, backing off %ss", wait)
        elif resp.status_code == 401:
            self.clear_token_cache()
        elif resp.is_success:
            self._retry_at = 0.0
        return resp

    # ── Gateway operations ──

    async def search(self, query: str, limit: int = 10) -> list[TrackMetadata]:
        resp = await self._request(
            "GET", "/search", params={"q": query, "type": "track", "limit": limit}
        )
        if not resp.is_success:
            raise UpstreamFailureError(f"Failed to search tracks: {_error_message(resp)}")
        items = (resp.json().get("tracks") or {}).get("items") or []
        return [track_from_api(item) for item in items if item and item.get("id")]

    async def resolve(self, track_id: str) -> TrackMetadata:
        resp = await self._request("GET", f"/tracks/{track_id}")
        if resp.status_code in (400, 404):
            raise InvalidReferenceError("Track not found")
        if not resp.is_success:
            raise UpstreamFailureError(f"Failed to get track: {_error_message(resp)}")
        return track_from_api(resp.json())

    async def enqueue(self, track: TrackMetadata) -> None:
        resp = await self._request("POST", "/me/player/queue", params={"uri": track.uri})
        if resp.status_code == 404:
            raise NoActiveDeviceError()
        if not resp.is_success:
            raise UpstreamFailureError(f"Failed to add track to queue: {_error_message(resp)}")
        self.queue_cache.invalidate()

    async def current_queue(self) -> QueueSnapshot:
        cached = self.queue_cache.get()
        if cached is not None:
            return cached

        resp = await self._request("GET", "/me/player/queue")
        if not resp.is_success:
            raise UpstreamFailureError(f"Failed to get queue: {_error_message(resp)}")

        body = resp.json()
        current = body.get("currently_playing")
        snapshot = QueueSnapshot(
            now_playing=track_from_api(current) if current and current.get("id") else None,
            upcoming=[track_from_api(t) for t in body.get("queue") or [] if t and t.get("id")],
        )
        self.queue_cache.set(snapshot)
        return snapshot

    async def now_playing(self) -> Optional[dict[str, Any]]:
        try:
            resp = await self._request("GET", "/me/player/currently-playing")
        except UpstreamFailureError:
            logger.warning("Now playing lookup failed", exc_info=True)
            return None
        if resp.status_code == 204 or not resp.is_success or not resp.content:
            return None

        body = resp.json()
        item = body.get("item")
        if not item or not item.get("id"):
            return None
        data = track_from_api(item).to_dict()
        data["progress_ms"] = body.get("progress_ms")
        data["is_playing"] = bool(body.get("is_playing"))
        return data
