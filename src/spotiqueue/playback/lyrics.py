"""Synced lyrics lookup against LRCLib."""

import logging
import re
import time
from typing import Any, Callable, Optional

import httpx

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.playback.cache import TTLMap

logger = logging.getLogger(__name__)

LINE_SYNCED = "LINE_SYNCED"

_LRC_LINE = re.compile(r"\[(\d{2}):(\d{2})\.(\d{2})\]\s*(.*)")


def parse_synced_lyrics(text: str) -> Optional[dict[str, Any]]:
    """Parse LRC text (``[mm:ss.cc] words`` per line) into timed lines.

    Lines without a timestamp are dropped. Returns None when nothing
    timed is left.
    """
    lines = []
    for raw in text.splitlines():
        match = _LRC_LINE.search(raw.strip())
        if not match:
            continue
        minutes, seconds, centis = (int(g) for g in match.groups()[:3])
        lines.append({
            "time_tag": f"{minutes:02d}:{seconds:02d}.{centis:02d}",
            "words": match.group(4),
            "start_time_ms": (minutes * 60 + seconds) * 1000 + centis * 10,
        })
    if not lines:
        return None
    return {"sync_type": LINE_SYNCED, "lines": lines}


class LyricsClient:
    """Fetches and caches synced lyrics per track id.

    Misses are cached too, so a track without lyrics is looked up once
    per TTL rather than on every now-playing poll.
    """

    def __init__(
        self,
        settings: SpotiQueueSettings,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self._http_client = http_client
        self.cache: TTLMap[dict[str, Any]] = TTLMap(settings.lyrics_cache_ttl, clock=clock)

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.lyrics_timeout)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch(self, track_name: str, artist_name: str) -> Optional[dict[str, Any]]:
        """Return the first search result's synced lyrics, or None."""
        if not track_name or not artist_name:
            return None

        client = self._get_http_client()
        try:
            resp = await client.get(
                self.settings.lyrics_api_url,
                params={"track_name": track_name, "artist_name": artist_name},
            )
            resp.raise_for_status()
            results = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Lyrics lookup failed for %r by %r: %s", track_name, artist_name, e)
            return None

        if not isinstance(results, list) or not results:
            return None
        synced = (results[0] or {}).get("syncedLyrics")
        if not synced:
            logger.info("Synced lyrics not found for %r by %r", track_name, artist_name)
            return None
        return parse_synced_lyrics(synced)

    async def for_track(self, track: dict[str, Any]) -> Optional[dict[str, Any]]:
        track_id = track.get("id") or ""
        if track_id in self.cache:
            return self.cache.get(track_id)
        lyrics = await self.fetch(track.get("name", ""), track.get("artists", ""))
        self.cache.set(track_id, lyrics)
        return lyrics
