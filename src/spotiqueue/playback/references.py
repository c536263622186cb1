"""Parse user-supplied track references into Spotify track ids."""

import re
from urllib.parse import urlparse

from spotiqueue.common.exceptions import InvalidReferenceError

_TRACK_ID = re.compile(r"^[A-Za-z0-9]{1,64}$")
_URI_PREFIX = "spotify:track:"


def parse_track_reference(reference: str | None) -> str:
    """Accept a raw id, a ``spotify:track:`` URI or an open.spotify.com URL.

    >>> parse_track_reference("https://open.spotify.com/intl-de/track/4uLU6hMCjMI75M1A2tKUQC?si=x")
    '4uLU6hMCjMI75M1A2tKUQC'
    """
    if not reference or not isinstance(reference, str):
        raise InvalidReferenceError("Track ID or URL required")

    ref = reference.strip()
    if ref.startswith(_URI_PREFIX):
        candidate = ref[len(_URI_PREFIX):].split("?")[0]
    elif "://" in ref or ref.startswith("open.spotify.com"):
        candidate = _id_from_url(ref)
    else:
        candidate = ref

    if not candidate or not _TRACK_ID.match(candidate):
        raise InvalidReferenceError()
    return candidate


def _id_from_url(url: str) -> str | None:
    if "://" not in url:
        url = f"https://{url}"
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return None
    host = parsed.hostname or ""
    if host != "spotify.com" and not host.endswith(".spotify.com"):
        return None
    parts = [p for p in parsed.path.split("/") if p]
    if "track" not in parts:
        return None
    index = parts.index("track")
    if index + 1 >= len(parts):
        return None
    return parts[index + 1]
