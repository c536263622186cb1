"""Now-playing and Spotify Connect API router."""

import html
import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import SuccessResponse, error_response
from spotiqueue.common.security import require_admin
from spotiqueue.playback.schemas import (
    AuthorizeResponse,
    NowPlayingResponse,
    SpotifyStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_gateway():
    from spotiqueue.deps import get_gateway
    return get_gateway()


def _get_lyrics():
    from spotiqueue.deps import get_lyrics
    return get_lyrics()


def _get_connect():
    from spotiqueue.deps import get_spotify_connect
    return get_spotify_connect()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


def _page(title: str, body: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        f"<html><head><title>{title}</title></head>"
        f'<body style="font-family: Arial; padding: 40px; text-align: center;">'
        f"<h1>{title}</h1>{body}</body></html>",
        status_code=status_code,
    )


def _failure_page(message: str) -> HTMLResponse:
    return _page(
        "Authorization Failed",
        f"<p>Error: {html.escape(message)}</p><p><a href=\"/\">Return to app</a></p>",
        status_code=400,
    )


def _admin_link(admin_panel_url: str) -> str:
    url = admin_panel_url.strip() or "/"
    if not re.match(r"^(https?://|/)", url, re.IGNORECASE):
        url = "https://" + url
    return html.escape(url, quote=True)


# ── Now playing ──

@router.get("/now-playing", response_model=NowPlayingResponse)
async def now_playing():
    from spotiqueue.common.config import get_settings

    track = await _get_gateway().now_playing()
    if track is not None and get_settings().lyrics_enabled:
        track["lyrics"] = await _get_lyrics().for_track(track)
    return NowPlayingResponse(track=track)


# ── Spotify Connect ──

@router.get("/auth/authorize", response_model=AuthorizeResponse)
async def authorize(_=Depends(require_admin)):
    connect = _get_connect()
    try:
        auth_url = connect.authorize_url()
    except SpotiQueueError as e:
        return error_response(e)
    logger.info("Spotify authorize redirect URI: %s", connect.settings.spotify_redirect_uri)
    return AuthorizeResponse(auth_url=auth_url, redirect_uri=connect.settings.spotify_redirect_uri)


@router.get("/auth/callback", response_class=HTMLResponse)
async def callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
):
    if error:
        return _failure_page(error)
    if not code:
        return _failure_page("No authorization code received.")

    connect = _get_connect()
    db = _get_db()
    try:
        async with db.get_session() as session:
            refresh_token = await connect.connect(session, state or "", code)
            config = await _get_config().snapshot(session)
    except SpotiQueueError as e:
        return _failure_page(e.message)

    _get_gateway().set_refresh_token(refresh_token)
    return _page(
        "Authorization Successful",
        "<p>Your Spotify account has been connected. No restart needed.</p>"
        f'<p><a href="/">Return to App</a> | '
        f'<a href="{_admin_link(config.admin_panel_url)}">Go to Admin Panel</a></p>',
    )


@router.get("/auth/status", response_model=SpotifyStatusResponse)
async def spotify_status():
    db = _get_db()
    async with db.get_session() as session:
        status = await _get_connect().status(session)
    return SpotifyStatusResponse(**status)


@router.post("/auth/disconnect", response_model=SuccessResponse)
async def disconnect(_=Depends(require_admin)):
    db = _get_db()
    async with db.get_session() as session:
        await _get_connect().disconnect(session)
    _get_gateway().set_refresh_token("")
    return SuccessResponse(message="Spotify account disconnected successfully")
