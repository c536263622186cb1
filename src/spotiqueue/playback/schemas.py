"""Pydantic schemas for now-playing and Spotify Connect endpoints."""

from typing import Any, Optional

from pydantic import BaseModel


class NowPlayingResponse(BaseModel):
    # Track fields plus progress_ms, is_playing and lyrics
    track: Optional[dict[str, Any]] = None


class AuthorizeResponse(BaseModel):
    auth_url: str
    redirect_uri: str


class SpotifyStatusResponse(BaseModel):
    connected: bool
    has_refresh_token: bool
    has_client_id: bool
    has_client_secret: bool
    user_id: Optional[str] = None
