"""Pydantic schemas for queue endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TrackResponse(BaseModel):
    id: str
    name: str
    artists: str
    uri: str
    duration_ms: int = 0
    explicit: bool = False
    album: str = ""
    album_art: Optional[str] = None


class SearchRequest(BaseModel):
    query: str = ""
    limit: int = Field(default=10, ge=1, le=50)


class SearchResponse(BaseModel):
    tracks: list[TrackResponse]


class QueueAddRequest(BaseModel):
    # Raw id, spotify:track: URI or open.spotify.com URL
    track_id: str = ""
    track_url: str = ""
    fingerprint_id: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.track_id or self.track_url


class QueueAddResponse(BaseModel):
    success: bool = True
    message: str = "Track queued successfully!"
    track: TrackResponse


class QueueSnapshotResponse(BaseModel):
    currently_playing: Optional[TrackResponse] = None
    queue: list[TrackResponse] = Field(default_factory=list)


class BanTrackRequest(BaseModel):
    track_id: str
    artist_id: Optional[str] = None
    reason: Optional[str] = None


class BannedTrackResponse(BaseModel):
    track_id: str
    artist_id: Optional[str] = None
    reason: Optional[str] = None
    created_at: datetime
