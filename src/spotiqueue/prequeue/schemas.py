"""Pydantic schemas for prequeue endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PrequeueSubmitRequest(BaseModel):
    track_id: str = ""
    track_url: str = ""
    fingerprint_id: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.track_id or self.track_url


class PrequeueSubmitResponse(BaseModel):
    success: bool = True
    prequeue_id: str
    message: str = "Track submitted for approval"


class PrequeueDecisionRequest(BaseModel):
    approved_by: str = "admin"


class PrequeueDecisionResponse(BaseModel):
    success: bool = True
    message: str


class PrequeueEntryResponse(BaseModel):
    id: str
    fingerprint_id: str
    track_id: str
    track_name: str
    artist_name: str
    album_art: Optional[str] = None
    status: str
    approved_by: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None


class PendingListResponse(BaseModel):
    pending: list[PrequeueEntryResponse]
