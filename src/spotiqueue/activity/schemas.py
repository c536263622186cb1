"""Pydantic schemas for activity and stats endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class DeviceStats(BaseModel):
    total: int = 0
    active: int = 0
    blocked: int = 0
    cooling_down: int = 0


class AttemptStats(BaseModel):
    total: int = 0
    successful: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)


class PrequeueStats(BaseModel):
    pending: int = 0
    approved: int = 0
    declined: int = 0


class StatsResponse(BaseModel):
    devices: DeviceStats
    queue_attempts: AttemptStats
    prequeue: PrequeueStats


class ActivityItem(BaseModel):
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: Optional[str] = None
    username: Optional[str] = None
    timestamp: datetime


class RecentActivityResponse(BaseModel):
    activity: list[ActivityItem]


class IdentitySummary(BaseModel):
    provider: str
    username: str = ""
    avatar_url: Optional[str] = None


class DeviceResponse(BaseModel):
    id: str
    username: Optional[str] = None
    status: str
    first_seen: datetime
    last_queue_attempt: Optional[datetime] = None
    cooldown_expires: Optional[datetime] = None
    is_cooling_down: bool = False
    cooldown_remaining: int = 0
    identities: list[IdentitySummary] = Field(default_factory=list)


class AttemptResponse(BaseModel):
    id: int
    track_id: Optional[str] = None
    track_name: Optional[str] = None
    artist_name: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    timestamp: datetime


class DeviceHistoryResponse(BaseModel):
    device: DeviceResponse
    attempts: list[AttemptResponse]


class DeviceListResponse(BaseModel):
    devices: list[DeviceResponse]
