"""Pydantic schemas for admin endpoints."""

from typing import Literal, Optional

from pydantic import BaseModel


class DeviceActionResponse(BaseModel):
    success: bool = True
    message: str


class BindIdentityRequest(BaseModel):
    provider: Literal["github", "hackclub"]
    external_id: str
    display_name: str
    avatar_url: Optional[str] = None


class ResetCooldownsResponse(BaseModel):
    success: bool = True
    reset: int


class ResetDataResponse(BaseModel):
    success: bool = True
    deleted: dict[str, int]
