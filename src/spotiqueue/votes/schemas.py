"""Pydantic schemas for vote endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class VoteRequest(BaseModel):
    track_id: str
    fingerprint_id: Optional[str] = None


class VoteResponse(BaseModel):
    voted: bool
    count: int


class VotesResponse(BaseModel):
    votes: dict[str, int] = Field(default_factory=dict)
    user_votes: list[str] = Field(default_factory=list)
