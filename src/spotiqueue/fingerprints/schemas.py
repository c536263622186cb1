"""Pydantic schemas for fingerprint endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class GenerateRequest(BaseModel):
    username: Optional[str] = None
    fingerprint_id: Optional[str] = None


class ValidateRequest(BaseModel):
    fingerprint_id: Optional[str] = None


class FingerprintStateResponse(BaseModel):
    # Provider flags (requires_github_auth, github_authenticated, ...) are
    # generated per configured provider.
    model_config = ConfigDict(extra="allow")

    fingerprint_id: str
    username: Optional[str] = None
    state: str
    requires_username: bool = False


class ValidateResponse(FingerprintStateResponse):
    valid: bool = True


class ProviderStatus(BaseModel):
    name: str
    label: str
    configured: bool
    required: bool
