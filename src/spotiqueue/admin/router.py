"""Admin API router — device moderation, denylist and bulk reset."""

from fastapi import APIRouter, Depends, HTTPException

from spotiqueue.admission.schemas import BannedTrackResponse, BanTrackRequest
from spotiqueue.admin.schemas import (
    BindIdentityRequest,
    DeviceActionResponse,
    ResetCooldownsResponse,
    ResetDataResponse,
)
from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import SuccessResponse, error_response
from spotiqueue.common.security import require_admin

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


def _get_registry():
    from spotiqueue.deps import get_registry
    return get_registry()


def _get_denylist():
    from spotiqueue.deps import get_denylist
    return get_denylist()


def _get_service():
    from spotiqueue.deps import get_admin_service
    return get_admin_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


# ── Devices ──

@router.post("/devices/reset-all-cooldowns", response_model=ResetCooldownsResponse)
async def reset_all_cooldowns():
    db = _get_db()
    async with db.get_session() as session:
        count = await _get_registry().reset_all_cooldowns(session)
        return ResetCooldownsResponse(reset=count)


@router.post("/devices/{fingerprint_id}/block", response_model=DeviceActionResponse)
async def block_device(fingerprint_id: str):
    db = _get_db()
    try:
        async with db.get_session() as session:
            await _get_registry().set_blocked(session, fingerprint_id, True)
    except SpotiQueueError as e:
        return error_response(e)
    return DeviceActionResponse(message="Device blocked")


@router.post("/devices/{fingerprint_id}/unblock", response_model=DeviceActionResponse)
async def unblock_device(fingerprint_id: str):
    db = _get_db()
    try:
        async with db.get_session() as session:
            await _get_registry().set_blocked(session, fingerprint_id, False)
    except SpotiQueueError as e:
        return error_response(e)
    return DeviceActionResponse(message="Device unblocked")


@router.post("/devices/{fingerprint_id}/reset-cooldown", response_model=DeviceActionResponse)
async def reset_cooldown(fingerprint_id: str):
    db = _get_db()
    try:
        async with db.get_session() as session:
            await _get_registry().reset_cooldown(session, fingerprint_id)
    except SpotiQueueError as e:
        return error_response(e)
    return DeviceActionResponse(message="Cooldown reset")


@router.post("/devices/{fingerprint_id}/identities", response_model=DeviceActionResponse)
async def bind_identity(fingerprint_id: str, body: BindIdentityRequest):
    """Record an identity the admin verified by hand.

    There is no in-app OAuth sign-in, so this is how a device clears a
    required provider gate.
    """
    registry = _get_registry()
    db = _get_db()
    try:
        async with db.get_session() as session:
            await registry.require(session, fingerprint_id)
            await registry.bind_identity(
                session, fingerprint_id, body.provider, body.external_id,
                body.display_name, avatar_url=body.avatar_url,
            )
    except SpotiQueueError as e:
        return error_response(e)
    return DeviceActionResponse(message=f"{body.provider} identity verified")


# ── Denylist ──

@router.get("/banned-tracks", response_model=list[BannedTrackResponse])
async def list_banned_tracks():
    db = _get_db()
    async with db.get_session() as session:
        entries = await _get_denylist().list(session)
        return [
            BannedTrackResponse(
                track_id=e.track_id, artist_id=e.artist_id,
                reason=e.reason, created_at=e.created_at,
            )
            for e in entries
        ]


@router.post("/banned-tracks", response_model=BannedTrackResponse, status_code=201)
async def ban_track(body: BanTrackRequest):
    db = _get_db()
    async with db.get_session() as session:
        entry = await _get_denylist().ban(
            session, body.track_id, artist_id=body.artist_id, reason=body.reason,
        )
        return BannedTrackResponse(
            track_id=entry.track_id, artist_id=entry.artist_id,
            reason=entry.reason, created_at=entry.created_at,
        )


@router.delete("/banned-tracks/{track_id}", response_model=SuccessResponse)
async def unban_track(track_id: str):
    db = _get_db()
    async with db.get_session() as session:
        removed = await _get_denylist().unban(session, track_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Track is not banned")
    return SuccessResponse(message="Track unbanned")


# ── Bulk ──

@router.post("/reset-all-data", response_model=ResetDataResponse)
async def reset_all_data():
    db = _get_db()
    async with db.get_session() as session:
        deleted = await _get_service().reset_all_data(session)
        return ResetDataResponse(deleted=deleted)
