"""Prequeue API router."""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends

from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import error_response
from spotiqueue.common.security import require_admin, require_guest_password
from spotiqueue.prequeue.models import PrequeueEntryModel
from spotiqueue.prequeue.schemas import (
    PendingListResponse,
    PrequeueDecisionRequest,
    PrequeueDecisionResponse,
    PrequeueEntryResponse,
    PrequeueSubmitRequest,
    PrequeueSubmitResponse,
)

router = APIRouter(prefix="/prequeue")


def _get_service():
    from spotiqueue.deps import get_prequeue
    return get_prequeue()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


def _entry_response(entry: PrequeueEntryModel) -> PrequeueEntryResponse:
    return PrequeueEntryResponse(
        id=entry.id,
        fingerprint_id=entry.fingerprint_id,
        track_id=entry.track_id,
        track_name=entry.track_name,
        artist_name=entry.artist_name,
        album_art=entry.album_art,
        status=entry.status,
        approved_by=entry.approved_by,
        created_at=entry.created_at,
        resolved_at=entry.resolved_at,
    )


@router.post(
    "/submit",
    response_model=PrequeueSubmitResponse,
    dependencies=[Depends(require_guest_password)],
)
async def submit(
    body: PrequeueSubmitRequest,
    fingerprint_id: Optional[str] = Cookie(None),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            config = await _get_config().snapshot(session)
            entry = await svc.submit(
                session, config, body.fingerprint_id or fingerprint_id or "", body.reference,
            )
    except SpotiQueueError as e:
        return error_response(e)
    return PrequeueSubmitResponse(prequeue_id=entry.id)


@router.post("/approve/{prequeue_id}", response_model=PrequeueDecisionResponse)
async def approve(
    prequeue_id: str,
    body: Optional[PrequeueDecisionRequest] = None,
    _=Depends(require_admin),
):
    approver = body.approved_by if body else "admin"
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            config = await _get_config().snapshot(session)
            entry = await svc.approve(session, config, prequeue_id, approver)
    except SpotiQueueError as e:
        return error_response(e)
    return PrequeueDecisionResponse(message=f"Approved: {entry.track_name}")


@router.post("/decline/{prequeue_id}", response_model=PrequeueDecisionResponse)
async def decline(
    prequeue_id: str,
    body: Optional[PrequeueDecisionRequest] = None,
    _=Depends(require_admin),
):
    approver = body.approved_by if body else "admin"
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            entry = await svc.decline(session, prequeue_id, approver)
    except SpotiQueueError as e:
        return error_response(e)
    return PrequeueDecisionResponse(message=f"Declined: {entry.track_name}")


@router.get("/status/{prequeue_id}", response_model=PrequeueEntryResponse)
async def status(prequeue_id: str):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            entry = await svc.status(session, prequeue_id)
    except SpotiQueueError as e:
        return error_response(e)
    return _entry_response(entry)


@router.get("/pending", response_model=PendingListResponse)
async def list_pending(_=Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        entries = await svc.list_pending(session)
        return PendingListResponse(pending=[_entry_response(e) for e in entries])
