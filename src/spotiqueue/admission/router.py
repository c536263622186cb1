"""Queue admission API router."""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends

from spotiqueue.admission.schemas import (
    QueueAddRequest,
    QueueAddResponse,
    QueueSnapshotResponse,
    SearchRequest,
    SearchResponse,
    TrackResponse,
)
from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import error_response
from spotiqueue.common.security import require_guest_password

router = APIRouter(prefix="/queue")


def _get_service():
    from spotiqueue.deps import get_admission
    return get_admission()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


@router.post("/search", response_model=SearchResponse)
async def search_tracks(body: SearchRequest):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            config = await _get_config().snapshot(session)
            tracks = await svc.search(session, config, body.query, body.limit)
    except SpotiQueueError as e:
        return error_response(e)
    return SearchResponse(tracks=[TrackResponse(**t.to_dict()) for t in tracks])


@router.post(
    "/add",
    response_model=QueueAddResponse,
    dependencies=[Depends(require_guest_password)],
)
async def add_to_queue(
    body: QueueAddRequest,
    fingerprint_id: Optional[str] = Cookie(None),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        config = await _get_config().snapshot(session)
        result = await svc.admit(
            session, config, body.fingerprint_id or fingerprint_id or "", body.reference,
        )
    if not result.success:
        return error_response(result.error)
    return QueueAddResponse(track=TrackResponse(**result.track.to_dict()))


@router.get("/current", response_model=QueueSnapshotResponse)
async def current_queue():
    svc = _get_service()
    try:
        snapshot = await svc.current_queue()
    except SpotiQueueError as e:
        return error_response(e)
    return QueueSnapshotResponse(**snapshot.to_dict())
