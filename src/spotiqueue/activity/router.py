"""Activity feed and admin stats router."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from spotiqueue.activity.schemas import (
    DeviceHistoryResponse,
    DeviceListResponse,
    RecentActivityResponse,
    StatsResponse,
)
from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import error_response
from spotiqueue.common.security import require_admin

router = APIRouter()


def _get_service():
    from spotiqueue.deps import get_activity
    return get_activity()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


@router.get("/queue/recent-activity", response_model=RecentActivityResponse)
async def recent_activity(limit: int = Query(20, ge=1, le=100)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return RecentActivityResponse(activity=await svc.recent_activity(session, limit))


@router.get("/admin/stats", response_model=StatsResponse)
async def stats(_=Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return StatsResponse(**await svc.stats(session))


@router.get("/admin/devices", response_model=DeviceListResponse)
async def list_devices(
    status: Optional[str] = Query(None),
    sort_by: str = Query("last_queue_attempt"),
    limit: int = Query(200, ge=1, le=1000),
    _=Depends(require_admin),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        devices = await svc.list_devices(session, status=status, sort_by=sort_by, limit=limit)
        return DeviceListResponse(devices=devices)


@router.get("/admin/devices/{fingerprint_id}", response_model=DeviceHistoryResponse)
async def device_history(
    fingerprint_id: str,
    limit: int = Query(50, ge=1, le=500),
    _=Depends(require_admin),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            history = await svc.device_history(session, fingerprint_id, limit)
    except SpotiQueueError as e:
        return error_response(e)
    return DeviceHistoryResponse(**history)
