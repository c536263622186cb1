"""Runtime config API router."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from spotiqueue.common.security import require_admin
from spotiqueue.configstore.schemas import (
    SECRET_KEYS,
    ConfigMapResponse,
    ConfigUpdate,
    ConfigUpdateResponse,
    ConfigValueResponse,
)

router = APIRouter(prefix="/config")


def _get_service():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


@router.get("/public/{key}", response_model=ConfigValueResponse)
async def get_public_value(key: str):
    if key in SECRET_KEYS:
        raise HTTPException(status_code=404, detail="Config key not found")
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        value = await svc.get_value(session, key)
        if value is None:
            raise HTTPException(status_code=404, detail="Config key not found")
        return ConfigValueResponse(key=key, value=value)


@router.get("", response_model=ConfigMapResponse)
async def get_all_config(_=Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return ConfigMapResponse(config=await svc.get_all(session))


@router.get("/{key}", response_model=ConfigValueResponse)
async def get_config_value(key: str, _=Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        value = await svc.get_value(session, key)
        if value is None:
            raise HTTPException(status_code=404, detail="Config key not found")
        return ConfigValueResponse(key=key, value=value)


@router.put("/{key}", response_model=ConfigUpdateResponse)
async def update_config_value(key: str, body: ConfigUpdate, _=Depends(require_admin)):
    if body.value is None:
        raise HTTPException(status_code=400, detail="Value required")
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        stored = await svc.set_value(session, key, body.value)
        return ConfigUpdateResponse(key=key, value=stored)


@router.put("", response_model=ConfigMapResponse)
async def update_config(
    updates: dict[str, Any] = Body(...), _=Depends(require_admin),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        return ConfigMapResponse(config=await svc.set_many(session, updates))
