"""Fingerprint and identity-provider API router."""

from typing import Optional

from fastapi import APIRouter, Cookie, Response
from fastapi.responses import JSONResponse

from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.common.schemas import error_response
from spotiqueue.fingerprints.policy import NEEDS_USERNAME
from spotiqueue.fingerprints.schemas import (
    FingerprintStateResponse,
    GenerateRequest,
    ProviderStatus,
    ValidateRequest,
    ValidateResponse,
)

router = APIRouter()


def _get_service():
    from spotiqueue.deps import get_registry
    return get_registry()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


def _set_cookie(response: Response, fingerprint_id: str) -> None:
    from spotiqueue.common.config import get_settings

    settings = get_settings()
    response.set_cookie(
        settings.cookie_name,
        fingerprint_id,
        max_age=settings.cookie_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


@router.post("/fingerprint/generate", response_model=FingerprintStateResponse)
async def generate_fingerprint(
    response: Response,
    body: Optional[GenerateRequest] = None,
    fingerprint_id: Optional[str] = Cookie(None),
):
    body = body or GenerateRequest()
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        config = await _get_config().snapshot(session)
        resolution = await svc.resolve_or_create(
            session, config,
            token=body.fingerprint_id or fingerprint_id,
            proposed_username=body.username,
        )

    if resolution.outcome.state == NEEDS_USERNAME and resolution.fingerprint is None:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Username is required",
                "code": "USERNAME_REQUIRED",
                "detail": "",
                **resolution.flags(),
            },
        )
    _set_cookie(response, resolution.fingerprint_id)
    return FingerprintStateResponse(**resolution.to_dict())


@router.post("/fingerprint/validate", response_model=ValidateResponse)
async def validate_fingerprint(
    body: Optional[ValidateRequest] = None,
    fingerprint_id: Optional[str] = Cookie(None),
):
    token = (body.fingerprint_id if body else None) or fingerprint_id or ""
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            config = await _get_config().snapshot(session)
            resolution = await svc.validate(session, config, token)
            return ValidateResponse(valid=True, **resolution.to_dict())
    except SpotiQueueError as e:
        return error_response(e)


@router.get("/auth/providers", response_model=list[ProviderStatus])
async def list_providers():
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        config = await _get_config().snapshot(session)
    return [
        ProviderStatus(
            name=p.name, label=p.label, configured=p.configured(), required=p.required,
        )
        for p in svc.providers(config)
    ]
