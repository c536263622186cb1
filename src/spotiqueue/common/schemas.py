"""Shared Pydantic schemas for SpotiQueue."""

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from spotiqueue.common.exceptions import SpotiQueueError


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "spotiqueue"


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = ""


def error_response(exc: SpotiQueueError) -> JSONResponse:
    """Render a SpotiQueue error with its stable status code."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
