"""Password-header authentication dependencies.

Both passwords live in the runtime config table, so they can be rotated
from the admin panel without a restart.
"""

import hmac

from fastapi import Header, HTTPException


async def _load_config_value(key: str) -> str:
    from spotiqueue.deps import get_config_service, get_db

    db = get_db()
    async with db.get_session() as session:
        return await get_config_service().get_value(session, key) or ""


async def require_admin(
    x_admin_password: str = Header(..., alias="X-Admin-Password"),
) -> str:
    """FastAPI dependency that validates the admin password header."""
    expected = await _load_config_value("admin_password")
    if not expected or not hmac.compare_digest(x_admin_password, expected):
        raise HTTPException(status_code=403, detail="Invalid admin password")
    return x_admin_password


async def require_guest_password(
    x_queue_password: str | None = Header(None, alias="X-Queue-Password"),
) -> None:
    """FastAPI dependency gating guest endpoints when ``user_password`` is set."""
    expected = await _load_config_value("user_password")
    if not expected.strip():
        return
    if not x_queue_password or not hmac.compare_digest(x_queue_password, expected):
        raise HTTPException(status_code=401, detail="Queue password required")
