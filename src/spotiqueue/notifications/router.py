"""Inbound Slack interactivity callback (approve/decline buttons)."""

import json
import logging
from urllib.parse import parse_qs

from fastapi import APIRouter, HTTPException, Request

from spotiqueue.common.exceptions import SpotiQueueError
from spotiqueue.notifications.actions import APPROVE
from spotiqueue.notifications.slack import verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slack")


def _get_prequeue():
    from spotiqueue.deps import get_prequeue
    return get_prequeue()


def _get_notifier():
    from spotiqueue.deps import get_notifier
    return get_notifier()


def _get_config():
    from spotiqueue.deps import get_config_service
    return get_config_service()


def _get_db():
    from spotiqueue.deps import get_db
    return get_db()


def _parse_payload(body: bytes) -> dict:
    form = parse_qs(body.decode("utf-8"))
    raw = form.get("payload", [""])[0]
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid interaction payload")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid interaction payload")
    return payload


@router.post("/interactions")
async def slack_interactions(request: Request):
    from spotiqueue.common.config import get_settings

    settings = get_settings()
    body = await request.body()
    if settings.slack_signing_secret and not verify_signature(
        settings.slack_signing_secret,
        request.headers.get("X-Slack-Request-Timestamp"),
        request.headers.get("X-Slack-Signature"),
        body,
    ):
        raise HTTPException(status_code=401, detail="Invalid Slack signature")

    payload = _parse_payload(body)
    actions = payload.get("actions") or []
    if not actions:
        raise HTTPException(status_code=400, detail="No action in payload")

    notifier = _get_notifier()
    decoded = notifier.signer.loads(actions[0].get("value") or "")
    if decoded is None:
        raise HTTPException(status_code=400, detail="Invalid action token")
    prequeue_id, action = decoded
    user_id = (payload.get("user") or {}).get("id") or "slack"
    response_url = payload.get("response_url") or ""

    svc = _get_prequeue()
    db = _get_db()
    try:
        async with db.get_session() as session:
            if action == APPROVE:
                config = await _get_config().snapshot(session)
                entry = await svc.approve(session, config, prequeue_id, user_id)
                text = f"✅ Approved by <@{user_id}>: {entry.track_name} by {entry.artist_name}"
            else:
                entry = await svc.decline(session, prequeue_id, user_id)
                text = f"❌ Declined by <@{user_id}>: {entry.track_name} by {entry.artist_name}"
        ok = True
    except SpotiQueueError as e:
        logger.warning("Slack %s for %s failed: %s", action, prequeue_id, e.message)
        text = f"Error: {e.message}"
        ok = False

    await notifier.post_response(response_url, text)
    return {"ok": ok, "message": text}
