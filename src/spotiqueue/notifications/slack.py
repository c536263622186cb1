"""Slack approval channel — outbound notifications and request verification."""

import hashlib
import hmac
import logging
import time
from typing import Any

import httpx

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.notifications.actions import APPROVE, DECLINE, ActionSigner
from spotiqueue.playback.gateway import TrackMetadata

logger = logging.getLogger(__name__)

SIGNATURE_VERSION = "v0"
REPLAY_WINDOW = 300  # seconds


def compute_signature(secret: str, timestamp: str, body: bytes) -> str:
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_signature(
    secret: str,
    timestamp: str | None,
    signature: str | None,
    body: bytes,
    now: float | None = None,
) -> bool:
    """Check a Slack request signature and reject replays older than five minutes."""
    if not timestamp or not signature:
        return False
    try:
        ts = int(timestamp)
    except ValueError:
        return False
    now = time.time() if now is None else now
    if abs(now - ts) > REPLAY_WINDOW:
        return False
    return hmac.compare_digest(compute_signature(secret, timestamp, body), signature)


def format_duration(duration_ms: int) -> str:
    minutes, seconds = divmod(duration_ms // 1000, 60)
    return f"{minutes}:{seconds:02d}"


def build_pending_message(
    track: TrackMetadata,
    prequeue_id: str,
    signer: ActionSigner,
    mention: str = "",
) -> dict[str, Any]:
    """Block Kit message with everything an approver needs to decide."""
    heading = f"{mention} New Song Request".strip()
    section: dict[str, Any] = {
        "type": "section",
        "text": {
            "type": "mrkdwn",
            "text": f"*{heading}*\n*{track.name}*\nby {track.artists}",
        },
    }
    if track.album_art:
        section["accessory"] = {
            "type": "image",
            "image_url": track.album_art,
            "alt_text": track.album or track.name,
        }
    return {
        "text": "New song queued for approval",
        "blocks": [
            section,
            {
                "type": "section",
                "fields": [
                    {"type": "mrkdwn", "text": f"*Album*\n{track.album or '-'}"},
                    {"type": "mrkdwn", "text": f"*Duration*\n{format_duration(track.duration_ms)}"},
                ],
            },
            {
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "Approve", "emoji": True},
                        "value": signer.dumps(prequeue_id, APPROVE),
                        "action_id": f"approve_{prequeue_id}",
                        "style": "primary",
                    },
                    {
                        "type": "button",
                        "text": {"type": "plain_text", "text": "Decline", "emoji": True},
                        "value": signer.dumps(prequeue_id, DECLINE),
                        "action_id": f"decline_{prequeue_id}",
                        "style": "danger",
                    },
                ],
            },
        ],
    }


class SlackNotifier:
    """Fire-and-forget delivery to a Slack incoming webhook.

    Failures are logged and reported as ``False``; they never propagate to
    the submission that triggered them.
    """

    def __init__(
        self,
        settings: SpotiQueueSettings,
        signer: ActionSigner,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self.signer = signer
        self._http_client = http_client

    def _get_http_client(self) -> httpx.AsyncClient:
        """Lazy-init httpx.AsyncClient."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=10.0)
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def enabled(self) -> bool:
        return self.settings.slack_enabled

    async def notify_pending(self, track: TrackMetadata, prequeue_id: str) -> bool:
        if not self.enabled:
            return False
        message = build_pending_message(
            track, prequeue_id, self.signer, self.settings.slack_reviewer_mention,
        )
        return await self._post(self.settings.slack_webhook_url, message)

    async def post_response(self, response_url: str, text: str) -> bool:
        """Replace the original interactive message with an outcome line."""
        if not response_url:
            return False
        return await self._post(response_url, {"text": text, "replace_original": True})

    async def _post(self, url: str, payload: dict[str, Any]) -> bool:
        try:
            resp = await self._get_http_client().post(url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("Slack request failed: %s", e)
            return False
        if not resp.is_success:
            logger.warning("Slack returned HTTP %s: %s", resp.status_code, resp.text[:200])
            return False
        return True
