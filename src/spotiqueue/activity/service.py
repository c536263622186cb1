"""Activity and stats projections over devices, attempts and prequeue entries."""

from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.attempts import AttemptLog
from spotiqueue.admission.models import QueueAttemptModel
from spotiqueue.common.exceptions import UnknownDeviceError
from spotiqueue.common.models import utcnow
from spotiqueue.fingerprints.models import FingerprintModel
from spotiqueue.fingerprints.service import cooldown_remaining
from spotiqueue.prequeue.models import PrequeueEntryModel

DEVICE_SORT_COLUMNS = {
    "first_seen": FingerprintModel.first_seen,
    "last_queue_attempt": FingerprintModel.last_queue_attempt,
    "cooldown_expires": FingerprintModel.cooldown_expires,
}


class ActivityService:
    """Read-only views; nothing here mutates state."""

    def __init__(
        self,
        attempts: AttemptLog | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.attempts = attempts or AttemptLog()
        self.clock = clock

    async def stats(self, session: AsyncSession) -> dict[str, Any]:
        now = self.clock()

        device_rows = await session.execute(
            select(FingerprintModel.status, func.count(FingerprintModel.id))
            .group_by(FingerprintModel.status)
        )
        by_device_status = dict(device_rows.all())
        cooling = await session.execute(
            select(func.count(FingerprintModel.id)).where(
                FingerprintModel.cooldown_expires > now
            )
        )

        attempt_rows = await session.execute(
            select(QueueAttemptModel.status, func.count(QueueAttemptModel.id))
            .group_by(QueueAttemptModel.status)
        )
        by_attempt_status = dict(attempt_rows.all())

        prequeue_rows = await session.execute(
            select(PrequeueEntryModel.status, func.count(PrequeueEntryModel.id))
            .group_by(PrequeueEntryModel.status)
        )
        by_prequeue_status = dict(prequeue_rows.all())

        return {
            "devices": {
                "total": sum(by_device_status.values()),
                "active": by_device_status.get("active", 0),
                "blocked": by_device_status.get("blocked", 0),
                "cooling_down": cooling.scalar_one(),
            },
            "queue_attempts": {
                "total": sum(by_attempt_status.values()),
                "successful": by_attempt_status.get("success", 0),
                "by_status": by_attempt_status,
            },
            "prequeue": {
                "pending": by_prequeue_status.get("pending", 0),
                "approved": by_prequeue_status.get("approved", 0),
                "declined": by_prequeue_status.get("declined", 0),
            },
        }

    async def recent_activity(self, session: AsyncSession, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent successful queue additions, newest first."""
        result = await session.execute(
            select(QueueAttemptModel, FingerprintModel.username)
            .join(FingerprintModel, FingerprintModel.id == QueueAttemptModel.fingerprint_id)
            .where(QueueAttemptModel.status == "success")
            .order_by(QueueAttemptModel.timestamp.desc(), QueueAttemptModel.id.desc())
            .limit(limit)
        )
        return [
            {
                "track_id": attempt.track_id,
                "track_name": attempt.track_name,
                "artist_name": attempt.artist_name,
                "username": username,
                "timestamp": attempt.timestamp,
            }
            for attempt, username in result.all()
        ]

    def describe_device(self, fingerprint: FingerprintModel) -> dict[str, Any]:
        remaining = cooldown_remaining(fingerprint, self.clock())
        return {
            "id": fingerprint.id,
            "username": fingerprint.username,
            "status": fingerprint.status,
            "first_seen": fingerprint.first_seen,
            "last_queue_attempt": fingerprint.last_queue_attempt,
            "cooldown_expires": fingerprint.cooldown_expires,
            "is_cooling_down": remaining > 0,
            "cooldown_remaining": remaining,
            "identities": [
                {"provider": i.provider, "username": i.username, "avatar_url": i.avatar_url}
                for i in fingerprint.identities
            ],
        }

    async def list_devices(
        self,
        session: AsyncSession,
        status: Optional[str] = None,
        sort_by: str = "last_queue_attempt",
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        column = DEVICE_SORT_COLUMNS.get(sort_by, FingerprintModel.last_queue_attempt)
        query = select(FingerprintModel)
        if status is not None:
            query = query.where(FingerprintModel.status == status)
        query = query.order_by(column.desc().nulls_last(), FingerprintModel.id).limit(limit)
        result = await session.execute(query)
        return [self.describe_device(fp) for fp in result.scalars().all()]

    async def device_history(
        self, session: AsyncSession, fingerprint_id: str, limit: int = 50,
    ) -> dict[str, Any]:
        fingerprint = await session.get(FingerprintModel, fingerprint_id)
        if fingerprint is None:
            raise UnknownDeviceError("Device not found")
        attempts = await self.attempts.for_fingerprint(session, fingerprint_id, limit)
        return {
            "device": self.describe_device(fingerprint),
            "attempts": [
                {
                    "id": a.id,
                    "track_id": a.track_id,
                    "track_name": a.track_name,
                    "artist_name": a.artist_name,
                    "status": a.status,
                    "error_message": a.error_message,
                    "timestamp": a.timestamp,
                }
                for a in attempts
            ],
        }
