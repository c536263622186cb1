"""Queue-attempt audit log."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.models import QueueAttemptModel
from spotiqueue.playback.gateway import TrackMetadata


class AttemptLog:
    """Writes attempt rows and answers trailing-window questions about them."""

    async def record(
        self,
        session: AsyncSession,
        fingerprint_id: str,
        status: str,
        timestamp: datetime,
        track: Optional[TrackMetadata] = None,
        error_message: Optional[str] = None,
    ) -> QueueAttemptModel:
        attempt = QueueAttemptModel(
            fingerprint_id=fingerprint_id,
            track_id=track.id if track else None,
            track_name=track.name if track else None,
            artist_name=track.artists if track else None,
            status=status,
            error_message=error_message,
            timestamp=timestamp,
        )
        session.add(attempt)
        await session.flush()
        return attempt

    async def count_successes_since(
        self, session: AsyncSession, fingerprint_id: str, since: datetime,
    ) -> int:
        result = await session.execute(
            select(func.count(QueueAttemptModel.id)).where(
                QueueAttemptModel.fingerprint_id == fingerprint_id,
                QueueAttemptModel.status == "success",
                QueueAttemptModel.timestamp > since,
            )
        )
        return result.scalar_one()

    async def for_fingerprint(
        self, session: AsyncSession, fingerprint_id: str, limit: int = 50,
    ) -> list[QueueAttemptModel]:
        result = await session.execute(
            select(QueueAttemptModel)
            .where(QueueAttemptModel.fingerprint_id == fingerprint_id)
            .order_by(QueueAttemptModel.timestamp.desc(), QueueAttemptModel.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
