"""Admin-maintained track denylist."""

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.models import BannedTrackModel

logger = logging.getLogger(__name__)


class DenylistService:
    async def is_banned(self, session: AsyncSession, track_id: str) -> bool:
        result = await session.execute(
            select(BannedTrackModel.id).where(BannedTrackModel.track_id == track_id)
        )
        return result.first() is not None

    async def banned_ids(self, session: AsyncSession, track_ids: list[str]) -> set[str]:
        if not track_ids:
            return set()
        result = await session.execute(
            select(BannedTrackModel.track_id).where(BannedTrackModel.track_id.in_(track_ids))
        )
        return set(result.scalars().all())

    async def ban(
        self,
        session: AsyncSession,
        track_id: str,
        artist_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> BannedTrackModel:
        """Add a track to the denylist. Banning twice updates the existing row."""
        result = await session.execute(
            select(BannedTrackModel).where(BannedTrackModel.track_id == track_id)
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            entry = BannedTrackModel(track_id=track_id, artist_id=artist_id, reason=reason)
            session.add(entry)
            logger.info("Track %s added to denylist", track_id)
        else:
            entry.artist_id = artist_id or entry.artist_id
            entry.reason = reason or entry.reason
        await session.flush()
        return entry

    async def unban(self, session: AsyncSession, track_id: str) -> bool:
        result = await session.execute(
            delete(BannedTrackModel).where(BannedTrackModel.track_id == track_id)
        )
        return bool(result.rowcount)

    async def list(self, session: AsyncSession) -> list[BannedTrackModel]:
        result = await session.execute(
            select(BannedTrackModel).order_by(BannedTrackModel.created_at.desc())
        )
        return list(result.scalars().all())
