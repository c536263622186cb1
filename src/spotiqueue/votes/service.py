"""Vote tally — per-track upvotes, one per device."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.common.exceptions import ServiceDisabledError, UnknownDeviceError
from spotiqueue.configstore.schemas import RuntimeConfig
from spotiqueue.fingerprints.service import FingerprintRegistry
from spotiqueue.votes.models import VoteModel


class VoteTally:
    """Votes are independent of admission and never expire."""

    def __init__(self, registry: FingerprintRegistry):
        self.registry = registry

    async def toggle(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        track_id: str,
        fingerprint_id: str,
    ) -> tuple[bool, int]:
        """Add the device's vote if absent, remove it if present.

        Returns ``(voted, count)`` after the change.
        """
        if not config.voting_enabled:
            raise ServiceDisabledError("Voting is currently disabled.")
        if await self.registry.get(session, fingerprint_id) is None:
            raise UnknownDeviceError()

        result = await session.execute(
            delete(VoteModel).where(
                VoteModel.track_id == track_id,
                VoteModel.fingerprint_id == fingerprint_id,
            )
        )
        voted = not result.rowcount
        if voted:
            session.add(VoteModel(track_id=track_id, fingerprint_id=fingerprint_id))
            await session.flush()
        return voted, await self.count(session, track_id)

    async def count(self, session: AsyncSession, track_id: str) -> int:
        result = await session.execute(
            select(func.count(VoteModel.id)).where(VoteModel.track_id == track_id)
        )
        return result.scalar_one()

    async def get_all(self, session: AsyncSession) -> dict[str, int]:
        result = await session.execute(
            select(VoteModel.track_id, func.count(VoteModel.id)).group_by(VoteModel.track_id)
        )
        return {track_id: count for track_id, count in result.all()}

    async def get_mine(self, session: AsyncSession, fingerprint_id: str) -> list[str]:
        if not fingerprint_id:
            return []
        result = await session.execute(
            select(VoteModel.track_id)
            .where(VoteModel.fingerprint_id == fingerprint_id)
            .order_by(VoteModel.created_at)
        )
        return list(result.scalars().all())
