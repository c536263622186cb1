"""Bulk admin operations."""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.models import QueueAttemptModel
from spotiqueue.fingerprints.models import FingerprintModel, VerifiedIdentityModel
from spotiqueue.prequeue.models import PrequeueEntryModel
from spotiqueue.votes.models import VoteModel

logger = logging.getLogger(__name__)

# Children before parents; configuration and the denylist are kept.
_RESET_ORDER = (
    ("queue_attempts", QueueAttemptModel),
    ("votes", VoteModel),
    ("prequeue", PrequeueEntryModel),
    ("verified_identities", VerifiedIdentityModel),
    ("fingerprints", FingerprintModel),
)


class AdminService:
    async def reset_all_data(self, session: AsyncSession) -> dict[str, int]:
        """Delete all devices and everything hanging off them. Returns row counts."""
        deleted = {}
        for name, model in _RESET_ORDER:
            result = await session.execute(delete(model))
            deleted[name] = result.rowcount or 0
        logger.warning("All device data reset: %s", deleted)
        return deleted
