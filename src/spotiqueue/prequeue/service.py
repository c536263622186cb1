"""Prequeue workflow — a human-approval stage in front of the playback queue."""

import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.service import AdmissionController, exceeds_duration
from spotiqueue.common.exceptions import (
    AlreadyProcessedError,
    DuplicateInQueueError,
    DuplicatePendingError,
    PrequeueNotFoundError,
    ServiceDisabledError,
    TooLongError,
    UnknownDeviceError,
)
from spotiqueue.common.models import utcnow
from spotiqueue.configstore.schemas import RuntimeConfig
from spotiqueue.playback.references import parse_track_reference
from spotiqueue.prequeue.models import APPROVED, DECLINED, PENDING, PrequeueEntryModel

logger = logging.getLogger(__name__)


class PrequeueWorkflow:
    """Submission, approval and decline of prequeue entries.

    Submissions skip the block, cooldown and quota checks of direct
    admission; approvals count toward the submitter's quota through the
    admission controller's success path.
    """

    def __init__(
        self,
        admission: AdmissionController,
        notifier=None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.admission = admission
        self.notifier = notifier
        self.clock = clock

    @property
    def gateway(self):
        return self.admission.gateway

    # ── Submission ──

    async def submit(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        fingerprint_id: str,
        track_ref: str,
    ) -> PrequeueEntryModel:
        if not config.prequeue_enabled:
            raise ServiceDisabledError("Prequeue is currently disabled.")
        fingerprint = await self.admission.registry.get(session, fingerprint_id)
        if fingerprint is None:
            raise UnknownDeviceError()

        track = await self.gateway.resolve(parse_track_reference(track_ref))
        if exceeds_duration(track, config.max_song_duration):
            raise TooLongError(config.max_song_duration)
        if await self.admission.is_live(track.id):
            raise DuplicateInQueueError()
        if await self._pending_for_track(session, track.id) is not None:
            raise DuplicatePendingError()

        entry = PrequeueEntryModel(
            id=secrets.token_hex(8),
            fingerprint_id=fingerprint.id,
            track_id=track.id,
            track_name=track.name,
            artist_name=track.artists,
            album_art=track.album_art,
            status=PENDING,
            created_at=self.clock(),
        )
        # The partial unique index settles submissions that race past the check above
        session.add(entry)
        try:
            await session.flush()
        except IntegrityError as exc:
            raise DuplicatePendingError() from exc

        logger.info("Prequeue %s submitted: %s (%s)", entry.id, track.name, track.id)
        if self.notifier is not None:
            await self.notifier.notify_pending(track, entry.id)
        return entry

    async def _pending_for_track(
        self, session: AsyncSession, track_id: str,
    ) -> Optional[PrequeueEntryModel]:
        result = await session.execute(
            select(PrequeueEntryModel).where(
                PrequeueEntryModel.track_id == track_id,
                PrequeueEntryModel.status == PENDING,
            )
        )
        return result.scalar_one_or_none()

    # ── Decisions ──

    async def approve(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        prequeue_id: str,
        approver: str = "admin",
    ) -> PrequeueEntryModel:
        """Enqueue a pending track on behalf of its original submitter.

        The entry is claimed before the provider is called; if the enqueue
        fails the exception rolls the claim back and the entry stays pending.
        """
        entry = await self._claim(session, prequeue_id, APPROVED, approver)
        track = await self.gateway.resolve(entry.track_id)
        await self.gateway.enqueue(track)

        fingerprint = await self.admission.registry.get(session, entry.fingerprint_id)
        if fingerprint is not None:
            await self.admission.log_success(session, config, fingerprint, track)
        logger.info("Prequeue %s approved by %s", entry.id, approver)
        return entry

    async def decline(
        self,
        session: AsyncSession,
        prequeue_id: str,
        approver: str = "admin",
    ) -> PrequeueEntryModel:
        entry = await self._claim(session, prequeue_id, DECLINED, approver)
        logger.info("Prequeue %s declined by %s", entry.id, approver)
        return entry

    async def _claim(
        self, session: AsyncSession, prequeue_id: str, status: str, approver: str,
    ) -> PrequeueEntryModel:
        entry = await self.status(session, prequeue_id)
        if not entry.is_pending:
            raise AlreadyProcessedError(entry.status)

        result = await session.execute(
            update(PrequeueEntryModel)
            .where(
                PrequeueEntryModel.id == prequeue_id,
                PrequeueEntryModel.status == PENDING,
            )
            .values(status=status, approved_by=approver, resolved_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        await session.refresh(entry)
        if not result.rowcount:
            raise AlreadyProcessedError(entry.status)
        return entry

    # ── Queries ──

    async def status(self, session: AsyncSession, prequeue_id: str) -> PrequeueEntryModel:
        entry = await session.get(PrequeueEntryModel, prequeue_id)
        if entry is None:
            raise PrequeueNotFoundError()
        return entry

    async def list_pending(self, session: AsyncSession) -> list[PrequeueEntryModel]:
        result = await session.execute(
            select(PrequeueEntryModel)
            .where(PrequeueEntryModel.status == PENDING)
            .order_by(PrequeueEntryModel.created_at.desc())
        )
        return list(result.scalars().all())
