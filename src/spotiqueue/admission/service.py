"""Admission controller — decides whether a requested track reaches playback.

Policy runs in a fixed order: cheap local checks (feature gate, device,
block, cooldown, quota) short-circuit before any provider call, content
checks follow metadata resolution, and the duplicate check runs last
against the freshest queue snapshot.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, NoReturn, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.admission.attempts import AttemptLog
from spotiqueue.admission.denylist import DenylistService
from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.common.exceptions import (
    CoolingDownError,
    DeviceBlockedError,
    DuplicateInQueueError,
    ExplicitBlockedError,
    InvalidQueryError,
    QuotaExceededError,
    ServiceDisabledError,
    SpotiQueueError,
    TooLongError,
    TrackBannedError,
    UnknownDeviceError,
    UpstreamFailureError,
)
from spotiqueue.common.models import utcnow
from spotiqueue.configstore.schemas import RuntimeConfig
from spotiqueue.fingerprints.models import FingerprintModel
from spotiqueue.fingerprints.service import FingerprintRegistry, cooldown_remaining
from spotiqueue.playback.gateway import PlaybackGateway, QueueSnapshot, TrackMetadata
from spotiqueue.playback.references import parse_track_reference

logger = logging.getLogger(__name__)


@dataclass
class AdmissionResult:
    success: bool
    track: Optional[TrackMetadata] = None
    error: Optional[SpotiQueueError] = None

    @property
    def cooldown_remaining(self) -> Optional[int]:
        return getattr(self.error, "cooldown_remaining", None)

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return self.error.to_dict()
        return {
            "success": True,
            "message": "Track queued successfully!",
            "track": self.track.to_dict() if self.track else None,
        }


def exceeds_duration(track: TrackMetadata, max_seconds: int) -> bool:
    """A limit of 0 disables the duration policy."""
    return max_seconds > 0 and track.duration_ms > max_seconds * 1000


class AdmissionController:
    def __init__(
        self,
        settings: SpotiQueueSettings,
        registry: FingerprintRegistry,
        gateway: PlaybackGateway,
        denylist: DenylistService,
        attempts: AttemptLog | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.registry = registry
        self.gateway = gateway
        self.denylist = denylist
        self.attempts = attempts or AttemptLog()
        self.clock = clock

    # ── Admission ──

    async def admit(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        fingerprint_id: str,
        track_ref: str,
    ) -> AdmissionResult:
        """Run every policy step and enqueue the track if all pass.

        Rejections are returned rather than raised so the audit rows written
        for them commit with the caller's session.
        """
        try:
            track = await self._admit(session, config, fingerprint_id, track_ref)
        except SpotiQueueError as exc:
            return AdmissionResult(success=False, error=exc)
        return AdmissionResult(success=True, track=track)

    async def _admit(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        fingerprint_id: str,
        track_ref: str,
    ) -> TrackMetadata:
        if not config.queueing_enabled:
            raise ServiceDisabledError()

        fingerprint = await self.registry.get(session, fingerprint_id)
        if fingerprint is None:
            raise UnknownDeviceError()

        now = self.clock()
        if fingerprint.is_blocked:
            await self._reject(session, fingerprint, DeviceBlockedError(), now)

        if config.fingerprinting_enabled:
            remaining = cooldown_remaining(fingerprint, now)
            if remaining > 0:
                await self._reject(session, fingerprint, CoolingDownError(remaining), now)
            await self._check_quota(session, config, fingerprint, now)

        # Malformed references fail before any state is written
        track_id = parse_track_reference(track_ref)
        try:
            track = await self.gateway.resolve(track_id)
        except UpstreamFailureError as exc:
            await self._reject(session, fingerprint, exc, now)

        if await self.denylist.is_banned(session, track.id):
            await self._reject(session, fingerprint, TrackBannedError(), now, track)
        if config.ban_explicit and track.explicit:
            await self._reject(session, fingerprint, ExplicitBlockedError(), now, track)
        if exceeds_duration(track, config.max_song_duration):
            await self._reject(
                session, fingerprint, TooLongError(config.max_song_duration), now, track,
            )
        if await self.is_live(track.id):
            await self._reject(session, fingerprint, DuplicateInQueueError(), now, track)

        try:
            await self.gateway.enqueue(track)
        except UpstreamFailureError as exc:
            logger.warning("Enqueue failed for %s: %s", track.id, exc.message)
            await self._reject(session, fingerprint, exc, self.clock(), track)

        await self.log_success(session, config, fingerprint, track)
        return track

    async def _check_quota(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        fingerprint: FingerprintModel,
        now: datetime,
    ) -> None:
        window = timedelta(seconds=config.cooldown_duration)
        count = await self.attempts.count_successes_since(session, fingerprint.id, now - window)
        if count < config.songs_before_cooldown:
            return
        await self.registry.extend_cooldown(session, fingerprint, now + window)
        await self._reject(
            session,
            fingerprint,
            QuotaExceededError(config.songs_before_cooldown, config.cooldown_duration),
            now,
        )

    async def _reject(
        self,
        session: AsyncSession,
        fingerprint: FingerprintModel,
        exc: SpotiQueueError,
        now: datetime,
        track: Optional[TrackMetadata] = None,
    ) -> NoReturn:
        await self.attempts.record(
            session,
            fingerprint.id,
            exc.attempt_status or "error",
            now,
            track=track,
            error_message=exc.message,
        )
        raise exc

    async def is_live(self, track_id: str) -> bool:
        """Whether the track is playing or queued. Fails open."""
        try:
            snapshot = await self.gateway.current_queue()
        except Exception:
            logger.warning("Duplicate check skipped, queue snapshot unavailable", exc_info=True)
            return False
        return snapshot.contains(track_id)

    async def log_success(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        fingerprint: FingerprintModel,
        track: TrackMetadata,
    ) -> None:
        """Record a successful enqueue and start a cooldown once the quota is used.

        The trailing window is re-queried rather than incremented so that
        concurrent admissions for one device converge on the same count.
        """
        now = self.clock()
        await self.attempts.record(session, fingerprint.id, "success", now, track=track)
        fingerprint.last_queue_attempt = now
        await session.flush()

        if config.fingerprinting_enabled and config.cooldown_duration > 0:
            window = timedelta(seconds=config.cooldown_duration)
            count = await self.attempts.count_successes_since(
                session, fingerprint.id, now - window,
            )
            if count >= config.songs_before_cooldown:
                await self.registry.extend_cooldown(session, fingerprint, now + window)
        logger.info("Queued %s (%s) for %s", track.name, track.id, fingerprint.id)

    # ── Read-side ──

    async def search(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        query: str,
        limit: int = 10,
    ) -> list[TrackMetadata]:
        if not config.queueing_enabled:
            raise ServiceDisabledError()
        query = (query or "").strip()
        if not query:
            raise InvalidQueryError()

        tracks = await self.gateway.search(query, limit)
        if config.ban_explicit:
            tracks = [t for t in tracks if not t.explicit]
        banned = await self.denylist.banned_ids(session, [t.id for t in tracks])
        return [t for t in tracks if t.id not in banned]

    async def current_queue(self) -> QueueSnapshot:
        return await self.gateway.current_queue()
