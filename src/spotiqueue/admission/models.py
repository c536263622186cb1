"""SQLAlchemy models for the queue-attempt audit log and the track denylist."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from spotiqueue.common.models import Base, utcnow

ATTEMPT_STATUSES = ("success", "blocked", "banned", "rate_limited", "error")


class QueueAttemptModel(Base):
    """Append-only record of one admission decision."""

    __tablename__ = "queue_attempts"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in ATTEMPT_STATUSES) + ")",
            name="ck_queue_attempts_status",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    fingerprint_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("fingerprints.id"), nullable=False, index=True
    )
    track_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    track_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    artist_name: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )


class BannedTrackModel(Base):
    __tablename__ = "banned_tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    artist_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
