"""SQLAlchemy model for tracks awaiting human approval."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from spotiqueue.common.models import Base, utcnow

PENDING = "pending"
APPROVED = "approved"
DECLINED = "declined"


class PrequeueEntryModel(Base):
    __tablename__ = "prequeue"
    __table_args__ = (
        # At most one pending entry per track
        Index(
            "uq_prequeue_pending_track",
            "track_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(16), primary_key=True)
    fingerprint_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("fingerprints.id"), nullable=False, index=True
    )
    track_id: Mapped[str] = mapped_column(String(64), nullable=False)
    track_name: Mapped[str] = mapped_column(String(500), nullable=False)
    artist_name: Mapped[str] = mapped_column(String(500), nullable=False)
    album_art: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PENDING, index=True)
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_pending(self) -> bool:
        return self.status == PENDING
