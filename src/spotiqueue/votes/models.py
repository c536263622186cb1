"""SQLAlchemy model for per-device track upvotes."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from spotiqueue.common.models import Base, utcnow


class VoteModel(Base):
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("track_id", "fingerprint_id", name="uq_vote_track_fingerprint"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    track_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    fingerprint_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("fingerprints.id"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
