"""SQLAlchemy models for device fingerprints and verified identities."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from spotiqueue.common.models import Base, TimestampMixin, generate_uuid, utcnow


class FingerprintModel(Base, TimestampMixin):
    __tablename__ = "fingerprints"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    first_seen: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    last_queue_attempt: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    cooldown_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)
    username: Mapped[str | None] = mapped_column(String(100), nullable=True)

    identities: Mapped[list["VerifiedIdentityModel"]] = relationship(
        back_populates="fingerprint",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_blocked(self) -> bool:
        return self.status == "blocked"

    def identity_for(self, provider: str) -> "VerifiedIdentityModel | None":
        for identity in self.identities:
            if identity.provider == provider:
                return identity
        return None


class VerifiedIdentityModel(Base, TimestampMixin):
    __tablename__ = "verified_identities"
    __table_args__ = (
        UniqueConstraint("fingerprint_id", "provider", name="uq_identity_fingerprint_provider"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    fingerprint_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("fingerprints.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider: Mapped[str] = mapped_column(String(30), nullable=False)
    external_id: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    avatar_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    fingerprint: Mapped[FingerprintModel] = relationship(back_populates="identities")
