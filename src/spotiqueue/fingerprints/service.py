"""Fingerprint registry — device identity records and identity gates."""

import math
import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.common.exceptions import (
    CoolingDownError,
    DeviceBlockedError,
    IdentityGateError,
    UnknownDeviceError,
)
from spotiqueue.common.models import as_utc, utcnow
from spotiqueue.configstore.schemas import RuntimeConfig
from spotiqueue.fingerprints.models import FingerprintModel, VerifiedIdentityModel
from spotiqueue.fingerprints.policy import (
    NEEDS_USERNAME,
    NEEDS_VERIFICATION,
    GateOutcome,
    GateSubject,
    build_gate_chain,
    evaluate_gates,
)
from spotiqueue.fingerprints.providers import IdentityProvider, get_identity_providers

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{8,64}$")
MAX_USERNAME_LENGTH = 100


def cooldown_remaining(fingerprint: FingerprintModel, now: datetime) -> int:
    """Whole seconds left on the fingerprint's cooldown, 0 if none."""
    expires = as_utc(fingerprint.cooldown_expires)
    if expires is None or expires <= now:
        return 0
    return math.ceil((expires - now).total_seconds())


def _clean_username(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()[:MAX_USERNAME_LENGTH]
    return value or None


@dataclass
class FingerprintResolution:
    fingerprint_id: str
    outcome: GateOutcome
    providers: list[IdentityProvider]
    fingerprint: Optional[FingerprintModel] = None
    created: bool = False

    @property
    def username(self) -> Optional[str]:
        return self.fingerprint.username if self.fingerprint else None

    def flags(self) -> dict[str, Any]:
        verified = (
            {i.provider for i in self.fingerprint.identities} if self.fingerprint else set()
        )
        data: dict[str, Any] = {"requires_username": self.outcome.state == NEEDS_USERNAME}
        for provider in self.providers:
            data[f"requires_{provider.name}_auth"] = self.outcome.needs(provider.name)
            data[f"{provider.name}_authenticated"] = provider.name in verified
            data[f"{provider.name}_oauth_configured"] = provider.configured()
        return data

    def to_dict(self) -> dict[str, Any]:
        return {
            "fingerprint_id": self.fingerprint_id,
            "username": self.username,
            "state": self.outcome.state,
            **self.flags(),
        }


class FingerprintRegistry:
    """One record per anonymous device, optionally enriched with identity."""

    def __init__(
        self,
        settings: SpotiQueueSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = settings
        self.clock = clock

    # ── Read ──

    async def get(self, session: AsyncSession, fingerprint_id: str) -> Optional[FingerprintModel]:
        if not fingerprint_id:
            return None
        return await session.get(FingerprintModel, fingerprint_id)

    async def require(self, session: AsyncSession, fingerprint_id: str) -> FingerprintModel:
        fingerprint = await self.get(session, fingerprint_id)
        if fingerprint is None:
            raise UnknownDeviceError()
        return fingerprint

    # ── Identity gates ──

    def providers(self, config: RuntimeConfig) -> list[IdentityProvider]:
        return get_identity_providers(self.settings, config)

    def evaluate(
        self,
        config: RuntimeConfig,
        username: Optional[str],
        fingerprint: Optional[FingerprintModel] = None,
    ) -> GateOutcome:
        verified = frozenset(i.provider for i in fingerprint.identities) if fingerprint else frozenset()
        rules = build_gate_chain(self.providers(config), config)
        return evaluate_gates(rules, GateSubject(username=username, verified_providers=verified))

    async def resolve_or_create(
        self,
        session: AsyncSession,
        config: RuntimeConfig,
        token: Optional[str] = None,
        proposed_username: Optional[str] = None,
    ) -> FingerprintResolution:
        """Map a client token to its record, minting one when needed.

        A proposed username is applied only when the record has none yet.
        When the username rule blocks a brand-new token, nothing is created.
        """
        if not token or not _TOKEN_RE.match(token):
            token = secrets.token_hex(16)
        username = _clean_username(proposed_username)
        providers = self.providers(config)

        fingerprint = await self.get(session, token)
        created = False
        if fingerprint is None:
            outcome = self.evaluate(config, username)
            if outcome.state == NEEDS_USERNAME:
                return FingerprintResolution(token, outcome, providers)
            fingerprint = FingerprintModel(
                id=token, first_seen=self.clock(), status="active",
                username=username, identities=[],
            )
            session.add(fingerprint)
            created = True
        elif username and not fingerprint.username:
            fingerprint.username = username
        await session.flush()

        outcome = self.evaluate(config, fingerprint.username, fingerprint)
        return FingerprintResolution(token, outcome, providers, fingerprint, created)

    async def validate(
        self, session: AsyncSession, config: RuntimeConfig, fingerprint_id: str,
    ) -> FingerprintResolution:
        """Check that a device may queue right now, raising the first blocker."""
        fingerprint = await self.get(session, fingerprint_id)
        if fingerprint is None:
            raise UnknownDeviceError("Invalid fingerprint")

        outcome = self.evaluate(config, fingerprint.username, fingerprint)
        resolution = FingerprintResolution(
            fingerprint_id, outcome, self.providers(config), fingerprint,
        )
        if outcome.state == NEEDS_VERIFICATION:
            unconfigured = outcome.unconfigured_providers
            if unconfigured:
                labels = " and ".join(p.label for p in unconfigured)
                raise IdentityGateError(
                    f"{labels} OAuth is not configured, but auth enforcement is enabled.",
                    code="VERIFICATION_UNAVAILABLE",
                    status_code=503,
                    flags=resolution.flags(),
                )
            labels = " and ".join(p.label for p in outcome.missing_providers)
            raise IdentityGateError(
                f"{labels} authentication required.",
                code="VERIFICATION_REQUIRED",
                status_code=401,
                flags=resolution.flags(),
            )
        if outcome.state == NEEDS_USERNAME:
            raise IdentityGateError(
                "Username is required",
                code="USERNAME_REQUIRED",
                status_code=400,
                flags=resolution.flags(),
            )
        if fingerprint.is_blocked:
            raise DeviceBlockedError("Device is blocked from queueing songs.")
        if config.fingerprinting_enabled:
            remaining = cooldown_remaining(fingerprint, self.clock())
            if remaining > 0:
                raise CoolingDownError(remaining)
        return resolution

    async def bind_identity(
        self,
        session: AsyncSession,
        token: Optional[str],
        provider: str,
        external_id: str,
        display_name: str,
        avatar_url: Optional[str] = None,
    ) -> FingerprintModel:
        """Attach a verified external identity to a device (creating it if new)."""
        if not token or not _TOKEN_RE.match(token):
            token = secrets.token_hex(16)
        fingerprint = await self.get(session, token)
        if fingerprint is None:
            fingerprint = FingerprintModel(
                id=token, first_seen=self.clock(), status="active", identities=[],
            )
            session.add(fingerprint)

        identity = fingerprint.identity_for(provider)
        if identity is None:
            identity = VerifiedIdentityModel(provider=provider, external_id=external_id)
            fingerprint.identities.append(identity)
        identity.external_id = external_id
        identity.username = display_name
        identity.avatar_url = avatar_url
        # A verified name replaces whatever was typed in anonymously
        fingerprint.username = _clean_username(display_name) or fingerprint.username
        await session.flush()
        return fingerprint

    # ── Admin ──

    async def set_blocked(
        self, session: AsyncSession, fingerprint_id: str, blocked: bool,
    ) -> FingerprintModel:
        fingerprint = await self.require(session, fingerprint_id)
        fingerprint.status = "blocked" if blocked else "active"
        await session.flush()
        return fingerprint

    async def reset_cooldown(self, session: AsyncSession, fingerprint_id: str) -> FingerprintModel:
        fingerprint = await self.require(session, fingerprint_id)
        fingerprint.cooldown_expires = None
        await session.flush()
        return fingerprint

    async def reset_all_cooldowns(self, session: AsyncSession) -> int:
        result = await session.execute(
            update(FingerprintModel)
            .where(FingerprintModel.cooldown_expires.is_not(None))
            .values(cooldown_expires=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # ── Rate-limit state ──

    async def extend_cooldown(
        self, session: AsyncSession, fingerprint: FingerprintModel, expires: datetime,
    ) -> bool:
        """Move the cooldown expiry to ``expires`` unless it is already later.

        Conditional on the stored value, so a slower concurrent writer can
        never roll an expiry back to an earlier time.
        """
        result = await session.execute(
            update(FingerprintModel)
            .where(
                FingerprintModel.id == fingerprint.id,
                or_(
                    FingerprintModel.cooldown_expires.is_(None),
                    FingerprintModel.cooldown_expires < expires,
                ),
            )
            .values(cooldown_expires=expires)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            return False
        await session.refresh(fingerprint, ["cooldown_expires"])
        return True
