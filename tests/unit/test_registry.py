"""Tests for the fingerprint registry — resolution, identity gates, admin actions."""

from datetime import timedelta

import pytest

from spotiqueue.common.exceptions import (
    CoolingDownError,
    DeviceBlockedError,
    IdentityGateError,
    UnknownDeviceError,
)
from spotiqueue.common.models import as_utc
from spotiqueue.fingerprints.policy import NEEDS_USERNAME, NEEDS_VERIFICATION, READY
from spotiqueue.fingerprints.service import FingerprintRegistry
from tests.helpers import make_config, make_settings


async def _resolve(db, registry, config=None, token=None, username=None):
    async with db.get_session() as session:
        return await registry.resolve_or_create(
            session, config or make_config(), token=token, proposed_username=username,
        )


class TestResolveOrCreate:
    async def test_mints_token_when_absent(self, db, registry):
        resolution = await _resolve(db, registry)
        assert len(resolution.fingerprint_id) == 32
        assert resolution.created is True
        assert resolution.outcome.state == READY

    async def test_existing_token_returns_same_record(self, db, registry):
        first = await _resolve(db, registry, token="device-abc")
        second = await _resolve(db, registry, token="device-abc")
        assert first.created is True
        assert second.created is False
        assert second.fingerprint_id == "device-abc"

    async def test_malformed_token_is_replaced(self, db, registry):
        resolution = await _resolve(db, registry, token="bad token!")
        assert resolution.fingerprint_id != "bad token!"

    async def test_username_first_write_wins(self, db, registry):
        await _resolve(db, registry, token="device-abc", username="  alice ")
        second = await _resolve(db, registry, token="device-abc", username="mallory")
        assert second.username == "alice"

    async def test_username_added_when_missing(self, db, registry):
        await _resolve(db, registry, token="device-abc")
        second = await _resolve(db, registry, token="device-abc", username="bob")
        assert second.username == "bob"

    async def test_needs_username_creates_nothing(self, db, registry):
        config = make_config(require_username=True)
        resolution = await _resolve(db, registry, config, token="device-new")
        assert resolution.outcome.state == NEEDS_USERNAME
        assert resolution.fingerprint is None
        assert resolution.flags()["requires_username"] is True
        async with db.get_session() as session:
            assert await registry.get(session, "device-new") is None

    async def test_blank_username_counts_as_missing(self, db, registry):
        config = make_config(require_username=True)
        resolution = await _resolve(db, registry, config, username="   ")
        assert resolution.outcome.state == NEEDS_USERNAME

    async def test_username_satisfies_requirement(self, db, registry):
        config = make_config(require_username=True)
        resolution = await _resolve(db, registry, config, username="carol")
        assert resolution.outcome.state == READY

    async def test_needs_verification_creates_record(self, db):
        registry = FingerprintRegistry(
            make_settings(github_client_id="id", github_client_secret="secret")
        )
        config = make_config(require_github_auth=True, require_username=True)
        resolution = await _resolve(db, registry, config, token="device-gh")
        assert resolution.outcome.state == NEEDS_VERIFICATION
        assert resolution.fingerprint is not None
        flags = resolution.flags()
        assert flags["requires_github_auth"] is True
        assert flags["github_oauth_configured"] is True
        assert flags["github_authenticated"] is False
        assert flags["requires_hackclub_auth"] is False

    async def test_verified_identity_bypasses_username(self, db):
        registry = FingerprintRegistry(
            make_settings(github_client_id="id", github_client_secret="secret")
        )
        config = make_config(require_github_auth=True, require_username=True)
        await _resolve(db, registry, config, token="device-gh")
        async with db.get_session() as session:
            device = await registry.bind_identity(
                session, "device-gh", "github", "12345", "octocat", "https://a/x.png",
            )
            assert device.username == "octocat"

        resolution = await _resolve(db, registry, config, token="device-gh")
        assert resolution.outcome.state == READY
        assert resolution.flags()["github_authenticated"] is True


class TestBindIdentity:
    async def test_one_identity_per_provider(self, db, registry):
        async with db.get_session() as session:
            await registry.bind_identity(session, "device-abc", "github", "1", "first")
        async with db.get_session() as session:
            device = await registry.bind_identity(session, "device-abc", "github", "2", "second")
            assert len(device.identities) == 1
            assert device.identity_for("github").external_id == "2"
            assert device.username == "second"


class TestValidate:
    async def test_unknown(self, db, registry):
        async with db.get_session() as session:
            with pytest.raises(UnknownDeviceError):
                await registry.validate(session, make_config(), "device-missing")

    async def test_valid(self, db, registry):
        await _resolve(db, registry, token="device-abc", username="dana")
        async with db.get_session() as session:
            resolution = await registry.validate(session, make_config(), "device-abc")
        assert resolution.username == "dana"

    async def test_blocked(self, db, registry):
        await _resolve(db, registry, token="device-abc")
        async with db.get_session() as session:
            await registry.set_blocked(session, "device-abc", True)
        async with db.get_session() as session:
            with pytest.raises(DeviceBlockedError):
                await registry.validate(session, make_config(), "device-abc")

    async def test_cooling_down(self, db, registry, clock):
        resolution = await _resolve(db, registry, token="device-abc")
        async with db.get_session() as session:
            device = await registry.get(session, "device-abc")
            await registry.extend_cooldown(session, device, clock.now + timedelta(seconds=90))
        async with db.get_session() as session:
            with pytest.raises(CoolingDownError) as exc_info:
                await registry.validate(session, make_config(), resolution.fingerprint_id)
        assert exc_info.value.cooldown_remaining == 90

    async def test_verification_unconfigured_is_503(self, db, registry):
        config = make_config(require_hackclub_auth=True)
        await _resolve(db, registry, config, token="device-abc")
        async with db.get_session() as session:
            with pytest.raises(IdentityGateError) as exc_info:
                await registry.validate(session, config, "device-abc")
        assert exc_info.value.status_code == 503
        assert exc_info.value.to_dict()["hackclub_oauth_configured"] is False

    async def test_verification_missing_is_401(self, db):
        registry = FingerprintRegistry(
            make_settings(hackclub_client_id="id", hackclub_client_secret="secret")
        )
        config = make_config(require_hackclub_auth=True)
        await _resolve(db, registry, config, token="device-abc")
        async with db.get_session() as session:
            with pytest.raises(IdentityGateError) as exc_info:
                await registry.validate(session, config, "device-abc")
        assert exc_info.value.status_code == 401
        assert "Hack Club" in exc_info.value.message


class TestAdminActions:
    async def test_block_unblock_idempotent(self, db, registry):
        await _resolve(db, registry, token="device-abc")
        async with db.get_session() as session:
            await registry.set_blocked(session, "device-abc", True)
            device = await registry.set_blocked(session, "device-abc", True)
            assert device.is_blocked
            device = await registry.set_blocked(session, "device-abc", False)
            assert device.status == "active"

    async def test_unknown_device(self, db, registry):
        async with db.get_session() as session:
            with pytest.raises(UnknownDeviceError):
                await registry.reset_cooldown(session, "device-missing")

    async def test_reset_cooldowns(self, db, registry, clock):
        for token in ("device-one", "device-two"):
            await _resolve(db, registry, token=token)
        async with db.get_session() as session:
            for token in ("device-one", "device-two"):
                device = await registry.get(session, token)
                await registry.extend_cooldown(session, device, clock.now + timedelta(seconds=60))

        async with db.get_session() as session:
            device = await registry.reset_cooldown(session, "device-one")
            assert device.cooldown_expires is None
        async with db.get_session() as session:
            assert await registry.reset_all_cooldowns(session) == 1
        async with db.get_session() as session:
            device = await registry.get(session, "device-two")
            assert as_utc(device.cooldown_expires) is None
