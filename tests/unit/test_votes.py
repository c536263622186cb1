"""Tests for the vote tally."""

import pytest

from spotiqueue.common.exceptions import ServiceDisabledError, UnknownDeviceError
from spotiqueue.votes.service import VoteTally
from tests.helpers import create_device, make_config

VOTING_ON = make_config(voting_enabled=True)


@pytest.fixture
def tally(registry):
    return VoteTally(registry)


class TestToggle:
    async def test_toggle_adds_then_removes(self, db, registry, tally):
        await create_device(db, registry)
        async with db.get_session() as session:
            assert await tally.toggle(session, VOTING_ON, "track1", "device-one") == (True, 1)
        async with db.get_session() as session:
            assert await tally.toggle(session, VOTING_ON, "track1", "device-one") == (False, 0)

    async def test_counts_across_devices(self, db, registry, tally):
        await create_device(db, registry)
        await create_device(db, registry, token="device-two")
        async with db.get_session() as session:
            await tally.toggle(session, VOTING_ON, "track1", "device-one")
            voted, count = await tally.toggle(session, VOTING_ON, "track1", "device-two")
        assert voted is True
        assert count == 2

    async def test_disabled(self, db, registry, tally):
        await create_device(db, registry)
        async with db.get_session() as session:
            with pytest.raises(ServiceDisabledError):
                await tally.toggle(session, make_config(), "track1", "device-one")

    async def test_unknown_device(self, db, tally):
        async with db.get_session() as session:
            with pytest.raises(UnknownDeviceError):
                await tally.toggle(session, VOTING_ON, "track1", "device-missing")


class TestQueries:
    async def test_get_all_and_mine(self, db, registry, tally):
        await create_device(db, registry)
        await create_device(db, registry, token="device-two")
        async with db.get_session() as session:
            await tally.toggle(session, VOTING_ON, "track1", "device-one")
            await tally.toggle(session, VOTING_ON, "track2", "device-one")
            await tally.toggle(session, VOTING_ON, "track1", "device-two")

        async with db.get_session() as session:
            assert await tally.get_all(session) == {"track1": 2, "track2": 1}
            assert sorted(await tally.get_mine(session, "device-one")) == ["track1", "track2"]
            assert await tally.get_mine(session, "device-two") == ["track1"]
            assert await tally.get_mine(session, "") == []
