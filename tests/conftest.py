"""Shared test fixtures for SpotiQueue."""

import os

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from spotiqueue.admission.denylist import DenylistService
from spotiqueue.admission.service import AdmissionController
from spotiqueue.common.database import DatabaseManager
from spotiqueue.fingerprints.service import FingerprintRegistry
from spotiqueue.playback.lyrics import LyricsClient
from tests.fakes import FakeClock, FakeGateway, make_track
from tests.helpers import ADMIN_PASSWORD, SECRET_KEY, make_settings


# ── Unit fixtures ──

@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return FakeGateway([
        make_track("track1", name="First Song"),
        make_track("track2", name="Second Song"),
        make_track("track3", name="Third Song"),
        make_track("explicit1", name="Loud Song", explicit=True),
        make_track("long1", name="Long Song", duration_ms=600_000),
    ])


FIRST_SONG_LRC = "[00:01.50] Hello there\n[00:04.00] Second line\n"


def _lrclib(request: httpx.Request) -> httpx.Response:
    if request.url.params.get("track_name") == "First Song":
        return httpx.Response(200, json=[{"syncedLyrics": FIRST_SONG_LRC}])
    return httpx.Response(200, json=[])


@pytest.fixture
def lyrics():
    client = httpx.AsyncClient(transport=httpx.MockTransport(_lrclib))
    return LyricsClient(make_settings(), http_client=client)


@pytest.fixture
def registry(clock):
    return FingerprintRegistry(make_settings(), clock=clock)


@pytest.fixture
def denylist():
    return DenylistService()


@pytest.fixture
def controller(registry, gateway, denylist, clock):
    return AdmissionController(make_settings(), registry, gateway, denylist, clock=clock)


# ── App fixtures ──

@pytest.fixture
def app(gateway, lyrics):
    """Create a test app with in-memory DB and the fake playback provider."""
    os.environ["SPOTIQUEUE_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["SPOTIQUEUE_SECRET_KEY"] = SECRET_KEY
    os.environ["SPOTIQUEUE_DEFAULT_ADMIN_PASSWORD"] = ADMIN_PASSWORD

    # Clear caches and singletons so new env vars take effect
    from spotiqueue.common.config import get_settings
    get_settings.cache_clear()

    from spotiqueue.deps import reset_singletons, set_gateway, set_lyrics_client
    reset_singletons()
    set_gateway(gateway)
    set_lyrics_client(lyrics)

    from spotiqueue.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # ASGITransport doesn't run lifespan
    from spotiqueue.app import init_database
    from spotiqueue.deps import get_db
    await init_database()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await get_db().close()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}
