"""Integration tests for the Spotify Connect endpoints."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from tests.helpers import set_config


@pytest.fixture
def spotify_env(monkeypatch):
    monkeypatch.setenv("SPOTIQUEUE_SPOTIFY_CLIENT_ID", "client")
    monkeypatch.setenv("SPOTIQUEUE_SPOTIFY_CLIENT_SECRET", "secret")


def _accounts(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/token":
        return httpx.Response(200, json={"access_token": "access", "refresh_token": "linked"})
    return httpx.Response(200, json={"id": "dj-host"})


@pytest.fixture
def mock_accounts(spotify_env, app):
    from spotiqueue.deps import get_config_service, set_spotify_connect
    from spotiqueue.common.config import get_settings
    from spotiqueue.playback.connect import SpotifyConnect

    client = httpx.AsyncClient(transport=httpx.MockTransport(_accounts))
    set_spotify_connect(SpotifyConnect(get_settings(), get_config_service(), http_client=client))


async def _state(client, admin_headers):
    resp = await client.get("/api/auth/authorize", headers=admin_headers)
    assert resp.status_code == 200
    return parse_qs(urlparse(resp.json()["auth_url"]).query)["state"][0]


class TestStatus:
    async def test_unconfigured(self, client):
        resp = await client.get("/api/auth/status")
        assert resp.status_code == 200
        assert resp.json() == {
            "connected": False,
            "has_refresh_token": False,
            "has_client_id": False,
            "has_client_secret": False,
            "user_id": None,
        }


class TestAuthorize:
    async def test_requires_admin(self, client):
        resp = await client.get("/api/auth/authorize")
        assert resp.status_code == 422

    async def test_not_configured(self, client, admin_headers):
        resp = await client.get("/api/auth/authorize", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "SPOTIFY_NOT_CONFIGURED"

    async def test_auth_url(self, spotify_env, client, admin_headers):
        resp = await client.get("/api/auth/authorize", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["auth_url"].startswith("https://accounts.spotify.com/authorize?")
        assert data["redirect_uri"] == "http://127.0.0.1:8000/api/auth/callback"


class TestCallback:
    async def test_provider_error(self, client):
        resp = await client.get("/api/auth/callback", params={"error": "access_denied"})
        assert resp.status_code == 400
        assert "Authorization Failed" in resp.text
        assert "access_denied" in resp.text

    async def test_missing_code(self, client):
        resp = await client.get("/api/auth/callback")
        assert resp.status_code == 400
        assert "No authorization code" in resp.text

    async def test_forged_state(self, mock_accounts, client, gateway):
        resp = await client.get("/api/auth/callback", params={"code": "abc", "state": "forged"})
        assert resp.status_code == 400
        assert gateway.refresh_token == ""

    async def test_connects_account(self, mock_accounts, client, admin_headers, gateway):
        await set_config(client, admin_headers, "admin_panel_url", "admin.example.com")
        state = await _state(client, admin_headers)

        resp = await client.get("/api/auth/callback", params={"code": "abc", "state": state})
        assert resp.status_code == 200
        assert "Authorization Successful" in resp.text
        assert 'href="https://admin.example.com"' in resp.text
        assert gateway.refresh_token == "linked"

        status = (await client.get("/api/auth/status")).json()
        assert status["connected"] is True
        assert status["user_id"] == "dj-host"

        # The stored token is never served publicly
        resp = await client.get("/api/config/public/spotify_refresh_token")
        assert resp.status_code == 404


class TestDisconnect:
    async def test_requires_admin(self, client):
        resp = await client.post("/api/auth/disconnect", headers={"X-Admin-Password": "wrong"})
        assert resp.status_code == 403

    async def test_disconnect(self, mock_accounts, client, admin_headers, gateway):
        state = await _state(client, admin_headers)
        await client.get("/api/auth/callback", params={"code": "abc", "state": state})

        resp = await client.post("/api/auth/disconnect", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert gateway.refresh_token == ""
        assert (await client.get("/api/auth/status")).json()["connected"] is False
