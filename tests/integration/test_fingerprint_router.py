"""Integration tests for fingerprint and provider endpoints."""

from tests.helpers import register_device, set_config


class TestGenerate:
    async def test_sets_cookie(self, client):
        resp = await client.post("/api/fingerprint/generate")
        assert resp.status_code == 200
        data = resp.json()
        assert data["state"] == "ready"
        assert resp.cookies.get("fingerprint_id") == data["fingerprint_id"]
        assert "httponly" in resp.headers["set-cookie"].lower()

    async def test_cookie_reused(self, client):
        first = (await client.post("/api/fingerprint/generate")).json()
        second = (await client.post("/api/fingerprint/generate")).json()
        assert first["fingerprint_id"] == second["fingerprint_id"]

    async def test_username_required(self, client, admin_headers):
        await set_config(client, admin_headers, "require_username", True)
        resp = await client.post("/api/fingerprint/generate", json={})
        assert resp.status_code == 400
        data = resp.json()
        assert data["requires_username"] is True
        assert "fingerprint_id" not in resp.cookies

        resp = await client.post("/api/fingerprint/generate", json={"username": "alice"})
        assert resp.status_code == 200
        assert resp.json()["username"] == "alice"

    async def test_provider_flags(self, client, admin_headers):
        await set_config(client, admin_headers, "require_github_auth", True)
        resp = await client.post("/api/fingerprint/generate")
        data = resp.json()
        assert data["state"] == "needs_verification"
        assert data["requires_github_auth"] is True
        assert data["github_oauth_configured"] is False


class TestValidate:
    async def test_valid(self, client):
        device = await register_device(client, username="bob")
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 200
        assert resp.json()["valid"] is True
        assert resp.json()["username"] == "bob"

    async def test_unknown(self, client):
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": "device-missing"})
        assert resp.status_code == 400

    async def test_cooling_down(self, client):
        device = await register_device(client)
        await client.post("/api/queue/add", json={"track_id": "track1"})
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 429
        assert resp.json()["cooldown_remaining"] > 0

    async def test_verification_unconfigured(self, client, admin_headers):
        await set_config(client, admin_headers, "require_hackclub_auth", True)
        device = await register_device(client)
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 503
        assert resp.json()["hackclub_oauth_configured"] is False


class TestProviders:
    async def test_list(self, client, admin_headers):
        await set_config(client, admin_headers, "require_github_auth", True)
        resp = await client.get("/api/auth/providers")
        assert resp.status_code == 200
        providers = {p["name"]: p for p in resp.json()}
        assert providers["github"]["required"] is True
        assert providers["hackclub"]["required"] is False
        assert providers["github"]["configured"] is False
