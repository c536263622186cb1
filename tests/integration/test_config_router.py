"""Integration tests for runtime config endpoints."""


class TestPublicConfig:
    async def test_public_value(self, client):
        resp = await client.get("/api/config/public/cooldown_duration")
        assert resp.status_code == 200
        assert resp.json() == {"key": "cooldown_duration", "value": "300"}

    async def test_secrets_hidden(self, client):
        for key in ("admin_password", "user_password"):
            resp = await client.get(f"/api/config/public/{key}")
            assert resp.status_code == 404

    async def test_unknown_key(self, client):
        resp = await client.get("/api/config/public/nope")
        assert resp.status_code == 404


class TestAdminConfig:
    async def test_get_all_requires_admin(self, client):
        resp = await client.get("/api/config")
        assert resp.status_code == 422

    async def test_get_all(self, client, admin_headers):
        resp = await client.get("/api/config", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["config"]["songs_before_cooldown"] == "1"

    async def test_put_serializes_booleans(self, client, admin_headers):
        resp = await client.put("/api/config/voting_enabled", json={"value": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["value"] == "true"

    async def test_put_null_rejected(self, client, admin_headers):
        resp = await client.put("/api/config/voting_enabled", json={"value": None}, headers=admin_headers)
        assert resp.status_code == 400

    async def test_bulk_update(self, client, admin_headers):
        resp = await client.put(
            "/api/config", json={"cooldown_duration": 60, "ban_explicit": True}, headers=admin_headers,
        )
        assert resp.status_code == 200
        config = resp.json()["config"]
        assert config["cooldown_duration"] == "60"
        assert config["ban_explicit"] == "true"

    async def test_password_rotation(self, client, admin_headers):
        await client.put("/api/config/admin_password", json={"value": "rotated"}, headers=admin_headers)
        resp = await client.get("/api/config", headers=admin_headers)
        assert resp.status_code == 403
        resp = await client.get("/api/config", headers={"X-Admin-Password": "rotated"})
        assert resp.status_code == 200
