"""Integration tests for admin moderation and stats endpoints."""

from tests.helpers import register_device, set_config


class TestAdminAuth:
    async def test_missing_header(self, client):
        resp = await client.get("/api/admin/stats")
        assert resp.status_code == 422

    async def test_wrong_password(self, client):
        resp = await client.get("/api/admin/stats", headers={"X-Admin-Password": "wrong"})
        assert resp.status_code == 403

    async def test_wrong_password_on_mutation(self, client):
        resp = await client.post("/api/admin/reset-all-data", headers={"X-Admin-Password": "wrong"})
        assert resp.status_code == 403


class TestDeviceModeration:
    async def test_block_and_unblock(self, client, admin_headers):
        device = await register_device(client)
        resp = await client.post(f"/api/admin/devices/{device}/block", headers=admin_headers)
        assert resp.status_code == 200

        resp = await client.post("/api/queue/add", json={"track_id": "track1"})
        assert resp.status_code == 403
        assert resp.json()["code"] == "DEVICE_BLOCKED"

        await client.post(f"/api/admin/devices/{device}/unblock", headers=admin_headers)
        resp = await client.post("/api/queue/add", json={"track_id": "track1"})
        assert resp.status_code == 200

    async def test_block_unknown(self, client, admin_headers):
        resp = await client.post("/api/admin/devices/device-missing/block", headers=admin_headers)
        assert resp.status_code == 400

    async def test_reset_cooldown(self, client, admin_headers):
        device = await register_device(client)
        await client.post("/api/queue/add", json={"track_id": "track1"})
        resp = await client.post(f"/api/admin/devices/{device}/reset-cooldown", headers=admin_headers)
        assert resp.status_code == 200
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 200

    async def test_reset_all_cooldowns(self, client, admin_headers):
        await register_device(client)
        await client.post("/api/queue/add", json={"track_id": "track1"})
        resp = await client.post("/api/admin/devices/reset-all-cooldowns", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["reset"] == 1

    async def test_devices_and_history(self, client, admin_headers):
        device = await register_device(client, username="alice")
        await client.post("/api/queue/add", json={"track_id": "track1"})

        resp = await client.get("/api/admin/devices", headers=admin_headers)
        assert resp.status_code == 200
        devices = resp.json()["devices"]
        assert devices[0]["id"] == device
        assert devices[0]["is_cooling_down"] is True

        resp = await client.get(f"/api/admin/devices/{device}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["attempts"][0]["status"] == "success"


class TestBannedTracks:
    async def test_ban_blocks_admission(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/banned-tracks", json={"track_id": "track1", "reason": "overplayed"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["reason"] == "overplayed"

        await register_device(client)
        resp = await client.post("/api/queue/add", json={"track_id": "track1"})
        assert resp.status_code == 403
        assert resp.json()["code"] == "TRACK_BANNED"

    async def test_list_and_unban(self, client, admin_headers):
        await client.post("/api/admin/banned-tracks", json={"track_id": "track1"}, headers=admin_headers)
        resp = await client.get("/api/admin/banned-tracks", headers=admin_headers)
        assert [b["track_id"] for b in resp.json()] == ["track1"]

        resp = await client.delete("/api/admin/banned-tracks/track1", headers=admin_headers)
        assert resp.status_code == 200
        resp = await client.delete("/api/admin/banned-tracks/track1", headers=admin_headers)
        assert resp.status_code == 404


class TestStatsAndReset:
    async def test_stats(self, client, admin_headers):
        await register_device(client)
        await client.post("/api/queue/add", json={"track_id": "track1"})
        await client.post("/api/queue/add", json={"track_id": "track2"})

        resp = await client.get("/api/admin/stats", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["devices"]["total"] == 1
        assert data["queue_attempts"]["total"] == 2
        assert data["queue_attempts"]["successful"] == 1

    async def test_reset_all_data(self, client, admin_headers):
        await register_device(client)
        await client.post("/api/queue/add", json={"track_id": "track1"})

        resp = await client.post("/api/admin/reset-all-data", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["deleted"]["fingerprints"] == 1

        stats = (await client.get("/api/admin/stats", headers=admin_headers)).json()
        assert stats["devices"]["total"] == 0
        # Config survives a data reset
        resp = await client.get("/api/config/public/cooldown_duration")
        assert resp.json()["value"] == "300"


class TestBindIdentity:
    async def test_verified_identity_clears_gate(self, client, admin_headers):
        device = await register_device(client)
        await set_config(client, admin_headers, "require_github_auth", True)
        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 503

        resp = await client.post(
            f"/api/admin/devices/{device}/identities",
            json={"provider": "github", "external_id": "583231", "display_name": "octocat"},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = await client.post("/api/fingerprint/validate", json={"fingerprint_id": device})
        assert resp.status_code == 200
        assert resp.json()["username"] == "octocat"

    async def test_unknown_device(self, client, admin_headers):
        resp = await client.post(
            "/api/admin/devices/device-missing/identities",
            json={"provider": "github", "external_id": "1", "display_name": "x"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    async def test_unknown_provider(self, client, admin_headers):
        device = await register_device(client)
        resp = await client.post(
            f"/api/admin/devices/{device}/identities",
            json={"provider": "myspace", "external_id": "1", "display_name": "x"},
            headers=admin_headers,
        )
        assert resp.status_code == 422
