"""Integration tests for the prequeue approval endpoints."""

import pytest

from tests.helpers import register_device, set_config


@pytest.fixture
async def prequeue_on(client, admin_headers):
    await set_config(client, admin_headers, "prequeue_enabled", True)


async def _submit(client, track="track1", **extra):
    return await client.post("/api/prequeue/submit", json={"track_id": track, **extra})


class TestSubmit:
    async def test_submit_and_status(self, client, prequeue_on):
        await register_device(client)
        resp = await _submit(client)
        assert resp.status_code == 200
        prequeue_id = resp.json()["prequeue_id"]

        resp = await client.get(f"/api/prequeue/status/{prequeue_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "pending"
        assert data["track_name"] == "First Song"

    async def test_submit_by_url(self, client, prequeue_on):
        await register_device(client)
        resp = await client.post("/api/prequeue/submit", json={
            "track_url": "https://open.spotify.com/track/track2",
        })
        assert resp.status_code == 200

    async def test_duplicate_pending(self, client, prequeue_on):
        await register_device(client)
        await _submit(client)
        resp = await _submit(client)
        assert resp.status_code == 409
        assert resp.json()["code"] == "DUPLICATE_PENDING"

    async def test_disabled(self, client):
        await register_device(client)
        resp = await _submit(client)
        assert resp.status_code == 503

    async def test_status_not_found(self, client):
        resp = await client.get("/api/prequeue/status/missing")
        assert resp.status_code == 404


class TestDecisions:
    async def test_approve(self, client, admin_headers, prequeue_on, gateway):
        await register_device(client)
        prequeue_id = (await _submit(client)).json()["prequeue_id"]

        resp = await client.post(
            f"/api/prequeue/approve/{prequeue_id}", json={"approved_by": "dj"}, headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Approved: First Song"
        assert [t.id for t in gateway.enqueued] == ["track1"]

        status = (await client.get(f"/api/prequeue/status/{prequeue_id}")).json()
        assert status["status"] == "approved"
        assert status["approved_by"] == "dj"

        resp = await client.post(f"/api/prequeue/approve/{prequeue_id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "ALREADY_PROCESSED"
        assert len(gateway.enqueued) == 1

    async def test_approval_attributed_to_submitter(self, client, admin_headers, prequeue_on):
        await register_device(client, username="alice")
        prequeue_id = (await _submit(client)).json()["prequeue_id"]
        await client.post(f"/api/prequeue/approve/{prequeue_id}", headers=admin_headers)

        activity = (await client.get("/api/queue/recent-activity")).json()["activity"]
        assert len(activity) == 1
        assert activity[0]["username"] == "alice"

    async def test_decline(self, client, admin_headers, prequeue_on, gateway):
        await register_device(client)
        prequeue_id = (await _submit(client)).json()["prequeue_id"]
        resp = await client.post(f"/api/prequeue/decline/{prequeue_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert gateway.enqueued == []

    async def test_pending_list(self, client, admin_headers, prequeue_on):
        await register_device(client)
        await _submit(client, "track1")
        await _submit(client, "track2")
        resp = await client.get("/api/prequeue/pending", headers=admin_headers)
        assert resp.status_code == 200
        assert {e["track_id"] for e in resp.json()["pending"]} == {"track1", "track2"}

    async def test_requires_admin(self, client, prequeue_on):
        resp = await client.post("/api/prequeue/approve/abc", headers={"X-Admin-Password": "wrong"})
        assert resp.status_code == 403
