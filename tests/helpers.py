"""Settings and data builders shared by unit and integration tests."""

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.configstore.schemas import RuntimeConfig

SECRET_KEY = "test-secret-key-for-unit-tests"
ADMIN_PASSWORD = "test-admin-password"


def make_settings(**overrides) -> SpotiQueueSettings:
    defaults = {
        "db_url": "sqlite+aiosqlite://",
        "secret_key": SECRET_KEY,
        "default_admin_password": ADMIN_PASSWORD,
    }
    defaults.update(overrides)
    return SpotiQueueSettings(**defaults)


def make_config(**overrides) -> RuntimeConfig:
    return RuntimeConfig(**overrides)


async def create_device(db, registry, token="device-one", username=None):
    async with db.get_session() as session:
        resolution = await registry.resolve_or_create(
            session, make_config(), token=token, proposed_username=username,
        )
    return resolution.fingerprint


# ── HTTP helpers ──

async def register_device(client, token="device-one", username=None):
    resp = await client.post(
        "/api/fingerprint/generate", json={"fingerprint_id": token, "username": username},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["fingerprint_id"]


async def set_config(client, admin_headers, key, value):
    resp = await client.put(f"/api/config/{key}", json={"value": value}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["value"]
