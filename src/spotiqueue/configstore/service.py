"""Config store service — seeded key/value settings read by every component."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.configstore.models import ConfigEntryModel
from spotiqueue.configstore.schemas import RuntimeConfig, serialize_value


class ConfigService:
    """Key/value runtime settings with defaults seeded at first run."""

    def __init__(self, settings: SpotiQueueSettings):
        self.settings = settings

    def defaults(self) -> dict[str, str]:
        defaults = RuntimeConfig().to_entries()
        defaults["admin_password"] = self.settings.default_admin_password
        return defaults

    async def seed_defaults(self, session: AsyncSession) -> list[str]:
        """Insert every default that is not stored yet. Returns the seeded keys."""
        result = await session.execute(select(ConfigEntryModel.key))
        existing = set(result.scalars().all())
        seeded = []
        for key, value in self.defaults().items():
            if key in existing:
                continue
            session.add(ConfigEntryModel(key=key, value=value))
            seeded.append(key)
        await session.flush()
        return seeded

    async def get_value(self, session: AsyncSession, key: str) -> str | None:
        entry = await session.get(ConfigEntryModel, key)
        return entry.value if entry else None

    async def get_all(self, session: AsyncSession) -> dict[str, str]:
        result = await session.execute(
            select(ConfigEntryModel).order_by(ConfigEntryModel.key)
        )
        return {entry.key: entry.value for entry in result.scalars().all()}

    async def set_value(self, session: AsyncSession, key: str, value: Any) -> str:
        stored = serialize_value(value)
        entry = await session.get(ConfigEntryModel, key)
        if entry is None:
            session.add(ConfigEntryModel(key=key, value=stored))
        else:
            entry.value = stored
        await session.flush()
        return stored

    async def set_many(self, session: AsyncSession, updates: dict[str, Any]) -> dict[str, str]:
        for key, value in updates.items():
            await self.set_value(session, key, value)
        return await self.get_all(session)

    async def snapshot(self, session: AsyncSession) -> RuntimeConfig:
        """Parse the current table into a typed, immutable snapshot."""
        entries = self.defaults()
        entries.update(await self.get_all(session))
        return RuntimeConfig.from_entries(entries)
