"""Typed runtime configuration snapshot and config API schemas."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

# Never served by the public config endpoint.
SECRET_KEYS: frozenset[str] = frozenset(
    {"admin_password", "user_password", "spotify_refresh_token"}
)


class RuntimeConfig(BaseModel):
    """Immutable, parsed view of the key/value config table.

    Stored values are strings (``"true"``, ``"300"``); a snapshot is parsed
    once per request and handed to the services as real booleans and ints.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # Rate limiting
    cooldown_duration: int = Field(default=300, ge=0)
    songs_before_cooldown: int = Field(default=1, ge=1)
    fingerprinting_enabled: bool = True

    # Guest UI
    url_input_enabled: bool = True
    search_ui_enabled: bool = True
    aura_enabled: bool = True
    confetti_enabled: bool = True

    # Feature toggles
    queueing_enabled: bool = True
    prequeue_enabled: bool = False
    voting_enabled: bool = False

    # Content policy
    max_song_duration: int = Field(default=0, ge=0)  # seconds, 0 = unlimited
    ban_explicit: bool = False

    # Access
    admin_panel_url: str = ""
    admin_password: str = "admin"
    user_password: str = ""
    require_username: bool = False
    require_github_auth: bool = False
    require_hackclub_auth: bool = False

    @classmethod
    def from_entries(cls, entries: dict[str, str]) -> "RuntimeConfig":
        """Parse stored string values, falling back to defaults for bad ones."""
        values = {k: v for k, v in entries.items() if k in cls.model_fields}
        try:
            return cls.model_validate(values)
        except ValidationError as exc:
            bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
            for key in sorted(bad):
                logger.warning(
                    "Ignoring invalid config value %s=%r; using default", key, values.get(key)
                )
            return cls.model_validate({k: v for k, v in values.items() if k not in bad})

    def to_entries(self) -> dict[str, str]:
        return {key: serialize_value(value) for key, value in self.model_dump().items()}


def serialize_value(value: Any) -> str:
    """Render a config value the way it is stored in the table."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigValueResponse(BaseModel):
    key: str
    value: str


class ConfigUpdate(BaseModel):
    value: Any


class ConfigMapResponse(BaseModel):
    config: dict[str, str]


class ConfigUpdateResponse(BaseModel):
    success: bool = True
    key: str
    value: str
