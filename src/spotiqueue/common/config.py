"""SpotiQueue process configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
}


class SpotiQueueSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SPOTIQUEUE_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/spotiqueue.db"

    # API
    api_title: str = "SpotiQueue"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8000
    api_prefix: str = "/api"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Fingerprint cookie
    cookie_name: str = "fingerprint_id"
    cookie_max_age: int = 365 * 24 * 3600

    # Seed value for the runtime admin password (only used on first run)
    default_admin_password: str = "admin"

    # Spotify
    spotify_client_id: str = ""
    spotify_client_secret: str = ""
    spotify_refresh_token: str = ""
    spotify_api_base: str = "https://api.spotify.com/v1"
    spotify_authorize_url: str = "https://accounts.spotify.com/authorize"
    spotify_accounts_url: str = "https://accounts.spotify.com/api/token"
    # Must match a redirect URI registered with the Spotify app
    spotify_redirect_uri: str = "http://127.0.0.1:8000/api/auth/callback"
    spotify_timeout: float = 10.0
    queue_cache_ttl: float = 15.0  # seconds
    max_rate_limit_wait: float = 5.0  # seconds; longer back-offs fail fast

    # Synced lyrics
    lyrics_enabled: bool = True
    lyrics_api_url: str = "https://lrclib.net/api/search"
    lyrics_timeout: float = 10.0
    lyrics_cache_ttl: float = 3600.0  # seconds

    # Slack approval channel
    slack_webhook_url: str = ""
    slack_prequeue_enabled: bool = False
    slack_signing_secret: str = ""
    slack_reviewer_mention: str = ""

    # OAuth providers (only used to report whether they are configured)
    github_client_id: str = ""
    github_client_secret: str = ""
    hackclub_client_id: str = ""
    hackclub_client_secret: str = ""

    @property
    def spotify_configured(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)

    @property
    def slack_enabled(self) -> bool:
        return bool(self.slack_webhook_url) and self.slack_prequeue_enabled

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"SPOTIQUEUE_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secret key — set SPOTIQUEUE_SECRET_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> SpotiQueueSettings:
    settings = SpotiQueueSettings()
    settings.validate_for_production()
    return settings
