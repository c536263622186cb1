"""External identity providers a guest can be required to verify with."""

from dataclasses import dataclass

from spotiqueue.common.config import SpotiQueueSettings
from spotiqueue.configstore.schemas import RuntimeConfig


@dataclass(frozen=True)
class IdentityProvider:
    name: str
    label: str
    client_id: str
    client_secret: str
    required: bool

    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


def get_identity_providers(
    settings: SpotiQueueSettings, config: RuntimeConfig
) -> list[IdentityProvider]:
    """Providers in the order their requirements are evaluated."""
    return [
        IdentityProvider(
            name="github",
            label="GitHub",
            client_id=settings.github_client_id,
            client_secret=settings.github_client_secret,
            required=config.require_github_auth,
        ),
        IdentityProvider(
            name="hackclub",
            label="Hack Club",
            client_id=settings.hackclub_client_id,
            client_secret=settings.hackclub_client_secret,
            required=config.require_hackclub_auth,
        ),
    ]
