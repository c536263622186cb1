"""Playback Queue Gateway contract.

The admission core only talks to the music provider through this
interface, so services can be exercised against an in-process fake.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class TrackMetadata:
    """The track fields admission and prequeue depend on."""

    id: str
    name: str
    artists: str
    uri: str
    duration_ms: int = 0
    explicit: bool = False
    album: str = ""
    album_art: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QueueSnapshot:
    now_playing: Optional[TrackMetadata] = None
    upcoming: list[TrackMetadata] = field(default_factory=list)

    def contains(self, track_id: str) -> bool:
        if self.now_playing is not None and self.now_playing.id == track_id:
            return True
        return any(track.id == track_id for track in self.upcoming)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currently_playing": self.now_playing.to_dict() if self.now_playing else None,
            "queue": [track.to_dict() for track in self.upcoming],
        }


class PlaybackGateway(Protocol):
    async def search(self, query: str, limit: int = 10) -> list[TrackMetadata]:
        ...

    async def resolve(self, track_id: str) -> TrackMetadata:
        """Raise InvalidReferenceError for unknown ids, UpstreamFailureError otherwise."""
        ...

    async def enqueue(self, track: TrackMetadata) -> None:
        """Raise NoActiveDeviceError or UpstreamFailureError on failure."""
        ...

    async def current_queue(self) -> QueueSnapshot:
        ...

    async def now_playing(self) -> Optional[dict[str, Any]]:
        ...

    def set_refresh_token(self, refresh_token: str) -> None:
        ...
