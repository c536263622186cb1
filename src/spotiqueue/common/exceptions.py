"""SpotiQueue exception hierarchy.

Every error carries a stable machine code and the HTTP status it maps to.
Errors that represent a rejected queue attempt also name the status under
which the attempt is written to the audit log.
"""

from typing import Any


class SpotiQueueError(Exception):
    """Base exception for all SpotiQueue errors."""

    status_code = 500
    attempt_status: str | None = None

    def __init__(self, message: str = "", code: str = "SPOTIQUEUE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, "detail": ""}


class ServiceDisabledError(SpotiQueueError):
    status_code = 503

    def __init__(self, message: str = "Queueing is currently disabled."):
        super().__init__(message, code="SERVICE_DISABLED")


class UnknownDeviceError(SpotiQueueError):
    status_code = 400

    def __init__(self, message: str = "Could not fingerprint your device."):
        super().__init__(message, code="UNKNOWN_DEVICE")


class DeviceBlockedError(SpotiQueueError):
    status_code = 403
    attempt_status = "blocked"

    def __init__(self, message: str = "This device is blocked from queueing songs."):
        super().__init__(message, code="DEVICE_BLOCKED")


class IdentityGateError(SpotiQueueError):
    """A username or verified identity is required before queueing.

    ``flags`` carries the per-provider requirement flags the client needs
    to tell "log in" apart from "login is not configured".
    """

    def __init__(self, message: str, code: str, status_code: int, flags: dict[str, Any]):
        self.status_code = status_code
        self.flags = flags
        super().__init__(message, code=code)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update(self.flags)
        return data


class RateLimitedError(SpotiQueueError):
    """Common base for the two rate-limit rejections."""

    status_code = 429
    attempt_status = "rate_limited"

    def __init__(self, message: str, code: str, cooldown_remaining: int):
        self.cooldown_remaining = cooldown_remaining
        super().__init__(message, code=code)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["cooldown_remaining"] = self.cooldown_remaining
        return data


class CoolingDownError(RateLimitedError):
    def __init__(self, cooldown_remaining: int):
        super().__init__(
            "Please wait before queueing another song!",
            code="COOLING_DOWN",
            cooldown_remaining=cooldown_remaining,
        )


class QuotaExceededError(RateLimitedError):
    def __init__(self, songs_before_cooldown: int, cooldown_remaining: int):
        plural = "s" if songs_before_cooldown > 1 else ""
        super().__init__(
            f"You've reached the limit of {songs_before_cooldown} song{plural} "
            "before cooldown. Please wait!",
            code="QUOTA_EXCEEDED",
            cooldown_remaining=cooldown_remaining,
        )


class InvalidReferenceError(SpotiQueueError):
    status_code = 400

    def __init__(
        self,
        message: str = (
            "Invalid Spotify URL. Use format: https://open.spotify.com/track/TRACK_ID "
            "or spotify:track:TRACK_ID"
        ),
    ):
        super().__init__(message, code="INVALID_REFERENCE")


class InvalidQueryError(SpotiQueueError):
    status_code = 400

    def __init__(self, message: str = "Search query required"):
        super().__init__(message, code="INVALID_QUERY")


class TrackBannedError(SpotiQueueError):
    status_code = 403
    attempt_status = "banned"

    def __init__(self, message: str = "This song is not allowed."):
        super().__init__(message, code="TRACK_BANNED")


class ExplicitBlockedError(SpotiQueueError):
    status_code = 403
    attempt_status = "blocked"

    def __init__(self, message: str = "Explicit songs are not allowed."):
        super().__init__(message, code="EXPLICIT_BLOCKED")


class TooLongError(SpotiQueueError):
    status_code = 403
    attempt_status = "blocked"

    def __init__(self, max_seconds: int):
        minutes, seconds = divmod(max_seconds, 60)
        super().__init__(
            f"Song is too long. Maximum duration is {minutes}:{seconds:02d}.",
            code="TOO_LONG",
        )


class DuplicateInQueueError(SpotiQueueError):
    status_code = 409
    attempt_status = "blocked"

    def __init__(self, message: str = "This song is already in the queue or currently playing."):
        super().__init__(message, code="DUPLICATE_IN_QUEUE")


class DuplicatePendingError(SpotiQueueError):
    status_code = 409

    def __init__(self, message: str = "This song is already pending approval."):
        super().__init__(message, code="DUPLICATE_PENDING")


class PrequeueNotFoundError(SpotiQueueError):
    status_code = 404

    def __init__(self, message: str = "Prequeue entry not found"):
        super().__init__(message, code="NOT_FOUND")


class AlreadyProcessedError(SpotiQueueError):
    status_code = 400

    def __init__(self, status: str = "processed"):
        self.status = status
        super().__init__(f"Track already {status}", code="ALREADY_PROCESSED")


class UpstreamFailureError(SpotiQueueError):
    """The playback provider failed or timed out."""

    status_code = 502
    attempt_status = "error"

    def __init__(self, message: str = "Failed to reach the playback provider", code: str = "UPSTREAM_FAILURE"):
        super().__init__(message, code=code)


class NoActiveDeviceError(UpstreamFailureError):
    status_code = 503

    def __init__(
        self,
        message: str = "No active Spotify device found. Please start playing music on a device.",
    ):
        super().__init__(message, code="NO_ACTIVE_DEVICE")


class SpotifyNotConfiguredError(SpotiQueueError):
    status_code = 400

    def __init__(self, message: str = "SPOTIQUEUE_SPOTIFY_CLIENT_ID is not configured"):
        super().__init__(message, code="SPOTIFY_NOT_CONFIGURED")


class InvalidOAuthStateError(SpotiQueueError):
    status_code = 400

    def __init__(self, message: str = "Authorization request expired or was not issued here"):
        super().__init__(message, code="INVALID_OAUTH_STATE")
