"""SpotiQueue: a shared Spotify queue with per-device admission control."""

__version__ = "0.1.0"
