"""Short-TTL cache with an injectable clock."""

import time
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    """Holds a single value for ``ttl`` seconds."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._value: Optional[T] = None
        self._stored_at: float | None = None

    def get(self) -> Optional[T]:
        if self._stored_at is None:
            return None
        if self._clock() - self._stored_at >= self.ttl:
            self.invalidate()
            return None
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._stored_at = self._clock()

    def invalidate(self) -> None:
        self._value = None
        self._stored_at = None


class TTLMap(Generic[T]):
    """Per-key values that expire ``ttl`` seconds after being stored.

    ``None`` is a valid cached value, so lookups take an explicit default.
    """

    def __init__(self, ttl: float, max_entries: int = 256,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, Optional[T]]] = {}

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if self._clock() - entry[0] >= self.ttl:
            del self._entries[key]
            return False
        return True

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        if key not in self:
            return default
        return self._entries[key][1]

    def set(self, key: str, value: Optional[T]) -> None:
        self._entries.pop(key, None)
        if len(self._entries) >= self.max_entries:
            # Oldest insertion goes first
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()
