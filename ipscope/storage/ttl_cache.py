"""In-memory TTL cache with lazy expiry and oldest-first eviction."""

from __future__ import annotations

from dataclasses import dataclass
import threading
import time
from typing import Any, Callable, Generic, TypeVar

V = TypeVar("V")

DEFAULT_CAPACITY = 1000
EVICTION_FRACTION = 0.2


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[V]):
    """Single cached value; replaced as a whole, never updated in place."""

    value: V
    stored_at: float
    ttl: float

    def is_live(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class TTLCache(Generic[V]):
    """Bounded key/value store where every entry carries its own TTL.

    Expiry is checked on read. When an insert finds the cache full, expired
    entries are dropped first and then, if needed, the oldest-inserted 20%.
    This is not an LRU: reads never change eviction order.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> V | Any:
        """Return the live value for ``key`` or ``default``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if not entry.is_live(self._clock()):
                self._entries.pop(key, None)
                return default
            return entry.value

    def set(self, key: str, value: V, ttl: float) -> None:
        """Store ``value`` under ``key`` for ``ttl`` seconds."""
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.capacity:
                self._make_room()
            # Re-insert so that insertion order tracks the newest write.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl=float(ttl))

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "capacity": self.capacity}

    def _make_room(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
        for key in expired:
            del self._entries[key]

        if len(self._entries) < self.capacity:
            return

        # dict iteration order is insertion order, oldest first.
        drop_count = max(1, int(self.capacity * EVICTION_FRACTION))
        for key in list(self._entries)[:drop_count]:
            del self._entries[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and entry.is_live(self._clock())
