"""
In-memory cache with a fixed time-to-live.

Stale entries are not deleted; they are ignored on lookup and overwritten on
the next store.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    """A cached value and the clock reading at which it was stored."""

    value: Any
    timestamp: float


class TTLCache:
    """Key-value store whose entries expire after ``ttl`` seconds."""

    def __init__(self, ttl: float, clock: Callable[[], float] | None = None):
        self.ttl = ttl
        self.clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the value stored under key if younger than the TTL."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() - entry.timestamp >= self.ttl:
            return None
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, timestamp=self.clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
