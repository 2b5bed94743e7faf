from __future__ import annotations

import threading
import time
from typing import Any, Callable


class TTLCache:
    """Small thread-safe TTL cache with hit/miss counters.

    Concurrent writers for the same key simply overwrite each other.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, dict[str, Any]] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() - entry["created_at"] < self.ttl:
                self._hits += 1
                return entry["value"]
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = {"value": value, "created_at": self._clock()}

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
