from __future__ import annotations

import threading
import time
from typing import Any


class EventStore:
    """Append-only, in-process log of engine calls and other app events."""

    def __init__(self, max_events: int = 10_000):
        self._events: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self.max_events = max_events

    def record_event(self, event_type: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._events.append({
                "type": event_type,
                "timestamp": time.time(),
                **data,
            })
            # Oldest events go first once the log is full
            if len(self._events) > self.max_events:
                del self._events[: len(self._events) - self.max_events]

    def record_engine_call(
        self,
        engine: str,
        operation: str,
        started: float,
        confidence: float | None = None,
        fallback: bool = False,
    ) -> None:
        """Log one engine call; ``started`` is the ``time.time()`` taken before it."""
        self.record_event("engine_call", {
            "engine": engine,
            "operation": operation,
            "response_time_ms": round((time.time() - started) * 1000, 1),
            "confidence": confidence,
            "fallback": fallback,
        })

    def get_events(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._events)

    def clear_events(self) -> None:
        with self._lock:
            self._events.clear()
