from __future__ import annotations

import threading
import time
from typing import Any


class FeedbackStore:
    """Thumbs-up / thumbs-down on recommended menu items."""

    def __init__(self) -> None:
        self._feedback: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def record_feedback(
        self,
        user_id: int,
        menu_item_id: int,
        is_positive: bool,
        variant: str | None = None,
    ) -> int:
        with self._lock:
            self._feedback.append({
                "user_id": user_id,
                "menu_item_id": menu_item_id,
                "is_positive": is_positive,
                "variant": variant,
                "timestamp": time.time(),
            })
            return len(self._feedback)

    def get_feedback(self) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._feedback)

    def clear_feedback(self) -> None:
        with self._lock:
            self._feedback.clear()
