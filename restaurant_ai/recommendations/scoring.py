from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping


@dataclass
class ScoreEntry:
    total: float = 0.0
    contributions: dict[str, float] = field(default_factory=dict)


class ScoreBoard:
    """Weighted accumulator keyed by menu item id.

    Every weighted contribution is kept next to the running total so the
    final ranking can be explained signal by signal.
    """

    def __init__(self, item_ids: Iterable[int]):
        self._entries: dict[int, ScoreEntry] = {item_id: ScoreEntry() for item_id in item_ids}

    def add(self, signal: str, scores: Mapping[int, float], weight: float) -> None:
        for item_id, score in scores.items():
            entry = self._entries.get(item_id)
            if entry is None:
                # Item from another restaurant (e.g. via a peer's history)
                continue
            contribution = score * weight
            entry.total += contribution
            entry.contributions[signal] = entry.contributions.get(signal, 0.0) + contribution

    def get(self, item_id: int) -> ScoreEntry | None:
        return self._entries.get(item_id)

    def ranked(self) -> list[tuple[int, ScoreEntry]]:
        """Highest total first; ties go to the lower item id."""
        return sorted(self._entries.items(), key=lambda kv: (-kv[1].total, kv[0]))

    def __len__(self) -> int:
        return len(self._entries)
