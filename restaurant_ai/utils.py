from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like a cash register: 2.5 -> 3, 0.125 -> 0.13 (for digits=2)."""
    factor = 10 ** digits
    # The 1e-9 nudge absorbs binary noise such as 0.285 * 100 == 28.499999...
    return math.floor(value * factor + 0.5 + 1e-9) / factor


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
