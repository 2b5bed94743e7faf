"""
Elasticity-based menu price suggestions.

The estimate is deliberately simple: the mean of quantity%/price% over
consecutive sales where the price moved, bounded to a plausible band. The
suggested move is ``-1 / (2·elasticity)`` inside the allowed change band.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import numpy as np

from ..storage.models import MenuItem
from ..utils import clamp, round_half_up
from .models import PricingOptimization
from .policy import AnalyticsPolicy


@dataclass(frozen=True)
class PriceObservation:
    ordered_at: datetime
    quantity: int
    price: float


def estimate_elasticity(observations: list[PriceObservation], policy: AnalyticsPolicy) -> float:
    if len(observations) < policy.min_observations:
        return policy.default_elasticity

    ordered = sorted(observations, key=lambda o: o.ordered_at)
    ratios = []
    for previous, current in zip(ordered, ordered[1:]):
        if previous.quantity == 0 or previous.price == 0:
            continue
        price_change = (current.price - previous.price) / previous.price
        if abs(price_change) <= policy.significant_price_change:
            continue
        quantity_change = (current.quantity - previous.quantity) / previous.quantity
        ratios.append(quantity_change / price_change)

    if not ratios:
        return policy.default_elasticity
    low, high = policy.elasticity_bounds
    return clamp(float(np.mean(ratios)), low, high)


def optimal_price_change(elasticity: float, policy: AnalyticsPolicy) -> float:
    low, high = policy.price_change_bounds
    return clamp(-1 / (2 * elasticity), low, high)


def optimize_item_price(
    item: MenuItem,
    observations: list[PriceObservation],
    policy: AnalyticsPolicy,
) -> PricingOptimization | None:
    """Suggestion for one item, or ``None`` when data is thin or the move is tiny."""
    if len(observations) < policy.min_observations:
        return None

    elasticity = estimate_elasticity(observations, policy)
    change = optimal_price_change(elasticity, policy)
    current = item.price
    optimized = current * (1 + change)
    if abs(optimized - current) <= policy.min_reported_delta:
        return None

    demand_change = -elasticity * change * 100
    revenue_change = ((optimized / current - 1) + demand_change / 100) * 100
    return PricingOptimization(
        menu_item=item,
        current_price=round_half_up(current, 2),
        optimized_price=round_half_up(optimized, 2),
        expected_demand_change=round_half_up(demand_change, 2),
        expected_revenue_change=round_half_up(revenue_change, 2),
        confidence=min(100, len(observations) * policy.per_observation_confidence),
    )
