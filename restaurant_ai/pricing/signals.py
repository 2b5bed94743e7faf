"""
Pricing factor generators.

Each returns a ``FactorResult`` holding a percentage of the base price and a
short explanation. They never touch the data accessor: the engine passes in
whatever history or provider readings they need.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..providers.base import InventorySnapshot, WeatherConditions
from ..storage.models import MenuItem
from .policy import PricingPolicy

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class FactorResult:
    percentage: float
    reasoning: str


NEUTRAL = FactorResult(0.0, "")


@dataclass(frozen=True)
class ItemSale:
    """One order line for the priced item: when it was ordered and how many."""

    ordered_at: datetime
    quantity: int


def _in_range(hour: int, bounds: tuple[int, int]) -> bool:
    return bounds[0] <= hour <= bounds[1]


def _lowered(item: MenuItem) -> tuple[str, str]:
    return item.name.lower(), (item.description or "").lower()


def demand_adjustment(sales: list[ItemSale], now: datetime, policy: PricingPolicy) -> FactorResult:
    """Compare today's and the last few hours' volume to the trailing daily average.

    ``sales`` must already be limited to the demand window.
    """
    average_daily = sum(s.quantity for s in sales) / policy.demand_window_days
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    recent_start = now - timedelta(hours=policy.recent_window_hours)
    today = sum(s.quantity for s in sales if s.ordered_at >= today_start)
    recent = sum(s.quantity for s in sales if s.ordered_at >= recent_start)

    percentage = 0.0
    reasons: list[str] = []
    if recent > average_daily * policy.high_recent_share:
        percentage += policy.high_recent_pct
        reasons.append("High recent demand detected")
    if today > average_daily * policy.busy_day_multiple:
        percentage += policy.busy_day_pct
        reasons.append("Above average daily demand")
    if today < average_daily * policy.slow_day_multiple and recent == 0:
        percentage += policy.slow_day_pct
        reasons = ["Lower than average demand"]

    return FactorResult(percentage, ", ".join(reasons) or "Normal demand levels")


def time_of_day_adjustment(now: datetime, policy: PricingPolicy) -> FactorResult:
    hour = now.hour
    weekend = now.weekday() >= 5
    peak = _in_range(hour, policy.lunch_hours) or _in_range(hour, policy.dinner_hours)

    percentage = 0.0
    reasoning = ""
    if weekend and peak:
        percentage += policy.weekend_peak_pct
        reasoning = "Weekend peak hours"
    elif peak:
        percentage += policy.peak_pct
        reasoning = "Peak dining hours"
    elif _in_range(hour, policy.breakfast_hours) and not weekend:
        percentage += policy.breakfast_pct
        reasoning = "Morning rush hour"

    if hour >= policy.late_night_start or hour <= policy.late_night_end:
        percentage += policy.late_night_pct
        reasoning = "Late night discount"

    if _in_range(hour, policy.early_bird_hours) and not weekend:
        percentage += policy.early_bird_pct
        reasoning = "Early bird special"

    return FactorResult(percentage, reasoning or "Standard time pricing")


def weather_adjustment(item: MenuItem, weather: WeatherConditions, policy: PricingPolicy) -> FactorResult:
    name, description = _lowered(item)
    percentage = 0.0
    reasoning = ""

    if weather.temperature_f > policy.hot_threshold_f:
        rules = (policy.hot_boost, policy.hot_penalty)
    elif weather.temperature_f < policy.cold_threshold_f:
        rules = (policy.cold_boost, policy.cold_penalty)
    else:
        rules = ()
    for rule in rules:
        if rule.matches(name, description):
            percentage += rule.percentage
            reasoning = rule.reasoning
            break

    if weather.condition == "rainy" and policy.rainy_boost.matches(name, description):
        percentage += policy.rainy_boost.percentage
        reasoning = policy.rainy_boost.reasoning

    return FactorResult(percentage, reasoning or "Weather-neutral pricing")


def inventory_adjustment(snapshot: InventorySnapshot, policy: PricingPolicy) -> FactorResult:
    percentage = 0.0
    reasons: list[str] = []

    if snapshot.level < policy.critical_inventory:
        percentage += policy.critical_inventory_pct
        reasons.append("Limited inventory available")
    elif snapshot.level < policy.low_inventory:
        percentage += policy.low_inventory_pct
        reasons.append("Low inventory levels")
    elif snapshot.level > policy.high_inventory:
        percentage += policy.high_inventory_pct
        reasons.append("High inventory - promotional pricing")

    if snapshot.trend == "decreasing" and snapshot.level < policy.depleting_below:
        percentage += policy.depleting_pct
        reasons.append("decreasing inventory trend")

    return FactorResult(percentage, ", ".join(reasons) or "Normal inventory levels")


def seasonal_adjustment(item: MenuItem, now: datetime, policy: PricingPolicy) -> FactorResult:
    name, description = _lowered(item)
    season = next((s for s in policy.seasons if now.month in s.months), None)
    if season is not None and season.rule.matches(name, description):
        return FactorResult(season.rule.percentage, season.rule.reasoning)
    return FactorResult(0.0, "No seasonal adjustment")


def day_of_week_adjustment(now: datetime, policy: PricingPolicy) -> FactorResult:
    weekday = now.weekday()
    percentage = policy.weekday_pct.get(weekday, 0.0)
    reasoning = policy.weekday_reasoning.get(weekday) or f"Standard {DAY_NAMES[weekday]} pricing"
    return FactorResult(percentage, reasoning)
