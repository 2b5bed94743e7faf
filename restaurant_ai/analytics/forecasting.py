from __future__ import annotations

import math
from datetime import date, datetime, timedelta

import pandas as pd

from ..providers.base import WeatherConditions
from ..utils import round_half_up
from .models import PredictionResult, Shift, StaffingRecommendation
from .policy import AnalyticsPolicy
from .timeseries import (
    linear_trend,
    period_values,
    prediction_confidence,
    resolve_timeframe,
    seasonality,
)

REVENUE_FACTORS = [
    "Historical revenue trends",
    "Seasonal patterns",
    "Market growth assumptions",
    "Customer loyalty indicators",
]


def is_holiday(day: date, policy: AnalyticsPolicy) -> bool:
    return (day.month, day.day) in policy.holidays


def weather_impact(conditions: WeatherConditions, policy: AnalyticsPolicy) -> float:
    if conditions.is_extreme or conditions.condition in policy.bad_weather_conditions:
        return policy.bad_weather_impact
    low, high = policy.great_weather_range_f
    if conditions.condition in policy.great_weather_conditions and low <= conditions.temperature_f <= high:
        return policy.great_weather_impact
    return 0.0


def event_impact(day: date, game_day: bool, policy: AnalyticsPolicy) -> float:
    if is_holiday(day, policy):
        return policy.holiday_impact
    if game_day:
        return policy.game_day_impact
    return 0.0


def day_type_impact(target: datetime, policy: AnalyticsPolicy) -> float:
    weekday = target.weekday()
    if weekday >= 5:
        return policy.weekend_day_impact
    if weekday == 4:
        return policy.friday_day_impact
    if weekday == 0:
        return policy.monday_day_impact
    return 0.0


def forecast_demand(
    frame: pd.DataFrame,
    target: datetime,
    timeframe: str,
    weather: WeatherConditions,
    game_day: bool,
    policy: AnalyticsPolicy,
) -> PredictionResult:
    """Order count expected in the period of length ``timeframe`` at ``target``."""
    values = period_values(frame, target, resolve_timeframe(timeframe, policy), policy.history_periods)
    trend = linear_trend(values)
    season = seasonality(values, target, policy)
    baseline = sum(values) / len(values) if values else 0.0

    weather_factor = weather_impact(weather, policy)
    event_factor = event_impact(target.date(), game_day, policy)
    day_factor = day_type_impact(target, policy)
    prediction = (baseline + trend + season) * (1 + weather_factor + event_factor + day_factor)

    factors = []
    if abs(trend) > policy.trend_report_threshold:
        factors.append(f"{'Upward' if trend > 0 else 'Downward'} trend detected")
    if abs(season) > policy.seasonality_report_threshold:
        factors.append("Seasonal pattern influence")
    if abs(weather_factor) > policy.impact_report_threshold:
        factors.append("Weather impact considered")
    if abs(event_factor) > policy.impact_report_threshold:
        factors.append("Special events impact")
    if abs(day_factor) > policy.impact_report_threshold:
        factors.append("Day type variation")

    return PredictionResult(
        value=max(0.0, round_half_up(prediction)),
        confidence=prediction_confidence(len(values), trend, season, policy),
        factors=factors,
        timeframe=timeframe,
    )


def loyalty_bonus(frame: pd.DataFrame, now: datetime, policy: AnalyticsPolicy) -> float:
    """Share of recent orders that redeemed points, scaled to the max bonus."""
    recent = frame[frame["created_at"] > now - timedelta(days=policy.loyalty_window_days)]
    if recent.empty:
        return 0.0
    rate = float((recent["loyalty_points_used"] > 0).mean())
    return rate * policy.max_loyalty_bonus


def forecast_revenue(
    frame: pd.DataFrame,
    target: datetime,
    timeframe: str,
    loyalty_factor: float,
    policy: AnalyticsPolicy,
) -> PredictionResult:
    completed = frame[frame["status"] == "completed"]
    values = period_values(
        completed, target, resolve_timeframe(timeframe, policy), policy.history_periods, "total_price"
    )
    trend = linear_trend(values)
    season = seasonality(values, target, policy)
    baseline = values[-1] if values else 0.0

    prediction = (baseline + trend + season) * (
        1 + policy.market_growth + policy.competitive_pressure + loyalty_factor
    )

    relative_trend = trend / baseline if baseline else 0.0
    relative_season = season / baseline if baseline else 0.0
    return PredictionResult(
        value=round_half_up(prediction, 2),
        confidence=prediction_confidence(len(values), relative_trend, relative_season, policy),
        factors=list(REVENUE_FACTORS),
        timeframe=timeframe,
    )


def shift_start(target_day: date, shift: Shift) -> datetime:
    hours, minutes = (int(part) for part in shift.start.split(":"))
    return datetime(target_day.year, target_day.month, target_day.day, hours, minutes)


def staff_for_shift(
    shift: Shift,
    target_day: date,
    demand: PredictionResult,
    policy: AnalyticsPolicy,
) -> StaffingRecommendation:
    """Apply the role's staff-per-demand rule to a shift's predicted demand."""
    expected = int(demand.value)
    reasoning: list[str] = []
    role = shift.role.lower()

    if role == "server":
        staff = math.ceil(expected / policy.customers_per_server)
        reasoning.append(f"Based on {expected} predicted customers")
        reasoning.append(f"Average {policy.customers_per_server} customers per server")
    elif role == "kitchen":
        staff = math.ceil(expected / policy.orders_per_kitchen_staff)
        reasoning.append(f"Based on {expected} predicted orders")
        reasoning.append(f"Average {policy.orders_per_kitchen_staff} orders per kitchen staff")
    elif role == "host":
        busy = expected > policy.host_threshold
        staff = 1 if busy else 0
        reasoning.append("High volume expected" if busy else "Low volume period")
    elif role == "manager":
        evening = shift_start(target_day, shift).hour >= policy.manager_evening_hour
        weekend = target_day.weekday() >= 5
        staff = 1 if evening or weekend else 0
        reasoning.append("Evening shift" if evening else "Weekend" if weekend else "Day shift")
    else:
        staff = 0
        reasoning.append(f"No staffing ratio for role '{shift.role}'")

    if is_holiday(target_day, policy):
        staff = math.ceil(staff * policy.holiday_staffing_multiplier)
        reasoning.append(f"Holiday adjustment (+{round((policy.holiday_staffing_multiplier - 1) * 100)}%)")

    return StaffingRecommendation(
        shift=shift,
        recommended_staff=max(policy.min_staff, staff),
        reasoning=reasoning,
        confidence=demand.confidence,
    )
