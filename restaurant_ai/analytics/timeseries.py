"""
Shared time-series helpers for demand and revenue forecasting.

Orders are turned into a pandas frame once per call; the helpers below bucket
that frame into equal trailing periods, fit a linear trend and apply the
rule-based hour/day seasonality.
"""
from __future__ import annotations

from datetime import datetime, timedelta

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression

from ..storage.models import Order
from .policy import AnalyticsPolicy

ORDER_COLUMNS = ["id", "user_id", "total_price", "status", "loyalty_points_used", "created_at"]


def orders_frame(orders: list[Order]) -> pd.DataFrame:
    if not orders:
        return pd.DataFrame({
            "id": pd.Series(dtype="int64"),
            "user_id": pd.Series(dtype="int64"),
            "total_price": pd.Series(dtype="float64"),
            "status": pd.Series(dtype="object"),
            "loyalty_points_used": pd.Series(dtype="int64"),
            "created_at": pd.Series(dtype="datetime64[ns]"),
        })
    df = pd.DataFrame([
        {
            "id": o.id,
            "user_id": o.user_id,
            "total_price": o.total_price,
            "status": o.status.value,
            "loyalty_points_used": o.loyalty_points_used,
            "created_at": o.created_at,
        }
        for o in orders
    ], columns=ORDER_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"])
    return df


def resolve_timeframe(timeframe: str, policy: AnalyticsPolicy) -> timedelta:
    """Length of one history period; unknown labels use the default timeframe."""
    return policy.timeframes.get(timeframe, policy.timeframes[policy.default_timeframe])


def period_values(
    frame: pd.DataFrame,
    target: datetime,
    period: timedelta,
    periods: int,
    value_column: str | None = None,
) -> list[float]:
    """Per-period order count (or column sum), oldest period first.

    Period ``i`` (1-based) covers ``[target - (i+1)·period, target - i·period)``.
    """
    values = []
    for i in range(1, periods + 1):
        start = target - (i + 1) * period
        end = target - i * period
        mask = (frame["created_at"] >= start) & (frame["created_at"] < end)
        if value_column is None:
            values.append(float(mask.sum()))
        else:
            values.append(float(frame.loc[mask, value_column].sum()))
    values.reverse()
    return values


def linear_trend(values: list[float]) -> float:
    """OLS slope of ``values`` against x = 1..n."""
    if len(values) < 2:
        return 0.0
    x = np.arange(1, len(values) + 1, dtype=float).reshape(-1, 1)
    y = np.asarray(values, dtype=float)
    model = LinearRegression().fit(x, y)
    slope = float(model.coef_[0])
    return slope if np.isfinite(slope) else 0.0


def seasonal_factor(target: datetime, policy: AnalyticsPolicy) -> float:
    hour = target.hour
    weekday = target.weekday()
    factor = 0.0
    if policy.lunch_hours[0] <= hour <= policy.lunch_hours[1]:
        factor += policy.lunch_factor
    if policy.dinner_hours[0] <= hour <= policy.dinner_hours[1]:
        factor += policy.dinner_factor
    if hour <= policy.slow_before_hour or hour >= policy.slow_from_hour:
        factor += policy.slow_factor
    if weekday >= 5:
        factor += policy.weekend_factor
    if weekday == 0:
        factor += policy.monday_factor
    return factor


def seasonality(values: list[float], target: datetime, policy: AnalyticsPolicy) -> float:
    """Seasonal factor at ``target`` scaled by the mean of ``values``."""
    if not values:
        return 0.0
    return float(np.mean(values)) * seasonal_factor(target, policy)


def prediction_confidence(points: int, trend: float, season: float, policy: AnalyticsPolicy) -> int:
    confidence = policy.base_confidence
    confidence += min(points * policy.per_point_confidence, policy.max_point_confidence)
    if abs(trend) < policy.stable_trend_below:
        confidence += policy.stable_trend_bonus
    if abs(season) > policy.seasonality_above:
        confidence += policy.seasonality_bonus
    return min(confidence, policy.max_confidence)
