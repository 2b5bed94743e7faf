from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass(frozen=True)
class AnalyticsPolicy:
    # Time series
    history_periods: int = 8
    timeframes: dict[str, timedelta] = field(default_factory=lambda: {
        "1h": timedelta(hours=1),
        "4h": timedelta(hours=4),
        "1d": timedelta(days=1),
        "3d": timedelta(days=3),
        "7d": timedelta(days=7),
        "30d": timedelta(days=30),
    })
    default_timeframe: str = "1d"

    # Seasonality, as a fraction of the period baseline (inclusive hours)
    lunch_hours: tuple[int, int] = (11, 13)
    lunch_factor: float = 0.2
    dinner_hours: tuple[int, int] = (18, 20)
    dinner_factor: float = 0.3
    slow_before_hour: int = 7
    slow_from_hour: int = 22
    slow_factor: float = -0.3
    weekend_factor: float = 0.1
    monday_factor: float = -0.1

    # External multipliers
    bad_weather_conditions: tuple[str, ...] = ("rainy", "stormy", "snowy")
    bad_weather_impact: float = -0.15
    great_weather_conditions: tuple[str, ...] = ("sunny",)
    great_weather_range_f: tuple[float, float] = (65.0, 85.0)
    great_weather_impact: float = 0.1
    holiday_impact: float = 0.3
    game_day_impact: float = 0.2
    # (month, day)
    holidays: tuple[tuple[int, int], ...] = ((12, 25), (1, 1), (7, 4))
    weekend_day_impact: float = 0.15
    friday_day_impact: float = 0.1
    monday_day_impact: float = -0.1

    # Factor reporting thresholds
    trend_report_threshold: float = 0.1
    seasonality_report_threshold: float = 0.1
    impact_report_threshold: float = 0.05

    # Prediction confidence
    base_confidence: int = 50
    per_point_confidence: int = 3
    max_point_confidence: int = 30
    stable_trend_below: float = 0.5
    stable_trend_bonus: int = 10
    seasonality_above: float = 0.1
    seasonality_bonus: int = 10
    max_confidence: int = 95

    # Revenue
    market_growth: float = 0.02
    competitive_pressure: float = -0.01
    max_loyalty_bonus: float = 0.05
    loyalty_window_days: int = 30

    # Staffing
    staffing_window: str = "4h"
    customers_per_server: int = 17
    orders_per_kitchen_staff: int = 27
    host_threshold: int = 30
    manager_evening_hour: int = 17
    holiday_staffing_multiplier: float = 1.3
    min_staff: int = 1

    # Segments
    vip_min_orders: int = 5
    vip_min_avg_order: float = 25.0
    vip_min_loyalty: int = 200
    occasional_max_recent_orders: int = 1
    budget_max_avg_order: float = 20.0
    recent_window_days: int = 30

    # Churn
    idle_tiers: tuple[tuple[int, int, str], ...] = (
        (60, 40, "No orders in 60+ days"),
        (30, 25, "No orders in 30+ days"),
        (14, 10, "No recent orders (14+ days)"),
    )
    frequency_window_days: int = 90
    declining_frequency_share: float = 0.3
    declining_frequency_risk: int = 20
    order_value_min_orders: int = 3
    declining_value_share: float = 0.8
    declining_value_risk: int = 15
    low_loyalty_points: int = 50
    low_loyalty_min_orders: int = 5
    low_loyalty_risk: int = 10
    low_engagement_below: float = 0.3
    low_engagement_risk: int = 15
    high_risk_from: int = 60
    medium_risk_from: int = 30

    # Elasticity
    min_observations: int = 10
    significant_price_change: float = 0.01
    default_elasticity: float = -1.0
    elasticity_bounds: tuple[float, float] = (-5.0, -0.1)
    price_change_bounds: tuple[float, float] = (-0.15, 0.25)
    min_reported_delta: float = 0.25
    per_observation_confidence: int = 2


DEFAULT_ANALYTICS_POLICY = AnalyticsPolicy()
