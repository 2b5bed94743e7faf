from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class KeywordRule:
    """Percentage applied when an item's description or name mentions a keyword."""

    percentage: float
    reasoning: str
    description_keywords: tuple[str, ...] = ()
    name_keywords: tuple[str, ...] = ()

    def matches(self, name: str, description: str) -> bool:
        return (any(k in description for k in self.description_keywords)
                or any(k in name for k in self.name_keywords))


@dataclass(frozen=True)
class SeasonRule:
    months: tuple[int, ...]
    rule: KeywordRule


DEFAULT_SEASONS = (
    SeasonRule((3, 4, 5), KeywordRule(
        3.0, "Spring seasonal favorite",
        description_keywords=("fresh", "spring", "light"), name_keywords=("salad",))),
    SeasonRule((6, 7, 8), KeywordRule(
        4.0, "Summer seasonal demand",
        description_keywords=("grilled", "bbq", "refreshing"), name_keywords=("cold",))),
    SeasonRule((9, 10, 11), KeywordRule(
        5.0, "Fall seasonal specialty",
        description_keywords=("pumpkin", "apple", "warm", "spiced"))),
    SeasonRule((12, 1, 2), KeywordRule(
        4.0, "Winter comfort food demand",
        description_keywords=("hot", "warm", "comfort", "hearty"))),
)


@dataclass(frozen=True)
class PricingPolicy:
    # Demand
    demand_window_days: int = 7
    recent_window_hours: int = 2
    high_recent_share: float = 0.3
    high_recent_pct: float = 10.0
    busy_day_multiple: float = 1.5
    busy_day_pct: float = 5.0
    slow_day_multiple: float = 0.5
    slow_day_pct: float = -3.0

    # Time of day (inclusive hour ranges)
    lunch_hours: tuple[int, int] = (11, 14)
    dinner_hours: tuple[int, int] = (17, 21)
    breakfast_hours: tuple[int, int] = (7, 10)
    early_bird_hours: tuple[int, int] = (7, 9)
    late_night_start: int = 22
    late_night_end: int = 6
    weekend_peak_pct: float = 8.0
    peak_pct: float = 5.0
    breakfast_pct: float = 3.0
    late_night_pct: float = -5.0
    early_bird_pct: float = -3.0

    # Weather
    hot_threshold_f: float = 85.0
    cold_threshold_f: float = 45.0
    hot_boost: KeywordRule = KeywordRule(
        6.0, "High demand due to hot weather",
        description_keywords=("cold", "iced"), name_keywords=("salad", "ice cream"))
    hot_penalty: KeywordRule = KeywordRule(
        -4.0, "Lower demand for hot items in hot weather",
        description_keywords=("hot", "soup"))
    cold_boost: KeywordRule = KeywordRule(
        5.0, "High demand due to cold weather",
        description_keywords=("hot", "warm", "soup"), name_keywords=("coffee",))
    cold_penalty: KeywordRule = KeywordRule(
        -3.0, "Lower demand for cold items in cold weather",
        description_keywords=("cold",), name_keywords=("salad",))
    rainy_boost: KeywordRule = KeywordRule(
        4.0, "Comfort food demand due to rainy weather",
        description_keywords=("comfort", "hearty"), name_keywords=("pasta", "soup"))

    # Inventory
    critical_inventory: float = 0.2
    critical_inventory_pct: float = 8.0
    low_inventory: float = 0.4
    low_inventory_pct: float = 4.0
    high_inventory: float = 0.8
    high_inventory_pct: float = -3.0
    depleting_below: float = 0.6
    depleting_pct: float = 2.0

    # Seasonal
    seasons: tuple[SeasonRule, ...] = DEFAULT_SEASONS

    # Day of week, keyed by Python weekday (Monday == 0)
    weekday_pct: dict[int, float] = field(default_factory=lambda: {
        0: -4.0,
        2: -2.0,
        4: 3.0,
        5: 6.0,
        6: 6.0,
    })
    weekday_reasoning: dict[int, str] = field(default_factory=lambda: {
        0: "Monday motivation discount",
        2: "Midweek special pricing",
        4: "Friday celebration pricing",
        5: "Weekend premium pricing",
        6: "Weekend premium pricing",
    })

    # Bounds
    min_multiplier: float = 0.80
    max_multiplier: float = 1.25
    validity_minutes: int = 30

    # Confidence
    base_confidence: int = 50
    per_factor_confidence: int = 8
    volatile_total_pct: float = 20.0
    volatility_penalty: int = 10

    # Owner-facing optimization
    min_recommended_change: float = 0.50
    optimization_limit: int = 10


DEFAULT_PRICING_POLICY = PricingPolicy()
