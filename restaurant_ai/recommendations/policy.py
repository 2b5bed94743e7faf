from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TimeBucket:
    """Keyword boost applied while the clock is inside ``[start_hour, end_hour)``.

    Buckets may wrap midnight (``start_hour > end_hour``).
    """

    name: str
    start_hour: int
    end_hour: int
    bonus: float
    name_keywords: tuple[str, ...] = ()
    description_keywords: tuple[str, ...] = ()
    category_ids: tuple[int, ...] = ()

    def contains(self, hour: int) -> bool:
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        return hour >= self.start_hour or hour < self.end_hour


DEFAULT_TIME_BUCKETS = (
    TimeBucket("breakfast", 6, 11, 15.0,
               name_keywords=("breakfast", "coffee", "pancake", "omelet"),
               description_keywords=("morning",)),
    TimeBucket("lunch", 11, 15, 10.0,
               name_keywords=("sandwich", "salad", "soup"),
               description_keywords=("lunch",)),
    TimeBucket("dinner", 17, 22, 12.0,
               name_keywords=("steak", "salmon"),
               description_keywords=("dinner",),
               category_ids=(2,)),
    TimeBucket("late_night", 22, 2, 8.0,
               name_keywords=("appetizer", "dessert"),
               description_keywords=("light", "small")),
)


@dataclass(frozen=True)
class RecommendationPolicy:
    weights: dict[str, float] = field(default_factory=lambda: {
        "collaborative": 0.30,
        "content": 0.25,
        "behavior": 0.20,
        "weather": 0.10,
        "timing": 0.10,
        "price": 0.05,
    })

    # Collaborative filtering
    similarity_threshold: float = 0.1
    interaction_weights: dict[str, float] = field(default_factory=lambda: {
        "viewed": 1.0,
        "liked": 3.0,
        "ordered": 5.0,
        "favorited": 4.0,
        "dislike": 0.0,
    })

    # Content-based filtering
    dietary_bonus: float = 15.0
    favorite_category_bonus: float = 20.0
    allergen_penalty: float = -100.0
    taste_bonus: float = 10.0
    similar_category_bonus: float = 5.0
    similar_price_window: float = 5.0
    similar_price_bonus: float = 3.0
    same_dietary_flag_bonus: float = 2.0

    # Behavior analysis
    category_frequency_multiplier: float = 2.0
    recency_window_days: int = 30
    recency_boosts: dict[str, float] = field(default_factory=lambda: {
        "viewed": 1.0,
        "liked": 5.0,
        "ordered": 8.0,
        "favorited": 6.0,
        "dislike": 0.0,
    })
    popular_item_boost: float = 3.0
    featured_item_boost: float = 2.0

    # Weather context
    hot_weather_threshold_f: float = 80.0
    cold_weather_threshold_f: float = 50.0
    hot_description_keywords: tuple[str, ...] = ("cold", "iced", "salad", "gazpacho")
    hot_name_keywords: tuple[str, ...] = ("ice cream", "smoothie")
    cold_description_keywords: tuple[str, ...] = ("hot", "warm", "soup", "stew")
    cold_name_keywords: tuple[str, ...] = ("coffee", "tea", "hot chocolate")
    temperature_description_bonus: float = 8.0
    temperature_name_bonus: float = 10.0
    rainy_description_keywords: tuple[str, ...] = ("comfort", "hearty", "soup")
    rainy_name_keywords: tuple[str, ...] = ("pasta",)
    rainy_bonus: float = 6.0

    # Time context
    time_buckets: tuple[TimeBucket, ...] = DEFAULT_TIME_BUCKETS

    # Price fit
    new_user_price_band: tuple[float, float] = (15.0, 25.0)
    new_user_price_score: float = 5.0
    typical_item_share: float = 0.7
    max_price_fit_score: float = 10.0
    value_threshold: float = 0.8
    value_bonus: float = 2.0

    # Confidence
    preference_confidence: int = 30
    dietary_confidence: int = 10
    favorites_confidence: int = 10
    allergen_confidence: int = 5
    per_interaction_confidence: int = 2
    max_interaction_confidence: int = 30
    per_order_confidence: int = 3
    max_order_confidence: int = 30

    # Limits
    default_limit: int = 8
    trending_limit: int = 10
    dietary_limit: int = 8
    trending_recency_boost: float = 10.0


DEFAULT_RECOMMENDATION_POLICY = RecommendationPolicy()
