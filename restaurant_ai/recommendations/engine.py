from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from ..errors import NotFoundError
from ..providers.base import WeatherProvider
from ..providers.fakes import StaticWeatherProvider
from ..storage.accessor import DataAccessor, fetch
from ..storage.models import MenuItem, UserItemInteraction, UserPreference
from .models import (
    DietaryType,
    RecommendationOptions,
    RecommendationResult,
    ScoredItem,
    TrendingTimeframe,
)
from .policy import DEFAULT_RECOMMENDATION_POLICY, RecommendationPolicy
from .scoring import ScoreBoard
from .signals import (
    RecommendationContext,
    behavior_scores,
    collaborative_scores,
    content_scores,
    price_fit_scores,
    timing_scores,
    weather_scores,
)

logger = logging.getLogger(__name__)

SignalFn = Callable[[RecommendationContext, RecommendationPolicy], dict[int, float]]

# (weight key, algorithm label, reasoning line, generator)
_CORE_SIGNALS: tuple[tuple[str, str, str, SignalFn], ...] = (
    ("collaborative", "Collaborative Filtering",
     "Based on similar users' preferences", collaborative_scores),
    ("content", "Content-Based Filtering",
     "Based on your taste preferences and dietary needs", content_scores),
    ("behavior", "Behavior Analysis",
     "Based on your ordering patterns and interactions", behavior_scores),
)
_WEATHER_SIGNAL = ("weather", "Weather Context",
                   "Adjusted for current weather conditions", weather_scores)
_TIMING_SIGNAL = ("timing", "Time Context",
                  "Popular items for current time of day", timing_scores)
_PRICE_SIGNAL = ("price", "Price Optimization",
                 "Optimized for your typical spending range", price_fit_scores)

TRENDING_WINDOWS: dict[str, timedelta] = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}

ANIMAL_PRODUCT_KEYWORDS = ("cheese", "milk", "cream", "butter", "egg", "honey", "dairy")
HIGH_CARB_KEYWORDS = ("pasta", "bread", "rice", "potato", "pizza", "sandwich")
LOW_CARB_KEYWORDS = ("salad", "grilled", "steak", "salmon", "chicken", "vegetables")


def _mentions(item: MenuItem, keywords: tuple[str, ...]) -> bool:
    name = item.name.lower()
    description = (item.description or "").lower()
    return any(k in name or k in description for k in keywords)


def is_low_carb(item: MenuItem) -> bool:
    return not _mentions(item, HIGH_CARB_KEYWORDS) and _mentions(item, LOW_CARB_KEYWORDS)


def recommendation_confidence(
    preference: UserPreference | None,
    interaction_count: int,
    order_count: int,
    policy: RecommendationPolicy = DEFAULT_RECOMMENDATION_POLICY,
) -> int:
    """How much user data backs a personalized list, 0..100."""
    confidence = 0
    if preference is not None:
        confidence += policy.preference_confidence
        if preference.dietary_preferences is not None:
            confidence += policy.dietary_confidence
        if preference.favorite_categories is not None:
            confidence += policy.favorites_confidence
        if preference.allergens is not None:
            confidence += policy.allergen_confidence

    confidence += min(interaction_count * policy.per_interaction_confidence,
                      policy.max_interaction_confidence)
    confidence += min(order_count * policy.per_order_confidence,
                      policy.max_order_confidence)
    return min(confidence, 100)


class RecommendationEngine:
    """Ranks a restaurant's menu for one user by blending weighted signals.

    The engine holds no per-call state. ``policy`` may be swapped between
    calls (the orchestration layer does so when weights are reconfigured).
    """

    def __init__(
        self,
        accessor: DataAccessor,
        policy: RecommendationPolicy = DEFAULT_RECOMMENDATION_POLICY,
        weather_provider: WeatherProvider | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.policy = policy
        self.weather_provider = weather_provider or StaticWeatherProvider()
        self.clock = clock

    def update_weights(self, weights: dict[str, float]) -> None:
        unknown = sorted(set(weights) - set(self.policy.weights))
        if unknown:
            raise ValueError(f"Unknown recommendation weights: {', '.join(unknown)}")
        merged = {**self.policy.weights, **weights}
        self.policy = replace(self.policy, weights=merged)

    # ── Personalized ─────────────────────────────────────────────────────

    def get_personalized_recommendations(
        self,
        user_id: int,
        restaurant_id: int,
        options: RecommendationOptions | None = None,
    ) -> RecommendationResult:
        options = options or RecommendationOptions()
        policy = self.policy
        limit = options.limit or policy.default_limit

        ctx = self._build_context(user_id, restaurant_id, options)

        signals = list(_CORE_SIGNALS)
        if options.include_weather_context:
            signals.append(_WEATHER_SIGNAL)
        if options.include_timing_context:
            signals.append(_TIMING_SIGNAL)
        if options.include_price_optimization:
            signals.append(_PRICE_SIGNAL)

        board = ScoreBoard(item.id for item in ctx.menu_items)
        algorithms: list[str] = []
        reasoning: list[str] = []
        for key, label, reason, generator in signals:
            scores = self._run_signal(label, generator, ctx, policy)
            board.add(key, scores, policy.weights.get(key, 0.0))
            algorithms.append(label)
            reasoning.append(reason)

        by_id = {item.id: item for item in ctx.menu_items}
        ranked = [(item_id, entry) for item_id, entry in board.ranked() if by_id[item_id].is_available]
        top = ranked[:limit]

        return RecommendationResult(
            recommendations=[by_id[item_id] for item_id, _ in top],
            reasoning=reasoning,
            confidence=recommendation_confidence(
                ctx.preference, len(ctx.interactions), len(ctx.orders), policy
            ),
            algorithm=" + ".join(algorithms),
            scores=[
                ScoredItem(menu_item_id=item_id, score=entry.total, contributions=dict(entry.contributions))
                for item_id, entry in top
            ],
        )

    def _build_context(
        self, user_id: int, restaurant_id: int, options: RecommendationOptions
    ) -> RecommendationContext:
        """Fetch everything the signals need so scoring never touches the accessor."""
        accessor = self.accessor
        user = fetch(accessor.get_user, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if fetch(accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        now = self.clock()
        preference = fetch(accessor.get_user_preference, user_id)
        interactions = fetch(accessor.get_user_item_interactions, user_id)
        orders = fetch(accessor.get_user_orders, user_id)
        menu_items = fetch(accessor.get_menu_items, restaurant_id)

        peer_ids: set[int] = set()
        for item in menu_items:
            for interaction in fetch(accessor.get_menu_item_interactions, item.id):
                if interaction.user_id != user_id:
                    peer_ids.add(interaction.user_id)
        peer_interactions: dict[int, list[UserItemInteraction]] = {
            peer_id: fetch(accessor.get_user_item_interactions, peer_id)
            for peer_id in sorted(peer_ids)
        }

        order_items = {order.id: fetch(accessor.get_order_items, order.id) for order in orders}

        item_lookup: dict[int, MenuItem] = {item.id: item for item in menu_items}
        referenced = {i.menu_item_id for i in interactions}
        referenced.update(line.menu_item_id for lines in order_items.values() for line in lines)
        for item_id in sorted(referenced - item_lookup.keys()):
            item = fetch(accessor.get_menu_item, item_id)
            if item is not None:
                item_lookup[item_id] = item

        weather = None
        if options.include_weather_context:
            weather = self.weather_provider.get_conditions(now)

        return RecommendationContext(
            user=user,
            preference=preference,
            interactions=interactions,
            orders=orders,
            menu_items=menu_items,
            now=now,
            peer_interactions=peer_interactions,
            order_items=order_items,
            item_lookup=item_lookup,
            weather=weather,
        )

    @staticmethod
    def _run_signal(
        label: str,
        generator: SignalFn,
        ctx: RecommendationContext,
        policy: RecommendationPolicy,
    ) -> dict[int, float]:
        try:
            return generator(ctx, policy)
        except Exception:
            logger.warning("%s signal failed; contributing nothing", label, exc_info=True)
            return {}

    # ── Trending / dietary ───────────────────────────────────────────────

    def get_trending_items(
        self, restaurant_id: int, timeframe: TrendingTimeframe = "7d"
    ) -> list[MenuItem]:
        """Items with the most (and most recent) interactions inside the window."""
        if fetch(self.accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        policy = self.policy
        window = TRENDING_WINDOWS[timeframe]
        now = self.clock()
        cutoff = now - window
        menu_items = fetch(self.accessor.get_menu_items, restaurant_id)

        scores: dict[int, float] = {}
        for item in menu_items:
            recent = [
                i for i in fetch(self.accessor.get_menu_item_interactions, item.id)
                if i.timestamp >= cutoff
            ]
            score = sum(policy.interaction_weights.get(i.interaction.value, 0.0) for i in recent)
            if recent:
                average_age = sum((now - i.timestamp for i in recent), timedelta()) / len(recent)
                score += max(0.0, policy.trending_recency_boost
                             - (average_age / window) * policy.trending_recency_boost)
            scores[item.id] = score

        ranked = sorted(
            (item for item in menu_items if item.is_available),
            key=lambda item: (-scores[item.id], item.id),
        )
        return ranked[:policy.trending_limit]

    def get_dietary_recommendations(
        self, restaurant_id: int, dietary_type: DietaryType
    ) -> list[MenuItem]:
        if fetch(self.accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        def matches(item: MenuItem) -> bool:
            if dietary_type == "vegetarian":
                return item.is_vegetarian
            if dietary_type == "gluten-free":
                return item.is_gluten_free
            if dietary_type == "vegan":
                return item.is_vegetarian and not _mentions(item, ANIMAL_PRODUCT_KEYWORDS)
            if dietary_type in ("keto", "low-carb"):
                return is_low_carb(item)
            return False

        menu_items = fetch(self.accessor.get_menu_items, restaurant_id)
        return [item for item in menu_items if item.is_available and matches(item)][:self.policy.dietary_limit]
