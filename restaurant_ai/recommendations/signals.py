"""
Recommendation signal generators.

Each generator is a pure function ``(context, policy) -> {menu_item_id: score}``.
All data is fetched into a ``RecommendationContext`` before any of them run.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..providers.base import WeatherConditions
from ..storage.models import (
    InteractionKind,
    MenuItem,
    Order,
    OrderItem,
    User,
    UserItemInteraction,
    UserPreference,
)
from .policy import RecommendationPolicy

_POSITIVE_KINDS = (InteractionKind.liked, InteractionKind.favorited, InteractionKind.ordered)


@dataclass
class RecommendationContext:
    user: User
    preference: UserPreference | None
    interactions: list[UserItemInteraction]
    orders: list[Order]
    menu_items: list[MenuItem]
    now: datetime
    # Full interaction history of every other user who touched this menu
    peer_interactions: dict[int, list[UserItemInteraction]] = field(default_factory=dict)
    # Lines of the target user's orders, by order id
    order_items: dict[int, list[OrderItem]] = field(default_factory=dict)
    # Every menu item referenced by the user's history, any restaurant
    item_lookup: dict[int, MenuItem] = field(default_factory=dict)
    weather: WeatherConditions | None = None


def _text(item: MenuItem) -> tuple[str, str]:
    return item.name.lower(), (item.description or "").lower()


def _any_in(keywords: tuple[str, ...], text: str) -> bool:
    return any(k in text for k in keywords)


def collaborative_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    """Propagate what similar users touched, weighted by Jaccard similarity."""
    user_items = {i.menu_item_id for i in ctx.interactions}
    scores: dict[int, float] = defaultdict(float)

    for peer_id, history in ctx.peer_interactions.items():
        if peer_id == ctx.user.id:
            continue
        peer_items = {i.menu_item_id for i in history}
        union = user_items | peer_items
        if not union:
            continue
        similarity = len(user_items & peer_items) / len(union)
        if similarity <= policy.similarity_threshold:
            continue

        for interaction in history:
            if interaction.menu_item_id in user_items:
                continue
            weight = policy.interaction_weights.get(interaction.interaction.value, 0.0)
            scores[interaction.menu_item_id] += similarity * weight

    return dict(scores)


def content_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    """Preference matches plus similarity to items the user already liked."""
    pref = ctx.preference
    user_allergens = {a.lower() for a in (pref.allergens or [])} if pref else set()
    liked_items = [
        ctx.item_lookup[i.menu_item_id]
        for i in ctx.interactions
        if i.interaction in _POSITIVE_KINDS and i.menu_item_id in ctx.item_lookup
    ]

    scores: dict[int, float] = {}
    for item in ctx.menu_items:
        score = 0.0
        _, description = _text(item)

        if pref:
            diet = pref.dietary_preferences
            if diet:
                if diet.vegetarian and item.is_vegetarian:
                    score += policy.dietary_bonus
                if diet.gluten_free and item.is_gluten_free:
                    score += policy.dietary_bonus
                if diet.seafood and item.is_seafood:
                    score += policy.dietary_bonus

            if pref.favorite_categories and item.category_id in pref.favorite_categories:
                score += policy.favorite_category_bonus

            if user_allergens and user_allergens & {a.lower() for a in item.allergens}:
                score += policy.allergen_penalty

            taste = pref.taste_preferences
            if taste:
                if taste.spicy and "spicy" in description:
                    score += policy.taste_bonus
                if taste.sweet and "sweet" in description:
                    score += policy.taste_bonus

        for liked in liked_items:
            if liked.id == item.id:
                continue
            if liked.category_id == item.category_id:
                score += policy.similar_category_bonus
            if abs(item.price - liked.price) < policy.similar_price_window:
                score += policy.similar_price_bonus
            if item.is_vegetarian == liked.is_vegetarian:
                score += policy.same_dietary_flag_bonus
            if item.is_gluten_free == liked.is_gluten_free:
                score += policy.same_dietary_flag_bonus

        scores[item.id] = score

    return scores


def behavior_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    """Favor categories the user keeps ordering and items touched recently."""
    category_frequency: dict[int, int] = defaultdict(int)
    for order in ctx.orders:
        for line in ctx.order_items.get(order.id, []):
            item = ctx.item_lookup.get(line.menu_item_id)
            if item:
                category_frequency[item.category_id] += line.quantity

    scores: dict[int, float] = {}
    for item in ctx.menu_items:
        score = category_frequency.get(item.category_id, 0) * policy.category_frequency_multiplier
        if item.is_popular:
            score += policy.popular_item_boost
        if item.is_featured:
            score += policy.featured_item_boost
        scores[item.id] = score

    cutoff = ctx.now - timedelta(days=policy.recency_window_days)
    for interaction in ctx.interactions:
        if interaction.timestamp <= cutoff:
            continue
        boost = policy.recency_boosts.get(interaction.interaction.value, 0.0)
        scores[interaction.menu_item_id] = scores.get(interaction.menu_item_id, 0.0) + boost

    return scores


def weather_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    weather = ctx.weather
    if weather is None:
        return {}

    scores: dict[int, float] = {}
    for item in ctx.menu_items:
        name, description = _text(item)
        score = 0.0

        if weather.temperature_f > policy.hot_weather_threshold_f:
            if _any_in(policy.hot_description_keywords, description):
                score += policy.temperature_description_bonus
            if _any_in(policy.hot_name_keywords, name):
                score += policy.temperature_name_bonus
        elif weather.temperature_f < policy.cold_weather_threshold_f:
            if _any_in(policy.cold_description_keywords, description):
                score += policy.temperature_description_bonus
            if _any_in(policy.cold_name_keywords, name):
                score += policy.temperature_name_bonus

        if weather.condition == "rainy":
            if (_any_in(policy.rainy_description_keywords, description)
                    or _any_in(policy.rainy_name_keywords, name)):
                score += policy.rainy_bonus

        scores[item.id] = score

    return scores


def timing_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    hour = ctx.now.hour
    bucket = next((b for b in policy.time_buckets if b.contains(hour)), None)

    scores: dict[int, float] = {}
    for item in ctx.menu_items:
        score = 0.0
        if bucket is not None:
            name, description = _text(item)
            if (item.category_id in bucket.category_ids
                    or _any_in(bucket.name_keywords, name)
                    or _any_in(bucket.description_keywords, description)):
                score = bucket.bonus
        scores[item.id] = score

    return scores


def price_fit_scores(ctx: RecommendationContext, policy: RecommendationPolicy) -> dict[int, float]:
    """Closeness of each price to what the user typically spends per item."""
    if not ctx.orders:
        low, high = policy.new_user_price_band
        return {
            item.id: policy.new_user_price_score
            for item in ctx.menu_items
            if low <= item.price <= high
        }

    average_order = sum(o.total_price for o in ctx.orders) / len(ctx.orders)
    typical = average_order * policy.typical_item_share
    if typical <= 0:
        return {}

    scores: dict[int, float] = {}
    for item in ctx.menu_items:
        distance = abs(item.price - typical) / typical
        score = max(0.0, policy.max_price_fit_score - distance * policy.max_price_fit_score)
        if item.price < typical * policy.value_threshold:
            score += policy.value_bonus
        scores[item.id] = score

    return scores
