"""
Menu recommendation engine.

Responsibilities:
- Blend collaborative, content, behavior, weather, timing and price-fit
  signals into one weighted score per menu item.
- Rank available items and explain the ranking (reasoning + per-signal
  contributions).
- Serve trending and dietary-filtered lists for a restaurant.
"""
from .engine import RecommendationEngine, recommendation_confidence
from .models import RecommendationOptions, RecommendationResult, ScoredItem
from .policy import DEFAULT_RECOMMENDATION_POLICY, RecommendationPolicy, TimeBucket

__all__ = [
    "DEFAULT_RECOMMENDATION_POLICY",
    "RecommendationEngine",
    "RecommendationOptions",
    "RecommendationPolicy",
    "RecommendationResult",
    "ScoredItem",
    "TimeBucket",
    "recommendation_confidence",
]
