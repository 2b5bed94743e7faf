"""
Dynamic pricing engine.

Responsibilities:
- Quote a bounded, demand/time/weather/inventory/season-adjusted price
  for a menu item, valid for a short window.
- Suggest price moves to restaurant owners.
- Start pricing A/B tests for a menu item.
"""
from .engine import PricingEngine, price_band, pricing_confidence
from .models import DynamicPrice, PriceAdjustment, PriceRecommendation, PricingOptions
from .policy import DEFAULT_PRICING_POLICY, KeywordRule, PricingPolicy, SeasonRule

__all__ = [
    "DEFAULT_PRICING_POLICY",
    "DynamicPrice",
    "KeywordRule",
    "PriceAdjustment",
    "PriceRecommendation",
    "PricingEngine",
    "PricingOptions",
    "PricingPolicy",
    "SeasonRule",
    "price_band",
    "pricing_confidence",
]
