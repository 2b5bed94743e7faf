"""
Predictive analytics.

Responsibilities:
- Forecast demand and revenue from trailing order history (trend +
  seasonality + external factors).
- Size shifts from forecast demand.
- Segment customers and score churn risk.
- Suggest elasticity-based menu price moves.
"""
from .engine import AnalyticsEngine
from .models import (
    ChurnPrediction,
    CustomerSegment,
    PredictionResult,
    PricingOptimization,
    Shift,
    StaffingRecommendation,
)
from .policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy

__all__ = [
    "AnalyticsEngine",
    "AnalyticsPolicy",
    "ChurnPrediction",
    "CustomerSegment",
    "DEFAULT_ANALYTICS_POLICY",
    "PredictionResult",
    "PricingOptimization",
    "Shift",
    "StaffingRecommendation",
]
