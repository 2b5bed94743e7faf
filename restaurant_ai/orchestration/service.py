from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable

from ..analytics.engine import AnalyticsEngine
from ..chat.service import ChatbotService
from ..errors import NotFoundError
from ..pricing.engine import PricingEngine
from ..recommendations.engine import RecommendationEngine
from ..storage.accessor import DataAccessor, fetch
from ..telemetry.aggregator import compute_performance_metrics
from ..telemetry.feedback import FeedbackStore
from ..telemetry.store import EventStore
from .cache import TTLCache
from .config import AIConfiguration

logger = logging.getLogger(__name__)

# Alert / suggestion thresholds
MANY_PRICING_OPPORTUNITIES = 5
LOW_DEMAND_CONFIDENCE = 60
MANY_HIGH_RISK_CUSTOMERS = 10
MIN_SATISFACTION_RATE = 70.0
MAX_CHATBOT_FALLBACK_RATE = 30.0
HIGH_DEMAND = 50
LOW_DEMAND = 10


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


class OrchestrationService:
    """Holds the AI configuration and builds the owner dashboard.

    The only stateful piece of the engine layer: it owns the configuration
    and a short-TTL cache of dashboards keyed by restaurant id, cleared on
    every configuration change.
    """

    def __init__(
        self,
        accessor: DataAccessor,
        recommendations: RecommendationEngine,
        pricing: PricingEngine,
        analytics: AnalyticsEngine,
        events: EventStore,
        feedback: FeedbackStore,
        chatbot: ChatbotService | None = None,
        config: AIConfiguration | None = None,
        cache_ttl: float = 300.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.recommendations = recommendations
        self.pricing = pricing
        self.analytics = analytics
        self.events = events
        self.feedback = feedback
        self.chatbot = chatbot
        self.cache = TTLCache(ttl=cache_ttl)
        self.clock = clock
        self._config_lock = threading.Lock()
        self._config = config or AIConfiguration()
        # bumped on every update; dashboards built under an older generation are not cached
        self._config_generation = 0
        self._apply(self._config)

    # ── Configuration ────────────────────────────────────────────────────

    def get_configuration(self) -> AIConfiguration:
        with self._config_lock:
            return self._config.model_copy(deep=True)

    def update_configuration(self, updates: dict[str, Any]) -> AIConfiguration:
        with self._config_lock:
            config = self._config.merged(updates)
            self._config = config
            self._apply(config)
            self._config_generation += 1
            self.cache.clear()
        logger.info("AI configuration updated: %s", sorted(updates))
        return config.model_copy(deep=True)

    def _apply(self, config: AIConfiguration) -> None:
        """Push tunable values into the engines' policies."""
        self.recommendations.update_weights(config.recommendations.default_weights)
        self.pricing.update_band(config.pricing.max_price_increase, config.pricing.max_price_decrease)
        if self.chatbot is not None:
            self.chatbot.max_history = config.chatbot.max_conversation_length

    # ── Dashboard ────────────────────────────────────────────────────────

    def get_comprehensive_insights(self, restaurant_id: int) -> dict[str, Any]:
        cache_key = f"insights_{restaurant_id}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        if fetch(self.accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        with self._config_lock:
            config = self._config.model_copy(deep=True)
            generation = self._config_generation
        rec_on = config.recommendations.enabled
        pricing_on = config.pricing.enabled
        analytics_on = config.analytics.enabled

        with ThreadPoolExecutor(max_workers=6, thread_name_prefix="insights") as pool:
            trending_f = pool.submit(self.recommendations.get_trending_items, restaurant_id) if rec_on else None
            pricing_f = (pool.submit(self.pricing.get_price_optimization_recommendations, restaurant_id)
                         if pricing_on else None)
            demand_f = pool.submit(self.analytics.predict_demand, restaurant_id, "1d") if analytics_on else None
            revenue_f = pool.submit(self.analytics.predict_revenue, restaurant_id, "7d") if analytics_on else None
            segments_f = (pool.submit(self.analytics.analyze_customer_segments, restaurant_id)
                          if analytics_on else None)
            churn_f = pool.submit(self.analytics.predict_customer_churn, restaurant_id) if analytics_on else None

            trending = trending_f.result() if trending_f else []
            pricing_opts = pricing_f.result() if pricing_f else []
            demand = demand_f.result() if demand_f else None
            revenue = revenue_f.result() if revenue_f else None
            segments = segments_f.result() if segments_f else []
            churn = churn_f.result() if churn_f else []

        performance = self.get_performance_metrics()
        churn_counts = {
            level.lower(): sum(1 for c in churn if c.churn_risk == level)
            for level in ("High", "Medium", "Low")
        }
        alerts, suggestions = self._alerts_and_suggestions(
            len(pricing_opts), demand, churn_counts["high"], len(churn), performance
        )

        insights = {
            "recommendations": {
                "trending": _dump(trending),
                "total_trending_items": len(trending),
                "last_updated": self.clock().isoformat(),
            },
            "pricing": {
                "optimizations": _dump(pricing_opts),
                "total_opportunities": len(pricing_opts),
                "potential_revenue": round(
                    sum(o.recommended_price - o.current_price for o in pricing_opts), 2
                ),
            },
            "analytics": {
                "demand": _dump(demand),
                "revenue": _dump(revenue),
                "customer_segments": [
                    {"name": s.name, "count": len(s.customers), "characteristics": s.characteristics}
                    for s in segments
                ],
                "churn_risk": churn_counts,
            },
            "performance": performance,
            "alerts": alerts,
            "suggestions": suggestions,
        }
        with self._config_lock:
            if generation == self._config_generation:
                self.cache.set(cache_key, insights)
        return insights

    def get_performance_metrics(self) -> dict[str, Any]:
        return compute_performance_metrics(self.events.get_events(), self.feedback.get_feedback())

    @staticmethod
    def _alerts_and_suggestions(
        opportunities: int,
        demand: Any,
        high_risk: int,
        churn_total: int,
        performance: dict[str, Any],
    ) -> tuple[list[str], list[str]]:
        alerts: list[str] = []
        suggestions: list[str] = []

        if opportunities > MANY_PRICING_OPPORTUNITIES:
            alerts.append(f"{opportunities} menu items have significant pricing optimization opportunities")
        if demand is not None and demand.confidence < LOW_DEMAND_CONFIDENCE:
            alerts.append("Low confidence in demand predictions - consider collecting more data")
        if high_risk > MANY_HIGH_RISK_CUSTOMERS:
            alerts.append(f"{high_risk} customers are at high risk of churning")
        if performance["feedback_summary"]["total"] and \
                performance["recommendation_satisfaction_rate"] < MIN_SATISFACTION_RATE:
            alerts.append(f"Recommendation satisfaction is below target ({MIN_SATISFACTION_RATE:.0f}%)")
        if performance["chatbot_fallback_rate"] > MAX_CHATBOT_FALLBACK_RATE:
            alerts.append("High chatbot fallback rate - consider extending intent coverage")

        if opportunities > 0:
            suggestions.append("Review pricing optimization recommendations to increase revenue")
        if churn_total > 0:
            suggestions.append("Implement retention campaigns for at-risk customers")
        if demand is not None and demand.value:
            if demand.value > HIGH_DEMAND:
                suggestions.append("High demand predicted - consider increasing staff and inventory")
            elif demand.value < LOW_DEMAND:
                suggestions.append("Low demand predicted - consider promotional campaigns")

        return alerts, suggestions

    # ── Maintenance ──────────────────────────────────────────────────────

    def run_optimization_tasks(self, restaurant_id: int) -> dict[str, Any]:
        """Run each enabled refresh task; one failing task does not stop the rest."""
        config = self.get_configuration()
        tasks: list[tuple[str, str, Callable[[], dict[str, Any]]]] = []

        if config.recommendations.enabled:
            tasks.append(("trending_items_update", "trending_update", lambda: {
                "count": len(self.recommendations.get_trending_items(restaurant_id)),
            }))
        if config.pricing.enabled:
            tasks.append(("pricing_optimization", "pricing_optimization", lambda: {
                "opportunities": len(self.pricing.get_price_optimization_recommendations(restaurant_id)),
            }))
        if config.analytics.enabled:
            def churn_task() -> dict[str, Any]:
                predictions = self.analytics.predict_customer_churn(restaurant_id)
                return {
                    "high_risk": sum(1 for p in predictions if p.churn_risk == "High"),
                    "total": len(predictions),
                }
            tasks.append(("churn_analysis", "churn_analysis", churn_task))
        tasks.append(("performance_monitoring", "performance_metrics", self.get_performance_metrics))

        tasks_run: list[str] = []
        results: dict[str, Any] = {}
        errors: list[str] = []
        for task_name, result_key, task in tasks:
            try:
                result = task()
            except Exception as exc:
                logger.warning("Optimization task %s failed", task_name, exc_info=True)
                errors.append(f"{task_name} failed: {exc}")
                continue
            if result_key != "performance_metrics":
                result["updated"] = self.clock().isoformat()
            results[result_key] = result
            tasks_run.append(task_name)

        return {"tasks_run": tasks_run, "results": results, "errors": errors}

    def get_system_health(self) -> dict[str, Any]:
        config = self.get_configuration()
        checked = self.clock().isoformat()

        def status(enabled: bool) -> str:
            return "operational" if enabled else "disabled"

        services = {
            "recommendations": {
                "status": status(config.recommendations.enabled),
                "last_check": checked,
                "metrics": {
                    "algorithms_active": len(config.recommendations.algorithms),
                    "refresh_interval": config.recommendations.refresh_interval,
                },
            },
            "pricing": {
                "status": status(config.pricing.enabled),
                "last_check": checked,
                "metrics": {
                    "max_price_increase": config.pricing.max_price_increase,
                    "max_price_decrease": config.pricing.max_price_decrease,
                    "update_frequency": config.pricing.update_frequency,
                },
            },
            "analytics": {
                "status": status(config.analytics.enabled),
                "last_check": checked,
                "metrics": {
                    "prediction_horizon": config.analytics.prediction_horizon,
                    "confidence_threshold": config.analytics.confidence_threshold,
                },
            },
            "chatbot": {
                "status": status(config.chatbot.enabled),
                "last_check": checked,
                "metrics": {
                    "max_conversation_length": config.chatbot.max_conversation_length,
                    "confidence_threshold": config.chatbot.confidence_threshold,
                },
            },
        }

        recommendations: list[str] = []
        operational = sum(1 for s in services.values() if s["status"] == "operational")
        if operational < 2:
            overall = "warning"
            recommendations.append("Most AI services are disabled - consider enabling for better insights")
        else:
            overall = "healthy"

        return {
            "overall": overall,
            "services": services,
            "cache": self.cache.stats(),
            "recommendations": recommendations,
        }

    def export_data(self, restaurant_id: int) -> dict[str, Any]:
        insights = self.get_comprehensive_insights(restaurant_id)
        return {
            "config": self.get_configuration().model_dump(),
            "performance": self.get_performance_metrics(),
            "insights": insights,
            "exported_at": self.clock().isoformat(),
        }
