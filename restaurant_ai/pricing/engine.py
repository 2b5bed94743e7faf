from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from ..ab_testing.experiments import PricingExperimentRegistry, PricingTest
from ..errors import NotFoundError
from ..providers import ProviderSet
from ..storage.accessor import DataAccessor, fetch
from ..storage.models import MenuItem
from ..utils import clamp, round_half_up
from .models import (
    DynamicPrice,
    ExpectedImpact,
    PriceAdjustment,
    PriceRecommendation,
    PricingOptions,
)
from .policy import DEFAULT_PRICING_POLICY, PricingPolicy
from .signals import (
    NEUTRAL,
    FactorResult,
    ItemSale,
    day_of_week_adjustment,
    demand_adjustment,
    inventory_adjustment,
    seasonal_adjustment,
    time_of_day_adjustment,
    weather_adjustment,
)

logger = logging.getLogger(__name__)

PRICE_INCREASE_IMPACT = ExpectedImpact(
    demand_change="Expected to decrease by 5-15%",
    revenue_change="Expected to increase by 3-8%",
    reasoning="Price increase justified by high demand factors",
)
PRICE_DECREASE_IMPACT = ExpectedImpact(
    demand_change="Expected to increase by 10-25%",
    revenue_change="Expected to increase by 5-12%",
    reasoning="Price reduction to stimulate demand and move inventory",
)


def pricing_confidence(adjustments: list[PriceAdjustment], policy: PricingPolicy = DEFAULT_PRICING_POLICY) -> int:
    confidence = policy.base_confidence + len(adjustments) * policy.per_factor_confidence
    if sum(abs(a.percentage) for a in adjustments) > policy.volatile_total_pct:
        confidence -= policy.volatility_penalty
    return int(clamp(confidence, 0, 100))


def price_band(original_price: float, policy: PricingPolicy = DEFAULT_PRICING_POLICY) -> tuple[float, float]:
    """Lowest and highest quotable prices, in whole cents inside the band."""
    low = math.ceil(round(original_price * policy.min_multiplier * 100, 6)) / 100
    high = math.floor(round(original_price * policy.max_multiplier * 100, 6)) / 100
    return low, high


class PricingEngine:
    """Quotes a demand-adjusted price for one menu item.

    Factor percentages are applied additively to the base price, then the
    total is clamped to ``[min_multiplier, max_multiplier] × base``.
    """

    def __init__(
        self,
        accessor: DataAccessor,
        policy: PricingPolicy = DEFAULT_PRICING_POLICY,
        providers: ProviderSet | None = None,
        experiments: PricingExperimentRegistry | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.policy = policy
        self.providers = providers or ProviderSet()
        self.experiments = experiments or PricingExperimentRegistry(clock=clock)
        self.clock = clock

    def update_band(self, max_increase: float, max_decrease: float) -> None:
        self.policy = replace(
            self.policy,
            min_multiplier=1 - max_decrease,
            max_multiplier=1 + max_increase,
        )

    def get_dynamic_price(
        self,
        menu_item_id: int,
        restaurant_id: int,
        options: PricingOptions | None = None,
    ) -> DynamicPrice:
        options = options or PricingOptions()
        policy = self.policy
        item = fetch(self.accessor.get_menu_item, menu_item_id)
        if item is None or item.restaurant_id != restaurant_id:
            raise NotFoundError("Menu item", menu_item_id)

        now = self.clock()
        sales = self._recent_sales(item, now)
        weather = self.providers.weather.get_conditions(now) if options.include_weather_adjustment else None
        inventory = self.providers.inventory.get_inventory(item) if options.include_inventory_adjustment else None

        factors: list[tuple[str, Callable[[], FactorResult]]] = [
            ("Demand", lambda: demand_adjustment(sales, now, policy)),
            ("Time of Day", lambda: time_of_day_adjustment(now, policy)),
        ]
        if weather is not None:
            factors.append(("Weather", lambda: weather_adjustment(item, weather, policy)))
        if inventory is not None:
            factors.append(("Inventory Level", lambda: inventory_adjustment(inventory, policy)))
        if options.include_seasonal_adjustment:
            factors.append(("Seasonal", lambda: seasonal_adjustment(item, now, policy)))
        factors.append(("Day of Week", lambda: day_of_week_adjustment(now, policy)))

        original = item.price
        running = original
        adjustments: list[PriceAdjustment] = []
        for name, compute in factors:
            result = self._run_factor(name, compute)
            if result.percentage == 0:
                continue
            amount = original * result.percentage / 100
            running += amount
            adjustments.append(PriceAdjustment(
                factor=name,
                adjustment=round_half_up(amount, 2),
                percentage=result.percentage,
                reasoning=result.reasoning,
            ))

        low, high = price_band(original, policy)
        bounded = clamp(running, original * policy.min_multiplier, original * policy.max_multiplier)
        dynamic = clamp(round_half_up(bounded, 2), low, high)

        return DynamicPrice(
            menu_item_id=item.id,
            original_price=round_half_up(original, 2),
            dynamic_price=dynamic,
            adjustments=adjustments,
            confidence=pricing_confidence(adjustments, policy),
            valid_until=now + timedelta(minutes=policy.validity_minutes),
        )

    def _recent_sales(self, item: MenuItem, now: datetime) -> list[ItemSale]:
        cutoff = now - timedelta(days=self.policy.demand_window_days)
        sales = []
        for order in fetch(self.accessor.get_restaurant_orders, item.restaurant_id):
            if order.created_at < cutoff:
                continue
            for line in fetch(self.accessor.get_order_items, order.id):
                if line.menu_item_id == item.id:
                    sales.append(ItemSale(order.created_at, line.quantity))
                    break
        return sales

    @staticmethod
    def _run_factor(name: str, compute: Callable[[], FactorResult]) -> FactorResult:
        try:
            return compute()
        except Exception:
            logger.warning("%s pricing factor failed; skipping it", name, exc_info=True)
            return NEUTRAL

    # ── Owner tools ──────────────────────────────────────────────────────

    def get_price_optimization_recommendations(self, restaurant_id: int) -> list[PriceRecommendation]:
        """Items whose current quote moves the price by more than the threshold."""
        if fetch(self.accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

        recommendations: list[PriceRecommendation] = []
        for item in fetch(self.accessor.get_menu_items, restaurant_id):
            if not item.is_available:
                continue
            quote = self.get_dynamic_price(item.id, restaurant_id)
            change = quote.dynamic_price - quote.original_price
            if abs(change) <= self.policy.min_recommended_change:
                continue
            recommendations.append(PriceRecommendation(
                menu_item=item,
                current_price=quote.original_price,
                recommended_price=quote.dynamic_price,
                expected_impact=PRICE_INCREASE_IMPACT if change > 0 else PRICE_DECREASE_IMPACT,
                confidence=quote.confidence,
            ))

        recommendations.sort(key=lambda r: (-r.confidence, r.menu_item.id))
        return recommendations[:self.policy.optimization_limit]

    def create_pricing_ab_test(
        self, menu_item_id: int, test_prices: list[float], duration_days: int = 7
    ) -> PricingTest:
        item = fetch(self.accessor.get_menu_item, menu_item_id)
        if item is None:
            raise NotFoundError("Menu item", menu_item_id)
        test = self.experiments.create(item.id, item.price, test_prices, duration_days)
        logger.info("Created pricing test %s for item %s", test.test_id, item.id)
        return test
