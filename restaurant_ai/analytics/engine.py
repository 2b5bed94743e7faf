from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Callable

import pandas as pd

from ..errors import NotFoundError
from ..providers import ProviderSet
from ..storage.accessor import DataAccessor, fetch
from ..storage.models import User
from .elasticity import PriceObservation, optimize_item_price
from .forecasting import (
    forecast_demand,
    forecast_revenue,
    loyalty_bonus,
    shift_start,
    staff_for_shift,
)
from .models import (
    ChurnPrediction,
    CustomerSegment,
    PredictionResult,
    PricingOptimization,
    Shift,
    StaffingRecommendation,
)
from .policy import DEFAULT_ANALYTICS_POLICY, AnalyticsPolicy
from .segments import analyze_segments, predict_churn
from .timeseries import orders_frame

logger = logging.getLogger(__name__)


class AnalyticsEngine:
    """Forecasts and customer analytics over a restaurant's order history."""

    def __init__(
        self,
        accessor: DataAccessor,
        policy: AnalyticsPolicy = DEFAULT_ANALYTICS_POLICY,
        providers: ProviderSet | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accessor = accessor
        self.policy = policy
        self.providers = providers or ProviderSet()
        self.clock = clock

    # ── Forecasts ────────────────────────────────────────────────────────

    def predict_demand(
        self, restaurant_id: int, timeframe: str = "1d", target_date: datetime | None = None
    ) -> PredictionResult:
        frame = self._orders(restaurant_id)
        target = target_date or self.clock()
        return self._demand(frame, target, timeframe)

    def predict_revenue(
        self, restaurant_id: int, timeframe: str = "7d", target_date: datetime | None = None
    ) -> PredictionResult:
        frame = self._orders(restaurant_id)
        target = target_date or self.clock()
        bonus = loyalty_bonus(frame, self.clock(), self.policy)
        return forecast_revenue(frame, target, timeframe, bonus, self.policy)

    def predict_staffing_needs(
        self, restaurant_id: int, target_date: date, shifts: list[Shift]
    ) -> list[StaffingRecommendation]:
        frame = self._orders(restaurant_id)
        day = target_date.date() if isinstance(target_date, datetime) else target_date
        results = []
        for shift in shifts:
            demand = self._demand(frame, shift_start(day, shift), self.policy.staffing_window)
            results.append(staff_for_shift(shift, day, demand, self.policy))
        return results

    def _demand(self, frame: pd.DataFrame, target: datetime, timeframe: str) -> PredictionResult:
        weather = self.providers.weather.get_conditions(target)
        game_day = self.providers.events.is_game_day(target.date())
        return forecast_demand(frame, target, timeframe, weather, game_day, self.policy)

    # ── Customers ────────────────────────────────────────────────────────

    def analyze_customer_segments(self, restaurant_id: int) -> list[CustomerSegment]:
        frame = self._orders(restaurant_id)
        customers = self._customers(frame)
        return analyze_segments(frame, customers, self.clock(), self.policy)

    def predict_customer_churn(self, restaurant_id: int) -> list[ChurnPrediction]:
        frame = self._orders(restaurant_id)
        customers = self._customers(frame)
        engagement = {
            uid: self.providers.engagement.get_engagement(user)
            for uid, user in customers.items()
        }
        return predict_churn(frame, customers, engagement, self.clock(), self.policy)

    # ── Menu pricing ─────────────────────────────────────────────────────

    def optimize_menu_pricing(self, restaurant_id: int) -> list[PricingOptimization]:
        self._require_restaurant(restaurant_id)
        items = [i for i in fetch(self.accessor.get_menu_items, restaurant_id) if i.is_available]
        item_ids = {i.id for i in items}

        observations: dict[int, list[PriceObservation]] = defaultdict(list)
        for order in fetch(self.accessor.get_restaurant_orders, restaurant_id):
            seen: set[int] = set()
            for line in fetch(self.accessor.get_order_items, order.id):
                # first line per item per order
                if line.menu_item_id in item_ids and line.menu_item_id not in seen:
                    seen.add(line.menu_item_id)
                    observations[line.menu_item_id].append(
                        PriceObservation(order.created_at, line.quantity, line.price)
                    )

        results = []
        for item in items:
            suggestion = optimize_item_price(item, observations.get(item.id, []), self.policy)
            if suggestion is not None:
                results.append(suggestion)
        results.sort(key=lambda r: (-r.expected_revenue_change, r.menu_item.id))
        return results

    # ── Data access ──────────────────────────────────────────────────────

    def _require_restaurant(self, restaurant_id: int) -> None:
        if fetch(self.accessor.get_restaurant, restaurant_id) is None:
            raise NotFoundError("Restaurant", restaurant_id)

    def _orders(self, restaurant_id: int) -> pd.DataFrame:
        self._require_restaurant(restaurant_id)
        return orders_frame(fetch(self.accessor.get_restaurant_orders, restaurant_id))

    def _customers(self, frame: pd.DataFrame) -> dict[int, User]:
        customers: dict[int, User] = {}
        for user_id in sorted(frame["user_id"].unique()):
            user = fetch(self.accessor.get_user, int(user_id))
            if user is None:
                logger.debug("Order references unknown user %s", user_id)
                continue
            customers[user.id] = user
        return customers
