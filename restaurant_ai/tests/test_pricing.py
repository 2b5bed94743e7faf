from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from restaurant_ai.errors import NotFoundError
from restaurant_ai.pricing import (
    DEFAULT_PRICING_POLICY,
    PricingEngine,
    PricingOptions,
    price_band,
    pricing_confidence,
)
from restaurant_ai.pricing.models import PriceAdjustment
from restaurant_ai.pricing.signals import (
    ItemSale,
    day_of_week_adjustment,
    demand_adjustment,
    seasonal_adjustment,
    time_of_day_adjustment,
    weather_adjustment,
)
from restaurant_ai.providers import (
    InventorySnapshot,
    ProviderSet,
    StaticInventoryProvider,
    StaticWeatherProvider,
    WeatherConditions,
)
from restaurant_ai.storage.models import MenuItem

POLICY = DEFAULT_PRICING_POLICY

SATURDAY_LUNCH = datetime(2024, 3, 16, 12, 0)
MONDAY_MORNING = datetime(2024, 3, 11, 8, 0)
MONDAY_LATE = datetime(2024, 3, 11, 23, 0)


def _item(name: str, description: str = "", price: float = 10.0) -> MenuItem:
    return MenuItem(id=100, name=name, description=description, price=price, category_id=1, restaurant_id=1)


# ── Dynamic price ────────────────────────────────────────────────────────


class TestDynamicPrice:
    def test_neutral_conditions_keep_base_price(self, pricing_engine, clock):
        quote = pricing_engine.get_dynamic_price(1, 1)
        assert quote.original_price == 20.0
        assert quote.dynamic_price == 20.0
        assert quote.adjustments == []
        assert quote.confidence == 50
        assert quote.valid_until == clock.now + timedelta(minutes=30)

    def test_weekend_peak_adds_time_and_day_factors(self, pricing_engine, clock):
        clock.now = SATURDAY_LUNCH
        quote = pricing_engine.get_dynamic_price(1, 1)

        assert quote.dynamic_price == 22.8
        assert [(a.factor, a.percentage, a.adjustment) for a in quote.adjustments] == [
            ("Time of Day", 8.0, 1.6),
            ("Day of Week", 6.0, 1.2),
        ]
        assert quote.adjustments[0].reasoning == "Weekend peak hours"
        assert quote.confidence == 66

    def test_zero_factors_are_omitted(self, pricing_engine, clock):
        # Morning rush (+3) and early bird (-3) cancel out
        clock.now = MONDAY_MORNING
        quote = pricing_engine.get_dynamic_price(1, 1)
        assert [a.factor for a in quote.adjustments] == ["Day of Week"]
        assert quote.dynamic_price == 19.2

    def test_price_is_clamped_to_max_multiplier(self, pricing_engine, clock):
        clock.now = SATURDAY_LUNCH
        pricing_engine.policy = replace(POLICY, max_multiplier=1.02)
        assert pricing_engine.get_dynamic_price(1, 1).dynamic_price == 20.4

    def test_price_is_clamped_to_min_multiplier(self, accessor, clock):
        clock.now = MONDAY_LATE
        engine = PricingEngine(
            accessor,
            policy=replace(POLICY, min_multiplier=0.9),
            providers=ProviderSet(inventory=StaticInventoryProvider(level=0.9)),
            clock=clock,
        )
        quote = engine.get_dynamic_price(1, 1)
        assert sum(a.percentage for a in quote.adjustments) == -12.0
        assert quote.dynamic_price == 18.0

    def test_price_stays_inside_band_all_week(self, pricing_engine, clock):
        for day in range(11, 18):
            for hour in range(24):
                clock.now = datetime(2024, 3, day, hour, 15)
                price = pricing_engine.get_dynamic_price(1, 1).dynamic_price
                assert 16.0 <= price <= 25.0

    def test_critical_inventory(self, accessor, clock):
        inventory = StaticInventoryProvider(overrides={1: InventorySnapshot(level=0.1, trend="decreasing")})
        engine = PricingEngine(accessor, providers=ProviderSet(inventory=inventory), clock=clock)

        quote = engine.get_dynamic_price(1, 1)
        assert quote.dynamic_price == 22.0
        assert quote.adjustments[0].factor == "Inventory Level"
        assert quote.adjustments[0].reasoning == "Limited inventory available, decreasing inventory trend"

    def test_disabled_weather_factor_is_skipped(self, accessor, clock):
        chilled = _item("Iced Lemonade", "cold and iced", price=5.0)
        accessor.add_menu_item(chilled)
        hot = StaticWeatherProvider(WeatherConditions(temperature_f=95.0, condition="sunny"))
        engine = PricingEngine(accessor, providers=ProviderSet(weather=hot), clock=clock)

        with_weather = engine.get_dynamic_price(100, 1)
        without = engine.get_dynamic_price(100, 1, PricingOptions(include_weather_adjustment=False))

        assert [a.factor for a in with_weather.adjustments] == ["Weather"]
        assert with_weather.dynamic_price == 5.3
        assert without.adjustments == []

    def test_failing_factor_is_skipped(self, pricing_engine, clock):
        clock.now = datetime(2024, 3, 11, 15, 30)
        with patch("restaurant_ai.pricing.engine.day_of_week_adjustment", side_effect=RuntimeError("boom")):
            quote = pricing_engine.get_dynamic_price(1, 1)
        assert quote.adjustments == []
        assert quote.dynamic_price == 20.0

    def test_unknown_item(self, pricing_engine):
        with pytest.raises(NotFoundError):
            pricing_engine.get_dynamic_price(999, 1)

    def test_item_of_another_restaurant(self, pricing_engine):
        with pytest.raises(NotFoundError):
            pricing_engine.get_dynamic_price(7, 1)

    def test_recent_sales_raise_demand(self, pricing_engine, clock, place_order):
        for minutes in (10, 20, 30):
            place_order(4, clock.now - timedelta(minutes=minutes), lines=[(1, 1, 20.0)])
        quote = pricing_engine.get_dynamic_price(1, 1)
        assert quote.adjustments[0].factor == "Demand"
        assert quote.adjustments[0].percentage == 15.0
        assert quote.dynamic_price == 23.0


# ── Factors ──────────────────────────────────────────────────────────────


class TestFactors:
    def test_demand_surge(self):
        now = datetime(2024, 3, 12, 15, 30)
        sales = [ItemSale(now - timedelta(minutes=30), 1)] * 3 + [ItemSale(now - timedelta(days=3), 1)] * 4
        result = demand_adjustment(sales, now, POLICY)
        assert result.percentage == 15.0
        assert result.reasoning == "High recent demand detected, Above average daily demand"

    def test_slow_demand(self):
        now = datetime(2024, 3, 12, 15, 30)
        sales = [ItemSale(now - timedelta(days=2), 1)] * 14
        result = demand_adjustment(sales, now, POLICY)
        assert result.percentage == -3.0
        assert result.reasoning == "Lower than average demand"

    def test_no_sales_is_neutral(self):
        assert demand_adjustment([], datetime(2024, 3, 12, 15, 30), POLICY).percentage == 0.0

    @pytest.mark.parametrize("when, expected", [
        (datetime(2024, 3, 12, 12, 0), 5.0),
        (SATURDAY_LUNCH, 8.0),
        (datetime(2024, 3, 12, 23, 0), -5.0),
        (datetime(2024, 3, 12, 15, 30), 0.0),
        (datetime(2024, 3, 16, 8, 0), 0.0),
    ])
    def test_time_of_day(self, when, expected):
        assert time_of_day_adjustment(when, POLICY).percentage == expected

    def test_hot_weather(self):
        hot = WeatherConditions(temperature_f=90.0, condition="sunny")
        assert weather_adjustment(_item("Iced Tea", "cold brew"), hot, POLICY).percentage == 6.0
        assert weather_adjustment(_item("Tomato Soup", "hot soup"), hot, POLICY).percentage == -4.0

    def test_cold_weather(self):
        cold = WeatherConditions(temperature_f=40.0, condition="cloudy")
        assert weather_adjustment(_item("Chili", "warm and hearty"), cold, POLICY).percentage == 5.0
        assert weather_adjustment(_item("House Salad"), cold, POLICY).percentage == -3.0

    def test_rain_adds_comfort_boost(self):
        rain = WeatherConditions(temperature_f=60.0, condition="rainy")
        result = weather_adjustment(_item("Penne Pasta", "tomato sauce"), rain, POLICY)
        assert result.percentage == 4.0
        assert result.reasoning == "Comfort food demand due to rainy weather"

    def test_seasonal(self):
        assert seasonal_adjustment(_item("Garden Salad"), datetime(2024, 4, 2), POLICY).percentage == 3.0
        assert seasonal_adjustment(_item("Steak", "grilled"), datetime(2024, 7, 2), POLICY).percentage == 4.0
        assert seasonal_adjustment(_item("Steak", "grilled"), datetime(2024, 1, 2), POLICY).percentage == 0.0

    def test_day_of_week(self):
        assert day_of_week_adjustment(datetime(2024, 3, 11), POLICY).percentage == -4.0
        tuesday = day_of_week_adjustment(datetime(2024, 3, 12), POLICY)
        assert tuesday.percentage == 0.0
        assert tuesday.reasoning == "Standard Tuesday pricing"


class TestHelpers:
    def test_price_band_is_whole_cents(self):
        assert price_band(9.99) == (8.0, 12.48)
        assert price_band(20.0) == (16.0, 25.0)

    def test_confidence_volatility_penalty(self):
        calm = [PriceAdjustment(factor="A", adjustment=1.0, percentage=5.0, reasoning="")]
        volatile = [
            PriceAdjustment(factor="A", adjustment=1.0, percentage=12.0, reasoning=""),
            PriceAdjustment(factor="B", adjustment=1.0, percentage=-10.0, reasoning=""),
        ]
        assert pricing_confidence([]) == 50
        assert pricing_confidence(calm) == 58
        assert pricing_confidence(volatile) == 50 + 16 - 10

    def test_update_band(self, pricing_engine):
        pricing_engine.update_band(0.10, 0.05)
        assert pricing_engine.policy.max_multiplier == pytest.approx(1.10)
        assert pricing_engine.policy.min_multiplier == pytest.approx(0.95)


# ── Owner tools ──────────────────────────────────────────────────────────


class TestOptimization:
    def test_no_recommendations_in_neutral_conditions(self, pricing_engine):
        assert pricing_engine.get_price_optimization_recommendations(1) == []

    def test_weekend_peak_recommends_increases(self, pricing_engine, clock):
        clock.now = SATURDAY_LUNCH
        recs = pricing_engine.get_price_optimization_recommendations(1)

        assert [r.menu_item.id for r in recs] == [1, 2, 3, 4, 5]
        first = recs[0]
        assert first.current_price == 20.0
        assert first.recommended_price == 22.8
        assert first.expected_impact.revenue_change == "Expected to increase by 3-8%"

    def test_unknown_restaurant(self, pricing_engine):
        with pytest.raises(NotFoundError):
            pricing_engine.get_price_optimization_recommendations(404)

    def test_create_ab_test(self, pricing_engine, clock):
        test = pricing_engine.create_pricing_ab_test(1, [18.0, 22.0], duration_days=14)
        assert test.test_id.startswith("pricing_test_1_")
        assert test.original_price == 20.0
        assert test.test_prices == [18.0, 22.0]
        assert test.end_date == clock.now + timedelta(days=14)
        assert test.status == "active"

    def test_ab_test_unknown_item(self, pricing_engine):
        with pytest.raises(NotFoundError):
            pricing_engine.create_pricing_ab_test(999, [10.0])
