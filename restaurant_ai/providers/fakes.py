"""
Static and simulated signal providers.

Static providers return fixed values and are what tests inject. Simulated
providers reproduce the randomised stand-ins the platform used before real
integrations existed; they take a ``random.Random`` so a seed makes them
repeatable.
"""
from __future__ import annotations

import random
from datetime import date, datetime

from ..storage.models import MenuItem, User
from .base import (
    EngagementProvider,
    EventProvider,
    InventoryProvider,
    InventorySnapshot,
    WeatherConditions,
    WeatherProvider,
)

DEFAULT_WEATHER = WeatherConditions(temperature_f=72.0, condition="sunny", humidity=60.0)

_CONDITIONS = ["sunny", "sunny", "cloudy", "rainy", "stormy"]


class StaticWeatherProvider(WeatherProvider):
    def __init__(self, conditions: WeatherConditions = DEFAULT_WEATHER):
        self.conditions = conditions

    def get_conditions(self, at: datetime) -> WeatherConditions:
        return self.conditions


class RandomWeatherProvider(WeatherProvider):
    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def get_conditions(self, at: datetime) -> WeatherConditions:
        temperature = round(self._rng.uniform(30.0, 95.0), 1)
        return WeatherConditions(
            temperature_f=temperature,
            condition=self._rng.choice(_CONDITIONS),
            humidity=round(self._rng.uniform(20.0, 90.0), 1),
            is_extreme=temperature > 92.0 or temperature < 32.0,
        )


class StaticInventoryProvider(InventoryProvider):
    def __init__(self, level: float = 0.5, trend: str = "increasing",
                 overrides: dict[int, InventorySnapshot] | None = None):
        self.default = InventorySnapshot(level=level, trend=trend)
        self.overrides = overrides or {}

    def get_inventory(self, menu_item: MenuItem) -> InventorySnapshot:
        return self.overrides.get(menu_item.id, self.default)


class RandomInventoryProvider(InventoryProvider):
    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def get_inventory(self, menu_item: MenuItem) -> InventorySnapshot:
        level = self._rng.random()
        trend = "increasing" if self._rng.random() > 0.5 else "decreasing"
        return InventorySnapshot(level=level, trend=trend)


class StaticEventProvider(EventProvider):
    def __init__(self, game_days: set[date] | None = None):
        self.game_days = game_days or set()

    def is_game_day(self, day: date) -> bool:
        return day in self.game_days


class RandomEventProvider(EventProvider):
    def __init__(self, rng: random.Random | None = None, probability: float = 0.1):
        self._rng = rng or random.Random()
        self.probability = probability

    def is_game_day(self, day: date) -> bool:
        return self._rng.random() < self.probability


class StaticEngagementProvider(EngagementProvider):
    def __init__(self, value: float = 1.0, overrides: dict[int, float] | None = None):
        self.value = value
        self.overrides = overrides or {}

    def get_engagement(self, user: User) -> float:
        return self.overrides.get(user.id, self.value)


class RandomEngagementProvider(EngagementProvider):
    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def get_engagement(self, user: User) -> float:
        return self._rng.random()
