"""
External signal providers.

Weather, inventory, local events and app engagement are not owned by this
service. Engines read them through these interfaces so tests can inject
fixed values and production can plug in real integrations.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field

from ..config import DEFAULT_SETTINGS, Settings
from .base import (
    EngagementProvider,
    EventProvider,
    InventoryProvider,
    InventorySnapshot,
    WeatherConditions,
    WeatherProvider,
)
from .fakes import (
    RandomEngagementProvider,
    RandomEventProvider,
    RandomInventoryProvider,
    RandomWeatherProvider,
    StaticEngagementProvider,
    StaticEventProvider,
    StaticInventoryProvider,
    StaticWeatherProvider,
)
from .openweather import OpenWeatherMapProvider


@dataclass
class ProviderSet:
    weather: WeatherProvider = field(default_factory=StaticWeatherProvider)
    inventory: InventoryProvider = field(default_factory=StaticInventoryProvider)
    events: EventProvider = field(default_factory=StaticEventProvider)
    engagement: EngagementProvider = field(default_factory=StaticEngagementProvider)


def build_providers(settings: Settings = DEFAULT_SETTINGS) -> ProviderSet:
    mode = settings.provider_mode.lower()
    if mode == "static":
        return ProviderSet()

    rng = random.Random(settings.random_seed)
    simulated = ProviderSet(
        weather=RandomWeatherProvider(rng),
        inventory=RandomInventoryProvider(rng),
        events=RandomEventProvider(rng),
        engagement=RandomEngagementProvider(rng),
    )
    if mode == "random":
        return simulated
    if mode == "live":
        # Only weather has a live integration; the rest stay simulated.
        simulated.weather = OpenWeatherMapProvider(
            api_key=settings.openweather_api_key,
            latitude=settings.latitude,
            longitude=settings.longitude,
        )
        return simulated
    raise ValueError(f"Unknown provider mode: {settings.provider_mode!r}")


__all__ = [
    "EngagementProvider",
    "EventProvider",
    "InventoryProvider",
    "InventorySnapshot",
    "OpenWeatherMapProvider",
    "ProviderSet",
    "RandomEngagementProvider",
    "RandomEventProvider",
    "RandomInventoryProvider",
    "RandomWeatherProvider",
    "StaticEngagementProvider",
    "StaticEventProvider",
    "StaticInventoryProvider",
    "StaticWeatherProvider",
    "WeatherConditions",
    "WeatherProvider",
    "build_providers",
]
