from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime

from ..storage.models import MenuItem, User


@dataclass(frozen=True)
class WeatherConditions:
    temperature_f: float
    # sunny, cloudy, rainy, stormy, snowy
    condition: str
    humidity: float = 50.0
    is_extreme: bool = False


@dataclass(frozen=True)
class InventorySnapshot:
    level: float  # 0 = empty, 1 = fully stocked
    trend: str  # increasing | decreasing


class WeatherProvider(ABC):
    @abstractmethod
    def get_conditions(self, at: datetime) -> WeatherConditions: ...


class InventoryProvider(ABC):
    @abstractmethod
    def get_inventory(self, menu_item: MenuItem) -> InventorySnapshot: ...


class EventProvider(ABC):
    @abstractmethod
    def is_game_day(self, day: date) -> bool: ...


class EngagementProvider(ABC):
    @abstractmethod
    def get_engagement(self, user: User) -> float:
        """Return recent app engagement in [0, 1]."""
