from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from typing import Callable

import httpx

from .base import WeatherConditions, WeatherProvider
from .fakes import StaticWeatherProvider

logger = logging.getLogger(__name__)

_API_URL = "https://api.openweathermap.org/data/2.5/weather"

_CONDITION_MAP = {
    "clear": "sunny",
    "clouds": "cloudy",
    "rain": "rainy",
    "drizzle": "rainy",
    "thunderstorm": "stormy",
    "snow": "snowy",
}


class OpenWeatherMapProvider(WeatherProvider):
    """Current conditions from OpenWeatherMap, with a static fallback.

    Forecasts are not used: the engines only ever ask about "now" or a
    near-term target, so the current observation is returned for any ``at``.
    A successful reading is reused for ``cache_seconds``; fallback readings
    are never cached.
    """

    def __init__(
        self,
        api_key: str,
        latitude: float,
        longitude: float,
        timeout: float = 5.0,
        fallback: WeatherProvider | None = None,
        cache_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = timeout
        self.fallback = fallback or StaticWeatherProvider()
        self.cache_seconds = cache_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: tuple[float, WeatherConditions] | None = None

    def get_conditions(self, at: datetime) -> WeatherConditions:
        if not self.api_key:
            return self.fallback.get_conditions(at)

        with self._lock:
            if self._cached and self._clock() - self._cached[0] < self.cache_seconds:
                return self._cached[1]

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.get(_API_URL, params={
                    "lat": self.latitude,
                    "lon": self.longitude,
                    "appid": self.api_key,
                    "units": "imperial",
                })
                response.raise_for_status()
                data = response.json()

            temperature = float(data["main"]["temp"])
            raw_condition = data["weather"][0]["main"].lower() if data.get("weather") else ""
            conditions = WeatherConditions(
                temperature_f=temperature,
                condition=_CONDITION_MAP.get(raw_condition, "cloudy"),
                humidity=float(data["main"].get("humidity", 50.0)),
                is_extreme=temperature > 95.0 or temperature < 20.0,
            )

        except Exception:
            logger.warning("OpenWeatherMap request failed, using fallback weather", exc_info=True)
            return self.fallback.get_conditions(at)

        with self._lock:
            self._cached = (self._clock(), conditions)
        return conditions
