"""
Service-wide settings.

Values come from the environment; a ``.env`` file at the project root is
loaded first so local development does not need exported variables.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return int(raw)


@dataclass(frozen=True)
class Settings:
    session_secret: str = os.getenv("SESSION_SECRET", "restaurant-ai-secret-change-in-production")
    data_dir: str = os.getenv("RESTAURANT_AI_DATA_DIR", "")
    # static | random | live
    provider_mode: str = os.getenv("RESTAURANT_AI_PROVIDERS", "static")
    random_seed: int = _env_int("RESTAURANT_AI_SEED", 42)
    openweather_api_key: str = os.getenv("OPENWEATHER_API_KEY", "")
    latitude: float = _env_float("RESTAURANT_AI_LATITUDE", 40.7128)
    longitude: float = _env_float("RESTAURANT_AI_LONGITUDE", -74.0060)
    insights_cache_ttl: float = _env_float("INSIGHTS_CACHE_TTL", 300.0)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


DEFAULT_SETTINGS = Settings()
