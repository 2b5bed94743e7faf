from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

SIGNAL_NAMES = ("collaborative", "content", "behavior", "weather", "timing", "price")


class RecommendationSettings(BaseModel):
    enabled: bool = True
    algorithms: list[str] = Field(default_factory=lambda: [
        "collaborative_filtering", "content_based", "behavior_analysis",
    ])
    default_weights: dict[str, float] = Field(default_factory=lambda: {
        "collaborative": 0.30,
        "content": 0.25,
        "behavior": 0.20,
        "weather": 0.10,
        "timing": 0.10,
        "price": 0.05,
    })
    # minutes
    refresh_interval: int = 15

    @field_validator("default_weights")
    @classmethod
    def _known_signals(cls, weights: dict[str, float]) -> dict[str, float]:
        unknown = sorted(set(weights) - set(SIGNAL_NAMES))
        if unknown:
            raise ValueError(f"Unknown recommendation weights: {', '.join(unknown)}")
        return weights


class PricingSettings(BaseModel):
    enabled: bool = True
    max_price_increase: float = Field(default=0.25, ge=0.0, le=1.0)
    max_price_decrease: float = Field(default=0.20, ge=0.0, lt=1.0)
    # minutes
    update_frequency: int = 30
    factors: list[str] = Field(default_factory=lambda: [
        "demand", "time", "weather", "inventory", "seasonal", "day_of_week",
    ])


class AnalyticsSettings(BaseModel):
    enabled: bool = True
    # days
    prediction_horizon: int = 30
    confidence_threshold: float = 0.7
    # minutes
    refresh_interval: int = 60


class ChatbotSettings(BaseModel):
    enabled: bool = True
    max_conversation_length: int = Field(default=50, ge=0)
    confidence_threshold: float = 0.6
    fallback_to_human: bool = True


class AIConfiguration(BaseModel):
    recommendations: RecommendationSettings = Field(default_factory=RecommendationSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    chatbot: ChatbotSettings = Field(default_factory=ChatbotSettings)

    def merged(self, updates: dict[str, Any]) -> "AIConfiguration":
        """Return a copy with each section shallow-merged with ``updates``."""
        data = self.model_dump()
        for section, values in updates.items():
            if section not in data:
                raise ValueError(f"Unknown configuration section: {section}")
            if not isinstance(values, dict):
                raise ValueError(f"Configuration section {section} must be an object")
            data[section] = {**data[section], **values}
        return AIConfiguration.model_validate(data)
