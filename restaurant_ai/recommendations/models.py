from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..storage.models import MenuItem

TrendingTimeframe = Literal["24h", "7d", "30d"]
DietaryType = Literal["vegetarian", "vegan", "gluten-free", "keto", "low-carb"]


class RecommendationOptions(BaseModel):
    limit: int | None = Field(default=None, ge=1, le=50)
    include_weather_context: bool = True
    include_price_optimization: bool = True
    include_timing_context: bool = True


class ScoredItem(BaseModel):
    menu_item_id: int
    score: float
    contributions: dict[str, float] = Field(default_factory=dict)


class RecommendationResult(BaseModel):
    recommendations: list[MenuItem]
    reasoning: list[str]
    confidence: int = Field(..., ge=0, le=100)
    algorithm: str
    scores: list[ScoredItem] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    menu_item_id: int
    is_positive: bool


class FeedbackResponse(BaseModel):
    status: str
    total_feedback: int
