from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field

from ..storage.models import MenuItem


class PricingOptions(BaseModel):
    include_weather_adjustment: bool = True
    include_inventory_adjustment: bool = True
    include_seasonal_adjustment: bool = True


class PriceAdjustment(BaseModel):
    factor: str
    adjustment: float
    percentage: float
    reasoning: str


class DynamicPrice(BaseModel):
    menu_item_id: int
    original_price: float
    dynamic_price: float
    adjustments: list[PriceAdjustment]
    confidence: int = Field(..., ge=0, le=100)
    valid_until: datetime


class ExpectedImpact(BaseModel):
    demand_change: str
    revenue_change: str
    reasoning: str


class PriceRecommendation(BaseModel):
    menu_item: MenuItem
    current_price: float
    recommended_price: float
    expected_impact: ExpectedImpact
    confidence: int = Field(..., ge=0, le=100)


class PricingTestRequest(BaseModel):
    menu_item_id: int
    test_prices: list[Annotated[float, Field(gt=0)]] = Field(..., min_length=1)
    duration_days: int = Field(default=7, ge=1, le=90)
