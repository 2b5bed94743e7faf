from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from ..storage.models import MenuItem, User

ChurnRisk = Literal["Low", "Medium", "High"]


class PredictionResult(BaseModel):
    value: float
    confidence: int = Field(..., ge=0, le=100)
    factors: list[str]
    timeframe: str


class Shift(BaseModel):
    start: str
    end: str
    role: str

    @field_validator("start", "end")
    @classmethod
    def _check_clock_time(cls, v: str) -> str:
        hours, sep, minutes = v.partition(":")
        if not sep or not hours.isdigit() or not minutes.isdigit():
            raise ValueError("expected HH:MM")
        if not (0 <= int(hours) <= 23 and 0 <= int(minutes) <= 59):
            raise ValueError("expected HH:MM")
        return v


class StaffingRecommendation(BaseModel):
    shift: Shift
    recommended_staff: int = Field(..., ge=1)
    reasoning: list[str]
    confidence: int = Field(..., ge=0, le=100)


class CustomerSegment(BaseModel):
    name: str
    description: str
    customers: list[User]
    characteristics: dict[str, Any]
    recommendations: list[str]


class ChurnPrediction(BaseModel):
    customer: User
    churn_risk: ChurnRisk
    risk_score: int = Field(..., ge=0, le=100)
    factors: list[str]
    recommendations: list[str]


class PricingOptimization(BaseModel):
    menu_item: MenuItem
    current_price: float
    optimized_price: float
    expected_demand_change: float
    expected_revenue_change: float
    confidence: int = Field(..., ge=0, le=100)


class StaffingRequest(BaseModel):
    target_date: date | None = None
    shifts: list[Shift] = Field(..., min_length=1)
