from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..recommendations.models import DietaryType
from ..storage.models import MenuItem


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime | None = None


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)
    restaurant_id: int
    history: list[ChatMessage] = Field(default_factory=list)


class ChatAction(BaseModel):
    type: str
    label: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ChatbotResponse(BaseModel):
    message: str
    suggestions: list[str] = Field(default_factory=list)
    data: dict[str, Any] | None = None
    actions: list[ChatAction] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    intent: str = "general"


class IntentResult(BaseModel):
    type: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ChatEntities(BaseModel):
    menu_item: MenuItem | None = None
    dietary: DietaryType | None = None
    when: Literal["today", "tomorrow", "weekend"] | None = None
    number: int | None = None
