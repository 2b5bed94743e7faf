from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    customer = "customer"
    owner = "owner"
    admin = "admin"


class InteractionKind(str, Enum):
    viewed = "viewed"
    liked = "liked"
    ordered = "ordered"
    favorited = "favorited"
    dislike = "dislike"


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    ready = "ready"
    completed = "completed"
    cancelled = "cancelled"


ACTIVE_ORDER_STATUSES = (
    OrderStatus.pending,
    OrderStatus.confirmed,
    OrderStatus.preparing,
    OrderStatus.ready,
)


class Restaurant(BaseModel):
    id: int
    name: str
    description: str | None = None
    address: str = ""
    phone: str = ""
    email: str | None = None
    opening_hours: dict[str, str] = Field(default_factory=dict)


class MenuItem(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: float = Field(..., gt=0)
    category_id: int
    restaurant_id: int
    is_available: bool = True
    is_popular: bool = False
    is_featured: bool = False
    is_vegetarian: bool = False
    is_gluten_free: bool = False
    is_seafood: bool = False
    allergens: list[str] = Field(default_factory=list)
    nutrition_info: dict[str, float | str] = Field(default_factory=dict)


class User(BaseModel):
    id: int
    name: str
    role: Role = Role.customer
    loyalty_points: int = Field(default=0, ge=0)
    restaurant_id: int | None = None


class DietaryPreferences(BaseModel):
    vegetarian: bool = False
    gluten_free: bool = False
    seafood: bool = False


class TastePreferences(BaseModel):
    spicy: bool = False
    sweet: bool = False


class UserPreference(BaseModel):
    user_id: int
    dietary_preferences: DietaryPreferences | None = None
    favorite_categories: list[int] | None = None
    disliked_items: list[int] = Field(default_factory=list)
    allergens: list[str] | None = None
    taste_preferences: TastePreferences | None = None
    seating_preference: str | None = None
    occasions: list[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=datetime.now)


class UserItemInteraction(BaseModel):
    user_id: int
    menu_item_id: int
    interaction: InteractionKind
    rating: int | None = Field(default=None, ge=1, le=5)
    timestamp: datetime = Field(default_factory=datetime.now)


class Order(BaseModel):
    id: int
    user_id: int
    restaurant_id: int
    total_price: float = Field(..., ge=0)
    status: OrderStatus = OrderStatus.pending
    loyalty_points_used: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)


class OrderItem(BaseModel):
    id: int
    order_id: int
    menu_item_id: int
    quantity: int = Field(default=1, ge=1)
    price: float = Field(..., gt=0)
