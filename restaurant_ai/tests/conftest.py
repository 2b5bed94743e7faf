from __future__ import annotations

from datetime import datetime

import pytest

from restaurant_ai.analytics.engine import AnalyticsEngine
from restaurant_ai.pricing.engine import PricingEngine
from restaurant_ai.providers import ProviderSet
from restaurant_ai.recommendations.engine import RecommendationEngine
from restaurant_ai.storage.accessor import InMemoryDataAccessor
from restaurant_ai.storage.models import (
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Restaurant,
    Role,
    User,
)

# Tuesday afternoon in March: no time-of-day, weekday or seasonal pricing applies
NOW = datetime(2024, 3, 12, 15, 30)


class Clock:
    """Settable clock for engines that take a ``clock`` callable."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def accessor() -> InMemoryDataAccessor:
    acc = InMemoryDataAccessor()
    acc.add_restaurant(Restaurant(
        id=1,
        name="Test Bistro",
        description="Neighbourhood bistro",
        address="1 Main Street",
        phone="555-0001",
        opening_hours={"monday": "11:00-22:00", "tuesday": "11:00-22:00"},
    ))
    acc.add_restaurant(Restaurant(id=2, name="Other Place"))

    for item in [
        MenuItem(id=1, name="Plain Burger", description="Beef patty on a bun", price=20.0,
                 category_id=2, restaurant_id=1),
        MenuItem(id=2, name="Shrimp Cocktail", description="Chilled shrimp", price=14.0,
                 category_id=1, restaurant_id=1, is_seafood=True, allergens=["shellfish"]),
        MenuItem(id=3, name="Garden Bowl", description="Grains and greens", price=12.0,
                 category_id=2, restaurant_id=1, is_vegetarian=True, is_gluten_free=True),
        MenuItem(id=4, name="Cheesecake", description="Sweet cream cheese dessert", price=8.0,
                 category_id=5, restaurant_id=1, is_vegetarian=True),
        MenuItem(id=5, name="Grilled Chicken", description="Grilled chicken with vegetables", price=18.0,
                 category_id=2, restaurant_id=1, is_gluten_free=True),
        MenuItem(id=6, name="Sold Out Special", description="Chef's choice", price=25.0,
                 category_id=2, restaurant_id=1, is_available=False),
        MenuItem(id=7, name="Elsewhere Soup", price=9.0, category_id=1, restaurant_id=2),
    ]:
        acc.add_menu_item(item)

    for user in [
        User(id=1, name="Alice", role=Role.customer),
        User(id=2, name="Olivia", role=Role.owner, restaurant_id=1),
        User(id=3, name="Sam", role=Role.admin),
        User(id=4, name="Ben", role=Role.customer),
        User(id=5, name="Cara", role=Role.customer, loyalty_points=300),
    ]:
        acc.add_user(user)
    return acc


@pytest.fixture
def place_order(accessor):
    """Add an order with ``(menu_item_id, quantity, price)`` lines."""
    counter = {"order": 0, "line": 0}

    def _place(
        user_id: int,
        created_at: datetime,
        lines: list[tuple[int, int, float]] | None = None,
        total_price: float | None = None,
        status: OrderStatus = OrderStatus.completed,
        restaurant_id: int = 1,
        loyalty_points_used: int = 0,
    ) -> Order:
        counter["order"] += 1
        order_id = counter["order"]
        items = []
        for menu_item_id, quantity, price in lines or [(1, 1, 20.0)]:
            counter["line"] += 1
            items.append(OrderItem(
                id=counter["line"], order_id=order_id, menu_item_id=menu_item_id,
                quantity=quantity, price=price,
            ))
        if total_price is None:
            total_price = round(sum(i.price * i.quantity for i in items), 2)
        order = Order(
            id=order_id,
            user_id=user_id,
            restaurant_id=restaurant_id,
            total_price=total_price,
            status=status,
            loyalty_points_used=loyalty_points_used,
            created_at=created_at,
        )
        return accessor.add_order(order, items)

    return _place


@pytest.fixture
def recommendation_engine(accessor, clock) -> RecommendationEngine:
    return RecommendationEngine(accessor, clock=clock)


@pytest.fixture
def pricing_engine(accessor, clock) -> PricingEngine:
    return PricingEngine(accessor, providers=ProviderSet(), clock=clock)


@pytest.fixture
def analytics_engine(accessor, clock) -> AnalyticsEngine:
    return AnalyticsEngine(accessor, providers=ProviderSet(), clock=clock)
