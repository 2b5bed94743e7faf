"""Deterministic demo dataset served by the app when no data directory is set."""
from __future__ import annotations

import random
from datetime import datetime, timedelta

from .accessor import InMemoryDataAccessor
from .models import (
    DietaryPreferences,
    InteractionKind,
    MenuItem,
    Order,
    OrderItem,
    OrderStatus,
    Restaurant,
    Role,
    TastePreferences,
    User,
    UserItemInteraction,
    UserPreference,
)

DEMO_RESTAURANT_ID = 1

_MENU = [
    # id, name, description, price, category, flags, allergens
    (1, "Crispy Calamari", "Light fried squid with lemon aioli", 12.5, 1, {"is_seafood": True}, ["shellfish", "egg"]),
    (2, "Tomato Basil Soup", "Warm hearty soup with fresh basil", 8.0, 1, {"is_vegetarian": True, "is_gluten_free": True}, ["dairy"]),
    (3, "Garden Salad", "Fresh greens, cold cucumber and light vinaigrette", 10.0, 3, {"is_vegetarian": True, "is_gluten_free": True}, []),
    (4, "Grilled Salmon", "Grilled salmon with seasonal vegetables for dinner", 24.0, 2, {"is_seafood": True, "is_gluten_free": True, "is_popular": True}, ["fish"]),
    (5, "Ribeye Steak", "Char-grilled steak with spiced butter", 32.0, 2, {"is_featured": True}, ["dairy"]),
    (6, "Mushroom Risotto", "Creamy comfort risotto with parmesan", 19.0, 2, {"is_vegetarian": True}, ["dairy"]),
    (7, "Spicy Chicken Sandwich", "Spicy fried chicken sandwich for lunch", 14.0, 2, {"is_popular": True}, ["gluten", "egg"]),
    (8, "Penne Pasta", "Hearty pasta in tomato sauce", 16.0, 2, {"is_vegetarian": True}, ["gluten"]),
    (9, "Iced Coffee", "Cold brew coffee over ice", 5.0, 4, {"is_vegetarian": True, "is_gluten_free": True}, []),
    (10, "Apple Pie", "Warm spiced apple pie with sweet cream", 9.0, 5, {"is_vegetarian": True, "is_featured": True}, ["gluten", "dairy"]),
    (11, "Chocolate Lava Cake", "Sweet warm chocolate dessert", 11.0, 5, {"is_vegetarian": True}, ["gluten", "dairy", "egg"]),
    (12, "Seasonal Special", "Chef's rotating dish", 22.0, 2, {"is_available": False}, []),
]

_USERS = [
    (1, "Alice", Role.customer, 320, None),
    (2, "Olivia", Role.owner, 0, DEMO_RESTAURANT_ID),
    (3, "Sam", Role.admin, 0, None),
    (4, "Ben", Role.customer, 40, None),
    (5, "Chloe", Role.customer, 150, None),
    (6, "Dev", Role.customer, 600, None),
    (7, "Emma", Role.customer, 10, None),
    (8, "Farid", Role.customer, 0, None),
]


def build_demo_accessor(now: datetime | None = None, seed: int = 7) -> InMemoryDataAccessor:
    now = now or datetime.now()
    rng = random.Random(seed)
    accessor = InMemoryDataAccessor()

    accessor.add_restaurant(Restaurant(
        id=DEMO_RESTAURANT_ID,
        name="Harvest Table",
        description="Seasonal American kitchen",
        address="12 Market Street",
        phone="555-0100",
        opening_hours={
            "monday": "11:00-22:00",
            "tuesday": "11:00-22:00",
            "wednesday": "11:00-22:00",
            "thursday": "11:00-22:00",
            "friday": "11:00-23:00",
            "saturday": "10:00-23:00",
            "sunday": "10:00-21:00",
        },
    ))

    for item_id, name, description, price, category, flags, allergens in _MENU:
        accessor.add_menu_item(MenuItem(
            id=item_id,
            name=name,
            description=description,
            price=price,
            category_id=category,
            restaurant_id=DEMO_RESTAURANT_ID,
            allergens=allergens,
            **flags,
        ))

    for user_id, name, role, points, restaurant_id in _USERS:
        accessor.add_user(User(
            id=user_id, name=name, role=role, loyalty_points=points, restaurant_id=restaurant_id,
        ))

    accessor.upsert_user_preference(UserPreference(
        user_id=1,
        dietary_preferences=DietaryPreferences(vegetarian=True),
        favorite_categories=[2],
        allergens=["shellfish"],
        taste_preferences=TastePreferences(sweet=True),
    ))

    kinds = list(InteractionKind)
    available = [m[0] for m in _MENU if m[5].get("is_available", True)]
    customers = [u[0] for u in _USERS if u[2] is Role.customer]
    for user_id in customers:
        for item_id in rng.sample(available, 4):
            accessor.record_interaction(UserItemInteraction(
                user_id=user_id,
                menu_item_id=item_id,
                interaction=rng.choice(kinds[:4]),
                timestamp=now - timedelta(days=rng.randint(0, 45), hours=rng.randint(0, 23)),
            ))

    prices = {m[0]: m[3] for m in _MENU}
    order_id = 0
    line_id = 0
    for day in range(90, -1, -1):
        for _ in range(rng.randint(1, 4)):
            order_id += 1
            user_id = rng.choice(customers)
            created = now - timedelta(days=day, hours=rng.randint(0, 10), minutes=rng.randint(0, 59))
            lines = []
            for item_id in rng.sample(available, rng.randint(1, 3)):
                line_id += 1
                # Occasional price tests give the elasticity estimator something to work with
                price = round(prices[item_id] * rng.choice([0.9, 1.0, 1.0, 1.1]), 2)
                lines.append(OrderItem(
                    id=line_id,
                    order_id=order_id,
                    menu_item_id=item_id,
                    quantity=rng.randint(1, 3),
                    price=price,
                ))
            accessor.add_order(
                Order(
                    id=order_id,
                    user_id=user_id,
                    restaurant_id=DEMO_RESTAURANT_ID,
                    total_price=round(sum(line.price * line.quantity for line in lines), 2),
                    status=OrderStatus.completed if day > 0 else OrderStatus.preparing,
                    loyalty_points_used=rng.choice([0, 0, 0, 50]),
                    created_at=created,
                ),
                lines,
            )

    return accessor
