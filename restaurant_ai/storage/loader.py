"""
Load a restaurant dataset from CSV files into an in-memory accessor.

Expected files in ``data_dir`` (all optional except ``menu_items.csv``):

- restaurants.csv   id, name, description, address, phone, email
- menu_items.csv    id, name, description, price, category_id, restaurant_id,
                    is_available, is_popular, is_featured, is_vegetarian,
                    is_gluten_free, is_seafood, allergens
- users.csv         id, name, role, loyalty_points, restaurant_id
- orders.csv        id, user_id, restaurant_id, total_price, status,
                    loyalty_points_used, created_at
- order_items.csv   id, order_id, menu_item_id, quantity, price
- interactions.csv  user_id, menu_item_id, interaction, rating, timestamp
- preferences.json  list of UserPreference objects

List-valued columns (``allergens``) are ``;``-separated.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from .accessor import InMemoryDataAccessor
from .models import (
    MenuItem,
    Order,
    OrderItem,
    Restaurant,
    User,
    UserItemInteraction,
    UserPreference,
)

logger = logging.getLogger(__name__)

_BOOL_COLUMNS = [
    "is_available",
    "is_popular",
    "is_featured",
    "is_vegetarian",
    "is_gluten_free",
    "is_seafood",
]


def _read(data_dir: Path, name: str, parse_dates: list[str] | None = None) -> pd.DataFrame:
    path = data_dir / name
    if not path.exists():
        logger.info("%s not found, skipping", path)
        return pd.DataFrame()
    return pd.read_csv(path, parse_dates=parse_dates)


def _records(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a frame to dicts, turning NaN/NaT into ``None``."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    return cleaned.to_dict(orient="records")


def _split_list(value: Any) -> list[str]:
    if value is None:
        return []
    return [part.strip().lower() for part in str(value).split(";") if part.strip()]


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def load_accessor(data_dir: str | Path) -> InMemoryDataAccessor:
    data_dir = Path(data_dir)
    accessor = InMemoryDataAccessor()

    for row in _records(_read(data_dir, "restaurants.csv")):
        accessor.add_restaurant(Restaurant(**{k: v for k, v in row.items() if v is not None}))

    menu_df = _read(data_dir, "menu_items.csv")
    for row in _records(menu_df):
        row["allergens"] = _split_list(row.get("allergens"))
        for col in _BOOL_COLUMNS:
            if row.get(col) is not None:
                row[col] = _to_bool(row[col])
        accessor.add_menu_item(MenuItem(**{k: v for k, v in row.items() if v is not None}))

    for row in _records(_read(data_dir, "users.csv")):
        accessor.add_user(User(**{k: v for k, v in row.items() if v is not None}))

    for row in _records(_read(data_dir, "orders.csv", parse_dates=["created_at"])):
        accessor.add_order(Order(**{k: v for k, v in row.items() if v is not None}))

    for row in _records(_read(data_dir, "order_items.csv")):
        accessor.add_order_item(OrderItem(**row))

    for row in _records(_read(data_dir, "interactions.csv", parse_dates=["timestamp"])):
        accessor.record_interaction(
            UserItemInteraction(**{k: v for k, v in row.items() if v is not None})
        )

    prefs_path = data_dir / "preferences.json"
    if prefs_path.exists():
        for raw in json.loads(prefs_path.read_text()):
            accessor.upsert_user_preference(UserPreference(**raw))

    logger.info(
        "Loaded %d menu items, %d users from %s",
        len(menu_df),
        len(accessor.list_users()),
        data_dir,
    )
    return accessor
