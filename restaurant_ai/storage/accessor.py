from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Callable, TypeVar

from ..errors import EngineError, UpstreamUnavailableError
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

T = TypeVar("T")


class DataAccessor(ABC):
    """Read interface the engines use to pull entities at call time."""

    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_restaurant(self, restaurant_id: int) -> Restaurant | None: ...

    @abstractmethod
    def get_menu_item(self, menu_item_id: int) -> MenuItem | None: ...

    @abstractmethod
    def get_menu_items(self, restaurant_id: int) -> list[MenuItem]: ...

    @abstractmethod
    def get_user_preference(self, user_id: int) -> UserPreference | None: ...

    @abstractmethod
    def get_user_item_interactions(self, user_id: int) -> list[UserItemInteraction]: ...

    @abstractmethod
    def get_menu_item_interactions(self, menu_item_id: int) -> list[UserItemInteraction]: ...

    @abstractmethod
    def get_user_orders(self, user_id: int) -> list[Order]: ...

    @abstractmethod
    def get_restaurant_orders(self, restaurant_id: int) -> list[Order]: ...

    @abstractmethod
    def get_order_items(self, order_id: int) -> list[OrderItem]: ...


def fetch(call: Callable[..., T], *args) -> T:
    """Run an accessor call, retrying once before giving up.

    Engine errors (e.g. ``NotFoundError``) pass straight through; anything
    else raised by the data layer is treated as an outage.
    """
    name = getattr(call, "__name__", "accessor call")
    for attempt in (1, 2):
        try:
            return call(*args)
        except EngineError:
            raise
        except Exception:
            if attempt == 1:
                logger.warning("%s failed, retrying once", name, exc_info=True)
                continue
            logger.error("%s failed after retry", name, exc_info=True)
    raise UpstreamUnavailableError(name)


class InMemoryDataAccessor(DataAccessor):
    """Dict-backed accessor used by the demo app, the CSV loader and tests."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._restaurants: dict[int, Restaurant] = {}
        self._menu_items: dict[int, MenuItem] = {}
        self._users: dict[int, User] = {}
        self._preferences: dict[int, UserPreference] = {}
        self._interactions: list[UserItemInteraction] = []
        self._orders: dict[int, Order] = {}
        self._order_items: dict[int, list[OrderItem]] = defaultdict(list)

    # ── Writes ───────────────────────────────────────────────────────────

    def add_restaurant(self, restaurant: Restaurant) -> Restaurant:
        with self._lock:
            self._restaurants[restaurant.id] = restaurant
        return restaurant

    def add_menu_item(self, item: MenuItem) -> MenuItem:
        with self._lock:
            self._menu_items[item.id] = item
        return item

    def add_user(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = user
        return user

    def upsert_user_preference(self, preference: UserPreference) -> UserPreference:
        stored = preference.model_copy(update={"last_updated": datetime.now()})
        with self._lock:
            self._preferences[preference.user_id] = stored
        return stored

    def record_interaction(self, interaction: UserItemInteraction) -> UserItemInteraction:
        with self._lock:
            self._interactions.append(interaction)
        return interaction

    def add_order(self, order: Order, items: list[OrderItem] | None = None) -> Order:
        with self._lock:
            self._orders[order.id] = order
            for item in items or []:
                self._order_items[order.id].append(item)
        return order

    def add_order_item(self, item: OrderItem) -> OrderItem:
        with self._lock:
            self._order_items[item.order_id].append(item)
        return item

    # ── Reads ────────────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_restaurant(self, restaurant_id: int) -> Restaurant | None:
        return self._restaurants.get(restaurant_id)

    def get_menu_item(self, menu_item_id: int) -> MenuItem | None:
        return self._menu_items.get(menu_item_id)

    def get_menu_items(self, restaurant_id: int) -> list[MenuItem]:
        with self._lock:
            items = [i for i in self._menu_items.values() if i.restaurant_id == restaurant_id]
        return sorted(items, key=lambda i: i.id)

    def get_user_preference(self, user_id: int) -> UserPreference | None:
        return self._preferences.get(user_id)

    def get_user_item_interactions(self, user_id: int) -> list[UserItemInteraction]:
        with self._lock:
            return [i for i in self._interactions if i.user_id == user_id]

    def get_menu_item_interactions(self, menu_item_id: int) -> list[UserItemInteraction]:
        with self._lock:
            return [i for i in self._interactions if i.menu_item_id == menu_item_id]

    def get_user_orders(self, user_id: int) -> list[Order]:
        with self._lock:
            orders = [o for o in self._orders.values() if o.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def get_restaurant_orders(self, restaurant_id: int) -> list[Order]:
        with self._lock:
            orders = [o for o in self._orders.values() if o.restaurant_id == restaurant_id]
        return sorted(orders, key=lambda o: o.created_at)

    def get_order_items(self, order_id: int) -> list[OrderItem]:
        with self._lock:
            return list(self._order_items.get(order_id, []))

    def list_users(self) -> list[User]:
        with self._lock:
            return sorted(self._users.values(), key=lambda u: u.id)
