from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from restaurant_ai.errors import NotFoundError, UpstreamUnavailableError
from restaurant_ai.storage import DEMO_RESTAURANT_ID, build_demo_accessor, fetch, load_accessor
from restaurant_ai.storage.models import InteractionKind, OrderStatus, Role


class _Flaky:
    """Accessor call that raises ``failures`` times before answering."""

    def __init__(self, failures: int, error: Exception | None = None):
        self.__name__ = "get_menu_items"
        self.failures = failures
        self.error = error or ConnectionError("db unreachable")
        self.calls = 0

    def __call__(self, *args):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return list(args)


# ── fetch ────────────────────────────────────────────────────────────────


def test_fetch_passes_arguments_through():
    call = _Flaky(0)
    assert fetch(call, 1, 2) == [1, 2]
    assert call.calls == 1


def test_fetch_retries_once():
    call = _Flaky(1)
    assert fetch(call, 1) == [1]
    assert call.calls == 2


def test_fetch_gives_up_after_retry():
    call = _Flaky(2)
    with pytest.raises(UpstreamUnavailableError) as exc_info:
        fetch(call, 1)
    assert exc_info.value.operation == "get_menu_items"
    assert call.calls == 2


def test_fetch_does_not_retry_engine_errors():
    call = _Flaky(5, NotFoundError("Restaurant", 1))
    with pytest.raises(NotFoundError):
        fetch(call, 1)
    assert call.calls == 1


# ── In-memory accessor ───────────────────────────────────────────────────


def test_order_listings_are_sorted(accessor, place_order):
    now = datetime(2024, 3, 12, 15, 30)
    place_order(1, now - timedelta(days=1))
    place_order(1, now - timedelta(days=3))
    place_order(4, now - timedelta(days=2))

    assert [o.id for o in accessor.get_user_orders(1)] == [1, 2]
    assert [o.id for o in accessor.get_restaurant_orders(1)] == [2, 3, 1]
    assert [line.menu_item_id for line in accessor.get_order_items(1)] == [1]
    assert accessor.get_order_items(99) == []


def test_menu_items_by_restaurant(accessor):
    assert [i.id for i in accessor.get_menu_items(1)] == [1, 2, 3, 4, 5, 6]
    assert [i.id for i in accessor.get_menu_items(2)] == [7]
    assert accessor.get_menu_item(404) is None


# ── CSV loader ───────────────────────────────────────────────────────────


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "restaurants.csv").write_text(
        "id,name,description,address,phone\n"
        "1,Corner Cafe,Small cafe,5 Elm Road,555-0200\n"
    )
    (tmp_path / "menu_items.csv").write_text(
        "id,name,description,price,category_id,restaurant_id,is_available,is_vegetarian,allergens\n"
        "1,Fish Tacos,Crispy fish,13.5,2,1,true,false,Fish; Gluten\n"
        "2,Fruit Cup,,4.0,5,1,false,true,\n"
    )
    (tmp_path / "users.csv").write_text(
        "id,name,role,loyalty_points,restaurant_id\n"
        "1,Alice,customer,120,\n"
        "2,Olivia,owner,0,1\n"
    )
    (tmp_path / "orders.csv").write_text(
        "id,user_id,restaurant_id,total_price,status,loyalty_points_used,created_at\n"
        "10,1,1,27.0,completed,0,2024-03-10 19:15:00\n"
    )
    (tmp_path / "order_items.csv").write_text(
        "id,order_id,menu_item_id,quantity,price\n"
        "100,10,1,2,13.5\n"
    )
    (tmp_path / "interactions.csv").write_text(
        "user_id,menu_item_id,interaction,rating,timestamp\n"
        "1,1,liked,5,2024-03-10 19:30:00\n"
        "1,2,viewed,,2024-03-11 09:00:00\n"
    )
    (tmp_path / "preferences.json").write_text(json.dumps([
        {"user_id": 1, "dietary_preferences": {"vegetarian": True}, "allergens": ["nuts"]},
    ]))
    return tmp_path


def test_load_accessor(data_dir):
    accessor = load_accessor(data_dir)

    assert accessor.get_restaurant(1).address == "5 Elm Road"

    tacos, fruit = accessor.get_menu_items(1)
    assert tacos.allergens == ["fish", "gluten"]
    assert tacos.is_available is True
    assert fruit.is_available is False
    assert fruit.is_vegetarian is True
    assert fruit.description is None
    assert fruit.allergens == []

    assert accessor.get_user(1).loyalty_points == 120
    assert accessor.get_user(1).restaurant_id is None
    assert accessor.get_user(2).role == Role.owner
    assert accessor.get_user(2).restaurant_id == 1

    order = accessor.get_user_orders(1)[0]
    assert order.status == OrderStatus.completed
    assert order.created_at == datetime(2024, 3, 10, 19, 15)
    assert accessor.get_order_items(10)[0].quantity == 2

    interactions = accessor.get_user_item_interactions(1)
    assert [i.interaction for i in interactions] == [InteractionKind.liked, InteractionKind.viewed]
    assert interactions[1].rating is None

    assert accessor.get_user_preference(1).dietary_preferences.vegetarian is True


def test_load_accessor_menu_only(tmp_path):
    (tmp_path / "menu_items.csv").write_text(
        "id,name,price,category_id,restaurant_id\n"
        "1,Bagel,3.0,1,1\n"
    )
    accessor = load_accessor(tmp_path)
    assert accessor.get_menu_item(1).name == "Bagel"
    assert accessor.list_users() == []


# ── Demo dataset ─────────────────────────────────────────────────────────


def test_demo_dataset_is_deterministic():
    now = datetime(2024, 3, 12, 15, 30)
    first = build_demo_accessor(now, seed=3)
    second = build_demo_accessor(now, seed=3)

    orders = first.get_restaurant_orders(DEMO_RESTAURANT_ID)
    assert orders
    assert [(o.id, o.total_price) for o in orders] == [
        (o.id, o.total_price) for o in second.get_restaurant_orders(DEMO_RESTAURANT_ID)
    ]
    assert all(o.created_at <= now for o in orders)


def test_demo_dataset_contents():
    accessor = build_demo_accessor(datetime(2024, 3, 12, 15, 30))
    owner = accessor.get_user(2)
    assert owner.role == Role.owner
    assert owner.restaurant_id == DEMO_RESTAURANT_ID
    assert accessor.get_menu_item(12).is_available is False
    assert accessor.get_user_preference(1).allergens == ["shellfish"]
    # today's orders are still in the kitchen
    latest = accessor.get_restaurant_orders(DEMO_RESTAURANT_ID)[-1]
    assert latest.status == OrderStatus.preparing
