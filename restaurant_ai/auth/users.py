from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _seed_users() -> None:
    """Pre-seed demo accounts on import; each maps to a user of the demo dataset."""
    _users["customer"] = {
        "password_hash": _hash_password("customer123"),
        "role": "customer",
        "user_id": 1,
        "restaurant_id": None,
    }
    _users["owner"] = {
        "password_hash": _hash_password("owner123"),
        "role": "owner",
        "user_id": 2,
        "restaurant_id": 1,
    }
    _users["admin"] = {
        "password_hash": _hash_password("admin123"),
        "role": "admin",
        "user_id": 3,
        "restaurant_id": None,
    }


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role, user_id, restaurant_id}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {
            "username": username,
            "role": record["role"],
            "user_id": record["user_id"],
            "restaurant_id": record["restaurant_id"],
        }
    return None


_seed_users()
