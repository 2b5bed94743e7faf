from __future__ import annotations

from fastapi import HTTPException, Request


def get_current_user(request: Request) -> dict | None:
    """Return the user dict from the session, or ``None``."""
    return request.session.get("user")


def require_user(request: Request) -> dict:
    """Raise 401 if no user is logged in."""
    user = request.session.get("user")
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def require_admin(request: Request) -> dict:
    """Raise 401 if not logged in, 403 if not admin."""
    user = require_user(request)
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_staff(request: Request) -> dict:
    """Raise 403 unless the user is an owner or an admin."""
    user = require_user(request)
    if user.get("role") not in ("owner", "admin"):
        raise HTTPException(status_code=403, detail="Owner or admin access required")
    return user


def check_restaurant_access(user: dict, restaurant_id: int) -> None:
    """Owners only see their own restaurant; admins see every restaurant."""
    if user.get("role") == "admin":
        return
    if user.get("role") == "owner" and user.get("restaurant_id") == restaurant_id:
        return
    raise HTTPException(status_code=403, detail="No access to this restaurant")


def check_self_access(user: dict, user_id: int) -> None:
    """Customers may only act for themselves."""
    if user.get("role") == "admin" or user.get("user_id") == user_id:
        return
    raise HTTPException(status_code=403, detail="No access to this user")
