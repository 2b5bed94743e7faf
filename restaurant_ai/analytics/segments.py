from __future__ import annotations

from datetime import datetime, timedelta

import pandas as pd

from ..storage.models import User
from ..utils import round_half_up
from .models import ChurnPrediction, ChurnRisk, CustomerSegment
from .policy import AnalyticsPolicy

SEGMENT_PROFILES = {
    "vip": {
        "name": "VIP Customers",
        "description": "High-spending frequent customers",
        "visit_frequency": "Weekly or more",
        "loyalty_points": "High (>200 points)",
        "recommendations": [
            "Offer exclusive menu previews",
            "Provide priority reservations",
            "Send personalized promotions",
            "Create loyalty tier benefits",
        ],
    },
    "occasional": {
        "name": "Occasional Diners",
        "description": "Customers who visit monthly or less frequently",
        "visit_frequency": "Monthly or less",
        "loyalty_points": "Low (<100 points)",
        "recommendations": [
            "Send re-engagement campaigns",
            "Offer comeback incentives",
            "Share seasonal menu highlights",
            "Provide birthday/anniversary offers",
        ],
    },
    "budget": {
        "name": "Budget-Conscious",
        "description": "Customers who prefer value-oriented options",
        "visit_frequency": "Varies",
        "loyalty_points": "Medium",
        "recommendations": [
            "Promote daily specials",
            "Offer combo deals",
            "Send discount coupons",
            "Highlight value menu items",
        ],
    },
    "new": {
        "name": "New Customers",
        "description": "Recently acquired customers (last 30 days)",
        "visit_frequency": "First-time or few visits",
        "loyalty_points": "Very low",
        "recommendations": [
            "Send welcome messages",
            "Offer first-time visitor discounts",
            "Encourage app downloads",
            "Request feedback surveys",
        ],
    },
}

CHURN_ACTIONS: dict[str, list[str]] = {
    "High": [
        "Send personalized win-back offer",
        "Call for direct feedback",
        "Offer exclusive discount",
    ],
    "Medium": [
        "Send re-engagement email",
        "Offer loyalty bonus",
        "Invite to special events",
    ],
    "Low": [
        "Continue regular communications",
        "Reward loyalty consistently",
    ],
}


def customer_aggregates(frame: pd.DataFrame, now: datetime, recent_days: int) -> pd.DataFrame:
    """One row per ordering customer, indexed by user id."""
    recent_cutoff = now - timedelta(days=recent_days)
    work = frame.assign(recent=frame["created_at"] >= recent_cutoff)
    return work.groupby("user_id").agg(
        orders=("id", "count"),
        avg_order=("total_price", "mean"),
        first_order=("created_at", "min"),
        last_order=("created_at", "max"),
        recent_orders=("recent", "sum"),
    )


def _avg_order_value(frame: pd.DataFrame, user_ids: list[int]) -> float:
    subset = frame[frame["user_id"].isin(user_ids)]
    if subset.empty:
        return 0.0
    return round_half_up(float(subset["total_price"].mean()), 2)


def analyze_segments(
    frame: pd.DataFrame,
    customers: dict[int, User],
    now: datetime,
    policy: AnalyticsPolicy,
) -> list[CustomerSegment]:
    """Split ordering customers into the four (possibly overlapping) segments."""
    frame = frame[frame["user_id"].isin(list(customers))]
    stats = customer_aggregates(frame, now, policy.recent_window_days)
    loyalty = pd.Series({uid: user.loyalty_points for uid, user in customers.items()}, dtype="int64")
    stats = stats.assign(loyalty=loyalty.reindex(stats.index).fillna(0))

    recent_cutoff = pd.Timestamp(now - timedelta(days=policy.recent_window_days))
    masks = {
        "vip": (stats["orders"] >= policy.vip_min_orders)
        & (stats["avg_order"] > policy.vip_min_avg_order)
        & (stats["loyalty"] > policy.vip_min_loyalty),
        "occasional": stats["recent_orders"] <= policy.occasional_max_recent_orders,
        "budget": stats["avg_order"] < policy.budget_max_avg_order,
        "new": stats["first_order"] >= recent_cutoff,
    }

    segments = []
    for key, mask in masks.items():
        profile = SEGMENT_PROFILES[key]
        user_ids = sorted(int(uid) for uid in stats.index[mask])
        segments.append(CustomerSegment(
            name=profile["name"],
            description=profile["description"],
            customers=[customers[uid] for uid in user_ids],
            characteristics={
                "avg_order_value": _avg_order_value(frame, user_ids),
                "visit_frequency": profile["visit_frequency"],
                "loyalty_points": profile["loyalty_points"],
            },
            recommendations=list(profile["recommendations"]),
        ))
    return segments


def risk_level(score: int, policy: AnalyticsPolicy) -> ChurnRisk:
    if score >= policy.high_risk_from:
        return "High"
    if score >= policy.medium_risk_from:
        return "Medium"
    return "Low"


def churn_risk_score(
    customer_orders: pd.DataFrame,
    customer: User,
    engagement: float,
    now: datetime,
    policy: AnalyticsPolicy,
) -> tuple[int, list[str]]:
    """Additive churn risk for one customer and the factors that fired."""
    score = 0
    factors: list[str] = []
    total = len(customer_orders)

    idle_days = (pd.Timestamp(now) - customer_orders["created_at"].max()) / pd.Timedelta(days=1)
    for days, risk, label in policy.idle_tiers:
        if idle_days > days:
            score += risk
            factors.append(label)
            break

    recent = customer_orders[
        customer_orders["created_at"] > pd.Timestamp(now - timedelta(days=policy.frequency_window_days))
    ]
    if len(recent) < total * policy.declining_frequency_share:
        score += policy.declining_frequency_risk
        factors.append("Declining order frequency")

    if total >= policy.order_value_min_orders and not recent.empty:
        if recent["total_price"].mean() < customer_orders["total_price"].mean() * policy.declining_value_share:
            score += policy.declining_value_risk
            factors.append("Decreasing order values")

    if customer.loyalty_points < policy.low_loyalty_points and total > policy.low_loyalty_min_orders:
        score += policy.low_loyalty_risk
        factors.append("Low loyalty engagement")

    if engagement < policy.low_engagement_below:
        score += policy.low_engagement_risk
        factors.append("Low app engagement")

    return score, factors


def predict_churn(
    frame: pd.DataFrame,
    customers: dict[int, User],
    engagement: dict[int, float],
    now: datetime,
    policy: AnalyticsPolicy,
) -> list[ChurnPrediction]:
    results = []
    for user_id, customer_orders in frame.groupby("user_id"):
        customer = customers.get(int(user_id))
        if customer is None or customer_orders.empty:
            continue
        score, factors = churn_risk_score(
            customer_orders, customer, engagement.get(customer.id, 1.0), now, policy
        )
        level = risk_level(score, policy)
        results.append(ChurnPrediction(
            customer=customer,
            churn_risk=level,
            risk_score=score,
            factors=factors,
            recommendations=list(CHURN_ACTIONS[level]),
        ))

    results.sort(key=lambda r: (-r.risk_score, r.customer.id))
    return results
