"""Reporting payload derived from the orders file, and waiter rankings built on it."""
from __future__ import annotations

import calendar
import logging
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from restaurant_app.schemas import WaiterPerformance
from restaurant_app.scoring import DEFAULT_WAITER_PRIORITY, rank, round_half_up, waiter_score

logger = logging.getLogger(__name__)

CUSTOMER_ORDERS = "Customer Orders"
DEFAULT_SATISFACTION = 4.5
POPULAR_ITEMS_LIMIT = 15
PERIODS = ("morning", "noon", "night", "fullDay")
MONTHS = list(calendar.month_name)[1:]


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def day_period(hour: int) -> Optional[str]:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "noon"
    if 18 <= hour < 24:
        return "night"
    return None


def _empty_period() -> dict:
    return {"orders": 0, "revenue": 0, "staffBreakdown": {}}


def _add_to_period(period: dict, staff: str, total: float) -> None:
    period["orders"] += 1
    period["revenue"] += total
    breakdown = period["staffBreakdown"].setdefault(staff, {"orders": 0, "revenue": 0})
    breakdown["orders"] += 1
    breakdown["revenue"] += total


def build_analytics(orders: list[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    total_revenue = sum(order.get("total", 0) for order in orders)
    monthly: dict[str, dict] = {}
    staff_revenue: dict[str, float] = {}
    revenue_by_day: dict[str, float] = {}
    item_stats: dict[str, dict] = {}
    daily = {name: _empty_period() for name in PERIODS}

    for order in orders:
        try:
            placed = parse_timestamp(order["timestamp"])
        except (KeyError, ValueError):
            logger.warning("skipping order %s with unreadable timestamp", order.get("id"))
            continue
        total = order.get("total", 0)
        staff = order.get("staffMember") or CUSTOMER_ORDERS

        month = monthly.setdefault(
            placed.strftime("%B"), {"orders": 0, "revenue": 0, "staffBreakdown": {}}
        )
        month["orders"] += 1
        month["revenue"] += total
        month["staffBreakdown"][staff] = month["staffBreakdown"].get(staff, 0) + 1

        staff_revenue[staff] = staff_revenue.get(staff, 0) + total

        period = day_period(placed.hour)
        if period:
            _add_to_period(daily[period], staff, total)
        _add_to_period(daily["fullDay"], staff, total)

        for item in order.get("items", []):
            name = item.get("name")
            if not name:
                continue
            stats = item_stats.setdefault(
                name,
                {
                    "name": name,
                    "totalQuantity": 0,
                    "totalRevenue": 0,
                    "orderCount": 0,
                    "averagePrice": item.get("price", 0),
                },
            )
            quantity = item.get("quantity", 0)
            stats["totalQuantity"] += quantity
            stats["totalRevenue"] += item.get("price", 0) * quantity
            stats["orderCount"] += 1

        day_key = placed.date().isoformat()
        revenue_by_day[day_key] = revenue_by_day.get(day_key, 0) + total

    orders_over_time = [
        {"month": name, **monthly[name]} for name in MONTHS if name in monthly
    ]
    popular = sorted(item_stats.values(), key=lambda stats: stats["totalQuantity"], reverse=True)

    return {
        "lastUpdated": now.isoformat(),
        "fullRecord": {
            "totalOrders": len(orders),
            "totalRevenue": total_revenue,
            "orders": orders,
        },
        "ordersOverTime": orders_over_time,
        "revenueAnalytics": {
            "totalRevenue": total_revenue,
            "revenueByStaff": staff_revenue,
            "revenueByMonth": {name: {"orders": m["orders"], "revenue": m["revenue"]} for name, m in monthly.items()},
            "revenueByDay": revenue_by_day,
            "averageOrderValue": int(round_half_up(total_revenue / len(orders))) if orders else 0,
        },
        "dailyAnalytics": daily,
        "popularItems": popular[:POPULAR_ITEMS_LIMIT],
    }


def waiter_performance(
    analytics: dict,
    ratings: Optional[Mapping[str, float]] = None,
    priority: str = DEFAULT_WAITER_PRIORITY,
    period: str = "fullDay",
) -> list[WaiterPerformance]:
    ratings = ratings or {}
    breakdown = analytics.get("dailyAnalytics", {}).get(period, {}).get("staffBreakdown", {})
    performances = []
    for name, stats in breakdown.items():
        if name == CUSTOMER_ORDERS:
            continue
        orders = stats.get("orders", 0)
        revenue = stats.get("revenue", 0)
        satisfaction = ratings.get(name, DEFAULT_SATISFACTION)
        performances.append(
            WaiterPerformance(
                name=name,
                orders=orders,
                revenue=revenue,
                avg_order_value=int(round_half_up(revenue / orders)) if orders else 0,
                satisfaction=satisfaction,
                score=waiter_score(orders, revenue, satisfaction, priority).score,
            )
        )
    return rank(performances, key=lambda performance: performance.score)


def staff_ratings(credentials: Iterable[dict]) -> dict[str, float]:
    """Static satisfaction ratings kept on staff credential records."""
    ratings = {}
    for user in credentials:
        rating = user.get("rating")
        if rating is None:
            continue
        for key in ("name", "username"):
            if user.get(key):
                ratings[user[key]] = float(rating)
    return ratings
