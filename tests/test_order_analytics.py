from datetime import datetime, timezone

import pytest

from restaurant_app.order_analytics import (
    CUSTOMER_ORDERS,
    build_analytics,
    day_period,
    staff_ratings,
    waiter_performance,
)


def _order(order_id: str, timestamp: str, total: float, staff: str | None = None, items=None) -> dict:
    order = {"id": order_id, "timestamp": timestamp, "total": total, "items": items or []}
    if staff:
        order["staffMember"] = staff
    return order


def _orders() -> list[dict]:
    return [
        _order("o1", "2024-03-04T08:15:00", 400, "Emily", [{"name": "Masala Dosa", "price": 120, "quantity": 2}]),
        _order("o2", "2024-03-04T13:30:00", 900, "John", [{"name": "Thali", "price": 300, "quantity": 3}]),
        _order("o3", "2024-01-10T19:45:00", 300, "Emily", [{"name": "Masala Dosa", "price": 120, "quantity": 1}]),
        _order("o4", "2024-01-11T02:00:00", 250, None, [{"name": "Lassi", "price": 125, "quantity": 2}]),
    ]


def test_day_period_boundaries() -> None:
    assert day_period(5) is None
    assert day_period(6) == "morning"
    assert day_period(12) == "noon"
    assert day_period(18) == "night"
    assert day_period(23) == "night"


def test_build_analytics_totals_and_periods() -> None:
    now = datetime(2024, 3, 5, tzinfo=timezone.utc)
    analytics = build_analytics(_orders(), now=now)

    assert analytics["lastUpdated"] == now.isoformat()
    assert analytics["fullRecord"]["totalOrders"] == 4
    assert analytics["revenueAnalytics"]["totalRevenue"] == 1850
    assert analytics["revenueAnalytics"]["averageOrderValue"] == 463
    assert analytics["revenueAnalytics"]["revenueByStaff"] == {"Emily": 700, "John": 900, CUSTOMER_ORDERS: 250}
    assert analytics["revenueAnalytics"]["revenueByDay"]["2024-03-04"] == 1300

    daily = analytics["dailyAnalytics"]
    assert daily["morning"]["orders"] == 1
    assert daily["noon"]["orders"] == 1
    assert daily["night"]["orders"] == 1
    assert daily["fullDay"]["orders"] == 4
    assert daily["fullDay"]["staffBreakdown"]["Emily"] == {"orders": 2, "revenue": 700}


def test_orders_over_time_in_calendar_order() -> None:
    analytics = build_analytics(_orders())
    months = analytics["ordersOverTime"]
    assert [month["month"] for month in months] == ["January", "March"]
    assert months[0]["staffBreakdown"] == {"Emily": 1, CUSTOMER_ORDERS: 1}


def test_popular_items_by_quantity() -> None:
    popular = build_analytics(_orders())["popularItems"]
    assert [item["name"] for item in popular] == ["Masala Dosa", "Thali", "Lassi"]
    by_name = {item["name"]: item for item in popular}
    assert by_name["Masala Dosa"]["totalQuantity"] == 3
    assert by_name["Masala Dosa"]["orderCount"] == 2
    assert by_name["Thali"]["totalRevenue"] == 900


def test_empty_orders() -> None:
    analytics = build_analytics([])
    assert analytics["revenueAnalytics"]["averageOrderValue"] == 0
    assert analytics["popularItems"] == []
    assert waiter_performance(analytics) == []


def test_bad_timestamp_is_skipped() -> None:
    analytics = build_analytics([_order("bad", "yesterday", 100, "Emily"), _order("ok", "2024-03-04T08:00:00", 50, "Emily")])
    assert analytics["fullRecord"]["totalOrders"] == 2
    assert analytics["dailyAnalytics"]["fullDay"]["orders"] == 1


def test_waiter_performance_excludes_customer_orders() -> None:
    analytics = build_analytics(_orders())
    performances = waiter_performance(analytics, ratings={"John": 4.9})
    names = [p.name for p in performances]
    assert CUSTOMER_ORDERS not in names
    emily = next(p for p in performances if p.name == "Emily")
    assert emily.avg_order_value == 350
    assert emily.satisfaction == 4.5
    john = next(p for p in performances if p.name == "John")
    assert john.satisfaction == 4.9
    assert [p.score for p in performances] == sorted((p.score for p in performances), reverse=True)


def test_waiter_performance_rejects_unknown_priority() -> None:
    with pytest.raises(ValueError):
        waiter_performance(build_analytics(_orders()), priority="speed")


def test_staff_ratings_from_credentials() -> None:
    users = [
        {"username": "emily", "name": "Emily", "rating": 4.8},
        {"username": "john", "name": "John"},
    ]
    assert staff_ratings(users) == {"emily": 4.8, "Emily": 4.8}
