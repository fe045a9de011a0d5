"""Chart-ready rows for the dashboard charts.

Each function returns plain dicts in the shape the chart components consume.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from restaurant_app.inventory_analytics import aggregate_suppliers
from restaurant_app.schemas import CategoryAggregate, InventoryItem, WaiterPerformance
from restaurant_app.scoring import round_half_up

FALLBACK_COLOR = "#9ca3af"

CATEGORY_COLORS = {
    "vegetables": "#10b981",
    "dairy": "#3b82f6",
    "meat": "#ef4444",
    "poultry": "#f97316",
    "seafood": "#06b6d4",
    "grains": "#f59e0b",
    "spices": "#8b5cf6",
    "beverages": "#84cc16",
    "bakery": "#eab308",
    "oils": "#a16207",
}

STATUS_COLORS = {
    "in_stock": "#10b981",
    "low_stock": "#f59e0b",
    "out_of_stock": "#ef4444",
}

STATUS_LABELS = {
    "in_stock": "In Stock",
    "low_stock": "Low Stock",
    "out_of_stock": "Out of Stock",
}

SERIES_COLORS = ["#10b981", "#3b82f6", "#f59e0b", "#ef4444", "#8b5cf6", "#f97316", "#06b6d4", "#84cc16"]

VALUE_RANGES = (
    ("Low Value (<₹1K)", 1_000),
    ("Medium Value (₹1K-5K)", 5_000),
    ("High Value (₹5K-20K)", 20_000),
)
NO_STOCK_RANGE = "No Stock (₹0)"
PREMIUM_RANGE = "Premium (>₹20K)"


def truncate_label(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def _round(value: float) -> int:
    return int(round_half_up(value))


def category_color(category: str) -> str:
    return CATEGORY_COLORS.get((category or "").strip().lower(), FALLBACK_COLOR)


def _group(items: Iterable[InventoryItem], key) -> dict[str, dict]:
    groups: dict[str, dict] = {}
    for item in items:
        bucket = groups.setdefault(key(item), {"count": 0, "value": 0.0})
        bucket["count"] += 1
        bucket["value"] += item.value
    return groups


def category_pie(items: Iterable[InventoryItem]) -> list[dict]:
    groups = _group(items, lambda item: item.category or "Unknown")
    return [
        {
            "name": category,
            "value": data["count"],
            "totalValue": data["value"],
            "fill": category_color(category),
        }
        for category, data in groups.items()
    ]


def status_pie(items: Iterable[InventoryItem]) -> list[dict]:
    groups = _group(items, lambda item: item.status)
    return [
        {
            "name": STATUS_LABELS.get(status, status),
            "value": data["count"],
            "totalValue": data["value"],
            "fill": STATUS_COLORS.get(status, FALLBACK_COLOR),
            "status": status,
        }
        for status, data in groups.items()
    ]


def value_range(value: float) -> str:
    if value == 0:
        return NO_STOCK_RANGE
    for label, ceiling in VALUE_RANGES:
        if value < ceiling:
            return label
    return PREMIUM_RANGE


def value_range_pie(items: Iterable[InventoryItem]) -> list[dict]:
    groups = _group(items, lambda item: value_range(item.value))
    return [
        {
            "name": label,
            "value": data["count"],
            "totalValue": data["value"],
            "fill": SERIES_COLORS[index % len(SERIES_COLORS)],
        }
        for index, (label, data) in enumerate(groups.items())
    ]


def category_value_bars(items: Iterable[InventoryItem], limit: int = 8) -> list[dict]:
    groups = _group(items, lambda item: item.category or "Unknown")
    rows = [
        {
            "name": truncate_label(category, 12),
            "fullName": category,
            "totalValue": _round(data["value"]),
            "itemCount": data["count"],
            "averageValue": _round(data["value"] / data["count"]),
            "fill": category_color(category),
        }
        for category, data in groups.items()
    ]
    rows.sort(key=lambda row: row["totalValue"], reverse=True)
    return rows[:limit]


def stock_level_bars(items: Iterable[InventoryItem], limit: int = 10) -> list[dict]:
    rows = [
        item
        for item in items
        if item.current_stock > 0 or item.status in ("low_stock", "out_of_stock")
    ]
    return [
        {
            "name": truncate_label(item.name, 15),
            "fullName": item.name,
            "currentStock": item.current_stock,
            "minimumStock": item.minimum_stock,
            "maximumStock": item.maximum_stock,
            "status": item.status,
            "unit": item.unit,
        }
        for item in rows[:limit]
    ]


def low_stock_bars(items: Iterable[InventoryItem], limit: int = 10) -> list[dict]:
    rows = [item for item in items if item.status in ("low_stock", "out_of_stock")]
    return [
        {
            "name": truncate_label(item.name, 15),
            "fullName": item.name,
            "currentStock": item.current_stock,
            "minimumStock": item.minimum_stock,
            "shortfall": max(0, item.minimum_stock - item.current_stock),
            "status": item.status,
            "unit": item.unit,
        }
        for item in rows[:limit]
    ]


def supplier_bars(items: Sequence[InventoryItem], limit: int = 8) -> list[dict]:
    rows = []
    for supplier in aggregate_suppliers(items):
        bucket = [item for item in items if item.supplier == supplier.supplier]
        rows.append(
            {
                "name": truncate_label(supplier.supplier or "Unknown", 12),
                "fullName": supplier.supplier or "Unknown",
                "totalValue": _round(supplier.value),
                "itemCount": supplier.orders,
                "lowStockItems": sum(
                    1 for item in bucket if item.status in ("low_stock", "out_of_stock")
                ),
            }
        )
    rows.sort(key=lambda row: row["itemCount"], reverse=True)
    return rows[:limit]


def _scaled(value: float, maximum: float) -> int:
    if maximum <= 0:
        return 0
    return _round(value / maximum * 100)


def supplier_radar(items: Sequence[InventoryItem], limit: int = 6) -> list[dict]:
    suppliers = aggregate_suppliers(items)
    if not suppliers:
        return []
    max_orders = max(s.orders for s in suppliers)
    max_value = max(s.value for s in suppliers)
    max_items = max(s.items for s in suppliers)
    top = sorted(suppliers, key=lambda s: s.orders, reverse=True)[:limit]
    return [
        {
            "supplier": truncate_label(s.supplier, 12),
            "fullName": s.supplier,
            "orders": _scaled(s.orders, max_orders),
            "value": _scaled(s.value, max_value),
            "items": _scaled(s.items, max_items),
            "rawOrders": s.orders,
            "rawValue": s.value,
            "rawItems": s.items,
            "performance": _round(s.performance),
        }
        for s in top
    ]


def popular_items_radar(popular_items: Sequence[dict], limit: int = 8) -> list[dict]:
    return [
        {
            "item": truncate_label(item["name"], 15),
            "fullName": item["name"],
            "quantity": item.get("totalQuantity", 0),
            "revenue": _round(item.get("totalRevenue", 0) / 100),
            "orders": item.get("orderCount", 0),
            "originalRevenue": item.get("totalRevenue", 0),
        }
        for item in popular_items[:limit]
    ]


def category_score_bars(aggregates: Iterable[CategoryAggregate], metric: str = "performance_score") -> list[dict]:
    return [
        {
            "category": truncate_label(aggregate.category, 12),
            "value": getattr(aggregate, metric) or 0,
            "fill": category_color(aggregate.category),
        }
        for aggregate in aggregates
    ]


def waiter_score_bars(performances: Iterable[WaiterPerformance]) -> list[dict]:
    return [
        {
            "name": truncate_label(performance.name, 12),
            "value": performance.score,
            "fill": SERIES_COLORS[index % len(SERIES_COLORS)],
        }
        for index, performance in enumerate(performances)
    ]


def inventory_charts(items: Sequence[InventoryItem], aggregates: Sequence[CategoryAggregate]) -> dict:
    return {
        "categoryPie": category_pie(items),
        "statusPie": status_pie(items),
        "valuePie": value_range_pie(items),
        "categoryValues": category_value_bars(items),
        "stockLevels": stock_level_bars(items),
        "lowStock": low_stock_bars(items),
        "suppliers": supplier_bars(items),
        "supplierRadar": supplier_radar(items),
        "categoryScores": category_score_bars(aggregates),
    }
