"""Inventory dashboard aggregation.

Everything here is a pure function of the items passed in; callers thread an
``InventoryQuery`` through instead of keeping filter state around.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from restaurant_app.schemas import CategoryAggregate, InventoryItem, SupplierAggregate
from restaurant_app.scoring import inventory_score, rank, round_half_up

ALL = "all"
TURNOVER_SCALE = 6
EXPIRY_WINDOW_DAYS = 30


@dataclass(frozen=True)
class InventoryQuery:
    category: str = ALL
    supplier: str = ALL
    priority: Optional[str] = None


def stock_status(current_stock: float, minimum_stock: float) -> str:
    if current_stock <= 0:
        return "out_of_stock"
    if current_stock <= minimum_stock:
        return "low_stock"
    return "in_stock"


def normalize_filter_key(value: Optional[str]) -> str:
    if not value:
        return ALL
    return value.strip().lower().replace(" ", "_").replace("-", "_")


def _matches(selected: str, actual: str) -> bool:
    key = normalize_filter_key(selected)
    return key == ALL or key == normalize_filter_key(actual)


def filter_inventory(items: Iterable[InventoryItem], query: InventoryQuery) -> list[InventoryItem]:
    return [
        item
        for item in items
        if _matches(query.category, item.category) and _matches(query.supplier, item.supplier)
    ]


def group_by_category(items: Iterable[InventoryItem]) -> dict[str, list[InventoryItem]]:
    groups: dict[str, list[InventoryItem]] = {}
    for item in items:
        groups.setdefault(item.category, []).append(item)
    return groups


def turnover_rate(items: Sequence[InventoryItem]) -> float:
    avg_minimum = sum(item.minimum_stock for item in items) / len(items)
    avg_stock = sum(item.current_stock for item in items) / len(items)
    return max(1.0, round_half_up(avg_minimum / max(avg_stock, 1) * TURNOVER_SCALE, 2))


def payment_status(unpaid: int, total: int) -> str:
    if unpaid == 0:
        return "paid"
    if unpaid < total:
        return "partial"
    return "unpaid"


def summarize_category(category: str, items: Sequence[InventoryItem]) -> CategoryAggregate:
    count = len(items)
    total_value = sum(item.value for item in items)
    healthy = sum(1 for item in items if item.status == "in_stock")
    unpaid = sum(1 for item in items if not item.is_paid)
    top_item = max(items, key=lambda item: item.value)
    return CategoryAggregate(
        category=category,
        total_items=count,
        total_value=total_value,
        average_value=total_value / count,
        stock_health=int(round_half_up(100 * healthy / count)),
        turnover_rate=turnover_rate(items),
        low_stock_items=sum(1 for item in items if item.status == "low_stock"),
        critical_alerts=sum(1 for item in items if item.status == "out_of_stock"),
        top_item=top_item.name,
        unpaid_items=unpaid,
        payment_status=payment_status(unpaid, count),
    )


def score_category(aggregate: CategoryAggregate, priority: str) -> CategoryAggregate:
    breakdown = inventory_score(
        value=aggregate.total_value,
        stock_health=aggregate.stock_health,
        turnover=aggregate.turnover_rate,
        alerts=aggregate.low_stock_items + aggregate.critical_alerts,
        priority=priority,
    )
    return aggregate.model_copy(update={"performance_score": breakdown.score})


def aggregate_categories(
    items: Iterable[InventoryItem], query: Optional[InventoryQuery] = None
) -> list[CategoryAggregate]:
    query = query or InventoryQuery()
    groups = group_by_category(filter_inventory(items, query))
    aggregates = [summarize_category(category, bucket) for category, bucket in groups.items()]
    if query.priority is None:
        return aggregates
    scored = [score_category(aggregate, query.priority) for aggregate in aggregates]
    return rank(scored, key=lambda aggregate: aggregate.performance_score)


def inventory_metrics(items: Sequence[InventoryItem]) -> dict:
    total_value = sum(item.value for item in items)
    return {
        "totalItems": len(items),
        "totalValue": total_value,
        "lowStockItems": sum(1 for item in items if item.status == "low_stock"),
        "outOfStockItems": sum(1 for item in items if item.status == "out_of_stock"),
        "categoriesCount": len({item.category for item in items}),
        "suppliersCount": len({item.supplier for item in items}),
        "averageValue": total_value / len(items) if items else 0,
        "reorderNeeded": sum(
            1 for item in items if item.status in ("low_stock", "out_of_stock")
        ),
    }


def _parse_date(value: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def days_until(value: str, today: date) -> Optional[int]:
    expiry = _parse_date(value)
    if expiry is None:
        return None
    return (expiry - today).days


def expiring_items(
    items: Iterable[InventoryItem], today: date, window_days: int = EXPIRY_WINDOW_DAYS
) -> list[InventoryItem]:
    result = []
    for item in items:
        if not item.expiry_date:
            continue
        remaining = days_until(item.expiry_date, today)
        if remaining is not None and 0 < remaining <= window_days:
            result.append(item)
    return result


def aggregate_suppliers(items: Sequence[InventoryItem]) -> list[SupplierAggregate]:
    groups: dict[str, list[InventoryItem]] = {}
    for item in items:
        groups.setdefault(item.supplier, []).append(item)
    result = []
    for supplier, bucket in groups.items():
        weak = sum(1 for item in bucket if item.status in ("low_stock", "out_of_stock"))
        result.append(
            SupplierAggregate(
                supplier=supplier,
                orders=len(bucket),
                value=sum(item.value for item in bucket),
                items=sum(item.current_stock for item in bucket),
                performance=max(0.0, 100 - weak / len(bucket) * 100),
            )
        )
    return result


def inventory_csv(items: Iterable[InventoryItem]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["Item Name", "Category", "Current Stock", "Unit", "Status", "Value", "Supplier", "Expiry Date"]
    )
    for item in items:
        writer.writerow(
            [
                item.name,
                item.category,
                item.current_stock,
                item.unit,
                item.status,
                f"{item.value:.2f}",
                item.supplier,
                item.expiry_date or "",
            ]
        )
    return output.getvalue()
