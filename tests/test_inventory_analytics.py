from datetime import date

import pytest

from restaurant_app.inventory_analytics import (
    InventoryQuery,
    aggregate_categories,
    aggregate_suppliers,
    expiring_items,
    filter_inventory,
    inventory_csv,
    inventory_metrics,
    normalize_filter_key,
    stock_status,
    turnover_rate,
)
from restaurant_app.schemas import InventoryItem


def _item(item_id: str, category: str, stock: float, price: float, status: str = "in_stock", **extra) -> InventoryItem:
    fields = {
        "id": item_id,
        "name": extra.pop("name", item_id),
        "category": category,
        "current_stock": stock,
        "unit_price": price,
        "status": status,
        "minimum_stock": extra.pop("minimum_stock", 5),
        "supplier": extra.pop("supplier", "Fresh Farms"),
    }
    fields.update(extra)
    return InventoryItem(**fields)


def _sample() -> list[InventoryItem]:
    return [
        _item("milk", "Dairy", 10, 50),
        _item("paneer", "Dairy", 2, 50, "low_stock"),
        _item("chicken", "Meat", 0, 240, "out_of_stock", supplier="Metro Meats", is_paid=True),
        _item("mutton", "Meat", 8, 650, supplier="Metro Meats", is_paid=True),
        _item("rice", "Grains", 40, 80, is_paid=True),
    ]


def test_dairy_example() -> None:
    items = [_item("milk", "Dairy", 10, 50), _item("paneer", "Dairy", 2, 50, "low_stock")]
    [dairy] = aggregate_categories(items)
    assert dairy.category == "Dairy"
    assert dairy.total_items == 2
    assert dairy.total_value == 600
    assert dairy.average_value == 300
    assert dairy.stock_health == 50
    assert dairy.low_stock_items == 1
    assert dairy.critical_alerts == 0
    assert dairy.top_item == "milk"
    assert dairy.performance_score is None


def test_total_value_is_conserved() -> None:
    items = _sample()
    aggregates = aggregate_categories(items)
    assert sum(a.total_value for a in aggregates) == pytest.approx(sum(i.current_stock * i.unit_price for i in items))
    assert {a.category for a in aggregates} == {"Dairy", "Meat", "Grains"}


def test_payment_status_per_category() -> None:
    by_category = {a.category: a for a in aggregate_categories(_sample())}
    assert by_category["Dairy"].payment_status == "unpaid"
    assert by_category["Dairy"].unpaid_items == 2
    assert by_category["Meat"].payment_status == "paid"
    assert by_category["Grains"].payment_status == "paid"

    mixed = [_item("a", "Oils", 1, 10, is_paid=True), _item("b", "Oils", 1, 10)]
    [oils] = aggregate_categories(mixed)
    assert oils.payment_status == "partial"


def test_stock_health_rounds_half_up() -> None:
    items = [
        _item("a", "Spices", 5, 1),
        _item("b", "Spices", 5, 1),
        _item("c", "Spices", 0, 1, "out_of_stock"),
        _item("d", "Spices", 0, 1, "out_of_stock"),
        _item("e", "Spices", 0, 1, "out_of_stock"),
        _item("f", "Spices", 0, 1, "out_of_stock"),
        _item("g", "Spices", 0, 1, "out_of_stock"),
        _item("h", "Spices", 0, 1, "out_of_stock"),
    ]
    [spices] = aggregate_categories(items)
    assert spices.stock_health == 25
    assert spices.critical_alerts == 6


def test_turnover_rate_has_floor_of_one() -> None:
    assert turnover_rate([_item("a", "Dairy", 500, 1, minimum_stock=5)]) == 1.0
    assert turnover_rate([_item("a", "Dairy", 6, 1, minimum_stock=5)]) == pytest.approx(5.0)


def test_top_item_prefers_first_on_ties() -> None:
    items = [_item("first", "Bakery", 2, 10), _item("second", "Bakery", 4, 5)]
    [bakery] = aggregate_categories(items)
    assert bakery.top_item == "first"


def test_priority_adds_scores_and_ranks() -> None:
    aggregates = aggregate_categories(_sample(), InventoryQuery(priority="value"))
    scores = [a.performance_score for a in aggregates]
    assert all(score is not None and 0 <= score <= 100 for score in scores)
    assert scores == sorted(scores, reverse=True)


def test_unknown_priority_raises() -> None:
    with pytest.raises(ValueError):
        aggregate_categories(_sample(), InventoryQuery(priority="freshness"))


def test_empty_input_gives_no_aggregates() -> None:
    assert aggregate_categories([]) == []
    assert aggregate_categories([], InventoryQuery(priority="value")) == []
    assert aggregate_categories(_sample(), InventoryQuery(category="nothing")) == []


def test_filters_compare_normalized_keys() -> None:
    items = [_item("ghee", "Dairy Products", 3, 500), _item("rice", "Grains", 40, 80)]
    assert normalize_filter_key("Dairy Products") == "dairy_products"
    assert normalize_filter_key(None) == "all"
    filtered = filter_inventory(items, InventoryQuery(category="dairy-products"))
    assert [item.id for item in filtered] == ["ghee"]
    assert len(filter_inventory(items, InventoryQuery(supplier="Fresh Farms"))) == 2
    assert filter_inventory(items, InventoryQuery(supplier="nobody")) == []


def test_query_does_not_mutate_inputs() -> None:
    items = _sample()
    before = [item.model_dump() for item in items]
    aggregate_categories(items, InventoryQuery(category="Meat", priority="alerts"))
    assert [item.model_dump() for item in items] == before


def test_stock_status() -> None:
    assert stock_status(0, 5) == "out_of_stock"
    assert stock_status(-1, 5) == "out_of_stock"
    assert stock_status(5, 5) == "low_stock"
    assert stock_status(6, 5) == "in_stock"


def test_metrics() -> None:
    metrics = inventory_metrics(_sample())
    assert metrics["totalItems"] == 5
    assert metrics["totalValue"] == 500 + 100 + 0 + 5200 + 3200
    assert metrics["lowStockItems"] == 1
    assert metrics["outOfStockItems"] == 1
    assert metrics["reorderNeeded"] == 2
    assert metrics["categoriesCount"] == 3
    assert metrics["suppliersCount"] == 2
    assert inventory_metrics([])["averageValue"] == 0


def test_expiring_items_window() -> None:
    today = date(2024, 6, 1)
    items = [
        _item("soon", "Dairy", 1, 1, expiry_date="2024-06-10"),
        _item("edge", "Dairy", 1, 1, expiry_date="2024-07-01T00:00:00.000Z"),
        _item("late", "Dairy", 1, 1, expiry_date="2024-07-02"),
        _item("past", "Dairy", 1, 1, expiry_date="2024-05-01"),
        _item("today", "Dairy", 1, 1, expiry_date="2024-06-01"),
        _item("junk", "Dairy", 1, 1, expiry_date="not a date"),
    ]
    assert [item.id for item in expiring_items(items, today)] == ["soon", "edge"]


def test_supplier_performance() -> None:
    suppliers = {s.supplier: s for s in aggregate_suppliers(_sample())}
    assert suppliers["Metro Meats"].orders == 2
    assert suppliers["Metro Meats"].performance == 50
    assert suppliers["Fresh Farms"].performance == pytest.approx(100 - 100 / 3)


def test_inventory_csv() -> None:
    lines = inventory_csv([_item("milk", "Dairy", 10, 50, unit="l")]).splitlines()
    assert lines[0] == "Item Name,Category,Current Stock,Unit,Status,Value,Supplier,Expiry Date"
    row = lines[1].split(",")
    assert row[:2] == ["milk", "Dairy"]
    assert row[3:] == ["l", "in_stock", "500.00", "Fresh Farms", ""]
