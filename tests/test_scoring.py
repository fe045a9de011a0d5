import pytest

from restaurant_app.scoring import (
    INVENTORY_WEIGHTS,
    WAITER_WEIGHTS,
    inventory_score,
    normalize,
    normalize_inverted,
    rank,
    round_half_up,
    waiter_score,
)


def test_waiter_example_scores_72() -> None:
    breakdown = waiter_score(orders=52, revenue=89500, rating=4.7, priority="orders")
    assert breakdown.normalized["orders"] == pytest.approx(0.52)
    assert breakdown.normalized["revenue"] == pytest.approx(0.895)
    assert breakdown.normalized["rating"] == pytest.approx(0.94)
    assert breakdown.score == 72


def test_weight_sets_sum_to_one() -> None:
    for table in (WAITER_WEIGHTS, INVENTORY_WEIGHTS):
        for weights in table.values():
            assert sum(weights.values()) == pytest.approx(1.0)


def test_normalize_clamps() -> None:
    assert normalize(-5, 100) == 0.0
    assert normalize(0, 100) == 0.0
    assert normalize(250, 100) == 1.0
    assert normalize_inverted(0, 10) == 1.0
    assert normalize_inverted(20, 10) == 0.0


@pytest.mark.parametrize("priority", sorted(WAITER_WEIGHTS))
def test_waiter_score_within_bounds(priority: str) -> None:
    assert waiter_score(0, 0, 0, priority).score == 0
    assert waiter_score(10_000, 10_000_000, 50, priority).score == 100


@pytest.mark.parametrize("priority", sorted(INVENTORY_WEIGHTS))
def test_inventory_score_within_bounds(priority: str) -> None:
    best = inventory_score(value=1_000_000, stock_health=100, turnover=12, alerts=0, priority=priority)
    worst = inventory_score(value=0, stock_health=0, turnover=0, alerts=50, priority=priority)
    assert best.score == 100
    assert worst.score == 0


def test_priority_changes_only_weights() -> None:
    by_orders = waiter_score(40, 50_000, 4.2, "orders")
    by_rating = waiter_score(40, 50_000, 4.2, "rating")
    assert by_orders.normalized == by_rating.normalized
    assert by_orders.weights != by_rating.weights


def test_unknown_priority_rejected() -> None:
    with pytest.raises(ValueError):
        waiter_score(1, 1, 1, "speed")
    with pytest.raises(ValueError):
        inventory_score(1, 1, 1, 1, "freshness")


def test_round_half_up_rounds_halves_up() -> None:
    assert round_half_up(72.5) == 73
    assert round_half_up(0.5) == 1
    assert round_half_up(2.125, 2) == pytest.approx(2.13)
    assert round(72.5) == 72


def test_rank_is_stable_for_ties() -> None:
    entities = [("a", 50), ("b", 70), ("c", 50), ("d", 70)]
    ranked = rank(entities, key=lambda entity: entity[1])
    assert [name for name, _ in ranked] == ["b", "d", "a", "c"]
