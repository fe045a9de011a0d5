"""Weighted 0-100 performance scores for waiters and inventory categories.

Every metric is normalized to [0, 1] against a fixed ceiling, then combined
with a weight set picked by the caller's priority. Weight sets sum to 1.0,
so the score is always within [0, 100].
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

WEIGHTING_VERSION = "2024-06.v1"

MAX_ORDERS = 100
MAX_RATING = 5
MAX_REVENUE = 100_000
MAX_VALUE = 150_000
MAX_HEALTH = 100
MAX_TURNOVER = 6
MAX_ALERTS = 10

WAITER_METRICS = ("orders", "revenue", "rating")
INVENTORY_METRICS = ("value", "health", "turnover", "alerts")

WAITER_WEIGHTS: dict[str, dict[str, float]] = {
    "orders": {"orders": 0.5, "revenue": 0.2, "rating": 0.3},
    "revenue": {"orders": 0.2, "revenue": 0.5, "rating": 0.3},
    "rating": {"orders": 0.2, "revenue": 0.3, "rating": 0.5},
}

INVENTORY_WEIGHTS: dict[str, dict[str, float]] = {
    "value": {"value": 0.4, "health": 0.2, "turnover": 0.2, "alerts": 0.2},
    "quantity": {"value": 0.2, "health": 0.4, "turnover": 0.2, "alerts": 0.2},
    "turnover": {"value": 0.2, "health": 0.2, "turnover": 0.4, "alerts": 0.2},
    "alerts": {"value": 0.2, "health": 0.2, "turnover": 0.2, "alerts": 0.4},
}

DEFAULT_WAITER_PRIORITY = "orders"
DEFAULT_INVENTORY_PRIORITY = "value"

T = TypeVar("T")


@dataclass(frozen=True)
class ScoreBreakdown:
    normalized: dict[str, float]
    weights: dict[str, float]
    score: int


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def normalize(metric: float, maximum: float) -> float:
    if metric <= 0:
        return 0.0
    return min(1.0, metric / maximum)


def normalize_inverted(metric: float, maximum: float) -> float:
    # fewer is better
    return 1.0 - normalize(metric, maximum)


def _weights(table: dict[str, dict[str, float]], priority: str) -> dict[str, float]:
    try:
        return table[priority]
    except KeyError:
        raise ValueError(
            f"unknown priority {priority!r}; expected one of {', '.join(table)}"
        ) from None


def _combine(normalized: dict[str, float], weights: dict[str, float]) -> ScoreBreakdown:
    total = sum(normalized[name] * weight for name, weight in weights.items())
    return ScoreBreakdown(normalized=normalized, weights=dict(weights), score=int(round_half_up(total * 100)))


def waiter_score(
    orders: float, revenue: float, rating: float, priority: str = DEFAULT_WAITER_PRIORITY
) -> ScoreBreakdown:
    weights = _weights(WAITER_WEIGHTS, priority)
    normalized = {
        "orders": normalize(orders, MAX_ORDERS),
        "revenue": normalize(revenue, MAX_REVENUE),
        "rating": normalize(rating, MAX_RATING),
    }
    return _combine(normalized, weights)


def inventory_score(
    value: float,
    stock_health: float,
    turnover: float,
    alerts: float,
    priority: str = DEFAULT_INVENTORY_PRIORITY,
) -> ScoreBreakdown:
    weights = _weights(INVENTORY_WEIGHTS, priority)
    normalized = {
        "value": normalize(value, MAX_VALUE),
        "health": normalize(stock_health, MAX_HEALTH),
        "turnover": normalize(turnover, MAX_TURNOVER),
        "alerts": normalize_inverted(alerts, MAX_ALERTS),
    }
    return _combine(normalized, weights)


def rank(entities: Iterable[T], key: Callable[[T], float]) -> list[T]:
    """Highest score first; equal scores keep their input order."""
    return sorted(entities, key=key, reverse=True)
