"""Attach legacy orders to customer accounts.

A legacy order carries only free-text customer details. Candidate customers
are found by exact display name, exact phone number and street-address
containment; every signal contributes to a confidence score in [0, 1] taken
from a versioned ``MatchWeights`` table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from restaurant_app.document_store import DocumentStore
from restaurant_app.schemas import LegacyOrder

logger = logging.getLogger(__name__)

CUSTOMERS = "customers"
WALK_IN_CUSTOMER = "Walk-in Customer"


@dataclass(frozen=True)
class MatchWeights:
    version: str
    name: float
    phone: float
    phone_boost: float
    address: float
    address_boost: float
    threshold: float


MATCH_WEIGHTS_V1 = MatchWeights(
    version="v1",
    name=0.8,
    phone=0.9,
    phone_boost=0.3,
    address=0.6,
    address_boost=0.2,
    threshold=0.6,
)


@dataclass
class CustomerMatch:
    customer_id: str
    customer: dict
    reasons: list[str] = field(default_factory=list)
    confidence: float = 0.0

    @property
    def match_reason(self) -> str:
        return "+".join(self.reasons)

    @property
    def display_name(self) -> Optional[str]:
        return self.customer.get("displayName")


def has_customer_name(order: LegacyOrder) -> bool:
    name = (order.customer_name or "").strip()
    return bool(name) and name != WALK_IN_CUSTOMER


def _boost(current: float, amount: float) -> float:
    return round(min(1.0, current + amount), 4)


def _street_matches(customer: dict, street: str) -> bool:
    wanted = street.lower()
    for address in customer.get("addresses") or []:
        saved = (address.get("streetAddress") or "").lower()
        if not saved:
            continue
        if wanted in saved or saved in wanted:
            return True
    return False


def find_customer_matches(
    store: DocumentStore, order: LegacyOrder, weights: MatchWeights = MATCH_WEIGHTS_V1
) -> list[CustomerMatch]:
    matches: dict[str, CustomerMatch] = {}

    if has_customer_name(order):
        for snapshot in store.where(CUSTOMERS, ("displayName", order.customer_name.strip())):
            matches[snapshot.id] = CustomerMatch(
                customer_id=snapshot.id,
                customer=snapshot.data,
                reasons=["name"],
                confidence=weights.name,
            )

    if order.customer_phone:
        for snapshot in store.where(CUSTOMERS, ("phoneNumber", order.customer_phone)):
            existing = matches.get(snapshot.id)
            if existing:
                existing.confidence = _boost(existing.confidence, weights.phone_boost)
                existing.reasons.append("phone")
            else:
                matches[snapshot.id] = CustomerMatch(
                    customer_id=snapshot.id,
                    customer=snapshot.data,
                    reasons=["phone"],
                    confidence=weights.phone,
                )

    street = (order.delivery_address.street_address if order.delivery_address else None) or ""
    if street:
        for snapshot in store.stream(CUSTOMERS):
            if not _street_matches(snapshot.data, street):
                continue
            existing = matches.get(snapshot.id)
            if existing:
                existing.confidence = _boost(existing.confidence, weights.address_boost)
                existing.reasons.append("address")
            else:
                matches[snapshot.id] = CustomerMatch(
                    customer_id=snapshot.id,
                    customer=snapshot.data,
                    reasons=["address"],
                    confidence=weights.address,
                )

    return sorted(matches.values(), key=lambda match: match.confidence, reverse=True)


def best_match(
    matches: list[CustomerMatch], weights: MatchWeights = MATCH_WEIGHTS_V1
) -> Optional[CustomerMatch]:
    if not matches or matches[0].confidence < weights.threshold:
        return None
    return matches[0]
