"""Customer profiles and their orders in the document store."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from restaurant_app.customer_matching import CUSTOMERS
from restaurant_app.document_store import DocumentSnapshot, DocumentStore
from restaurant_app.schemas import CustomerAddress

logger = logging.getLogger(__name__)

ORDERS = "orders"
DEFAULT_DISPLAY_NAME = "Customer"
PROFILE_FIELDS = ("displayName", "phoneNumber", "photoUrl", "preferences")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_address_id() -> str:
    return f"addr_{uuid4().hex[:12]}"


def ensure_customer_profile(
    store: DocumentStore,
    uid: str,
    email: Optional[str] = None,
    display_name: Optional[str] = None,
    phone_number: Optional[str] = None,
    photo_url: Optional[str] = None,
) -> tuple[DocumentSnapshot, bool]:
    """Return the profile for ``uid``, creating it on first login.

    The second element tells whether the profile was created by this call.
    """
    existing = store.get(CUSTOMERS, uid)
    if existing is not None:
        return existing, False
    now = _now_iso()
    profile = store.set(
        CUSTOMERS,
        uid,
        {
            "uid": uid,
            "email": email or "",
            "displayName": display_name or DEFAULT_DISPLAY_NAME,
            "phoneNumber": phone_number,
            "photoUrl": photo_url,
            "addresses": [],
            "createdAt": now,
            "updatedAt": now,
        },
    )
    logger.info("created customer profile %s", uid)
    return profile, True


def get_customer_profile(store: DocumentStore, uid: str) -> Optional[DocumentSnapshot]:
    return store.get(CUSTOMERS, uid)


def update_customer_profile(store: DocumentStore, uid: str, fields: dict) -> Optional[DocumentSnapshot]:
    allowed = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
    allowed["updatedAt"] = _now_iso()
    return store.update(CUSTOMERS, uid, allowed)


def _with_single_default(addresses: list[dict], default_id: str) -> list[dict]:
    return [{**address, "isDefault": address["id"] == default_id} for address in addresses]


def _save_addresses(store: DocumentStore, uid: str, addresses: list[dict]) -> Optional[DocumentSnapshot]:
    return store.update(CUSTOMERS, uid, {"addresses": addresses, "updatedAt": _now_iso()})


def add_address(store: DocumentStore, uid: str, address: CustomerAddress) -> Optional[DocumentSnapshot]:
    profile = store.get(CUSTOMERS, uid)
    if profile is None:
        return None
    new_address = address.to_json()
    new_address["id"] = _new_address_id()
    addresses = [*profile.data.get("addresses", []), new_address]
    if len(addresses) == 1 or new_address["isDefault"]:
        addresses = _with_single_default(addresses, new_address["id"])
    return _save_addresses(store, uid, addresses)


def update_address(store: DocumentStore, uid: str, address_id: str, fields: dict) -> Optional[DocumentSnapshot]:
    profile = store.get(CUSTOMERS, uid)
    if profile is None:
        return None
    addresses = profile.data.get("addresses", [])
    if not any(address["id"] == address_id for address in addresses):
        return None
    fields = {key: value for key, value in fields.items() if key != "id"}
    addresses = [
        {**address, **fields} if address["id"] == address_id else address for address in addresses
    ]
    if fields.get("isDefault"):
        addresses = _with_single_default(addresses, address_id)
    return _save_addresses(store, uid, addresses)


def remove_address(store: DocumentStore, uid: str, address_id: str) -> Optional[DocumentSnapshot]:
    profile = store.get(CUSTOMERS, uid)
    if profile is None:
        return None
    addresses = [address for address in profile.data.get("addresses", []) if address["id"] != address_id]
    if addresses and not any(address.get("isDefault") for address in addresses):
        addresses[0] = {**addresses[0], "isDefault": True}
    return _save_addresses(store, uid, addresses)


def create_customer_order(store: DocumentStore, uid: str, order: dict) -> DocumentSnapshot:
    data = {key: value for key, value in order.items() if key not in ("id", "customerId", "timestamp")}
    data["customerId"] = uid
    data["timestamp"] = _now_iso()
    data.setdefault("status", "pending")
    snapshot = store.add(ORDERS, data)
    logger.info("customer %s placed order %s", uid, snapshot.id)
    return snapshot


def list_customer_orders(store: DocumentStore, uid: str) -> list[DocumentSnapshot]:
    orders = store.where(ORDERS, ("customerId", uid))
    return sorted(orders, key=lambda snapshot: snapshot.data.get("timestamp") or "", reverse=True)
