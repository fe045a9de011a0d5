from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_app.customers import (
    add_address,
    create_customer_order,
    ensure_customer_profile,
    list_customer_orders,
    remove_address,
    update_address,
    update_customer_profile,
)
from restaurant_app.db import Base
from restaurant_app.document_store import DocumentStore
from restaurant_app.schemas import CustomerAddress


def _make_store() -> DocumentStore:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    return DocumentStore(TestingSessionLocal())


def _defaults(snapshot) -> list[bool]:
    return [address["isDefault"] for address in snapshot.data["addresses"]]


def test_ensure_profile_creates_once() -> None:
    store = _make_store()
    profile, created = ensure_customer_profile(store, "u1", email="asha@example.com")
    assert created
    assert profile.data["displayName"] == "Customer"
    assert profile.data["addresses"] == []

    again, created = ensure_customer_profile(store, "u1", display_name="Someone Else")
    assert not created
    assert again.data["displayName"] == "Customer"


def test_update_profile_ignores_unknown_fields() -> None:
    store = _make_store()
    ensure_customer_profile(store, "u1")
    updated = update_customer_profile(store, "u1", {"displayName": "Asha", "email": "x@example.com"})
    assert updated.data["displayName"] == "Asha"
    assert updated.data["email"] == ""
    assert update_customer_profile(store, "missing", {"displayName": "x"}) is None


def test_single_default_address() -> None:
    store = _make_store()
    ensure_customer_profile(store, "u1")

    first = add_address(store, "u1", CustomerAddress(street_address="12 MG Road"))
    assert _defaults(first) == [True]

    second = add_address(store, "u1", CustomerAddress(street_address="4 Lake View"))
    assert _defaults(second) == [True, False]

    third = add_address(store, "u1", CustomerAddress(street_address="9 Hill Street", is_default=True))
    assert _defaults(third) == [False, False, True]

    second_id = third.data["addresses"][1]["id"]
    switched = update_address(store, "u1", second_id, {"isDefault": True, "label": "Work"})
    assert _defaults(switched) == [False, True, False]
    assert switched.data["addresses"][1]["label"] == "Work"
    assert update_address(store, "u1", "addr_missing", {"label": "x"}) is None


def test_removing_default_promotes_first_remaining() -> None:
    store = _make_store()
    ensure_customer_profile(store, "u1")
    add_address(store, "u1", CustomerAddress(street_address="12 MG Road"))
    profile = add_address(store, "u1", CustomerAddress(street_address="4 Lake View"))
    default_id = profile.data["addresses"][0]["id"]

    remaining = remove_address(store, "u1", default_id)
    assert [a["streetAddress"] for a in remaining.data["addresses"]] == ["4 Lake View"]
    assert _defaults(remaining) == [True]


def test_customer_orders() -> None:
    store = _make_store()
    create_customer_order(store, "u1", {"items": [{"name": "Thali"}], "total": 300, "customerId": "spoofed"})
    create_customer_order(store, "u2", {"items": [], "total": 50, "status": "completed"})

    [order] = list_customer_orders(store, "u1")
    assert order.data["customerId"] == "u1"
    assert order.data["status"] == "pending"
    assert list_customer_orders(store, "nobody") == []
