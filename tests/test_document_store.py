import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from restaurant_app.db import Base
from restaurant_app.document_store import DocumentStore


def _make_store() -> DocumentStore:
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    Base.metadata.create_all(bind=engine)
    return DocumentStore(TestingSessionLocal())


def _seed(store: DocumentStore) -> None:
    store.set("customers", "asha", {"displayName": "Asha Rao", "visits": 3, "vip": True})
    store.set("customers", "ravi", {"displayName": "Ravi Kumar", "visits": 3, "vip": False})
    store.set("customers", "meera", {"displayName": "Meera", "visits": 1, "phoneNumber": None})
    store.set("orders", "o1", {"displayName": "Asha Rao"})


def test_set_replaces_unless_merging() -> None:
    store = _make_store()
    store.set("customers", "asha", {"displayName": "Asha Rao", "phoneNumber": "9876543210"})

    merged = store.set("customers", "asha", {"photoURL": "a.png"}, merge=True)
    assert merged.data == {"displayName": "Asha Rao", "phoneNumber": "9876543210", "photoURL": "a.png"}
    assert store.get("customers", "asha").data == merged.data

    replaced = store.set("customers", "asha", {"displayName": "Asha"})
    assert store.get("customers", "asha").data == replaced.data == {"displayName": "Asha"}

    created = store.set("customers", "new", {"displayName": "New"}, merge=True)
    assert created.data == {"displayName": "New"}


def test_update_needs_an_existing_document() -> None:
    store = _make_store()
    assert store.update("customers", "missing", {"visits": 1}) is None
    assert store.get("customers", "missing") is None

    store.set("customers", "asha", {"displayName": "Asha Rao", "visits": 3})
    updated = store.update("customers", "asha", {"visits": 4})
    assert updated.data == {"displayName": "Asha Rao", "visits": 4}
    assert store.count("customers") == 1


def test_where_filters_in_the_database() -> None:
    store = _make_store()
    _seed(store)

    assert [s.id for s in store.where("customers", ("displayName", "Asha Rao"))] == ["asha"]
    assert [s.id for s in store.where("customers", ("visits", 3))] == ["asha", "ravi"]
    assert [s.id for s in store.where("customers", ("visits", 3), ("vip", False))] == ["ravi"]
    assert [s.id for s in store.where("customers", ("vip", True))] == ["asha"]
    assert store.where("customers", ("displayName", "asha rao")) == []
    assert store.where("customers", ("phoneNumber", "9876543210")) == []
    assert [s.id for s in store.where("customers")] == ["asha", "ravi", "meera"]


def test_where_rejects_unsupported_values() -> None:
    store = _make_store()
    with pytest.raises(TypeError):
        store.where("customers", ("addresses", []))
