"""Document database used for customer profiles, customer orders and migrated data.

Documents live in named collections and are addressed by a string id, the
same model the hosted document database exposes. Rows are stored through
SQLAlchemy so the store runs on Postgres in production and SQLite in tests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Optional
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from restaurant_app.errors import BatchLimitError
from restaurant_app.models import Document

logger = logging.getLogger(__name__)

MAX_BATCH_OPERATIONS = 500


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DocumentSnapshot:
    id: str
    collection: str
    data: dict

    def to_dict(self) -> dict:
        return {"id": self.id, **self.data}


class WriteBatch:
    """Collects set operations and commits them in a single transaction."""

    def __init__(self, store: DocumentStore, limit: int = MAX_BATCH_OPERATIONS) -> None:
        self._store = store
        self._limit = limit
        self._writes: list[tuple[str, str, dict]] = []

    def __len__(self) -> int:
        return len(self._writes)

    def set(self, collection: str, doc_id: str, data: dict) -> WriteBatch:
        self._writes.append((collection, str(doc_id), dict(data)))
        return self

    def commit(self) -> int:
        if len(self._writes) > self._limit:
            raise BatchLimitError(len(self._writes), self._limit)
        db = self._store.db
        pending: dict[tuple[str, str], Document] = {}
        try:
            for collection, doc_id, data in self._writes:
                key = (collection, doc_id)
                row = pending.get(key) or self._store._row(collection, doc_id)
                now = _now()
                if row is None:
                    row = Document(
                        collection=collection,
                        doc_id=doc_id,
                        data=data,
                        created_at=now,
                        updated_at=now,
                    )
                    db.add(row)
                else:
                    row.data = data
                    row.updated_at = now
                pending[key] = row
            db.commit()
        except Exception:
            db.rollback()
            raise
        committed = len(self._writes)
        self._writes = []
        return committed


class DocumentStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, collection: str, doc_id: str) -> Optional[Document]:
        return self.db.execute(
            select(Document).where(
                Document.collection == collection,
                Document.doc_id == str(doc_id),
            )
        ).scalar_one_or_none()

    def batch(self, limit: int = MAX_BATCH_OPERATIONS) -> WriteBatch:
        return WriteBatch(self, limit=limit)

    def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        row = self._row(collection, doc_id)
        if row is None:
            return None
        return DocumentSnapshot(id=row.doc_id, collection=collection, data=dict(row.data))

    def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> DocumentSnapshot:
        if merge:
            current = self.get(collection, doc_id)
            if current is not None:
                data = {**current.data, **data}
        self.batch().set(collection, doc_id, data).commit()
        return DocumentSnapshot(id=str(doc_id), collection=collection, data=dict(data))

    def add(self, collection: str, data: dict) -> DocumentSnapshot:
        return self.set(collection, uuid4().hex, data)

    def update(self, collection: str, doc_id: str, fields: dict) -> Optional[DocumentSnapshot]:
        if self._row(collection, doc_id) is None:
            return None
        return self.set(collection, doc_id, fields, merge=True)

    def _snapshots(self, collection: str, *criteria) -> list[DocumentSnapshot]:
        rows = self.db.execute(
            select(Document)
            .where(Document.collection == collection, *criteria)
            .order_by(Document.id)
        ).scalars()
        return [
            DocumentSnapshot(id=row.doc_id, collection=collection, data=dict(row.data))
            for row in rows
        ]

    def stream(self, collection: str) -> list[DocumentSnapshot]:
        return self._snapshots(collection)

    def where(self, collection: str, *conditions: tuple[str, Any]) -> list[DocumentSnapshot]:
        """Equality query on top-level fields, in collection scan order."""
        return self._snapshots(collection, *(_field_equals(field, value) for field, value in conditions))

    def count(self, collection: str) -> int:
        return self.db.execute(
            select(func.count(Document.id)).where(Document.collection == collection)
        ).scalar_one()


def _field_equals(field: str, value: Any):
    element = Document.data[field]
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, int):
        return element.as_integer() == value
    if isinstance(value, float):
        return element.as_float() == value
    if isinstance(value, str):
        return element.as_string() == value
    raise TypeError(f"unsupported value for equality query on {field!r}: {type(value).__name__}")


def _chunks(writes: Iterable[tuple[str, str, dict]], size: int) -> Iterator[list[tuple[str, str, dict]]]:
    chunk: list[tuple[str, str, dict]] = []
    for write in writes:
        chunk.append(write)
        if len(chunk) == size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


def write_in_chunks(
    store: DocumentStore,
    writes: Iterable[tuple[str, str, dict]],
    chunk_size: int = MAX_BATCH_OPERATIONS,
) -> int:
    """Commit writes in batches of at most ``chunk_size`` operations.

    Each chunk is atomic on its own. A failure leaves earlier chunks committed
    and propagates to the caller.
    """
    if chunk_size < 1 or chunk_size > MAX_BATCH_OPERATIONS:
        raise ValueError(f"chunk_size must be between 1 and {MAX_BATCH_OPERATIONS}")
    written = 0
    for index, chunk in enumerate(_chunks(writes, chunk_size)):
        batch = store.batch()
        for collection, doc_id, data in chunk:
            batch.set(collection, doc_id, data)
        written += batch.commit()
        logger.debug("committed chunk %s (%s writes, %s total)", index, len(chunk), written)
    return written
