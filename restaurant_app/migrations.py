"""One-shot jobs that move legacy data into the document store.

Three jobs exist: copying the realtime database tree, copying the JSON data
files, and back-filling historical orders onto customer accounts. Each unit
of work (a collection, a file, an order) is attempted on its own; a failure is
logged, recorded in the checkpoint ledger and the job moves on. Top-level
entry points always return a summary instead of raising.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from restaurant_app.customer_matching import (
    MATCH_WEIGHTS_V1,
    MatchWeights,
    best_match,
    find_customer_matches,
    has_customer_name,
)
from restaurant_app.document_store import MAX_BATCH_OPERATIONS, DocumentStore, write_in_chunks
from restaurant_app.json_store import JsonFileStore
from restaurant_app.models import MigrationCheckpoint
from restaurant_app.order_analytics import parse_timestamp
from restaurant_app.schemas import DeliveryAddress, LegacyOrder

logger = logging.getLogger(__name__)

REALTIME_JOB = "realtime"
JSON_FILES_JOB = "json-files"
ORDER_BACKFILL_JOB = "order-backfill"
REALTIME_SOURCE = "realtimeDB"

MIGRATION_JSON_FILES = (
    "menu.json",
    "orders.json",
    "combos.json",
    "offers.json",
    "analytics_data.json",
    "menu-availability.json",
    "todays-special.json",
    "staff-credentials.json",
)

MIGRATED_COLLECTIONS = (
    "menu",
    "menu_products",
    "orders",
    "combos",
    "offers",
    "analytics_data",
    "menu_availability",
    "todays_special",
    "staff_credentials",
)

LEGACY_ORDERS_FILE = "analytics_data.json"
ORDERS = "orders"

Write = tuple[str, str, dict]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class CollectionStats:
    name: str
    documents_count: int = 0
    success: bool = True
    error: Optional[str] = None
    skipped: bool = False

    def to_json(self) -> dict:
        data = {"name": self.name, "documentsCount": self.documents_count, "success": self.success}
        if self.error:
            data["error"] = self.error
        if self.skipped:
            data["skipped"] = True
        return data


@dataclass
class MigrationResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    migrated_collections: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    total_documents: int = 0

    def to_json(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "message": self.message,
            "migratedCollections": self.migrated_collections,
            "totalDocuments": self.total_documents,
            "failed": self.failed,
            "skipped": self.skipped,
        }


class CheckpointLedger:
    """Per-unit job status, so a rerun can skip work that already completed."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, job: str, unit: str) -> Optional[MigrationCheckpoint]:
        return self.db.execute(
            select(MigrationCheckpoint).where(
                MigrationCheckpoint.job == job, MigrationCheckpoint.unit == unit
            )
        ).scalar_one_or_none()

    def is_done(self, job: str, unit: str) -> bool:
        row = self._row(job, unit)
        return row is not None and row.status == "done"

    def record(self, job: str, unit: str, status: str, documents: int = 0, error: Optional[str] = None) -> None:
        row = self._row(job, unit)
        if row is None:
            row = MigrationCheckpoint(job=job, unit=unit)
            self.db.add(row)
        row.status = status
        row.documents = documents
        row.error = error
        row.updated_at = datetime.now(timezone.utc)
        self.db.commit()

    def entries(self, job: str) -> list[dict]:
        rows = self.db.execute(
            select(MigrationCheckpoint)
            .where(MigrationCheckpoint.job == job)
            .order_by(MigrationCheckpoint.id)
        ).scalars()
        return [
            {
                "unit": row.unit,
                "status": row.status,
                "documents": row.documents,
                "error": row.error,
                "updatedAt": row.updated_at.isoformat(),
            }
            for row in rows
        ]

    def reset(self, job: str) -> None:
        for row in self.db.execute(
            select(MigrationCheckpoint).where(MigrationCheckpoint.job == job)
        ).scalars():
            self.db.delete(row)
        self.db.commit()


def with_metadata(item: Any, source: str, migrated_at: str, **extra: Any) -> dict:
    data = dict(item) if isinstance(item, dict) else {"value": item}
    data.update(extra)
    data["migratedFrom"] = source
    data["migratedAt"] = migrated_at
    return data


def collection_name_for(file_name: str) -> str:
    return file_name.removesuffix(".json").replace("-", "_")


def realtime_writes(key: str, value: Any, migrated_at: str) -> list[Write]:
    if isinstance(value, list):
        return [
            (key, f"{key}_{index}", with_metadata(item, REALTIME_SOURCE, migrated_at, originalIndex=index))
            for index, item in enumerate(value)
        ]
    if isinstance(value, dict):
        return [
            (key, str(child_key), with_metadata(child, REALTIME_SOURCE, migrated_at))
            for child_key, child in value.items()
            if isinstance(child, dict)
        ]
    return [(key, "data", with_metadata({"value": value}, REALTIME_SOURCE, migrated_at))]


def _doc_id(item: Any, key: str, fallback: str) -> str:
    if isinstance(item, dict) and item.get(key) not in (None, ""):
        return str(item[key])
    return fallback


def json_file_writes(collection: str, data: Any, source_file: str, migrated_at: str) -> list[Write]:
    """Decompose one JSON file into document writes, branching on its shape."""
    if isinstance(data, dict) and isinstance(data.get("orders"), list):
        return [
            (collection, _doc_id(order, "id", f"order_{index}"), with_metadata(order, source_file, migrated_at))
            for index, order in enumerate(data["orders"])
        ]

    if isinstance(data, dict) and isinstance(data.get("menu"), list):
        writes: list[Write] = []
        products_collection = f"{collection}_products"
        for category_index, category in enumerate(data["menu"]):
            writes.append(
                (collection, f"category_{category_index}", with_metadata(category, source_file, migrated_at))
            )
            products = category.get("products") if isinstance(category, dict) else None
            if not isinstance(products, list):
                continue
            for product_index, product in enumerate(products):
                writes.append(
                    (
                        products_collection,
                        _doc_id(product, "itemNo", f"product_{category_index}_{product_index}"),
                        with_metadata(product, source_file, migrated_at, category=category.get("category")),
                    )
                )
        return writes

    if isinstance(data, dict) and isinstance(data.get("combos"), list):
        return [
            (collection, _doc_id(combo, "id", f"combo_{index}"), with_metadata(combo, source_file, migrated_at))
            for index, combo in enumerate(data["combos"])
        ]

    if isinstance(data, list):
        return [
            (collection, f"{collection}_{index}", with_metadata(item, source_file, migrated_at, originalIndex=index))
            for index, item in enumerate(data)
        ]

    if isinstance(data, dict):
        if len(data) == 1:
            key, value = next(iter(data.items()))
            if isinstance(value, list):
                return [
                    (collection, f"{key}_{index}", with_metadata(item, source_file, migrated_at, originalIndex=index))
                    for index, item in enumerate(value)
                ]
        return [(collection, "data", with_metadata(data, source_file, migrated_at))]

    return [(collection, "data", with_metadata({"value": data}, source_file, migrated_at))]


def _run_unit(
    store: DocumentStore,
    ledger: Optional[CheckpointLedger],
    job: str,
    unit: str,
    name: str,
    plan: Callable[[], list[Write]],
    chunk_size: int,
    resume: bool,
) -> CollectionStats:
    if resume and ledger is not None and ledger.is_done(job, unit):
        logger.info("skipping %s, already migrated", unit)
        return CollectionStats(name=name, skipped=True)
    try:
        written = write_in_chunks(store, plan(), chunk_size)
    except Exception as exc:
        logger.exception("failed to migrate %s", unit)
        store.db.rollback()
        if ledger is not None:
            ledger.record(job, unit, "failed", error=str(exc))
        return CollectionStats(name=name, success=False, error=str(exc))
    if ledger is not None:
        ledger.record(job, unit, "done", documents=written)
    logger.info("migrated %s documents to %s", written, name)
    return CollectionStats(name=name, documents_count=written)


def migrate_realtime_tree(
    store: DocumentStore,
    tree: Optional[dict],
    ledger: Optional[CheckpointLedger] = None,
    chunk_size: int = MAX_BATCH_OPERATIONS,
    resume: bool = False,
) -> list[CollectionStats]:
    if not tree:
        return []
    migrated_at = _now_iso()
    return [
        _run_unit(
            store,
            ledger,
            REALTIME_JOB,
            f"realtime:{key}",
            key,
            lambda key=key, value=value: realtime_writes(key, value, migrated_at),
            chunk_size,
            resume,
        )
        for key, value in tree.items()
    ]


def migrate_json_files(
    store: DocumentStore,
    files: JsonFileStore,
    ledger: Optional[CheckpointLedger] = None,
    chunk_size: int = MAX_BATCH_OPERATIONS,
    resume: bool = False,
    file_names: Iterable[str] = MIGRATION_JSON_FILES,
) -> list[CollectionStats]:
    stats = []
    migrated_at = _now_iso()
    for file_name in file_names:
        if not files.exists(file_name):
            logger.info("file %s not found, skipping", file_name)
            continue
        collection = collection_name_for(file_name)

        def plan(file_name: str = file_name, collection: str = collection) -> list[Write]:
            return json_file_writes(collection, files.read(file_name), file_name, migrated_at)

        stats.append(
            _run_unit(store, ledger, JSON_FILES_JOB, file_name, collection, plan, chunk_size, resume)
        )
    return stats


def summarize(stats: list[CollectionStats]) -> MigrationResult:
    done = [stat for stat in stats if stat.success and not stat.skipped]
    failed = [stat for stat in stats if not stat.success]
    attempted = len(stats) - sum(1 for stat in stats if stat.skipped)
    for stat in failed:
        logger.warning("failed collection %s: %s", stat.name, stat.error)
    return MigrationResult(
        success=True,
        message=f"Migration completed! {len(done)}/{attempted} collections migrated successfully",
        migrated_collections=[stat.name for stat in done],
        failed=[stat.to_json() for stat in failed],
        skipped=[stat.name for stat in stats if stat.skipped],
        total_documents=sum(stat.documents_count for stat in stats),
    )


def migrate_all(
    store: DocumentStore,
    files: JsonFileStore,
    read_tree: Callable[[], Optional[dict]],
    ledger: Optional[CheckpointLedger] = None,
    chunk_size: int = MAX_BATCH_OPERATIONS,
    resume: bool = False,
) -> MigrationResult:
    """Copy the realtime tree and the JSON data files into the document store."""
    try:
        logger.info("starting migration to the document store")
        stats: list[CollectionStats] = []
        try:
            tree = read_tree()
        except Exception:
            logger.exception("could not read the realtime database, continuing with JSON files")
            tree = None
        stats.extend(migrate_realtime_tree(store, tree, ledger, chunk_size, resume))
        stats.extend(migrate_json_files(store, files, ledger, chunk_size, resume))
        result = summarize(stats)
        logger.info(
            "migration finished: %s collections, %s documents",
            len(result.migrated_collections),
            result.total_documents,
        )
        return result
    except Exception as exc:
        logger.exception("migration failed")
        return MigrationResult(success=False, error=str(exc) or "Unknown migration error")


def verify_collections(store: DocumentStore, names: Iterable[str] = MIGRATED_COLLECTIONS) -> list[dict]:
    results = []
    for name in names:
        count = store.count(name)
        logger.info("collection %s: %s documents", name, count)
        results.append({"name": name, "documentCount": count, "exists": count > 0})
    return results


def backup_collections(
    store: DocumentStore,
    backup_dir: str | Path,
    names: Iterable[str] = MIGRATED_COLLECTIONS,
) -> Optional[Path]:
    try:
        backup: dict[str, dict] = {}
        for name in names:
            snapshots = store.stream(name)
            if snapshots:
                backup[name] = {snapshot.id: snapshot.data for snapshot in snapshots}
                logger.info("backed up %s documents from %s", len(snapshots), name)
        directory = Path(backup_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"firestore-backup-{int(time.time() * 1000)}.json"
        with path.open("w", encoding="utf-8") as fh:
            json.dump(backup, fh, indent=2, ensure_ascii=False)
        logger.info("backup saved to %s", path)
        return path
    except Exception:
        logger.exception("backup failed")
        return None


def load_legacy_orders(files: JsonFileStore, file_name: str = LEGACY_ORDERS_FILE) -> list[LegacyOrder]:
    try:
        data = files.read(file_name, default={}) or {}
    except (OSError, ValueError):
        logger.exception("could not load legacy orders from %s", file_name)
        return []
    raw = data.get("orders")
    if raw is None:
        raw = (data.get("fullRecord") or {}).get("orders", [])
    orders = []
    for entry in raw:
        try:
            orders.append(LegacyOrder.model_validate(entry))
        except ValidationError as exc:
            order_id = entry.get("id") if isinstance(entry, dict) else None
            logger.warning("skipping malformed legacy order %s: %s", order_id, exc.error_count())
    return orders


def _as_stored(address: Optional[DeliveryAddress]) -> Optional[dict]:
    # only the keys the legacy order carried, nulls included
    if address is None:
        return None
    return address.model_dump(by_alias=True, exclude_unset=True, mode="json")


def _order_timestamp(order: LegacyOrder) -> str:
    return parse_timestamp(order.timestamp).isoformat()


def migrate_legacy_order(store: DocumentStore, order: LegacyOrder, customer_id: str) -> bool:
    try:
        timestamp = _order_timestamp(order)
        existing = store.where(ORDERS, ("customerId", customer_id), ("timestamp", timestamp))
        if existing:
            logger.info("order %s already exists for customer %s", order.id, customer_id)
            return True
        store.add(
            ORDERS,
            {
                "customerId": customer_id,
                "items": order.items,
                "total": order.total,
                "status": order.status,
                "orderType": order.order_type,
                "tableNumber": order.table_number,
                "deliveryAddress": _as_stored(order.delivery_address),
                "customerName": order.customer_name or "Customer",
                "timestamp": timestamp,
                "originalOrderId": order.id,
                "migratedAt": _now_iso(),
            },
        )
        logger.info("migrated order %s to customer %s", order.id, customer_id)
        return True
    except Exception:
        logger.exception("error migrating order %s to customer %s", order.id, customer_id)
        store.db.rollback()
        return False


def migrate_all_legacy_orders(
    store: DocumentStore,
    orders: list[LegacyOrder],
    delay: float = 0.1,
    ledger: Optional[CheckpointLedger] = None,
    resume: bool = False,
    weights: MatchWeights = MATCH_WEIGHTS_V1,
    sleep: Callable[[float], None] = time.sleep,
) -> dict:
    stats = {"processed": 0, "migrated": 0, "skipped": 0, "errors": 0}
    logger.info("found %s legacy orders to process", len(orders))
    for order in orders:
        stats["processed"] += 1
        try:
            if not has_customer_name(order):
                stats["skipped"] += 1
                continue
            if resume and ledger is not None and ledger.is_done(ORDER_BACKFILL_JOB, order.id):
                stats["skipped"] += 1
                continue
            matches = find_customer_matches(store, order, weights)
            if not matches:
                logger.info("no customer match for order %s (%s)", order.id, order.customer_name)
                stats["skipped"] += 1
                continue
            match = best_match(matches, weights)
            if match is None:
                logger.info("low confidence match for order %s, skipping", order.id)
                stats["skipped"] += 1
                continue
            logger.info(
                "migrating order %s to customer %s (confidence %s)",
                order.id,
                match.display_name,
                match.confidence,
            )
            if migrate_legacy_order(store, order, match.customer_id):
                stats["migrated"] += 1
                if ledger is not None:
                    ledger.record(ORDER_BACKFILL_JOB, order.id, "done", documents=1)
            else:
                stats["errors"] += 1
                if ledger is not None:
                    ledger.record(ORDER_BACKFILL_JOB, order.id, "failed", error="write failed")
            if delay:
                sleep(delay)
        except Exception:
            logger.exception("error processing order %s", order.id)
            stats["errors"] += 1
    logger.info("order migration completed: %s", stats)
    return stats


def generate_migration_report(
    store: DocumentStore, orders: list[LegacyOrder], weights: MatchWeights = MATCH_WEIGHTS_V1
) -> dict:
    report: dict[str, Any] = {
        "totalOrders": len(orders),
        "weightsVersion": weights.version,
        "migratable": [],
        "notMigratable": [],
    }
    for order in orders:
        if not has_customer_name(order):
            report["notMigratable"].append(
                {
                    "orderId": order.id,
                    "customerName": order.customer_name or "N/A",
                    "reason": "No customer name or walk-in customer",
                }
            )
            continue
        matches = find_customer_matches(store, order, weights)
        if not matches:
            report["notMigratable"].append(
                {"orderId": order.id, "customerName": order.customer_name, "reason": "No matching customer found"}
            )
        elif matches[0].confidence < weights.threshold:
            report["notMigratable"].append(
                {
                    "orderId": order.id,
                    "customerName": order.customer_name,
                    "reason": f"Low confidence match ({matches[0].confidence})",
                }
            )
        else:
            report["migratable"].append(
                {
                    "orderId": order.id,
                    "customerName": order.customer_name,
                    "matches": len(matches),
                    "bestMatchConfidence": matches[0].confidence,
                    "bestMatchName": matches[0].display_name,
                    "matchReason": matches[0].match_reason,
                }
            )
    return report
