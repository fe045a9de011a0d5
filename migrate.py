import argparse
import json

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from restaurant_app.config import settings
from restaurant_app.db import Base, SessionLocal, engine
from restaurant_app.document_store import DocumentStore
from restaurant_app.json_store import JsonFileStore
from restaurant_app.logging_config import configure_logging
from restaurant_app.migrations import (
    JSON_FILES_JOB,
    ORDER_BACKFILL_JOB,
    REALTIME_JOB,
    CheckpointLedger,
    backup_collections,
    load_legacy_orders,
    migrate_all,
    migrate_all_legacy_orders,
    verify_collections,
)
from restaurant_app.realtime_source import read_tree


def check_db() -> bool:
    print(f"DATABASE_URL={settings.database_url}")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("DB connection OK")
        return True
    except SQLAlchemyError as exc:
        print("DB connection FAILED")
        print(exc)
        return False


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Move legacy restaurant data into the document store.")
    parser.add_argument("--check-db", action="store_true", help="only test the database connection")
    parser.add_argument("--verify", action="store_true", help="print document counts per migrated collection")
    parser.add_argument("--backup", action="store_true", help="write a JSON backup of the migrated collections")
    parser.add_argument("--no-backup", action="store_true", help="skip the backup taken before migrating")
    parser.add_argument("--resume", action="store_true", help="skip units that completed on an earlier run")
    parser.add_argument("--force", action="store_true", help="clear the checkpoint ledger before migrating")
    parser.add_argument("--orders", action="store_true", help="back-fill legacy orders onto customer accounts")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(settings.log_level)
    if args.check_db:
        return 0 if check_db() else 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        store = DocumentStore(db)
        files = JsonFileStore(settings.data_dir)
        ledger = CheckpointLedger(db)

        if args.verify:
            print(json.dumps(verify_collections(store), indent=2))
            return 0
        if args.backup:
            path = backup_collections(store, settings.backup_dir)
            print(f"backup written to {path}" if path else "backup failed")
            return 0 if path else 1

        if args.orders:
            if args.force:
                ledger.reset(ORDER_BACKFILL_JOB)
            stats = migrate_all_legacy_orders(
                store,
                load_legacy_orders(files),
                delay=settings.order_migration_delay_seconds,
                ledger=ledger,
                resume=args.resume,
            )
            print(json.dumps(stats, indent=2))
            return 0 if stats["errors"] == 0 else 1

        if args.force:
            ledger.reset(REALTIME_JOB)
            ledger.reset(JSON_FILES_JOB)
        if not args.no_backup:
            backup_collections(store, settings.backup_dir)
        result = migrate_all(
            store,
            files,
            lambda: read_tree(
                settings.realtime_database_url,
                settings.realtime_database_secret,
                settings.realtime_export_path,
            ),
            ledger=ledger,
            chunk_size=settings.migration_batch_size,
            resume=args.resume,
        )
        print(json.dumps(result.to_json(), indent=2))
        return 0 if result.success and not result.failed else 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
