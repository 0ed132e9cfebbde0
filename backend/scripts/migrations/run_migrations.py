#!/usr/bin/env python3
"""
Script: run_migrations.py
Purpose: Apply backend/migrations/*.sql in filename order

Each migration runs in its own transaction together with its row in
schema_migrations, so a failed file leaves no trace and is retried on the
next run. Already-applied files are skipped.

Usage:
    cd backend
    python scripts/migrations/run_migrations.py [--dry-run]

Options:
    --dry-run    List pending migrations without applying them
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List

# Add backend to path
BACKEND_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv

# Load environment
load_dotenv(BACKEND_DIR / '.env')

from marketplace.core.config import settings
from marketplace.core.database import Database
from marketplace.core.errors import MarketplaceError
from marketplace.core.logging_config import setup_logging

MIGRATIONS_DIR = BACKEND_DIR / 'migrations'

logger = logging.getLogger("run_migrations")


def ensure_migrations_table(db: Database) -> None:
    with db.cursor() as cursor:
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS schema_migrations (
                filename    VARCHAR(255) PRIMARY KEY,
                applied_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
            )
        """)


def applied_migrations(db: Database) -> set:
    with db.cursor() as cursor:
        cursor.execute("SELECT filename FROM schema_migrations")
        return {row['filename'] for row in cursor.fetchall()}


def pending_migrations(db: Database, migrations_dir: Path = MIGRATIONS_DIR) -> List[Path]:
    done = applied_migrations(db)
    return [path for path in sorted(migrations_dir.glob('*.sql')) if path.name not in done]


def apply_migration(db: Database, path: Path) -> None:
    sql = path.read_text(encoding='utf-8')
    with db.transaction() as cursor:
        cursor.execute(sql)
        cursor.execute("INSERT INTO schema_migrations (filename) VALUES (%s)", (path.name,))
    logger.info(f"Applied {path.name}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply pending SQL migrations")
    parser.add_argument('--dry-run', action='store_true', help="List pending migrations only")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)
    db = Database.from_settings(settings)

    try:
        db.open()
        ensure_migrations_table(db)
        pending = pending_migrations(db)

        if not pending:
            logger.info("Database is up to date")
            return 0

        for path in pending:
            if args.dry_run:
                logger.info(f"Pending: {path.name}")
                continue
            apply_migration(db, path)

        return 0
    except MarketplaceError as e:
        logger.error(f"Migration failed: {e.message}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
