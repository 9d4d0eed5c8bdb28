"""Database migration utilities.

Handles schema evolution by applying idempotent migrations keyed by SQLite's
``PRAGMA user_version`` so no bookkeeping table is needed next to
``expenses``. Each migration upgrades the schema in-place while preserving
user data.
"""

from __future__ import annotations
from pathlib import Path
import logging
import sqlite3

from . import schema as schema_def
from .schema import init_db

CURRENT_SCHEMA_VERSION = 1

logger = logging.getLogger("expense_api.db.migrate")


def get_schema_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("PRAGMA user_version").fetchone()
    return int(row[0]) if row else 0


def apply_migrations(db_path: Path) -> int:
    """Apply required migrations and return resulting schema version."""
    init_db(db_path)
    conn = sqlite3.connect(db_path)
    try:
        version = get_schema_version(conn)
        if version > CURRENT_SCHEMA_VERSION:
            raise RuntimeError(
                f"database schema version {version} is newer than supported "
                f"version {CURRENT_SCHEMA_VERSION}"
            )
        if version < 1:
            _migrate_to_v1(conn)
            version = 1
            logger.info("migrated database", extra={"fields": {"version": version}})
        _set_schema_version(conn, version)
        conn.commit()
        return version
    finally:
        conn.close()


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    # PRAGMA does not accept bound parameters
    conn.execute(f"PRAGMA user_version = {int(version)}")


def _migrate_to_v1(conn: sqlite3.Connection) -> None:
    """Upgrade schema to version 1 (lookup indexes for filter and sort)."""
    cur = conn.cursor()
    try:
        cur.execute(schema_def.EXPENSES_DATE_INDEX_DDL)
        cur.execute(schema_def.EXPENSES_CATEGORY_INDEX_DDL)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
