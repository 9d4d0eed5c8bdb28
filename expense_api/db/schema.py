"""Database schema DDL definitions and initialization utilities.

Tables:
  - expenses: individual expense records (the only persisted entity)

``amount`` is stored in integer minor units. ``idempotency_key`` is UNIQUE so
two racing creates with the same key cannot both insert; NULL keys never
collide.
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

EXPENSES_DDL = """
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    amount INTEGER NOT NULL CHECK (amount > 0),
    category TEXT NOT NULL CHECK (length(trim(category)) > 0),
    description TEXT NOT NULL DEFAULT '' CHECK (length(description) <= 255),
    date TEXT NOT NULL, -- ISO date (YYYY-MM-DD)
    created_at TEXT NOT NULL, -- ISO timestamp, UTC
    idempotency_key TEXT UNIQUE
);
"""

EXPENSES_DATE_INDEX_DDL = "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);"
EXPENSES_CATEGORY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(category);"
)

DDL_ORDER: Sequence[str] = (EXPENSES_DDL,)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()
