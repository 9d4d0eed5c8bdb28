"""Data Access Layer for expenses.

Responsibilities
----------------
- Insert expenses at most once per idempotency key. The UNIQUE constraint on
  ``expenses.idempotency_key`` is what closes the check-then-insert race; a
  constraint violation on that key is answered with the row that won.
- List expenses with an optional exact category filter and date ordering.
- Aggregate totals per category with each category's share of the grand total.

Every public method opens its own connection, runs a single transaction and
closes the connection again. ``sqlite3`` failures leave this module as
``StorageError``.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
import logging
import sqlite3
import threading
import uuid
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from expense_api.core.errors import StorageError
from expense_api.models import NormalizedExpense, SORT_DATE_DESC
from expense_api.services.money import percentage

EXPENSE_COLUMNS = (
    "id, amount, category, description, date, created_at, idempotency_key"
)

logger = logging.getLogger("expense_api.db")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseStore:
    def __init__(
        self,
        db_path: Path,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.db_path = db_path
        self.timeout = timeout
        self._clock = clock
        self._clock_lock = threading.Lock()
        self._last_created_at: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Connection helpers
    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            with conn:  # commit on success, rollback on error
                yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    def _next_created_at(self) -> str:
        """Return an insertion timestamp never earlier than the previous one."""
        with self._clock_lock:
            now = self._clock().astimezone(timezone.utc)
            now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
            if self._last_created_at is not None and now < self._last_created_at:
                now = self._last_created_at
            self._last_created_at = now
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    # ------------------------------------------------------------------
    # Writes
    def create_expense(
        self, expense: NormalizedExpense, idempotency_key: Optional[str] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """Insert ``expense`` unless ``idempotency_key`` was already used.

        Returns ``(record, created)``; ``created`` is False when an existing
        record was returned for a repeated key. The existing record is
        returned as stored, whatever ``expense`` holds.
        """
        if idempotency_key:
            existing = self.get_by_idempotency_key(idempotency_key)
            if existing is not None:
                logger.info(
                    "idempotent replay",
                    extra={"fields": {"expense_id": existing["id"]}},
                )
                return existing, False

        expense_id = str(uuid.uuid4())
        created_at = self._next_created_at()
        with self._connect() as conn:
            try:
                conn.execute(
                    f"""
                    INSERT INTO expenses ({EXPENSE_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        expense_id,
                        expense.amount,
                        expense.category,
                        expense.description,
                        expense.date.isoformat(),
                        created_at,
                        idempotency_key or None,
                    ),
                )
            except sqlite3.IntegrityError:
                if not idempotency_key:
                    raise
                # Lost the race to a concurrent insert with the same key
                row = self._fetch_by_idempotency_key(conn, idempotency_key)
                if row is None:
                    raise
                logger.info(
                    "idempotent replay after conflict",
                    extra={"fields": {"expense_id": row["id"]}},
                )
                return row, False
            row = self._fetch_by_id(conn, expense_id)
        if row is None:
            raise StorageError(f"expense {expense_id} not found after insert")
        logger.info(
            "expense created",
            extra={"fields": {"expense_id": expense_id, "amount": expense.amount}},
        )
        return row, True

    # ------------------------------------------------------------------
    # Reads
    def get_expense(self, expense_id: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            return self._fetch_by_id(conn, expense_id)

    def get_by_idempotency_key(self, key: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            return self._fetch_by_idempotency_key(conn, key)

    def list_expenses(
        self, category: Optional[str] = None, sort: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Return expenses, optionally of one category (exact match).

        ``sort="date_desc"`` orders newest date first; equal dates keep a
        fixed order (latest insertion first). Any other ``sort`` value returns
        rows in insertion order.
        """
        clauses: List[str] = []
        params: List[Any] = []
        if category is not None:
            clauses.append("category = ?")
            params.append(category)
        where = " WHERE " + " AND ".join(clauses) if clauses else ""
        if sort == SORT_DATE_DESC:
            order = " ORDER BY date DESC, created_at DESC, rowid DESC"
        else:
            order = " ORDER BY rowid ASC"
        sql = f"SELECT {EXPENSE_COLUMNS} FROM expenses{where}{order}"
        with self._connect() as conn:
            return [dict(r) for r in conn.execute(sql, params).fetchall()]

    def count_expenses(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) FROM expenses").fetchone()
            return int(row[0] if row and row[0] is not None else 0)

    # ------------------------------------------------------------------
    # Aggregations
    def summarize(self) -> List[Dict[str, Any]]:
        """Totals per category, largest first, with percentage of grand total.

        Percentages are rounded to 2 places independently per category, so
        they may not add up to exactly 100. An empty table yields ``[]``.
        """
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT category, SUM(amount) AS total_amount
                FROM expenses
                GROUP BY category
                ORDER BY total_amount DESC, category ASC
                """
            ).fetchall()
        totals = [dict(r) for r in rows]
        grand = sum(r["total_amount"] for r in totals)
        if grand == 0:
            return []
        for r in totals:
            r["percentage"] = percentage(r["total_amount"], grand)
        return totals

    # ------------------------------------------------------------------
    # Row fetch helpers (caller owns the connection)
    @staticmethod
    def _fetch_by_id(
        conn: sqlite3.Connection, expense_id: str
    ) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            f"SELECT {EXPENSE_COLUMNS} FROM expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        return dict(row) if row else None

    @staticmethod
    def _fetch_by_idempotency_key(
        conn: sqlite3.Connection, key: str
    ) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            f"SELECT {EXPENSE_COLUMNS} FROM expenses WHERE idempotency_key = ?",
            (key,),
        ).fetchone()
        return dict(row) if row else None
