"""SQLite implementation of the expense repository.

Responsibilities
----------------
- Own the single SQLite connection: opened explicitly at startup, closed at
  shutdown, shared across worker threads behind a lock.
- Translate filter / ordering / pagination descriptors into parameterized SQL.
- Map rows to ``Expense`` models and engine errors to ``RepositoryError``.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import sqlite3
import threading
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from expense_tracker.db.repository import (
    DEFAULT_ORDERING,
    ExpenseFilter,
    ExpenseRepository,
    ExpenseTotals,
    NewExpense,
    RepositoryError,
    SortKey,
)
from expense_tracker.db.schema import BASIC_UTC_NOW, init_db
from expense_tracker.models.constants import UPDATABLE_FIELDS
from expense_tracker.models.expense import CategoryTotal, Expense
from expense_tracker.services.timestamps import from_storage, to_storage

UTC_NOW_SQL = BASIC_UTC_NOW
# Largest value an SQLite INTEGER (and so a rowid) can hold.
MAX_ROW_ID = 2**63 - 1
SORTABLE_COLUMNS = {
    "id",
    "name",
    "amount",
    "currency",
    "category",
    "date",
    "created_at",
    "updated_at",
}


def _row_to_expense(row: sqlite3.Row) -> Expense:
    return Expense(
        id=int(row["id"]),
        name=row["name"],
        amount=float(row["amount"]),
        currency=row["currency"],
        category=row["category"],
        date=from_storage(row["date"]),
        created_at=from_storage(row["created_at"]),
        updated_at=from_storage(row["updated_at"]),
    )


def _where(expense_filter: ExpenseFilter) -> Tuple[str, List[Any]]:
    clauses: List[str] = []
    params: List[Any] = []
    if expense_filter.category is not None:
        clauses.append("category = ?")
        params.append(expense_filter.category)
    if expense_filter.from_date is not None:
        clauses.append("date >= ?")
        params.append(to_storage(expense_filter.from_date))
    if expense_filter.to_date is not None:
        clauses.append("date <= ?")
        params.append(to_storage(expense_filter.to_date))
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


def _order_by(ordering: Sequence[SortKey]) -> str:
    parts = []
    for key in ordering:
        if key.column not in SORTABLE_COLUMNS:
            raise ValueError(f"cannot order by '{key.column}'")
        parts.append(f"{key.column} {'DESC' if key.descending else 'ASC'}")
    return " ORDER BY " + ", ".join(parts) if parts else ""


class Database(ExpenseRepository):
    def __init__(self, db_path: Union[Path, str]):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Lifecycle
    def open(self) -> "Database":
        with self._lock:
            if self._conn is not None:
                return self
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                init_db(conn)
            except sqlite3.Error as exc:
                raise RepositoryError("open", str(exc)) from exc
            self._conn = conn
            return self

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            if self._conn is None:
                raise RepositoryError(operation, "database is not open")
            conn = self._conn
            try:
                yield conn.cursor()
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise RepositoryError(operation, str(exc)) from exc
            except Exception:
                conn.rollback()
                raise

    @staticmethod
    def _fetch(cur: sqlite3.Cursor, expense_id: int) -> Optional[Expense]:
        cur.execute("SELECT * FROM expenses WHERE id = ?", (expense_id,))
        row = cur.fetchone()
        return _row_to_expense(row) if row else None

    # ------------------------------------------------------------------
    # Expense CRUD
    def create(self, record: NewExpense) -> Expense:
        with self._cursor("create") as cur:
            cur.execute(
                f"""
                INSERT INTO expenses (
                    name, amount, currency, category, date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                (
                    record.name,
                    float(record.amount),
                    record.currency,
                    record.category,
                    to_storage(record.date),
                ),
            )
            expense = self._fetch(cur, int(cur.lastrowid))
        if expense is None:
            raise RepositoryError("create", "expense not found after insert")
        return expense

    def find_by_id(self, expense_id: int) -> Optional[Expense]:
        if expense_id > MAX_ROW_ID:
            return None
        with self._cursor("find_by_id") as cur:
            return self._fetch(cur, expense_id)

    def find_many(
        self,
        expense_filter: ExpenseFilter,
        ordering: Sequence[SortKey] = DEFAULT_ORDERING,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Expense]:
        where, params = _where(expense_filter)
        sql = f"SELECT * FROM expenses{where}{_order_by(ordering)}"
        if limit is not None or offset is not None:
            # SQLite needs a LIMIT clause before OFFSET; -1 means unbounded.
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit if limit is not None else -1, offset or 0])
        with self._cursor("find_many") as cur:
            cur.execute(sql, params)
            return [_row_to_expense(r) for r in cur.fetchall()]

    def count(self, expense_filter: ExpenseFilter) -> int:
        where, params = _where(expense_filter)
        with self._cursor("count") as cur:
            cur.execute(f"SELECT COUNT(*) FROM expenses{where}", params)
            row = cur.fetchone()
            return int(row[0] if row and row[0] is not None else 0)

    def update(self, expense_id: int, fields: Dict[str, Any]) -> Optional[Expense]:
        if expense_id > MAX_ROW_ID:
            return None
        assignments: List[str] = []
        params: List[Any] = []
        for column in UPDATABLE_FIELDS:
            if column not in fields:
                continue
            value = fields[column]
            if column == "date":
                value = to_storage(value)
            elif column == "amount":
                value = float(value)
            assignments.append(f"{column} = ?")
            params.append(value)
        assignments.append(f"updated_at = ({UTC_NOW_SQL})")
        params.append(expense_id)
        with self._cursor("update") as cur:
            cur.execute(
                f"UPDATE expenses SET {', '.join(assignments)} WHERE id = ?",
                params,
            )
            if cur.rowcount == 0:
                return None
            return self._fetch(cur, expense_id)

    def delete(self, expense_id: int) -> bool:
        if expense_id > MAX_ROW_ID:
            return False
        with self._cursor("delete") as cur:
            cur.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Aggregations
    def aggregate_totals(self) -> ExpenseTotals:
        with self._cursor("aggregate_totals") as cur:
            cur.execute(
                "SELECT COALESCE(SUM(amount), 0.0), COUNT(*) FROM expenses"
            )
            total, count = cur.fetchone()
            return ExpenseTotals(total_amount=float(total or 0.0), total_count=int(count))

    def aggregate_by_category(self) -> List[CategoryTotal]:
        with self._cursor("aggregate_by_category") as cur:
            cur.execute(
                """
                SELECT category, SUM(amount) AS total, COUNT(id) AS count
                FROM expenses
                GROUP BY category
                ORDER BY total DESC, category ASC
                """
            )
            return [
                CategoryTotal(
                    category=r["category"], total=float(r["total"]), count=int(r["count"])
                )
                for r in cur.fetchall()
            ]

    def ping(self) -> bool:
        try:
            with self._cursor("ping") as cur:
                cur.execute("SELECT 1")
                return cur.fetchone() is not None
        except RepositoryError:
            return False


__all__ = ["Database"]
