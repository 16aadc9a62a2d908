"""Database schema DDL and idempotent initialization.

Tables:
  - expenses: individual expense records

Timestamps are ISO-8601 UTC text. ``date`` is written by the application in
a fixed-width format (see ``services.timestamps``); ``created_at`` and
``updated_at`` come from SQLite's clock.
"""

from __future__ import annotations
import sqlite3
from typing import Sequence

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    amount REAL NOT NULL,
    currency TEXT NOT NULL,
    category TEXT NOT NULL,
    date TEXT NOT NULL, -- ISO timestamp (UTC)
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_DATE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);"
)
EXPENSES_CATEGORY_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_category ON expenses(category);"
)

DDL_ORDER: Sequence[str] = (
    EXPENSES_DDL,
    EXPENSES_DATE_INDEX_DDL,
    EXPENSES_CATEGORY_INDEX_DDL,
)


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes idempotently on an open connection."""
    cur = conn.cursor()
    for ddl in DDL_ORDER:
        cur.execute(ddl)
    conn.commit()
