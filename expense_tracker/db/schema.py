"""Database schema DDL definitions and initialization utilities.

Tables:
  - currencies: exchange rate table, units of currency per 1 USD (USD = 1)
  - categories: user defined expense groupings
  - expenses: individual expense records, including recurrence fields and the
    reporting-currency equivalent captured at write time
  - email_reminders: one row per reminder sent (expense, day)
  - metadata: key/value store (schema version, last rate refresh)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"

CURRENCIES_DDL = f"""
CREATE TABLE IF NOT EXISTS currencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    symbol TEXT NOT NULL,
    exchange_rate TEXT NOT NULL DEFAULT '1', -- decimal string, units per 1 USD
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

CATEGORIES_DDL = f"""
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    color TEXT NOT NULL DEFAULT '#3B82F6',
    icon TEXT NOT NULL DEFAULT 'shopping-cart',
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_DDL = f"""
CREATE TABLE IF NOT EXISTS expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL,
    currency_code TEXT NOT NULL,
    amount TEXT NOT NULL, -- decimal string
    description TEXT NOT NULL,
    date TEXT NOT NULL, -- ISO date (YYYY-MM-DD)
    is_recurring INTEGER NOT NULL DEFAULT 0,
    recurring_frequency TEXT, -- 'daily' | 'weekly' | 'monthly' | 'yearly'
    next_due_date TEXT,
    reminder_days_advance INTEGER NOT NULL DEFAULT 1,
    reporting_amount TEXT NOT NULL,
    exchange_rate TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    FOREIGN KEY (category_id) REFERENCES categories(id),
    FOREIGN KEY (currency_code) REFERENCES currencies(code)
);
"""

EMAIL_REMINDERS_DDL = f"""
CREATE TABLE IF NOT EXISTS email_reminders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    expense_id INTEGER NOT NULL,
    reminder_date TEXT NOT NULL,
    is_sent INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    UNIQUE(expense_id, reminder_date),
    FOREIGN KEY (expense_id) REFERENCES expenses(id) ON DELETE CASCADE
);
"""

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

EXPENSES_DATE_INDEX_DDL = (
    "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);"
)
EXPENSES_DUE_INDEX_DDL = """
CREATE INDEX IF NOT EXISTS idx_expenses_next_due
ON expenses(next_due_date)
WHERE is_recurring = 1;
"""

DDL_ORDER: Sequence[str] = (
    CURRENCIES_DDL,
    CATEGORIES_DDL,
    EXPENSES_DDL,
    EMAIL_REMINDERS_DDL,
    METADATA_DDL,
)


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
        _ensure_indexes(cur)
        conn.commit()
    finally:
        conn.close()


def _ensure_indexes(cur: sqlite3.Cursor) -> None:
    """Create indexes, tolerating legacy schemas missing newer columns."""
    for ddl in (EXPENSES_DATE_INDEX_DDL, EXPENSES_DUE_INDEX_DDL):
        try:
            cur.execute(ddl)
        except sqlite3.OperationalError:
            # Legacy tables may lack columns; migration handles re-creation.
            continue
