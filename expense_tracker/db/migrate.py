"""Database migration utilities.

Handles schema evolution by applying idempotent migrations keyed by an integer
`schema_version` stored in the metadata table. Each migration upgrades the
SQLite schema in-place while preserving user data.

Version history:
  1. initial layout; expenses carried the converted amount in `cop_amount`
     and its rate in `exchange_rate_cop`, with no reminder lead time.
  2. canonical `reporting_amount` / `exchange_rate` columns, per-expense
     `reminder_days_advance`, and `next_due_date` cleared on non-recurring rows.
"""

from __future__ import annotations
from pathlib import Path
import logging
import sqlite3
from typing import Optional

from . import schema as schema_def
from .schema import init_db

CURRENT_SCHEMA_VERSION = 2
SCHEMA_VERSION_KEY = "schema_version"

logger = logging.getLogger("expense_tracker.db.migrate")


def _get_schema_version(conn: sqlite3.Connection) -> Optional[int]:
    try:
        cur = conn.cursor()
        cur.execute("SELECT value FROM metadata WHERE key=?", (SCHEMA_VERSION_KEY,))
        row = cur.fetchone()
        if row:
            return int(row[0])
    except sqlite3.OperationalError:
        # metadata table may not exist yet (first run before init_db)
        return None
    return None


def apply_migrations(db_path: Path) -> int:
    """Apply required migrations and return resulting schema version."""
    init_db(db_path)
    conn = sqlite3.connect(db_path)
    try:
        version = _get_schema_version(conn) or 1
        if version < 2:
            _migrate_to_v2(conn)
            version = 2
        _set_schema_version(conn, version)
        conn.commit()
        return version
    finally:
        conn.close()


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    cur = conn.cursor()
    cur.execute(
        "INSERT INTO metadata (key, value) VALUES (?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, "
        f"updated_at=({schema_def.BASIC_UTC_NOW})",
        (SCHEMA_VERSION_KEY, str(version)),
    )


def _migrate_to_v2(conn: sqlite3.Connection) -> None:
    """Upgrade schema to version 2 (canonical rate column, reminder lead time)."""
    conn.execute("PRAGMA foreign_keys=OFF")
    # Keep email_reminders pointing at "expenses" across the rename below
    conn.execute("PRAGMA legacy_alter_table=ON")
    cur = conn.cursor()
    try:
        _rebuild_expenses(cur)
        _clear_orphan_due_dates(cur)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.execute("PRAGMA legacy_alter_table=OFF")
        conn.execute("PRAGMA foreign_keys=ON")


def _rebuild_expenses(cur: sqlite3.Cursor) -> None:
    if _column_exists(cur, "expenses", "exchange_rate"):
        return
    logger.info("rebuilding expenses table with canonical exchange_rate column")
    cur.execute("DROP INDEX IF EXISTS idx_expenses_date")
    cur.execute("DROP INDEX IF EXISTS idx_expenses_next_due")
    cur.execute("ALTER TABLE expenses RENAME TO expenses_legacy")
    cur.execute(schema_def.EXPENSES_DDL)
    cur.execute(
        """
        INSERT INTO expenses (
            id, category_id, currency_code, amount, description, date,
            is_recurring, recurring_frequency, next_due_date,
            reporting_amount, exchange_rate, created_at, updated_at
        )
        SELECT
            id, category_id, currency_code, amount, description, date,
            is_recurring, recurring_frequency, next_due_date,
            COALESCE(cop_amount, amount), COALESCE(exchange_rate_cop, '1'),
            created_at, updated_at
        FROM expenses_legacy
        """
    )
    cur.execute("DROP TABLE expenses_legacy")
    cur.execute(schema_def.EXPENSES_DATE_INDEX_DDL)
    cur.execute(schema_def.EXPENSES_DUE_INDEX_DDL)
    _refresh_autoincrement(cur, "expenses", "id")


def _clear_orphan_due_dates(cur: sqlite3.Cursor) -> None:
    cur.execute(
        f"""
        UPDATE expenses
        SET next_due_date = NULL, updated_at = ({schema_def.BASIC_UTC_NOW})
        WHERE next_due_date IS NOT NULL
          AND (is_recurring = 0 OR recurring_frequency IS NULL)
        """
    )
    if cur.rowcount:
        logger.info("cleared next_due_date on %d non-recurring expenses", cur.rowcount)


def _refresh_autoincrement(cur: sqlite3.Cursor, table: str, pk_column: str) -> None:
    cur.execute(f"SELECT MAX({pk_column}) FROM {table}")
    row = cur.fetchone()
    if not row or row[0] is None:
        return
    cur.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='sqlite_sequence'"
    )
    if cur.fetchone() is None:
        return
    cur.execute(
        "UPDATE sqlite_sequence SET seq=? WHERE name=?",
        (int(row[0]), table),
    )


def _column_exists(cur: sqlite3.Cursor, table: str, column: str) -> bool:
    cur.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())
