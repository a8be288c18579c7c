"""Schema migration tests: upgrading a version 1 database in place."""

import sqlite3
from datetime import date
from decimal import Decimal

from expense_tracker.db.dal import Database
from expense_tracker.db.migrate import CURRENT_SCHEMA_VERSION, apply_migrations
from expense_tracker.db.seed import seed_currencies

LEGACY_EXPENSES = """
CREATE TABLE expenses (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL,
    currency_code TEXT NOT NULL,
    amount TEXT NOT NULL,
    description TEXT NOT NULL,
    date TEXT NOT NULL,
    is_recurring INTEGER NOT NULL DEFAULT 0,
    recurring_frequency TEXT,
    next_due_date TEXT,
    cop_amount TEXT,
    exchange_rate_cop TEXT,
    created_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00.000Z',
    updated_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00.000Z'
)
"""


def _legacy_db(path):
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE categories (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL UNIQUE,"
        " color TEXT NOT NULL DEFAULT '#3B82F6', icon TEXT NOT NULL DEFAULT 'shopping-cart',"
        " created_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00.000Z')"
    )
    conn.execute(LEGACY_EXPENSES)
    conn.execute(
        "CREATE TABLE metadata (key TEXT PRIMARY KEY, value TEXT NOT NULL,"
        " updated_at TEXT NOT NULL DEFAULT '2023-01-01T00:00:00.000Z')"
    )
    conn.execute("INSERT INTO metadata (key, value) VALUES ('schema_version', '1')")
    conn.execute("INSERT INTO categories (name) VALUES ('Rent')")
    rows = [
        # recurring, converted
        (1, "USD", "10", "Streaming", "2023-01-31", 1, "monthly", "2023-02-28", "40000", "4000"),
        # one-off with a stray due date
        (1, "COP", "25000", "Lunch", "2023-02-03", 0, None, "2023-03-03", None, None),
    ]
    conn.executemany(
        "INSERT INTO expenses (category_id, currency_code, amount, description, date,"
        " is_recurring, recurring_frequency, next_due_date, cop_amount, exchange_rate_cop)"
        " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        rows,
    )
    conn.commit()
    conn.close()


def _columns(path, table):
    conn = sqlite3.connect(path)
    try:
        return {row[1] for row in conn.execute(f"PRAGMA table_info({table})")}
    finally:
        conn.close()


def test_upgrades_legacy_expenses(tmp_path):
    path = tmp_path / "legacy.sqlite3"
    _legacy_db(path)

    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    seed_currencies(path)

    cols = _columns(path, "expenses")
    assert {"reporting_amount", "exchange_rate", "reminder_days_advance"} <= cols
    assert not {"cop_amount", "exchange_rate_cop"} & cols

    db = Database(path)
    streaming = db.get_expense(1)
    assert Decimal(streaming["reporting_amount"]) == Decimal("40000")
    assert Decimal(streaming["exchange_rate"]) == Decimal("4000")
    assert streaming["reminder_days_advance"] == 1
    assert streaming["next_due_date"] == "2023-02-28"
    assert streaming["category_name"] == "Rent"

    lunch = db.get_expense(2)
    # missing conversion falls back to the original amount at rate 1
    assert Decimal(lunch["reporting_amount"]) == Decimal("25000")
    assert Decimal(lunch["exchange_rate"]) == Decimal("1")
    assert lunch["next_due_date"] is None


def test_reminders_still_reference_expenses(tmp_path):
    path = tmp_path / "legacy.sqlite3"
    _legacy_db(path)
    apply_migrations(path)
    seed_currencies(path)
    db = Database(path)

    assert db.record_reminder_sent(1, date(2023, 2, 27)) is True
    assert db.record_reminder_sent(1, date(2023, 2, 27)) is False
    db.delete_expense(1)
    conn = sqlite3.connect(path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM email_reminders").fetchone()[0] == 0
    finally:
        conn.close()


def test_new_ids_continue_after_rebuild(tmp_path):
    path = tmp_path / "legacy.sqlite3"
    _legacy_db(path)
    apply_migrations(path)
    seed_currencies(path)
    db = Database(path)
    new_id = db.insert_expense(
        {
            "category_id": 1,
            "currency_code": "COP",
            "amount": Decimal("1000"),
            "description": "Coffee",
            "date": date(2023, 3, 1),
            "is_recurring": False,
            "recurring_frequency": None,
            "next_due_date": None,
            "reminder_days_advance": 1,
            "reporting_amount": Decimal("1000"),
            "exchange_rate": Decimal("1"),
        }
    )
    assert new_id == 3


def test_migrations_are_idempotent(tmp_path):
    path = tmp_path / "fresh.sqlite3"
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    seed_currencies(path)
    assert apply_migrations(path) == CURRENT_SCHEMA_VERSION
    assert seed_currencies(path) == 0
    assert Database(path).get_metadata("schema_version") == str(CURRENT_SCHEMA_VERSION)
