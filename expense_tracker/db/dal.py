"""Data Access Layer utilities.

Responsibilities
----------------
- Provide CRUD helpers for currencies, categories and expenses.
- Expose the rate table snapshot consumed by the conversion core and the
  bulk rate update used by the refresh job.
- Answer the date-windowed questions of the recurring sweep and reminder jobs.
- Offer aggregation helpers (totals, breakdowns) in the reporting currency.

Monetary values are stored as decimal strings and returned as such; callers
convert with `services.money.to_decimal`.
"""

from __future__ import annotations

from pathlib import Path
import sqlite3
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
from datetime import date

UTC_NOW_SQL = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
_UNSET = object()

_EXPENSE_SELECT = """
    SELECT e.*, c.name AS category_name
    FROM expenses e
    LEFT JOIN categories c ON c.id = e.category_id
"""

_EXPENSE_WRITE_COLUMNS = (
    "category_id",
    "currency_code",
    "amount",
    "description",
    "date",
    "is_recurring",
    "recurring_frequency",
    "next_due_date",
    "reminder_days_advance",
    "reporting_amount",
    "exchange_rate",
)


def _db_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if hasattr(value, "value"):  # Enum members (Frequency)
        return value.value
    return value


class Database:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    # ------------------------------------------------------------------
    # Connection helpers
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    # ------------------------------------------------------------------
    # Metadata
    def get_metadata(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM metadata WHERE key = ?", (key,))
            row = cur.fetchone()
            return row[0] if row else None

    def set_metadata(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO metadata (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = ({UTC_NOW_SQL})
                """,
                (key, value),
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Currencies
    def list_currencies(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM currencies ORDER BY code ASC")
            return [dict(r) for r in cur.fetchall()]

    def get_currency(self, code: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM currencies WHERE code = ?", (code.upper(),))
            row = cur.fetchone()
            return dict(row) if row else None

    def currency_rates(self) -> Dict[str, str]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT code, exchange_rate FROM currencies")
            return {r["code"]: r["exchange_rate"] for r in cur.fetchall()}

    def add_currency(
        self, code: str, name: str, symbol: str, exchange_rate: Decimal
    ) -> Dict[str, Any]:
        code = code.upper()
        with self._connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    "INSERT INTO currencies (code, name, symbol, exchange_rate) VALUES (?, ?, ?, ?)",
                    (code, name, symbol, str(exchange_rate)),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"currency {code} already exists") from e
            conn.commit()
        row = self.get_currency(code)
        if row is None:  # pragma: no cover
            raise RuntimeError("currency missing after insert")
        return row

    def update_currency_rates(self, rates: Mapping[str, Decimal]) -> int:
        """Overwrite rates for codes already in the table; return rows updated."""
        updated = 0
        with self._connect() as conn:
            cur = conn.cursor()
            for code, rate in rates.items():
                cur.execute(
                    f"""
                    UPDATE currencies
                    SET exchange_rate = ?, updated_at = ({UTC_NOW_SQL})
                    WHERE code = ?
                    """,
                    (str(rate), code.upper()),
                )
                updated += cur.rowcount
            conn.commit()
        return updated

    def currency_usage_stats(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT cur.code, cur.name, cur.symbol,
                       COUNT(e.id) AS expense_count,
                       ROUND(COALESCE(SUM(e.amount), 0), 2) AS total_amount
                FROM currencies cur
                JOIN expenses e ON e.currency_code = cur.code
                GROUP BY cur.code
                ORDER BY total_amount DESC, cur.code ASC
                """
            )
            return [dict(r) for r in cur.fetchall()]

    # ------------------------------------------------------------------
    # Categories
    def list_categories(self) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM categories ORDER BY name COLLATE NOCASE ASC")
            return [dict(r) for r in cur.fetchall()]

    def get_category(self, category_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM categories WHERE id = ?", (category_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def create_category(self, name: str, color: str, icon: str) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    "INSERT INTO categories (name, color, icon) VALUES (?, ?, ?)",
                    (name, color, icon),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"category '{name}' already exists") from e
            conn.commit()
            return int(cur.lastrowid)

    def update_category(
        self,
        category_id: int,
        *,
        name: Any = _UNSET,
        color: Any = _UNSET,
        icon: Any = _UNSET,
    ) -> None:
        updates: List[str] = []
        params: List[Any] = []
        for column, value in (("name", name), ("color", color), ("icon", icon)):
            if value is not _UNSET:
                updates.append(f"{column} = ?")
                params.append(value)
        if not updates:
            return
        with self._connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    f"UPDATE categories SET {', '.join(updates)} WHERE id = ?",
                    (*params, category_id),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"category '{name}' already exists") from e
            if cur.rowcount == 0:
                raise LookupError("Category not found")
            conn.commit()

    def count_expenses_in_category(self, category_id: int) -> int:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT COUNT(*) FROM expenses WHERE category_id = ?", (category_id,)
            )
            return int(cur.fetchone()[0])

    def delete_category(self, category_id: int) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            if cur.rowcount == 0:
                raise LookupError("Category not found")
            conn.commit()

    # ------------------------------------------------------------------
    # Expenses
    def insert_expense(self, values: Mapping[str, Any]) -> int:
        cols = list(_EXPENSE_WRITE_COLUMNS)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO expenses ({', '.join(cols)}, created_at, updated_at)
                VALUES ({', '.join('?' for _ in cols)}, ({UTC_NOW_SQL}), ({UTC_NOW_SQL}))
                """,
                tuple(_db_value(values[c]) for c in cols),
            )
            conn.commit()
            return int(cur.lastrowid)

    def update_expense(self, expense_id: int, values: Mapping[str, Any]) -> None:
        cols = list(_EXPENSE_WRITE_COLUMNS)
        assignments = ", ".join(f"{c} = ?" for c in cols)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"UPDATE expenses SET {assignments}, updated_at = ({UTC_NOW_SQL}) WHERE id = ?",
                (*(_db_value(values[c]) for c in cols), expense_id),
            )
            if cur.rowcount == 0:
                raise LookupError("Expense not found")
            conn.commit()

    def delete_expense(self, expense_id: int) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
            if cur.rowcount == 0:
                raise LookupError("Expense not found")
            conn.commit()

    def get_expense(self, expense_id: int) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(f"{_EXPENSE_SELECT} WHERE e.id = ?", (expense_id,))
            row = cur.fetchone()
            return dict(row) if row else None

    def list_expenses(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
        currency: Optional[str] = None,
        recurring: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if start_date:
            clauses.append("e.date >= ?")
            params.append(start_date.isoformat())
        if end_date:
            clauses.append("e.date <= ?")
            params.append(end_date.isoformat())
        if category_id is not None:
            clauses.append("e.category_id = ?")
            params.append(category_id)
        if currency:
            clauses.append("e.currency_code = ?")
            params.append(currency.upper())
        if recurring is not None:
            clauses.append("e.is_recurring = ?")
            params.append(int(recurring))
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        sql = f"{_EXPENSE_SELECT}{where} ORDER BY e.date DESC, e.id DESC"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [dict(r) for r in cur.fetchall()]

    # ------------------------------------------------------------------
    # Recurring expenses (sweep & reminders)
    def list_upcoming_recurring(
        self, start_date: date, end_date: date
    ) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                {_EXPENSE_SELECT}
                WHERE e.is_recurring = 1
                  AND e.next_due_date IS NOT NULL
                  AND e.next_due_date BETWEEN ? AND ?
                ORDER BY e.next_due_date ASC, e.id ASC
                """,
                (start_date.isoformat(), end_date.isoformat()),
            )
            return [dict(r) for r in cur.fetchall()]

    def list_recurring_due(self, as_of: date) -> List[Dict[str, Any]]:
        """Recurring expenses whose next_due_date is before `as_of`."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT id, date, recurring_frequency, next_due_date
                FROM expenses
                WHERE is_recurring = 1
                  AND next_due_date IS NOT NULL
                  AND next_due_date < ?
                ORDER BY next_due_date ASC, id ASC
                """,
                (as_of.isoformat(),),
            )
            return [dict(r) for r in cur.fetchall()]

    def set_next_due_date(self, expense_id: int, next_due: date) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                UPDATE expenses
                SET next_due_date = ?, updated_at = ({UTC_NOW_SQL})
                WHERE id = ? AND is_recurring = 1
                """,
                (next_due.isoformat(), expense_id),
            )
            if cur.rowcount == 0:
                raise LookupError("Recurring expense not found")
            conn.commit()

    def list_reminders_due(self, today: date) -> List[Dict[str, Any]]:
        """Recurring expenses whose reminder day is `today` and not yet sent."""
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT e.*, c.name AS category_name, cur.symbol AS currency_symbol
                FROM expenses e
                LEFT JOIN categories c ON c.id = e.category_id
                LEFT JOIN currencies cur ON cur.code = e.currency_code
                WHERE e.is_recurring = 1
                  AND e.next_due_date IS NOT NULL
                  AND date(e.next_due_date, '-' || e.reminder_days_advance || ' day') = ?
                  AND NOT EXISTS (
                      SELECT 1 FROM email_reminders er
                      WHERE er.expense_id = e.id
                        AND er.reminder_date = ?
                        AND er.is_sent = 1
                  )
                ORDER BY e.next_due_date ASC, e.id ASC
                """,
                (today.isoformat(), today.isoformat()),
            )
            return [dict(r) for r in cur.fetchall()]

    def record_reminder_sent(self, expense_id: int, reminder_date: date) -> bool:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT OR IGNORE INTO email_reminders (expense_id, reminder_date, is_sent)
                VALUES (?, ?, 1)
                """,
                (expense_id, reminder_date.isoformat()),
            )
            conn.commit()
            return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Aggregations (reporting currency)
    def _date_filter(
        self, start_date: Optional[date], end_date: Optional[date]
    ) -> tuple[str, List[Any]]:
        clauses: List[str] = []
        params: List[Any] = []
        if start_date:
            clauses.append("e.date >= ?")
            params.append(start_date.isoformat())
        if end_date:
            clauses.append("e.date <= ?")
            params.append(end_date.isoformat())
        where = (" WHERE " + " AND ".join(clauses)) if clauses else ""
        return where, params

    def expense_totals(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> Dict[str, Any]:
        where, params = self._date_filter(start_date, end_date)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT COUNT(*) AS expense_count,
                       COALESCE(ROUND(SUM(e.reporting_amount), 2), 0.0) AS reporting_total
                FROM expenses e
                {where}
                """,
                params,
            )
            return dict(cur.fetchone())

    def sums_by_category(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        where, params = self._date_filter(start_date, end_date)
        limit_sql = ""
        if limit is not None:
            limit_sql = "LIMIT ?"
            params = params + [limit]
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT e.category_id, COALESCE(c.name, '?') AS category,
                       COUNT(*) AS expense_count,
                       ROUND(SUM(e.reporting_amount), 2) AS reporting_total
                FROM expenses e
                LEFT JOIN categories c ON c.id = e.category_id
                {where}
                GROUP BY e.category_id
                ORDER BY reporting_total DESC, e.category_id ASC
                {limit_sql}
                """,
                params,
            )
            return [dict(r) for r in cur.fetchall()]

    def sums_by_currency(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        where, params = self._date_filter(start_date, end_date)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT e.currency_code AS currency,
                       ROUND(SUM(e.amount), 2) AS amount_total,
                       ROUND(SUM(e.reporting_amount), 2) AS reporting_total
                FROM expenses e
                {where}
                GROUP BY e.currency_code
                ORDER BY e.currency_code
                """,
                params,
            )
            return [dict(r) for r in cur.fetchall()]

    def monthly_totals(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> List[Dict[str, Any]]:
        where, params = self._date_filter(start_date, end_date)
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                SELECT substr(e.date, 1, 7) AS month,
                       COUNT(*) AS expense_count,
                       ROUND(SUM(e.reporting_amount), 2) AS reporting_total
                FROM expenses e
                {where}
                GROUP BY month
                ORDER BY month ASC
                """,
                params,
            )
            return [dict(r) for r in cur.fetchall()]
