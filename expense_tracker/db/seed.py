"""Seeding helpers for the currency table.

`seed_currencies` ensures the baseline currencies exist with placeholder
USD-pivot rates so conversions work before the first rate refresh. Existing
rows are left untouched (their rates belong to the refresh job) so this can be
safely re-run on every startup.
"""

from __future__ import annotations
from pathlib import Path
import sqlite3
from typing import Mapping, Sequence, Tuple

from .schema import init_db

# (code, name, symbol, units per 1 USD)
DEFAULT_CURRENCIES: Sequence[Tuple[str, str, str, str]] = (
    ("USD", "US Dollar", "$", "1"),
    ("EUR", "Euro", "€", "0.92"),
    ("COP", "Colombian Peso", "$", "4000"),
    ("CAD", "Canadian Dollar", "C$", "1.36"),
    ("GBP", "Pound Sterling", "£", "0.79"),
    ("JPY", "Japanese Yen", "¥", "150"),
    ("MXN", "Mexican Peso", "$", "17.1"),
)


def seed_currencies(
    db_path: Path, rate_overrides: Mapping[str, str] | None = None
) -> int:
    """Insert missing default currencies and return how many were added."""
    init_db(db_path)  # ensure tables exist
    overrides = rate_overrides or {}
    added = 0
    with sqlite3.connect(db_path) as conn:
        cur = conn.cursor()
        for code, name, symbol, rate in DEFAULT_CURRENCIES:
            cur.execute(
                "INSERT OR IGNORE INTO currencies (code, name, symbol, exchange_rate) VALUES (?, ?, ?, ?)",
                (code, name, symbol, str(overrides.get(code, rate))),
            )
            added += cur.rowcount
        conn.commit()
    return added
