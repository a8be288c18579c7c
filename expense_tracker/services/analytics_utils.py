from __future__ import annotations

from datetime import date
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from expense_tracker.db.dal import Database
from expense_tracker.services.money import round2

"""Analytics helper utilities.

Every aggregate is expressed in the reporting currency using the
`reporting_amount` captured when each expense was written, so totals do not
move when rates are refreshed later.
"""


@dataclass(frozen=True)
class CategoryTotal:
    category_id: int
    category: str
    expense_count: int
    reporting_total: Decimal
    percent: Decimal


@dataclass(frozen=True)
class CurrencyTotal:
    currency: str
    amount_total: Decimal
    reporting_total: Decimal
    percent: Decimal


@dataclass(frozen=True)
class MonthTotal:
    month: str
    expense_count: int
    reporting_total: Decimal


@dataclass(frozen=True)
class Summary:
    reporting_currency: str
    expense_count: int
    reporting_total: Decimal
    by_category: List[CategoryTotal] = field(default_factory=list)
    by_currency: List[CurrencyTotal] = field(default_factory=list)
    by_month: List[MonthTotal] = field(default_factory=list)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0.00")
    return round2(part / whole * 100)


def category_totals(
    db: Database,
    grand_total: Decimal,
    start_date: date | None = None,
    end_date: date | None = None,
    limit: int | None = None,
) -> List[CategoryTotal]:
    """Per-category totals, largest first, with their share of `grand_total`."""
    return [
        CategoryTotal(
            category_id=int(r["category_id"]),
            category=r["category"],
            expense_count=int(r["expense_count"]),
            reporting_total=round2(r["reporting_total"] or 0),
            percent=_percent(round2(r["reporting_total"] or 0), grand_total),
        )
        for r in db.sums_by_category(start_date, end_date, limit=limit)
    ]


def compute_summary(
    db: Database,
    reporting_currency: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> Summary:
    totals = db.expense_totals(start_date, end_date)
    grand = round2(totals["reporting_total"] or 0)

    by_category = category_totals(db, grand, start_date, end_date)
    by_currency = [
        CurrencyTotal(
            currency=r["currency"],
            amount_total=round2(r["amount_total"] or 0),
            reporting_total=round2(r["reporting_total"] or 0),
            percent=_percent(round2(r["reporting_total"] or 0), grand),
        )
        for r in db.sums_by_currency(start_date, end_date)
    ]
    by_month = [
        MonthTotal(
            month=r["month"],
            expense_count=int(r["expense_count"]),
            reporting_total=round2(r["reporting_total"] or 0),
        )
        for r in db.monthly_totals(start_date, end_date)
    ]
    return Summary(
        reporting_currency=reporting_currency,
        expense_count=int(totals["expense_count"]),
        reporting_total=grand,
        by_category=by_category,
        by_currency=by_currency,
        by_month=by_month,
    )
