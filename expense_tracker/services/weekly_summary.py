"""Weekly spending summary.

Covers the seven days up to and including `today`: the total in the
reporting currency, the number of expenses, and the top categories by
spend. Nothing is sent for a week without expenses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

from expense_tracker.db.dal import Database
from expense_tracker.services.analytics_utils import CategoryTotal, category_totals
from expense_tracker.services.money import round2
from expense_tracker.services.reminders import ReminderNotifier

logger = logging.getLogger("expense_tracker.jobs.weekly_summary")

WEEKLY_TOP_CATEGORIES = 5
WEEK_WINDOW_DAYS = 7


@dataclass(frozen=True)
class WeeklySummary:
    start_date: date
    end_date: date
    reporting_currency: str
    expense_count: int
    reporting_total: Decimal
    top_categories: List[CategoryTotal]

    def subject(self) -> str:
        return (
            f"Weekly summary {self.start_date.isoformat()} to "
            f"{self.end_date.isoformat()}: {self.reporting_total} {self.reporting_currency}"
        )

    def as_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "reporting_currency": self.reporting_currency,
            "expense_count": self.expense_count,
            "reporting_total": float(self.reporting_total),
            "top_categories": [
                {
                    "category_id": c.category_id,
                    "category": c.category,
                    "expense_count": c.expense_count,
                    "reporting_total": float(c.reporting_total),
                    "percent": float(c.percent),
                }
                for c in self.top_categories
            ],
        }


@dataclass
class SummaryResult:
    sent: bool
    summary: WeeklySummary

    def as_dict(self) -> dict:
        return {"sent": self.sent, **self.summary.as_dict()}


def build_weekly_summary(
    db: Database, reporting_currency: str, today: date | None = None
) -> WeeklySummary:
    today = today or date.today()
    start = today - timedelta(days=WEEK_WINDOW_DAYS)
    totals = db.expense_totals(start, today)
    total = round2(totals["reporting_total"] or 0)
    return WeeklySummary(
        start_date=start,
        end_date=today,
        reporting_currency=reporting_currency,
        expense_count=int(totals["expense_count"]),
        reporting_total=total,
        top_categories=category_totals(db, total, start, today, limit=WEEKLY_TOP_CATEGORIES),
    )


def send_weekly_summary(
    db: Database,
    notifier: ReminderNotifier,
    reporting_currency: str,
    today: Optional[date] = None,
) -> SummaryResult:
    summary = build_weekly_summary(db, reporting_currency, today)
    if summary.expense_count == 0:
        logger.info(
            "no expenses between %s and %s, summary not sent",
            summary.start_date.isoformat(),
            summary.end_date.isoformat(),
        )
        return SummaryResult(sent=False, summary=summary)
    try:
        notifier.send_summary(summary)
    except Exception:
        logger.exception("failed to send weekly summary ending %s", summary.end_date.isoformat())
        return SummaryResult(sent=False, summary=summary)
    logger.info(
        "weekly summary sent: %d expenses, %s %s",
        summary.expense_count,
        summary.reporting_total,
        reporting_currency,
    )
    return SummaryResult(sent=True, summary=summary)
