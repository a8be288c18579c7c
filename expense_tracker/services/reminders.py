"""Reminders for upcoming recurring expenses.

A reminder is due on `next_due_date - reminder_days_advance`. Delivery is
delegated to a notifier (email, chat, ...); this module only decides who is
due and records what was sent so a reminder goes out at most once a day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional, Protocol

from expense_tracker.db.dal import Database
from expense_tracker.services.money import to_decimal

if TYPE_CHECKING:
    from expense_tracker.services.weekly_summary import WeeklySummary

logger = logging.getLogger("expense_tracker.jobs.reminders")


@dataclass(frozen=True)
class Reminder:
    expense_id: int
    description: str
    amount: Decimal
    currency_code: str
    currency_symbol: Optional[str]
    category_name: Optional[str]
    recurring_frequency: str
    next_due_date: date
    reminder_date: date

    @classmethod
    def from_row(cls, row: dict, reminder_date: date) -> "Reminder":
        return cls(
            expense_id=int(row["id"]),
            description=row["description"],
            amount=to_decimal(row["amount"]),
            currency_code=row["currency_code"],
            currency_symbol=row.get("currency_symbol"),
            category_name=row.get("category_name"),
            recurring_frequency=row["recurring_frequency"],
            next_due_date=date.fromisoformat(row["next_due_date"]),
            reminder_date=reminder_date,
        )

    def subject(self) -> str:
        return f"Reminder: {self.description} due {self.next_due_date.isoformat()}"


class ReminderNotifier(Protocol):
    def send(self, reminder: Reminder) -> None: ...

    def send_summary(self, summary: "WeeklySummary") -> None: ...


class LoggingNotifier:
    """Default notifier: writes reminders and summaries to the application log."""

    def __init__(self, logger_name: str = "expense_tracker.notifications"):
        self._logger = logging.getLogger(logger_name)

    def send(self, reminder: Reminder) -> None:
        self._logger.info(
            "%s (%s %s %s, %s)",
            reminder.subject(),
            reminder.currency_symbol or "",
            reminder.amount,
            reminder.currency_code,
            reminder.recurring_frequency,
        )

    def send_summary(self, summary: "WeeklySummary") -> None:
        categories = ", ".join(
            f"{c.category} {c.reporting_total} ({c.percent}%)" for c in summary.top_categories
        )
        self._logger.info(
            "%s, %d expenses; top: %s", summary.subject(), summary.expense_count, categories
        )


@dataclass
class DispatchResult:
    sent: List[int]
    failed: List[int]

    def as_dict(self) -> dict:
        return {"sent": list(self.sent), "failed": list(self.failed)}


def find_due_reminders(db: Database, today: date | None = None) -> List[Reminder]:
    today = today or date.today()
    return [Reminder.from_row(row, today) for row in db.list_reminders_due(today)]


def dispatch_reminders(
    db: Database, notifier: ReminderNotifier, today: date | None = None
) -> DispatchResult:
    today = today or date.today()
    result = DispatchResult(sent=[], failed=[])
    for reminder in find_due_reminders(db, today):
        try:
            notifier.send(reminder)
        except Exception:
            # Left unrecorded so the next run today retries it
            logger.exception("failed to send reminder for expense %s", reminder.expense_id)
            result.failed.append(reminder.expense_id)
            continue
        db.record_reminder_sent(reminder.expense_id, today)
        result.sent.append(reminder.expense_id)
    logger.info(
        "reminders for %s: %d sent, %d failed",
        today.isoformat(),
        len(result.sent),
        len(result.failed),
    )
    return result
