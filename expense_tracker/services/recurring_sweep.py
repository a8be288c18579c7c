"""Daily sweep rolling recurring expenses past their due date.

Meant to run once a day (cron -> `python -m expense_tracker.jobs sweep`).
Each recurring expense whose `next_due_date` has passed (is before today)
is advanced with `roll_forward`, so a sweep that did not run for a week still
leaves every due date on or after today. A date equal to today stays put so
the reminder job can still send a same-day reminder. Rows whose stored
frequency is not recognised are logged and left untouched; the sweep never
guesses a cadence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple

from expense_tracker.core.errors import InvalidFrequency
from expense_tracker.db.dal import Database
from expense_tracker.services.recurrence import roll_forward

logger = logging.getLogger("expense_tracker.jobs.sweep")


@dataclass
class SweepResult:
    rolled: List[Tuple[int, date, date]] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "rolled": [
                {
                    "expense_id": expense_id,
                    "previous_due_date": old.isoformat(),
                    "next_due_date": new.isoformat(),
                }
                for expense_id, old, new in self.rolled
            ],
            "skipped": list(self.skipped),
        }


def sweep_recurring_expenses(db: Database, today: date | None = None) -> SweepResult:
    today = today or date.today()
    result = SweepResult()
    for row in db.list_recurring_due(today):
        expense_id = int(row["id"])
        current = date.fromisoformat(row["next_due_date"])
        anchor = date.fromisoformat(row["date"])
        try:
            new_due = roll_forward(current, row["recurring_frequency"], today, anchor)
        except InvalidFrequency:
            logger.warning(
                "expense %s has invalid recurring_frequency %r; skipped",
                expense_id,
                row["recurring_frequency"],
            )
            result.skipped.append(expense_id)
            continue
        db.set_next_due_date(expense_id, new_due)
        result.rolled.append((expense_id, current, new_due))
    logger.info(
        "recurring sweep for %s: %d rolled, %d skipped",
        today.isoformat(),
        len(result.rolled),
        len(result.skipped),
    )
    return result
