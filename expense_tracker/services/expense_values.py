"""Derived expense fields computed on create / update.

Route handlers validate the payload with `ExpenseIn`, then call
`build_expense_values` to resolve everything that is not user input: the
reporting-currency amount and rate (through `convert`) and the seeded
`next_due_date`. Keeping it here means the API and any future importer write
identical rows.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict

from expense_tracker.services.money import to_decimal
from expense_tracker.services.rates.base import SupportsRateLookup
from expense_tracker.services.rates.conversion import convert
from expense_tracker.services.recurrence import initial_due_date, parse_frequency

if TYPE_CHECKING:  # pragma: no cover
    from expense_tracker.db.dal import Database
    from expense_tracker.models.expense import ExpenseIn


class UnknownCategory(LookupError):
    def __init__(self, category_id: int):
        self.category_id = category_id
        super().__init__(f"category {category_id} does not exist")


def build_expense_values(
    expense: "ExpenseIn",
    db: "Database",
    rates: SupportsRateLookup,
    reporting_currency: str,
    default_reminder_days_advance: int = 1,
) -> Dict[str, Any]:
    """Return the full column mapping for `Database.insert_expense/update_expense`.

    Raises `UnknownCategory`, `InvalidFrequency` and `CurrencyNotFound`.
    """
    if db.get_category(expense.category_id) is None:
        raise UnknownCategory(expense.category_id)
    frequency = (
        parse_frequency(expense.recurring_frequency)
        if expense.is_recurring and expense.recurring_frequency is not None
        else None
    )

    amount = to_decimal(expense.amount)
    conversion = convert(amount, expense.currency_code, reporting_currency, rates)
    return {
        "category_id": expense.category_id,
        "currency_code": conversion.from_currency,
        "amount": amount,
        "description": expense.description,
        "date": expense.date,
        "is_recurring": expense.is_recurring,
        "recurring_frequency": frequency,
        "next_due_date": initial_due_date(expense.date, expense.is_recurring, frequency),
        "reminder_days_advance": (
            expense.reminder_days_advance
            if expense.reminder_days_advance is not None
            else default_reminder_days_advance
        ),
        "reporting_amount": conversion.converted_amount,
        "exchange_rate": conversion.exchange_rate,
    }
