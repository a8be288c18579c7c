"""Recurring expense date arithmetic.

`next_due_date` advances a due date by one period of its frequency. Monthly
and yearly steps keep the day of month and clamp to the last day of the target
month when it is shorter (Jan 31 -> Feb 28/29, Feb 29 -> Feb 28). Everything
here is pure; persistence belongs to the sweep and the expense routes.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Optional, Union

from expense_tracker.core.errors import InvalidFrequency
from expense_tracker.models.constants import Frequency

FrequencyLike = Union[Frequency, str]

_MONTHS_PER_STEP = {Frequency.MONTHLY: 1, Frequency.YEARLY: 12}
_DAYS_PER_STEP = {Frequency.DAILY: 1, Frequency.WEEKLY: 7}

# Upper bound for catch-up loops: ~27 years of daily steps
MAX_CATCH_UP_STEPS = 10_000


def parse_frequency(value: FrequencyLike) -> Frequency:
    if isinstance(value, Frequency):
        return value
    if isinstance(value, str):
        try:
            return Frequency(value.strip().lower())
        except ValueError:
            pass
    raise InvalidFrequency(value)


def add_months(d: date, months: int, anchor_day: Optional[int] = None) -> date:
    """Shift `d` by `months`, clamping the day to the target month's length.

    `anchor_day` (default: d.day) is the day of month the series wants; passing
    the original day keeps a Jan 31 series on month ends after a short month.
    """
    day = anchor_day if anchor_day is not None else d.day
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def next_due_date(current: date, frequency: FrequencyLike) -> date:
    freq = parse_frequency(frequency)
    if freq in _DAYS_PER_STEP:
        return current + timedelta(days=_DAYS_PER_STEP[freq])
    return add_months(current, _MONTHS_PER_STEP[freq])


def roll_forward(
    current: date,
    frequency: FrequencyLike,
    today: date,
    anchor: Optional[date] = None,
) -> date:
    """Advance `current` period by period until it falls on or after `today`.

    Used by the daily sweep to catch up after missed runs. An occurrence landing
    on `today` is kept: it is due today, not passed. Month-based steps
    count from `anchor` (the expense's original date when known) so clamping
    in a short month does not drift the series: a Jan 31 expense is due
    Feb 28 then Mar 31, not Mar 28.
    """
    freq = parse_frequency(frequency)
    due = current
    if freq in _DAYS_PER_STEP:
        step = _DAYS_PER_STEP[freq]
        if due < today:
            periods = ((today - due).days + step - 1) // step
            due = due + timedelta(days=periods * step)
        return due

    months = _MONTHS_PER_STEP[freq]
    anchor_day = (anchor or current).day
    for _ in range(MAX_CATCH_UP_STEPS):
        if due >= today:
            return due
        due = add_months(due, months, anchor_day=anchor_day)
    raise ValueError(f"due date {current} too far behind {today} to roll forward")


def initial_due_date(
    expense_date: date, is_recurring: bool, frequency: Optional[FrequencyLike]
) -> Optional[date]:
    """Seed next_due_date on create/update: one period after the expense date.

    Returns None unless the expense is recurring with a frequency.
    """
    if not is_recurring or frequency is None:
        return None
    return next_due_date(expense_date, frequency)
