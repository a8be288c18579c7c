from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from expense_tracker.core.config import Settings
from expense_tracker.core.deps import get_app_settings, get_db
from expense_tracker.core.errors import RateRefreshError
from expense_tracker.db.dal import Database
from expense_tracker.routers.currencies import get_rate_providers
from expense_tracker.services.rates.base import RateProvider
from expense_tracker.services.rates.refresh import refresh_exchange_rates
from expense_tracker.services.recurring_sweep import sweep_recurring_expenses
from expense_tracker.services.reminders import (
    LoggingNotifier,
    ReminderNotifier,
    dispatch_reminders,
)
from expense_tracker.services.weekly_summary import send_weekly_summary

"""On-demand triggers for the scheduled jobs (cron runs them via `jobs.py`)."""

router = APIRouter(prefix="/jobs", tags=["jobs"])


def get_notifier() -> ReminderNotifier:
    return LoggingNotifier()


@router.post("/rates/refresh", summary="Run the exchange rate refresh now")
async def run_rate_refresh(
    db: Database = Depends(get_db),
    providers: List[RateProvider] = Depends(get_rate_providers),
):
    try:
        result = refresh_exchange_rates(db, providers)
    except RateRefreshError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return result.as_dict()


@router.post("/recurring/sweep", summary="Roll passed recurring due dates forward")
async def run_recurring_sweep(
    today: Optional[date] = Query(None, description="Sweep date (defaults to today)"),
    db: Database = Depends(get_db),
):
    return sweep_recurring_expenses(db, today).as_dict()


@router.post("/reminders/run", summary="Send reminders due today")
async def run_reminders(
    today: Optional[date] = Query(None, description="Reminder date (defaults to today)"),
    db: Database = Depends(get_db),
    notifier: ReminderNotifier = Depends(get_notifier),
):
    return dispatch_reminders(db, notifier, today).as_dict()


@router.post("/summary/run", summary="Send the weekly spending summary now")
async def run_weekly_summary(
    today: Optional[date] = Query(None, description="Last day of the week (defaults to today)"),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    notifier: ReminderNotifier = Depends(get_notifier),
):
    return send_weekly_summary(db, notifier, settings.reporting_currency, today).as_dict()
