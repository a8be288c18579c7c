"""Command-line entry point for the scheduled jobs.

Meant to be driven by cron, e.g.::

    0 6 * * *  python -m expense_tracker.jobs refresh-rates
    5 0 * * *  python -m expense_tracker.jobs sweep
    0 9 * * *  python -m expense_tracker.jobs reminders
    0 20 * * 0  python -m expense_tracker.jobs weekly-summary

Exit status is 0 on success and 1 when the job failed.
"""

import argparse
import json
import logging
import sys
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.core.errors import RateRefreshError
from expense_tracker.core.logging import init_logging
from expense_tracker.db.dal import Database
from expense_tracker.db.migrate import apply_migrations
from expense_tracker.db.seed import seed_currencies
from expense_tracker.services.rates.providers import build_refresh_chain
from expense_tracker.services.rates.refresh import refresh_exchange_rates
from expense_tracker.services.recurring_sweep import sweep_recurring_expenses
from expense_tracker.services.reminders import LoggingNotifier, dispatch_reminders
from expense_tracker.services.weekly_summary import send_weekly_summary

logger = logging.getLogger("expense_tracker.jobs")


def _run_refresh(db: Database, settings: Settings, today: date) -> dict:
    return refresh_exchange_rates(db, build_refresh_chain(settings)).as_dict()


def _run_sweep(db: Database, settings: Settings, today: date) -> dict:
    return sweep_recurring_expenses(db, today).as_dict()


def _run_reminders(db: Database, settings: Settings, today: date) -> dict:
    return dispatch_reminders(db, LoggingNotifier(), today).as_dict()


def _run_weekly_summary(db: Database, settings: Settings, today: date) -> dict:
    return send_weekly_summary(
        db, LoggingNotifier(), settings.reporting_currency, today
    ).as_dict()


JOBS: Dict[str, Callable[[Database, Settings, date], dict]] = {
    "refresh-rates": _run_refresh,
    "sweep": _run_sweep,
    "reminders": _run_reminders,
    "weekly-summary": _run_weekly_summary,
}


def _parse_date(raw: str) -> date:
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {raw!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense_tracker.jobs")
    parser.add_argument("job", choices=sorted(JOBS), help="Job to run")
    parser.add_argument(
        "--today", type=_parse_date, help="Run as if today were this date (YYYY-MM-DD)"
    )
    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or get_settings()
    settings.init_post_load()
    # stdout carries the job result; logs go to stderr
    init_logging(debug=settings.debug, stream=sys.stderr)

    apply_migrations(settings.db_path)  # type: ignore[arg-type]
    seed_currencies(settings.db_path)  # type: ignore[arg-type]
    db = Database(settings.db_path)  # type: ignore[arg-type]
    today = args.today or date.today()

    try:
        result = JOBS[args.job](db, settings, today)
    except RateRefreshError as e:
        logger.error("job failed: %s", e, extra={"job": args.job})
        return 1
    logger.info("job finished", extra={"job": args.job})
    print(json.dumps({"job": args.job, "today": today.isoformat(), **result}))
    return 0


if __name__ == "__main__":
    sys.exit(main())
