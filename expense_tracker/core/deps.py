"""FastAPI dependencies shared by the routers.

Settings come from `app.state.settings` (set by `create_app`) so an app built
with `settings_override` serves its own database; handlers never reach for a
module-level singleton.
"""

from fastapi import Depends, Request

from expense_tracker.core.config import Settings, get_settings
from expense_tracker.db.dal import Database
from expense_tracker.services.rates.rate_table import RateTable


def get_app_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_db(settings: Settings = Depends(get_app_settings)) -> Database:
    return Database(settings.db_path)


def get_rate_table(db: Database = Depends(get_db)) -> RateTable:
    # Fresh snapshot per request; the refresh job may have run in between
    return RateTable.from_database(db)
