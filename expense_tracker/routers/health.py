from fastapi import APIRouter, Depends

from expense_tracker.core.config import Settings
from expense_tracker.core.deps import get_app_settings, get_db
from expense_tracker.db.dal import Database
from expense_tracker.db.migrate import SCHEMA_VERSION_KEY
from expense_tracker.services.rates.refresh import RATES_REFRESHED_AT_KEY, RATES_SOURCE_KEY

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness and data freshness")
async def health(
    settings: Settings = Depends(get_app_settings),
    db: Database = Depends(get_db),
):
    return {
        "status": "ok",
        "version": settings.version,
        "schema_version": db.get_metadata(SCHEMA_VERSION_KEY),
        "reporting_currency": settings.reporting_currency,
        "rates_refreshed_at": db.get_metadata(RATES_REFRESHED_AT_KEY),
        "rates_source": db.get_metadata(RATES_SOURCE_KEY),
    }
