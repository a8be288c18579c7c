from __future__ import annotations

"""Exchange rate refresh job.

Runs daily (cron -> `python -m expense_tracker.jobs refresh-rates`) and on
demand through `POST /currencies/update-rates`. Providers are tried in order;
the first one that answers overwrites the rates of every currency already in
the table. Codes the table does not know are ignored: adding a currency is an
explicit action, not a side effect of an upstream payload.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Sequence

from expense_tracker.core.errors import RateRefreshError
from expense_tracker.db.dal import Database
from expense_tracker.models.constants import PIVOT_CURRENCY
from .base import RateProvider
from .providers import ProviderError

logger = logging.getLogger("expense_tracker.jobs.rates")

RATES_REFRESHED_AT_KEY = "rates_refreshed_at"
RATES_SOURCE_KEY = "rates_source"


@dataclass(frozen=True)
class RefreshResult:
    source: str
    updated: int
    refreshed_at: str

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "updated": self.updated,
            "refreshed_at": self.refreshed_at,
        }


def refresh_exchange_rates(
    db: Database, providers: Sequence[RateProvider]
) -> RefreshResult:
    if not providers:
        raise RateRefreshError("no exchange rate provider configured")

    errors: List[str] = []
    for provider in providers:
        try:
            fetched = provider.fetch_rates()
        except ProviderError as e:
            logger.warning("rate provider %s failed: %s", provider.name, e)
            errors.append(f"{provider.name}: {e}")
            continue

        known = set(db.currency_rates())
        rates: Dict[str, Decimal] = {
            code: rate for code, rate in fetched.items() if code in known and rate > 0
        }
        rates[PIVOT_CURRENCY] = Decimal("1")
        updated = db.update_currency_rates(rates)
        refreshed_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        db.set_metadata(RATES_REFRESHED_AT_KEY, refreshed_at)
        db.set_metadata(RATES_SOURCE_KEY, provider.name)
        missing = sorted(known - set(rates))
        if missing:
            logger.info("provider %s had no rate for %s", provider.name, ", ".join(missing))
        logger.info("exchange rates updated from %s: %d currencies", provider.name, updated)
        return RefreshResult(source=provider.name, updated=updated, refreshed_at=refreshed_at)

    raise RateRefreshError("all rate providers failed: " + "; ".join(errors))
