from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Iterator, Mapping

from expense_tracker.core.errors import CurrencyNotFound
from expense_tracker.services.money import Number, to_decimal

if TYPE_CHECKING:  # pragma: no cover
    from expense_tracker.db.dal import Database


class RateTable(Mapping[str, Decimal]):
    """Immutable snapshot of the USD-pivot rate table.

    Built once per request (or job run) and handed to `convert`, so a refresh
    landing mid-request never mixes old and new rates in one conversion.
    """

    def __init__(self, rates: Mapping[str, Number]):
        self._rates: Dict[str, Decimal] = {
            code.upper(): to_decimal(rate) for code, rate in rates.items()
        }

    @classmethod
    def from_database(cls, db: "Database") -> "RateTable":
        return cls(db.currency_rates())

    def get_rate(self, currency: str) -> Decimal:
        code = currency.upper()
        rate = self._rates.get(code)
        # A zero / negative rate can only come from a corrupt row; refuse to divide by it
        if rate is None or rate <= 0:
            raise CurrencyNotFound(code)
        return rate

    def __getitem__(self, currency: str) -> Decimal:
        return self._rates[currency.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateTable({len(self._rates)} currencies)"
