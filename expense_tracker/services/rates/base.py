from __future__ import annotations

"""Rate provider abstraction.

Providers return a full USD-pivot table (units of each currency per 1 USD);
the refresh job decides which of those codes land in the currency table.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Protocol


class RateProvider(ABC):
    name: str = "abstract"

    @abstractmethod
    def fetch_rates(self) -> Dict[str, Decimal]:
        """Return units of currency per 1 USD, keyed by upper-case code."""
        raise NotImplementedError


class SupportsRateLookup(Protocol):
    def get_rate(self, currency: str) -> Decimal: ...
