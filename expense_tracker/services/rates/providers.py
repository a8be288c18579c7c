from __future__ import annotations

"""Concrete rate providers and factory.

'static' returns the seed placeholders (offline / tests); 'exchangerate-api'
is the primary upstream and 'fixer' the fallback. All return units per 1 USD.
"""
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from expense_tracker.core.config import Settings
from expense_tracker.db.seed import DEFAULT_CURRENCIES
from expense_tracker.services.http_client import HttpError, get_json
from expense_tracker.services.money import to_decimal
from .base import RateProvider

logger = logging.getLogger("expense_tracker.rates.providers")

_STATIC_RATES: Dict[str, Decimal] = {
    code: Decimal(rate) for code, _name, _symbol, rate in DEFAULT_CURRENCIES
}

JsonFetcher = Callable[..., Dict[str, Any]]


class ProviderError(Exception):
    pass


def _parse_rates(raw: Mapping[str, Any]) -> Dict[str, Decimal]:
    out: Dict[str, Decimal] = {}
    for code, value in raw.items():
        try:
            rate = to_decimal(value)
        except ValueError:
            continue
        if rate.is_finite() and rate > 0:
            out[str(code).upper()] = rate
    return out


class StaticRateProvider(RateProvider):
    name = "static"

    def __init__(self, rates: Optional[Mapping[str, Decimal]] = None):
        self._rates = dict(rates or _STATIC_RATES)

    def fetch_rates(self) -> Dict[str, Decimal]:  # type: ignore[override]
        return dict(self._rates)


class ExchangeRateApiProvider(RateProvider):
    """exchangerate-api.com v6: GET {base}/{key}/latest/USD -> conversion_rates."""

    name = "exchangerate-api"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        retries: int = 2,
        fetch: JsonFetcher = get_json,
    ):
        self._url = f"{base_url.rstrip('/')}/{api_key}/latest/USD"
        self._timeout = timeout
        self._retries = retries
        self._fetch = fetch

    def fetch_rates(self) -> Dict[str, Decimal]:  # type: ignore[override]
        try:
            data = self._fetch(self._url, timeout=self._timeout, retries=self._retries)
        except HttpError as e:
            raise ProviderError(str(e)) from e
        if data.get("result") not in (None, "success"):
            raise ProviderError(
                f"exchangerate-api error: {data.get('error-type', 'unknown')}"
            )
        rates = _parse_rates(data.get("conversion_rates") or {})
        if not rates:
            raise ProviderError("exchangerate-api returned no rates")
        return rates


class FixerRateProvider(RateProvider):
    """fixer.io: GET {base}/latest?access_key=...&base=USD -> rates."""

    name = "fixer"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        retries: int = 2,
        fetch: JsonFetcher = get_json,
    ):
        self._url = f"{base_url.rstrip('/')}/latest?access_key={api_key}&base=USD"
        self._timeout = timeout
        self._retries = retries
        self._fetch = fetch

    def fetch_rates(self) -> Dict[str, Decimal]:  # type: ignore[override]
        try:
            data = self._fetch(self._url, timeout=self._timeout, retries=self._retries)
        except HttpError as e:
            raise ProviderError(str(e)) from e
        if not data.get("success"):
            info = (data.get("error") or {}).get("type", "unknown")
            raise ProviderError(f"fixer error: {info}")
        rates = _parse_rates(data.get("rates") or {})
        if not rates:
            raise ProviderError("fixer returned no rates")
        return rates


def make_rate_provider(kind: str, settings: Settings) -> Optional[RateProvider]:
    """Build one provider, or None when its API key is not configured."""
    if kind == "static":
        return StaticRateProvider()
    if kind == "exchangerate-api":
        if not settings.exchange_api_key:
            return None
        return ExchangeRateApiProvider(
            settings.exchange_api_key,
            settings.exchange_api_base_url,
            timeout=settings.http_timeout_seconds,
            retries=settings.http_retries,
        )
    if kind == "fixer":
        if not settings.fixer_api_key:
            return None
        return FixerRateProvider(
            settings.fixer_api_key,
            settings.fixer_api_base_url,
            timeout=settings.http_timeout_seconds,
            retries=settings.http_retries,
        )
    raise ValueError(f"Unknown rate provider kind '{kind}'")


def build_refresh_chain(settings: Settings) -> List[RateProvider]:
    chain: List[RateProvider] = []
    for kind in settings.rate_providers:
        provider = make_rate_provider(kind, settings)
        if provider is None:
            logger.info("rate provider %s skipped: API key not configured", kind)
            continue
        chain.append(provider)
    return chain
