"""Tests for the exchange rate providers and refresh job."""

from decimal import Decimal

import pytest

from expense_tracker.core.config import Settings
from expense_tracker.core.errors import RateRefreshError
from expense_tracker.services.http_client import HttpError
from expense_tracker.services.rates.base import RateProvider
from expense_tracker.services.rates.providers import (
    ExchangeRateApiProvider,
    FixerRateProvider,
    ProviderError,
    StaticRateProvider,
    build_refresh_chain,
)
from expense_tracker.services.rates.refresh import (
    RATES_REFRESHED_AT_KEY,
    RATES_SOURCE_KEY,
    refresh_exchange_rates,
)


class FixedProvider(RateProvider):
    def __init__(self, name, rates):
        self.name = name
        self._rates = rates
        self.calls = 0

    def fetch_rates(self):
        self.calls += 1
        return dict(self._rates)


class FailingProvider(RateProvider):
    name = "down"

    def fetch_rates(self):
        raise ProviderError("upstream timeout")


def test_refresh_updates_known_codes_only(db):
    provider = FixedProvider(
        "primary",
        {"USD": Decimal("1"), "COP": Decimal("4123.5"), "EUR": Decimal("0.9"), "XAU": Decimal("0.0004")},
    )
    result = refresh_exchange_rates(db, [provider])

    rates = db.currency_rates()
    assert Decimal(rates["COP"]) == Decimal("4123.5")
    assert Decimal(rates["EUR"]) == Decimal("0.9")
    assert "XAU" not in rates
    # untouched when the provider has no quote
    assert Decimal(rates["JPY"]) == Decimal("150")
    assert result.source == "primary"
    assert result.updated == 3
    assert db.get_metadata(RATES_SOURCE_KEY) == "primary"
    assert db.get_metadata(RATES_REFRESHED_AT_KEY) == result.refreshed_at


def test_refresh_pins_pivot_to_one(db):
    refresh_exchange_rates(db, [FixedProvider("odd", {"USD": Decimal("1.02"), "COP": Decimal("4100")})])
    assert Decimal(db.currency_rates()["USD"]) == Decimal("1")


def test_refresh_falls_back_to_next_provider(db):
    fallback = FixedProvider("fallback", {"COP": Decimal("3999")})
    result = refresh_exchange_rates(db, [FailingProvider(), fallback])
    assert result.source == "fallback"
    assert fallback.calls == 1
    assert Decimal(db.currency_rates()["COP"]) == Decimal("3999")


def test_refresh_stops_at_first_success(db):
    first = FixedProvider("first", {"COP": Decimal("4001")})
    second = FixedProvider("second", {"COP": Decimal("4002")})
    refresh_exchange_rates(db, [first, second])
    assert second.calls == 0


def test_refresh_all_failed_keeps_rates(db):
    before = db.currency_rates()
    with pytest.raises(RateRefreshError) as exc:
        refresh_exchange_rates(db, [FailingProvider(), FailingProvider()])
    assert "upstream timeout" in str(exc.value)
    assert db.currency_rates() == before
    assert db.get_metadata(RATES_REFRESHED_AT_KEY) is None


def test_refresh_without_providers(db):
    with pytest.raises(RateRefreshError):
        refresh_exchange_rates(db, [])


def test_static_provider_returns_seed_rates():
    rates = StaticRateProvider().fetch_rates()
    assert rates["USD"] == Decimal("1")
    assert rates["COP"] == Decimal("4000")


class TestExchangeRateApiProvider:
    def test_parses_conversion_rates(self):
        seen = {}

        def fetch(url, timeout, retries):
            seen["url"] = url
            return {
                "result": "success",
                "conversion_rates": {"USD": 1, "COP": 4050.25, "EUR": "0.93", "BAD": "x", "ZERO": 0},
            }

        provider = ExchangeRateApiProvider("k3y", "https://example.test/v6/", fetch=fetch)
        rates = provider.fetch_rates()
        assert seen["url"] == "https://example.test/v6/k3y/latest/USD"
        assert rates == {"USD": Decimal("1"), "COP": Decimal("4050.25"), "EUR": Decimal("0.93")}

    def test_error_result(self):
        def fetch(url, timeout, retries):
            return {"result": "error", "error-type": "invalid-key"}

        provider = ExchangeRateApiProvider("bad", "https://example.test/v6", fetch=fetch)
        with pytest.raises(ProviderError, match="invalid-key"):
            provider.fetch_rates()

    def test_http_failure_becomes_provider_error(self):
        def fetch(url, timeout, retries):
            raise HttpError("Failed to fetch JSON from https://example.test: URLError")

        provider = ExchangeRateApiProvider("secret", "https://example.test/v6", fetch=fetch)
        with pytest.raises(ProviderError) as exc:
            provider.fetch_rates()
        assert "secret" not in str(exc.value)


class TestFixerRateProvider:
    def test_parses_rates(self):
        seen = {}

        def fetch(url, timeout, retries):
            seen["url"] = url
            return {"success": True, "base": "USD", "rates": {"COP": 4010, "GBP": 0.8}}

        provider = FixerRateProvider("abc", "http://fixer.test/api", fetch=fetch)
        rates = provider.fetch_rates()
        assert seen["url"] == "http://fixer.test/api/latest?access_key=abc&base=USD"
        assert rates == {"COP": Decimal("4010"), "GBP": Decimal("0.8")}

    def test_unsuccessful_payload(self):
        def fetch(url, timeout, retries):
            return {"success": False, "error": {"type": "base_currency_access_restricted"}}

        provider = FixerRateProvider("abc", "http://fixer.test/api", fetch=fetch)
        with pytest.raises(ProviderError, match="base_currency_access_restricted"):
            provider.fetch_rates()

    def test_empty_rates(self):
        def fetch(url, timeout, retries):
            return {"success": True, "rates": {}}

        provider = FixerRateProvider("abc", "http://fixer.test/api", fetch=fetch)
        with pytest.raises(ProviderError):
            provider.fetch_rates()


def test_chain_skips_providers_without_keys(tmp_path):
    s = Settings(
        data_dir=tmp_path,
        rate_providers=["exchangerate-api", "fixer", "static"],
        exchange_api_key=None,
        fixer_api_key="f1x",
    )
    s.init_post_load()
    chain = build_refresh_chain(s)
    assert [p.name for p in chain] == ["fixer", "static"]


def test_unknown_provider_rejected(tmp_path):
    s = Settings(data_dir=tmp_path, rate_providers=["openexchangerates"])
    with pytest.raises(ValueError):
        s.init_post_load()


def test_invalid_reporting_currency_rejected(tmp_path):
    s = Settings(data_dir=tmp_path, reporting_currency="pesos", rate_providers=["static"])
    with pytest.raises(ValueError):
        s.init_post_load()
