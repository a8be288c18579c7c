"""Tests for USD-pivot currency conversion and the rate table."""

from decimal import Decimal

import pytest

from expense_tracker.core.errors import CurrencyNotFound
from expense_tracker.services.money import round2, round4
from expense_tracker.services.rates.conversion import convert
from expense_tracker.services.rates.rate_table import RateTable


class TestConvert:
    @pytest.mark.parametrize("code", ["USD", "EUR", "COP", "JPY"])
    @pytest.mark.parametrize("amount", ["0", "1", "123.456", "99999.99"])
    def test_same_currency_is_identity(self, rates, code, amount):
        result = convert(Decimal(amount), code, code, rates)
        assert result.converted_amount == Decimal(amount)
        assert result.exchange_rate == Decimal("1")

    def test_usd_to_cop(self, rates):
        result = convert(100, "USD", "COP", rates)
        assert result.converted_amount == Decimal("400000.00")
        assert result.exchange_rate == Decimal("4000.0000")

    def test_cross_rate_through_pivot(self, rates):
        result = convert(100, "EUR", "USD", rates)
        # 100 / 0.92 = 108.6956...
        assert result.converted_amount == Decimal("108.70")
        assert result.exchange_rate == Decimal("1.0870")

    def test_cross_rate_between_non_pivot_currencies(self, rates):
        result = convert(Decimal("50"), "EUR", "JPY", rates)
        assert result.converted_amount == round2(Decimal("50") / Decimal("0.92") * 150)
        assert result.exchange_rate == round4(Decimal("150") / Decimal("0.92"))

    def test_codes_are_case_insensitive(self, rates):
        result = convert(10, "usd", "cop", rates)
        assert result.from_currency == "USD"
        assert result.to_currency == "COP"
        assert result.converted_amount == Decimal("40000.00")

    @pytest.mark.parametrize(
        "src,dst",
        [("USD", "COP"), ("EUR", "USD"), ("USD", "JPY"), ("EUR", "COP"), ("JPY", "COP")],
    )
    @pytest.mark.parametrize("amount", ["0.01", "1", "99.99", "1234.56"])
    def test_round_trip_within_a_cent(self, rates, src, dst, amount):
        there = convert(Decimal(amount), src, dst, rates)
        back = convert(there.converted_amount, dst, src, rates)
        assert abs(back.converted_amount - Decimal(amount)) <= Decimal("0.01")

    def test_zero_amount_keeps_rate(self, rates):
        result = convert(0, "EUR", "COP", rates)
        assert result.converted_amount == Decimal("0.00")
        assert result.exchange_rate == round4(Decimal("4000") / Decimal("0.92"))

    def test_unknown_target_currency(self, rates):
        with pytest.raises(CurrencyNotFound) as exc:
            convert(100, "USD", "ZZZ", rates)
        assert exc.value.code == "ZZZ"

    def test_unknown_source_currency(self, rates):
        with pytest.raises(CurrencyNotFound):
            convert(100, "ZZZ", "USD", rates)

    def test_identity_still_requires_known_currency(self, rates):
        with pytest.raises(CurrencyNotFound):
            convert(100, "ZZZ", "ZZZ", rates)

    def test_currency_not_found_is_value_error(self, rates):
        with pytest.raises(ValueError):
            convert(1, "USD", "ABC", rates)

    @pytest.mark.parametrize("amount", [-1, Decimal("-0.01"), float("inf"), Decimal("NaN")])
    def test_rejects_negative_or_non_finite(self, rates, amount):
        with pytest.raises(ValueError):
            convert(amount, "USD", "COP", rates)

    def test_float_input_does_not_leak_binary_noise(self, rates):
        result = convert(0.1, "USD", "COP", rates)
        assert result.converted_amount == Decimal("400.00")
        assert result.original_amount == Decimal("0.1")


class TestRateTable:
    def test_lookup_and_mapping_protocol(self):
        table = RateTable({"usd": "1", "EUR": 0.92})
        assert table.get_rate("eur") == Decimal("0.92")
        assert set(table) == {"USD", "EUR"}
        assert len(table) == 2
        assert table["usd"] == Decimal("1")

    def test_non_positive_rate_is_treated_as_missing(self):
        table = RateTable({"USD": "1", "BAD": "0"})
        with pytest.raises(CurrencyNotFound):
            table.get_rate("BAD")

    def test_from_database_reads_seeded_currencies(self, db):
        table = RateTable.from_database(db)
        assert table.get_rate("USD") == Decimal("1")
        assert table.get_rate("COP") == Decimal("4000")
        assert {"EUR", "CAD", "GBP", "JPY", "MXN"} <= set(table)
