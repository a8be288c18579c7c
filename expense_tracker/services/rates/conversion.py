from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from expense_tracker.services.money import Number, round2, round4, to_decimal
from .base import SupportsRateLookup

"""Currency conversion through the USD pivot.

Every rate in the table is "units per 1 USD", so a cross conversion is
amount / rate(from) * rate(to). Storing n rates instead of n^2 pairs costs a
little rounding drift, fine for personal bookkeeping.

Rounding happens once, here: converted amounts to cents, rates to four places.
"""

ONE = Decimal("1")


@dataclass(frozen=True)
class ConversionResult:
    original_amount: Decimal
    from_currency: str
    to_currency: str
    converted_amount: Decimal
    exchange_rate: Decimal


def convert(
    amount: Number, from_code: str, to_code: str, rates: SupportsRateLookup
) -> ConversionResult:
    """Convert `amount` from `from_code` to `to_code`.

    Raises `CurrencyNotFound` (via `rates`) when either code is unknown and
    `ValueError` for negative or non-finite amounts.
    """
    value = to_decimal(amount)
    if not value.is_finite() or value < 0:
        raise ValueError(f"amount must be a finite non-negative number, got {amount!r}")
    from_code = from_code.upper()
    to_code = to_code.upper()

    # Both codes must exist, even for an identity conversion
    from_rate = rates.get_rate(from_code)
    to_rate = rates.get_rate(to_code)

    if from_code == to_code:
        return ConversionResult(
            original_amount=value,
            from_currency=from_code,
            to_currency=to_code,
            converted_amount=value,
            exchange_rate=ONE,
        )

    pivot_amount = value / from_rate  # amount in USD
    converted = pivot_amount * to_rate
    return ConversionResult(
        original_amount=value,
        from_currency=from_code,
        to_currency=to_code,
        converted_amount=round2(converted),
        exchange_rate=round4(to_rate / from_rate),
    )
