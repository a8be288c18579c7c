"""Money / rounding helpers.

Centralized so conversion, analytics and the rate refresh job use identical
Decimal semantics. Values read from SQLite or JSON go through `to_decimal`
(via `str`) so binary float noise never leaks into stored amounts.
"""

from __future__ import annotations
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
RATE_PRECISION = Decimal("0.0001")

Number = Union[Decimal, float, int, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a decimal number: {value!r}") from e


def round2(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round4(value: Number) -> Decimal:
    return to_decimal(value).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)
