"""Pydantic domain models for the Expense Tracker."""

from .constants import (
    PIVOT_CURRENCY,
    Frequency,
)  # re-export
from .category import CategoryIn, CategoryOut, CategoryUpdateIn
from .currency import ConversionOut, ConvertIn, CurrencyCreate, CurrencyOut, CurrencyUsage
from .expense import ExpenseIn, ExpenseOut

__all__ = [
    "PIVOT_CURRENCY",
    "Frequency",
    "CategoryIn",
    "CategoryOut",
    "CategoryUpdateIn",
    "ConversionOut",
    "ConvertIn",
    "CurrencyCreate",
    "CurrencyOut",
    "CurrencyUsage",
    "ExpenseIn",
    "ExpenseOut",
]
