from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from .constants import CURRENCY_CODE_PATTERN


def _upper(v: str) -> str:
    return v.strip().upper()


class CurrencyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    symbol: str
    exchange_rate: float = Field(..., description="Units of this currency per 1 USD")
    updated_at: str


class CurrencyCreate(BaseModel):
    code: str = Field(..., pattern=CURRENCY_CODE_PATTERN)
    name: str = Field(..., min_length=1, max_length=50)
    symbol: str = Field(..., min_length=1, max_length=5)
    exchange_rate: Optional[float] = Field(
        None, gt=0, description="Initial units per 1 USD; refreshed by the rates job"
    )

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return _upper(v)


class ConvertIn(BaseModel):
    amount: float = Field(..., ge=0, allow_inf_nan=False)
    from_currency: str = Field(..., pattern=CURRENCY_CODE_PATTERN)
    to_currency: str = Field(..., pattern=CURRENCY_CODE_PATTERN)

    @field_validator("from_currency", "to_currency")
    @classmethod
    def normalize_codes(cls, v: str) -> str:
        return _upper(v)


class ConversionOut(BaseModel):
    original_amount: float
    converted_amount: float
    from_currency: str
    to_currency: str
    exchange_rate: float


class CurrencyUsage(BaseModel):
    code: str
    name: str
    symbol: str
    expense_count: int
    total_amount: float
