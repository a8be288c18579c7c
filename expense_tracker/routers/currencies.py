from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from expense_tracker.core.config import Settings
from expense_tracker.core.deps import get_app_settings, get_db, get_rate_table
from expense_tracker.core.errors import CurrencyNotFound, RateRefreshError
from expense_tracker.db.dal import Database
from expense_tracker.models.currency import (
    ConversionOut,
    ConvertIn,
    CurrencyCreate,
    CurrencyOut,
    CurrencyUsage,
)
from expense_tracker.services.money import to_decimal
from expense_tracker.services.rates.base import RateProvider
from expense_tracker.services.rates.conversion import convert
from expense_tracker.services.rates.providers import build_refresh_chain
from expense_tracker.services.rates.rate_table import RateTable
from expense_tracker.services.rates.refresh import refresh_exchange_rates

router = APIRouter(prefix="/currencies", tags=["currencies"])


def get_rate_providers(
    settings: Settings = Depends(get_app_settings),
) -> List[RateProvider]:
    return build_refresh_chain(settings)


def _row_to_currency_out(row: dict) -> CurrencyOut:
    return CurrencyOut(
        code=row["code"],
        name=row["name"],
        symbol=row["symbol"],
        exchange_rate=float(to_decimal(row["exchange_rate"])),
        updated_at=row["updated_at"],
    )


@router.get("/", response_model=List[CurrencyOut], summary="List currencies")
async def list_currencies(db: Database = Depends(get_db)):
    return [_row_to_currency_out(r) for r in db.list_currencies()]


@router.post(
    "/", response_model=CurrencyOut, status_code=201, summary="Add a currency"
)
async def add_currency(payload: CurrencyCreate, db: Database = Depends(get_db)):
    rate = to_decimal(payload.exchange_rate) if payload.exchange_rate is not None else to_decimal(1)
    try:
        row = db.add_currency(payload.code, payload.name, payload.symbol, rate)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return _row_to_currency_out(row)


@router.post(
    "/convert", response_model=ConversionOut, summary="Convert an amount between currencies"
)
async def convert_amount(
    payload: ConvertIn, rates: RateTable = Depends(get_rate_table)
):
    # CurrencyNotFound propagates to its 404 handler
    result = convert(payload.amount, payload.from_currency, payload.to_currency, rates)
    return ConversionOut(
        original_amount=float(result.original_amount),
        converted_amount=float(result.converted_amount),
        from_currency=result.from_currency,
        to_currency=result.to_currency,
        exchange_rate=float(result.exchange_rate),
    )


@router.post("/update-rates", summary="Refresh exchange rates from the configured providers")
async def update_rates(
    db: Database = Depends(get_db),
    providers: List[RateProvider] = Depends(get_rate_providers),
):
    try:
        result = refresh_exchange_rates(db, providers)
    except RateRefreshError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return {"status": "ok", **result.as_dict()}


@router.get(
    "/stats",
    response_model=List[CurrencyUsage],
    summary="Expense count and total amount per currency in use",
)
async def currency_stats(db: Database = Depends(get_db)):
    return [CurrencyUsage(**r) for r in db.currency_usage_stats()]


@router.get("/{code}", response_model=CurrencyOut, summary="Get one currency")
async def get_currency(code: str, db: Database = Depends(get_db)):
    row = db.get_currency(code)
    if not row:
        raise CurrencyNotFound(code.upper())
    return _row_to_currency_out(row)
