from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from expense_tracker.core.config import Settings
from expense_tracker.core.deps import get_app_settings, get_db
from expense_tracker.db.dal import Database
from expense_tracker.services.analytics_utils import compute_summary

router = APIRouter(prefix="/analytics", tags=["analytics"])


class CategoryBreakdownItem(BaseModel):
    category_id: int
    category: str
    expense_count: int
    reporting_total: float
    percent: float


class CurrencyBreakdownItem(BaseModel):
    currency: str
    amount_total: float
    reporting_total: float
    percent: float


class MonthItem(BaseModel):
    month: str
    expense_count: int
    reporting_total: float


class SummaryOut(BaseModel):
    reporting_currency: str
    expense_count: int
    reporting_total: float
    by_category: List[CategoryBreakdownItem]
    by_currency: List[CurrencyBreakdownItem]
    by_month: List[MonthItem]


@router.get(
    "/summary",
    response_model=SummaryOut,
    summary="Totals and breakdowns in the reporting currency",
)
async def summary_endpoint(
    start_date: Optional[date] = Query(None, description="Filter start date inclusive"),
    end_date: Optional[date] = Query(None, description="Filter end date inclusive"),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=400, detail="start_date cannot be after end_date"
        )
    s = compute_summary(db, settings.reporting_currency, start_date, end_date)
    return SummaryOut(
        reporting_currency=s.reporting_currency,
        expense_count=s.expense_count,
        reporting_total=float(s.reporting_total),
        by_category=[
            CategoryBreakdownItem(
                category_id=c.category_id,
                category=c.category,
                expense_count=c.expense_count,
                reporting_total=float(c.reporting_total),
                percent=float(c.percent),
            )
            for c in s.by_category
        ],
        by_currency=[
            CurrencyBreakdownItem(
                currency=c.currency,
                amount_total=float(c.amount_total),
                reporting_total=float(c.reporting_total),
                percent=float(c.percent),
            )
            for c in s.by_currency
        ],
        by_month=[
            MonthItem(
                month=m.month,
                expense_count=m.expense_count,
                reporting_total=float(m.reporting_total),
            )
            for m in s.by_month
        ],
    )
