from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import date, datetime, timedelta
from typing import List, Optional

from expense_tracker.core.config import Settings
from expense_tracker.core.deps import get_app_settings, get_db, get_rate_table
from expense_tracker.db.dal import Database
from expense_tracker.models.expense import ExpenseIn, ExpenseOut
from expense_tracker.services.expense_values import UnknownCategory, build_expense_values
from expense_tracker.services.money import to_decimal
from expense_tracker.services.rates.rate_table import RateTable

router = APIRouter(prefix="/expenses", tags=["expenses"])


# Helpers ----------------------------------------------------------


def _parse_ts(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", ""))


def _row_to_expense_out(row: dict, reporting_currency: str) -> ExpenseOut:
    return ExpenseOut(
        id=row["id"],
        category_id=row["category_id"],
        category_name=row.get("category_name"),
        currency_code=row["currency_code"],
        amount=float(to_decimal(row["amount"])),
        description=row["description"],
        date=date.fromisoformat(row["date"]),
        is_recurring=bool(row["is_recurring"]),
        recurring_frequency=row.get("recurring_frequency"),
        next_due_date=date.fromisoformat(row["next_due_date"])
        if row.get("next_due_date")
        else None,
        reminder_days_advance=row["reminder_days_advance"],
        reporting_currency=reporting_currency,
        reporting_amount=float(to_decimal(row["reporting_amount"])),
        exchange_rate=float(to_decimal(row["exchange_rate"])),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _resolve_values(
    payload: ExpenseIn, db: Database, rates: RateTable, settings: Settings
) -> dict:
    try:
        return build_expense_values(
            payload,
            db,
            rates,
            settings.reporting_currency,
            settings.default_reminder_days_advance,
        )
    except UnknownCategory as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


# Routes -----------------------------------------------------------
@router.post(
    "/", response_model=ExpenseOut, status_code=201, summary="Create an expense"
)
async def create_expense(
    payload: ExpenseIn,
    db: Database = Depends(get_db),
    rates: RateTable = Depends(get_rate_table),
    settings: Settings = Depends(get_app_settings),
):
    # 1. Derived fields (reporting amount, rate, next due date)
    values = _resolve_values(payload, db, rates, settings)

    # 2. Persist
    expense_id = db.insert_expense(values)

    # 3. Fetch row to build response
    row = db.get_expense(expense_id)
    if not row:
        raise HTTPException(status_code=500, detail="expense not found after insert")
    return _row_to_expense_out(row, settings.reporting_currency)


@router.get(
    "/", response_model=List[ExpenseOut], summary="List expenses with optional filters"
)
async def list_expenses_endpoint(
    start_date: Optional[date] = Query(None, description="Filter: start date inclusive"),
    end_date: Optional[date] = Query(None, description="Filter: end date inclusive"),
    category_id: Optional[int] = Query(None, description="Filter by category"),
    currency: Optional[str] = Query(None, description="Filter by original currency"),
    recurring: Optional[bool] = Query(None, description="Only recurring / one-off"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=400, detail="start_date cannot be after end_date"
        )
    rows = db.list_expenses(
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        currency=currency,
        recurring=recurring,
        limit=limit,
        offset=offset,
    )
    return [_row_to_expense_out(r, settings.reporting_currency) for r in rows]


@router.get(
    "/upcoming",
    response_model=List[ExpenseOut],
    summary="Recurring expenses due within the next N days",
)
async def upcoming_expenses(
    days: Optional[int] = Query(None, ge=0, le=366),
    as_of: Optional[date] = Query(None, description="Window start (defaults to today)"),
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    start = as_of or date.today()
    window = days if days is not None else settings.upcoming_window_days
    rows = db.list_upcoming_recurring(start, start + timedelta(days=window))
    return [_row_to_expense_out(r, settings.reporting_currency) for r in rows]


@router.get("/{expense_id}", response_model=ExpenseOut, summary="Get one expense")
async def get_expense(
    expense_id: int,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    row = db.get_expense(expense_id)
    if not row:
        raise HTTPException(status_code=404, detail="expense not found")
    return _row_to_expense_out(row, settings.reporting_currency)


@router.put("/{expense_id}", response_model=ExpenseOut, summary="Replace an expense")
async def update_expense(
    expense_id: int,
    payload: ExpenseIn,
    db: Database = Depends(get_db),
    rates: RateTable = Depends(get_rate_table),
    settings: Settings = Depends(get_app_settings),
):
    if not db.get_expense(expense_id):
        raise HTTPException(status_code=404, detail="expense not found")

    # Recomputed with today's rates; next_due_date re-seeded from the new date
    values = _resolve_values(payload, db, rates, settings)
    try:
        db.update_expense(expense_id, values)
    except LookupError:
        raise HTTPException(status_code=404, detail="expense not found")

    updated = db.get_expense(expense_id)
    if not updated:
        raise HTTPException(status_code=500, detail="expense disappeared after update")
    return _row_to_expense_out(updated, settings.reporting_currency)


@router.delete("/{expense_id}", status_code=204, summary="Delete an expense")
async def delete_expense(expense_id: int, db: Database = Depends(get_db)):
    try:
        db.delete_expense(expense_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="expense not found")
    return None
