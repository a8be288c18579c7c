from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from datetime import date, datetime
from .constants import CURRENCY_CODE_PATTERN, MAX_REMINDER_DAYS_ADVANCE


class ExpenseIn(BaseModel):
    category_id: int = Field(..., gt=0)
    currency_code: str = Field(..., pattern=CURRENCY_CODE_PATTERN)
    amount: float = Field(..., gt=0, allow_inf_nan=False)
    description: str = Field(..., min_length=1, max_length=500)
    date: date
    is_recurring: bool = False
    # Resolved by services.recurrence; an unknown value is a 400, not a 422
    recurring_frequency: Optional[str] = Field(None, max_length=20)
    # None falls back to the configured default_reminder_days_advance
    reminder_days_advance: Optional[int] = Field(None, ge=0, le=MAX_REMINDER_DAYS_ADVANCE)

    @field_validator("currency_code")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.upper()

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("description cannot be blank")
        return v

    @model_validator(mode="after")
    def recurrence_rules(self) -> "ExpenseIn":
        # Rule: a recurring expense must declare its cadence
        if self.is_recurring and self.recurring_frequency is None:
            raise ValueError("recurring expenses require recurring_frequency")
        # Frequency carries no meaning on one-off expenses
        if not self.is_recurring:
            self.recurring_frequency = None
        return self


class ExpenseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category_id: int
    category_name: Optional[str] = None
    currency_code: str
    amount: float
    description: str
    date: date
    is_recurring: bool
    recurring_frequency: Optional[str] = None
    next_due_date: Optional[date] = None
    reminder_days_advance: int
    reporting_currency: str
    reporting_amount: float
    exchange_rate: float
    created_at: datetime
    updated_at: datetime
