"""Pydantic models for Expense data"""
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, List, Optional

from utils.dates import to_utc

CENTS = Decimal("0.01")
MAX_AMOUNT = Decimal("99999999.99")
AMOUNT_ERROR = "Amount must be a positive number"
AMOUNT_TOO_LARGE_ERROR = f"Amount cannot exceed {MAX_AMOUNT}"
DESCRIPTION_ERROR = "Description cannot be empty"


def parse_amount(value: Any) -> Decimal:
    """
    Converts a raw amount (string or number) into a positive Decimal with two decimal places.

    Raises ValueError for anything that is not a finite number greater than zero once
    rounded to cents, so "-5", "abc", "NaN" and "0.001" are all rejected. Amounts above
    MAX_AMOUNT (a numeric(10, 2) column) are rejected with their own message.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise ValueError(AMOUNT_ERROR)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(AMOUNT_ERROR)
    if not amount.is_finite() or amount <= 0:
        raise ValueError(AMOUNT_ERROR)
    if amount > MAX_AMOUNT:
        raise ValueError(AMOUNT_TOO_LARGE_ERROR)
    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    # Values below half a cent round to zero
    if amount <= 0:
        raise ValueError(AMOUNT_ERROR)
    return amount


def clean_description(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(DESCRIPTION_ERROR)
    return value.strip()


class Expense(BaseModel):
    """
    A single stored expense. Instances are frozen; the store replaces them on update.
    """
    id: int = Field(..., ge=1)
    amount: Decimal
    description: str
    timestamp: datetime

    class Config:
        frozen = True
        from_attributes = True


class ExpenseInput(BaseModel):
    """Request body for creating or updating an expense."""
    amount: Decimal
    description: str

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, value: Any) -> Decimal:
        return parse_amount(value)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, value: Any) -> str:
        return clean_description(value)


class ExpenseDateInput(BaseModel):
    """Request body for moving an expense to another point in time."""
    timestamp: Optional[datetime] = None

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive values are taken as UTC
        return to_utc(value) if value is not None else None


class DailyExpenses(BaseModel):
    """
    Expenses of one calendar day, most recent first, with the day's total.
    """
    date: date
    total: Decimal
    expenses: List[Expense]
