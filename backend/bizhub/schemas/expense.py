"""Expense schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ExpenseCreate(BaseModel):
    date_incurred: date
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    vendor_name: str = Field(..., min_length=1, max_length=255)
    notes: str | None = None


class ExpenseResponse(ExpenseCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    recorded_by: UUID | None
    created_at: datetime


class ExpenseListResponse(BaseModel):
    items: list[ExpenseResponse]
    total: int
    page: int
    size: int


class CategoryTotal(BaseModel):
    category: str
    count: int
    total: Decimal


class MonthTotal(BaseModel):
    month: str
    count: int
    total: Decimal


class ExpenseSummary(BaseModel):
    period_start: date
    period_end: date
    by_category: list[CategoryTotal]
    by_month: list[MonthTotal]
    total: Decimal
