"""Accounts payable schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from bizhub.models.payable import PayableStatus

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


class PayableCreate(BaseModel):
    vendor_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    due_date: date | None = None
    invoice_reference: str | None = Field(None, max_length=100)
    notes: str | None = None


class PayableResponse(PayableCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    paid_amount: Decimal
    paid_date: date | None
    status: PayableStatus
    recurring_expense_id: UUID | None
    created_at: datetime
    updated_at: datetime


class PayableListResponse(BaseModel):
    items: list[PayableResponse]
    total: int
    page: int
    size: int


class PayablePaymentRequest(BaseModel):
    amount: Decimal | None = Field(None, gt=0, decimal_places=2, description="Defaults to the remaining balance")
    paid_date: date | None = None
    category: str = Field("Other", max_length=100)


class PayableSummary(BaseModel):
    total_outstanding: Decimal
    total_overdue: Decimal
    open_count: int
    overdue_count: int


class TaxType(BaseModel):
    key: str
    label: str
    description: str
    authority: str
    default_due_day: int


class StatutoryProvisionCreate(BaseModel):
    tax_type: str
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    period: str = Field(..., pattern=PERIOD_PATTERN, description="YYYY-MM")
    due_date: date | None = None
    notes: str | None = None
