"""Invoice and receivables schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from bizhub.models.invoice import InvoiceStatus


class InvoiceCreate(BaseModel):
    invoice_number: str = Field(..., min_length=1, max_length=50)
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr | None = None
    invoice_date: date
    due_date: date | None = None
    total_amount: Decimal = Field(..., gt=0, decimal_places=2)
    status: InvoiceStatus = InvoiceStatus.SENT
    notes: str | None = None


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    invoice_number: str
    client_name: str
    client_email: str | None
    invoice_date: date
    due_date: date | None
    total_amount: Decimal
    status: InvoiceStatus
    notes: str | None
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(BaseModel):
    items: list[InvoiceResponse]
    total: int
    page: int
    size: int


class AgingInvoice(BaseModel):
    id: UUID
    invoice_number: str
    client_name: str
    client_email: str | None
    due_date: date | None
    total_amount: Decimal
    days_overdue: int


class AgingBucketResponse(BaseModel):
    label: str
    count: int
    total: Decimal
    invoices: list[AgingInvoice]


class AgingReportResponse(BaseModel):
    as_of: date
    buckets: list[AgingBucketResponse]
    total_receivables: Decimal
    total_overdue: Decimal


class ReminderResult(BaseModel):
    invoice_id: UUID
    invoice_number: str
    sent: bool
    error: str | None = None


class BulkReminderResponse(BaseModel):
    success_count: int
    fail_count: int
    results: list[ReminderResult]
