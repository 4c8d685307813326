"""Recurring expense schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from bizhub.core.config import settings
from bizhub.models.recurring_expense import Frequency
from bizhub.services.recurring import RecurringStatus


class RecurringExpenseBase(BaseModel):
    vendor_name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    category: str = Field("Operations/Rent", max_length=100)
    frequency: Frequency = Frequency.MONTHLY
    custom_interval_days: int | None = Field(None, gt=0)
    start_date: date
    end_date: date | None = None
    advance_notice_days: int = Field(settings.DEFAULT_ADVANCE_NOTICE_DAYS, ge=0, le=365)
    is_active: bool = True
    notes: str | None = None

    @model_validator(mode="after")
    def check_schedule(self):
        if self.frequency == Frequency.CUSTOM and not self.custom_interval_days:
            raise ValueError("custom frequency requires a positive custom_interval_days")
        if self.frequency != Frequency.CUSTOM:
            self.custom_interval_days = None
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class RecurringExpenseCreate(RecurringExpenseBase):
    pass


class RecurringExpenseUpdate(RecurringExpenseBase):
    """Full replacement; the current next_due_date is kept."""


class RecurringExpenseResponse(BaseModel):
    id: UUID
    vendor_name: str
    description: str | None
    amount: Decimal
    category: str
    frequency: Frequency
    custom_interval_days: int | None
    start_date: date
    end_date: date | None
    advance_notice_days: int
    is_active: bool
    notes: str | None
    tenant_id: UUID
    next_due_date: date
    last_generated_date: date | None
    status: RecurringStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RecurringExpenseListResponse(BaseModel):
    items: list[RecurringExpenseResponse]
    total: int
    upcoming_count: int
    total_monthly: Decimal = Field(..., description="Monthly cost of the active schedules")


class ProcessingResponse(BaseModel):
    generated: int
    deactivated: int
    reminders: int
    payable_ids: list[UUID]
