"""Payroll schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from bizhub.models.employee import PayType
from bizhub.models.payroll import PayrollStatus
from bizhub.services.payroll import Payslip, PayrollTotals

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
ZERO = Decimal("0.00")


class PayrollEntry(BaseModel):
    """One employee's inputs for a run. Omitted rates fall back to the employee record."""
    employee_id: UUID
    pay_type: PayType | None = None
    basic_salary: Decimal | None = Field(None, ge=0)
    hourly_rate: Decimal | None = Field(None, ge=0)
    daily_rate: Decimal | None = Field(None, ge=0)
    shift_rate: Decimal | None = Field(None, ge=0)
    hours_worked: Decimal = Field(ZERO, ge=0)
    days_worked: Decimal = Field(ZERO, ge=0)
    shifts_worked: Decimal = Field(ZERO, ge=0)
    allowances: Decimal = Field(ZERO, ge=0)
    overtime_pay: Decimal = Field(ZERO, ge=0)
    bonus: Decimal = Field(ZERO, ge=0)
    loan_deduction: Decimal = Field(ZERO, ge=0)
    other_deductions: Decimal = Field(ZERO, ge=0)


class PayrollRunRequest(BaseModel):
    month: str = Field(..., pattern=MONTH_PATTERN, description="Pay month, YYYY-MM")
    entries: list[PayrollEntry]
    notes: str | None = None


class PayslipPreview(BaseModel):
    employee_id: UUID
    employee_name: str
    payslip: Payslip


class PayrollPreviewResponse(BaseModel):
    month: str
    pay_period_start: date
    pay_period_end: date
    items: list[PayslipPreview]
    totals: PayrollTotals


class PayrollRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    employee_id: UUID
    pay_period_start: date
    pay_period_end: date
    pay_type: str
    status: PayrollStatus
    basic_salary: Decimal
    shift_pay: Decimal
    hours_worked: Decimal
    days_worked: Decimal
    shifts_worked: Decimal
    rate: Decimal
    allowances: Decimal
    overtime_pay: Decimal
    bonus: Decimal
    gross_pay: Decimal
    napsa_deduction: Decimal
    nhima_deduction: Decimal
    paye_deduction: Decimal
    loan_deduction: Decimal
    other_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    employer_napsa: Decimal
    employer_nhima: Decimal
    paid_date: date | None
    payment_method: str | None
    payment_reference: str | None
    approved_by: UUID | None
    notes: str | None
    created_at: datetime
    updated_at: datetime


class PayrollRunResponse(BaseModel):
    month: str
    items: list[PayrollRecordResponse]
    totals: PayrollTotals


class PayrollListResponse(BaseModel):
    month: str
    items: list[PayrollRecordResponse]
    total: int


class PayrollPayRequest(BaseModel):
    payment_method: str | None = Field(None, max_length=30)
    payment_reference: str | None = Field(None, max_length=100)
    paid_date: date | None = None


class PayrollSummary(BaseModel):
    month: str
    record_count: int
    status_counts: dict[str, int]
    totals: PayrollTotals


class StatutoryProvisionResult(BaseModel):
    month: str
    created: list[str]
    skipped: list[str]
