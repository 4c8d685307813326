"""Employee schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from bizhub.models.employee import EmploymentStatus, PayType


class EmployeeBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    nrc_number: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    job_title: str | None = Field(None, max_length=100)
    hire_date: date
    pay_type: PayType = PayType.MONTHLY
    base_salary: Decimal = Field(Decimal("0.00"), ge=0, decimal_places=2)
    hourly_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    daily_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    shift_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    bank_name: str | None = None
    bank_account_number: str | None = None
    branch_id: UUID | None = None
    notes: str | None = None


class EmployeeCreate(EmployeeBase):
    pass


class EmployeeUpdate(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=20)
    department: str | None = None
    job_title: str | None = None
    employment_status: EmploymentStatus | None = None
    pay_type: PayType | None = None
    base_salary: Decimal | None = Field(None, ge=0, decimal_places=2)
    hourly_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    daily_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    shift_rate: Decimal | None = Field(None, ge=0, decimal_places=2)
    bank_name: str | None = None
    bank_account_number: str | None = None
    branch_id: UUID | None = None
    notes: str | None = None


class EmployeeTerminate(BaseModel):
    termination_date: date
    notes: str | None = None


class EmployeeResponse(EmployeeBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    email: str | None = None
    employment_status: EmploymentStatus
    termination_date: date | None
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int
    page: int
    size: int
