"""Employee model."""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Text, Numeric, Enum, Date, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class PayType(str, enum.Enum):
    MONTHLY = "monthly"
    HOURLY = "hourly"
    DAILY = "daily"
    PER_SHIFT = "per_shift"


class EmploymentStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class Employee(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "employees"
    __table_args__ = (
        Index("ix_employees_tenant_status", "tenant_id", "employment_status"),
    )

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(20))
    nrc_number: Mapped[str | None] = mapped_column(String(30), comment="National registration card")
    department: Mapped[str | None] = mapped_column(String(100))
    job_title: Mapped[str | None] = mapped_column(String(100))
    employee_type: Mapped[str] = mapped_column(String(30), default="employee", nullable=False)
    employment_status: Mapped[str] = mapped_column(
        Enum(EmploymentStatus), default=EmploymentStatus.ACTIVE, nullable=False
    )
    hire_date: Mapped[date] = mapped_column(Date, nullable=False)
    termination_date: Mapped[date | None] = mapped_column(Date)

    # Pay
    pay_type: Mapped[str] = mapped_column(Enum(PayType), default=PayType.MONTHLY, nullable=False)
    base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    shift_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    bank_name: Mapped[str | None] = mapped_column(String(100))
    bank_account_number: Mapped[str | None] = mapped_column(String(50))
    notes: Mapped[str | None] = mapped_column(Text)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    branch_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("branches.id", ondelete="SET NULL")
    )

    # Relationships
    payroll_records = relationship("PayrollRecord", back_populates="employee", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Employee {self.full_name} ({self.pay_type})>"
