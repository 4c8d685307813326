"""Payroll record: one employee's pay for one pay period."""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Numeric, Enum, Date, ForeignKey, Text, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin

ZERO = Decimal("0.00")


class PayrollStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    PAID = "paid"


class PayrollRecord(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payroll_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "pay_period_start", name="uq_payroll_employee_period"),
        Index("ix_payroll_tenant_period", "tenant_id", "pay_period_start"),
    )

    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum(PayrollStatus), default=PayrollStatus.DRAFT, nullable=False, index=True
    )

    # Earnings
    basic_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    shift_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    hours_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=ZERO, nullable=False)
    days_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=ZERO, nullable=False)
    shifts_worked: Mapped[Decimal] = mapped_column(Numeric(8, 2), default=ZERO, nullable=False)
    rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    allowances: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Deductions
    napsa_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    nhima_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    paye_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    loan_deduction: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    other_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Employer contributions (remitted with the statutory provisions)
    employer_napsa: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)
    employer_nhima: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=ZERO, nullable=False)

    # Payment
    paid_date: Mapped[date | None] = mapped_column(Date)
    payment_method: Mapped[str | None] = mapped_column(String(30))
    payment_reference: Mapped[str | None] = mapped_column(String(100))
    notes: Mapped[str | None] = mapped_column(Text)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Relationships
    employee = relationship("Employee", back_populates="payroll_records")

    def __repr__(self) -> str:
        return f"<PayrollRecord employee={self.employee_id} period={self.pay_period_start} net={self.net_pay}>"
