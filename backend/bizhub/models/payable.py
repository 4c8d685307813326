"""Accounts payable: money owed to vendors and statutory authorities."""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import String, Numeric, Enum, Date, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class PayableStatus(str, enum.Enum):
    PENDING = "pending"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


CLOSED_PAYABLE_STATUSES = (PayableStatus.PAID, PayableStatus.CANCELLED)


class AccountsPayable(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "accounts_payable"
    __table_args__ = (
        Index("ix_accounts_payable_tenant_due", "tenant_id", "due_date"),
        Index("ix_accounts_payable_tenant_reference", "tenant_id", "invoice_reference"),
    )

    vendor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"), nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date)
    paid_date: Mapped[date | None] = mapped_column(Date)
    invoice_reference: Mapped[str | None] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(
        Enum(PayableStatus), default=PayableStatus.PENDING, nullable=False, index=True
    )
    notes: Mapped[str | None] = mapped_column(Text)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    recurring_expense_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("recurring_expenses.id", ondelete="SET NULL")
    )
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"))

    @property
    def balance(self) -> Decimal:
        return self.amount - (self.paid_amount or Decimal("0.00"))

    def is_overdue(self, today: date) -> bool:
        return (
            self.due_date is not None
            and self.due_date < today
            and self.status not in CLOSED_PAYABLE_STATUSES
        )

    def __repr__(self) -> str:
        return f"<AccountsPayable {self.vendor_name} {self.amount} {self.status}>"
