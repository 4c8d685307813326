"""Distribution agents and their ledger of transactions."""

import enum
import uuid
from decimal import Decimal

from sqlalchemy import String, Numeric, Enum, Float, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class AgentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AgentTransactionType(str, enum.Enum):
    INVOICE = "invoice"
    CONSIGNMENT = "consignment"
    PAYMENT = "payment"
    RETURN = "return"


class AgentApplication(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "agent_applications"
    __table_args__ = (
        Index("ix_agent_applications_tenant_status", "tenant_id", "status"),
    )

    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    status: Mapped[str] = mapped_column(Enum(AgentStatus), default=AgentStatus.PENDING, nullable=False)
    review_notes: Mapped[str | None] = mapped_column(Text)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Relationships
    transactions = relationship("AgentTransaction", back_populates="agent", lazy="selectin")

    def __repr__(self) -> str:
        return f"<AgentApplication {self.business_name} ({self.status})>"


class AgentTransaction(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "agent_transactions"

    transaction_type: Mapped[str] = mapped_column(Enum(AgentTransactionType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True
    )
    agent_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("agent_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    invoice_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("invoices.id", ondelete="SET NULL")
    )
    recorded_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("users.id"))

    # Relationships
    agent = relationship("AgentApplication", back_populates="transactions")

    def __repr__(self) -> str:
        return f"<AgentTransaction {self.transaction_type} {self.amount}>"
