"""Admin alert: in-app notification for a tenant's administrators."""

import uuid

from sqlalchemy import String, Boolean, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class AlertType:
    RECURRING_EXPENSE = "recurring_expense"
    RECURRING_EXPENSE_REMINDER = "recurring_expense_reminder"
    LOW_STOCK = "low_stock"


class AdminAlert(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "admin_alerts"
    __table_args__ = (
        Index("ix_admin_alerts_tenant_related", "tenant_id", "related_id", "alert_type"),
    )

    alert_type: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    related_table: Mapped[str | None] = mapped_column(String(100))
    related_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Foreign keys
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AdminAlert {self.alert_type} read={self.is_read}>"
