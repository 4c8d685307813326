"""Role & Permission models - RBAC system."""

import enum
import uuid

from sqlalchemy import String, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bizhub.db.base import Base
from bizhub.models.mixins import UUIDPrimaryKeyMixin, TimestampMixin


class PermissionAction(str, enum.Enum):
    """All permission actions in the dashboard."""
    # HR
    EMPLOYEE_READ = "employee:read"
    EMPLOYEE_MANAGE = "employee:manage"
    # Payroll
    PAYROLL_READ = "payroll:read"
    PAYROLL_RUN = "payroll:run"
    PAYROLL_APPROVE = "payroll:approve"
    PAYROLL_PAY = "payroll:pay"
    # Expenses
    EXPENSE_READ = "expense:read"
    EXPENSE_CREATE = "expense:create"
    RECURRING_READ = "recurring:read"
    RECURRING_MANAGE = "recurring:manage"
    # Payables
    PAYABLE_READ = "payable:read"
    PAYABLE_MANAGE = "payable:manage"
    PAYABLE_PAY = "payable:pay"
    # Receivables
    INVOICE_READ = "invoice:read"
    INVOICE_MANAGE = "invoice:manage"
    RECEIVABLE_REMIND = "receivable:remind"
    # Inventory
    BRANCH_MANAGE = "branch:manage"
    INVENTORY_READ = "inventory:read"
    INVENTORY_ADJUST = "inventory:adjust"
    TRANSFER_CREATE = "transfer:create"
    TRANSFER_APPROVE = "transfer:approve"
    # Agents
    AGENT_READ = "agent:read"
    AGENT_MANAGE = "agent:manage"
    AGENT_TRANSACT = "agent:transact"
    # Sales
    SALES_READ = "sales:read"
    SALES_RECORD = "sales:record"
    # Alerts
    ALERT_READ = "alert:read"


class RoleType(str, enum.Enum):
    OWNER = "owner"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"
    STAFF = "staff"


class Permission(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "permissions"

    action: Mapped[str] = mapped_column(
        Enum(PermissionAction), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    roles = relationship("RolePermission", back_populates="permission", lazy="selectin")


class Role(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(
        Enum(RoleType), unique=True, nullable=False, index=True
    )
    description: Mapped[str | None] = mapped_column(String(255))

    users = relationship("User", back_populates="role", lazy="selectin")
    permissions = relationship("RolePermission", back_populates="role", lazy="selectin")


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    role_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    permission_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False
    )

    role = relationship("Role", back_populates="permissions")
    permission = relationship("Permission", back_populates="roles")
