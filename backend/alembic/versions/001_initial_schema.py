"""Initial database schema - tenants, users, roles, branches, inventory, payroll, accounting, agents

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
MONEY = sa.Numeric(12, 2)

permission_action = sa.Enum(
    "EMPLOYEE_READ", "EMPLOYEE_MANAGE",
    "PAYROLL_READ", "PAYROLL_RUN", "PAYROLL_APPROVE", "PAYROLL_PAY",
    "EXPENSE_READ", "EXPENSE_CREATE", "RECURRING_READ", "RECURRING_MANAGE",
    "PAYABLE_READ", "PAYABLE_MANAGE", "PAYABLE_PAY",
    "INVOICE_READ", "INVOICE_MANAGE", "RECEIVABLE_REMIND",
    "BRANCH_MANAGE", "INVENTORY_READ", "INVENTORY_ADJUST", "TRANSFER_CREATE", "TRANSFER_APPROVE",
    "AGENT_READ", "AGENT_MANAGE", "AGENT_TRANSACT",
    "SALES_READ", "SALES_RECORD",
    "ALERT_READ",
    name="permissionaction",
)
role_type = sa.Enum("OWNER", "MANAGER", "ACCOUNTANT", "STAFF", name="roletype")
employment_status = sa.Enum("ACTIVE", "SUSPENDED", "TERMINATED", name="employmentstatus")
pay_type = sa.Enum("MONTHLY", "HOURLY", "DAILY", "PER_SHIFT", name="paytype")
payroll_status = sa.Enum("DRAFT", "APPROVED", "PAID", name="payrollstatus")
frequency = sa.Enum(
    "DAILY", "WEEKLY", "BI_WEEKLY", "MONTHLY", "QUARTERLY", "YEARLY", "CUSTOM", name="frequency"
)
payable_status = sa.Enum("PENDING", "PARTIALLY_PAID", "PAID", "CANCELLED", name="payablestatus")
invoice_status = sa.Enum("DRAFT", "SENT", "PARTIALLY_PAID", "PAID", "CANCELLED", name="invoicestatus")
transfer_status = sa.Enum(
    "PENDING", "IN_TRANSIT", "COMPLETED", "REJECTED", "CANCELLED", name="transferstatus"
)
payment_method = sa.Enum(
    "CASH", "MOBILE_MONEY", "CARD", "BANK_TRANSFER", "CREDIT_INVOICE", name="paymentmethod"
)
agent_status = sa.Enum("PENDING", "APPROVED", "REJECTED", name="agentstatus")
agent_transaction_type = sa.Enum("INVOICE", "CONSIGNMENT", "PAYMENT", "RETURN", name="agenttransactiontype")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _tenant_fk() -> sa.Column:
    return sa.Column("tenant_id", UUID, sa.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    # --- Tenants ---
    op.create_table(
        "tenants",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False, unique=True),
        sa.Column("address", sa.Text),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(20)),
        sa.Column("tpin", sa.String(20)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_tenants_code", "tenants", ["code"])

    # --- Permissions ---
    op.create_table(
        "permissions",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("action", permission_action, nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
    )
    op.create_index("ix_permissions_action", "permissions", ["action"])

    # --- Roles ---
    op.create_table(
        "roles",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", role_type, nullable=False, unique=True),
        sa.Column("description", sa.String(255)),
        *_timestamps(),
    )
    op.create_index("ix_roles_name", "roles", ["name"])

    # --- Role Permissions ---
    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("role_id", UUID, sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission_id", UUID, sa.ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("role_id", "permission_id", name="uq_role_permission"),
    )

    # --- Users ---
    op.create_table(
        "users",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20)),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        _tenant_fk(),
        sa.Column("role_id", UUID, sa.ForeignKey("roles.id"), nullable=False),
        sa.Column("branch_id", UUID),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_tenant_id", "users", ["tenant_id"])
    op.create_index("ix_users_role_id", "users", ["role_id"])

    # --- Branches ---
    op.create_table(
        "branches",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("address", sa.Text),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _tenant_fk(),
        *_timestamps(),
        sa.UniqueConstraint("tenant_id", "code", name="uq_branches_tenant_code"),
    )
    op.create_index("ix_branches_tenant_id", "branches", ["tenant_id"])
    op.create_foreign_key(
        "fk_users_branch_id", "users", "branches", ["branch_id"], ["id"], ondelete="SET NULL"
    )

    # --- Products ---
    op.create_table(
        "products",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("category", sa.String(100)),
        sa.Column("unit", sa.String(20), nullable=False, server_default="each"),
        sa.Column("description", sa.Text),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("cost_price", MONEY),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        _tenant_fk(),
        *_timestamps(),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_tenant_sku", "products", ["tenant_id", "sku"], unique=True)

    # --- Branch Inventory ---
    op.create_table(
        "branch_inventory",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("low_stock_threshold", sa.Integer, nullable=False, server_default="10"),
        sa.Column("reorder_quantity", sa.Integer, nullable=False, server_default="50"),
        _tenant_fk(),
        sa.Column("branch_id", UUID, sa.ForeignKey("branches.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("branch_id", "product_id", name="uq_branch_inventory_branch_product"),
    )
    op.create_index("ix_branch_inventory_tenant_id", "branch_inventory", ["tenant_id"])
    op.create_index("ix_branch_inventory_branch_id", "branch_inventory", ["branch_id"])
    op.create_index("ix_branch_inventory_product_id", "branch_inventory", ["product_id"])

    # --- Stock Transfers ---
    op.create_table(
        "stock_transfers",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("status", transfer_status, nullable=False),
        sa.Column("notes", sa.Text),
        sa.Column("rejection_reason", sa.Text),
        sa.Column("approved_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        _tenant_fk(),
        sa.Column("from_branch_id", UUID, sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("to_branch_id", UUID, sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id"), nullable=False),
        sa.Column("requested_by", UUID, sa.ForeignKey("users.id")),
        sa.Column("approved_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_stock_transfers_tenant_status", "stock_transfers", ["tenant_id", "status"])

    # --- Employees ---
    op.create_table(
        "employees",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(20)),
        sa.Column("nrc_number", sa.String(30)),
        sa.Column("department", sa.String(100)),
        sa.Column("job_title", sa.String(100)),
        sa.Column("employee_type", sa.String(30), nullable=False, server_default="employee"),
        sa.Column("employment_status", employment_status, nullable=False),
        sa.Column("hire_date", sa.Date, nullable=False),
        sa.Column("termination_date", sa.Date),
        sa.Column("pay_type", pay_type, nullable=False),
        sa.Column("base_salary", MONEY, nullable=False, server_default="0"),
        sa.Column("hourly_rate", MONEY),
        sa.Column("daily_rate", MONEY),
        sa.Column("shift_rate", MONEY),
        sa.Column("bank_name", sa.String(100)),
        sa.Column("bank_account_number", sa.String(50)),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("branch_id", UUID, sa.ForeignKey("branches.id", ondelete="SET NULL")),
        *_timestamps(),
    )
    op.create_index("ix_employees_tenant_status", "employees", ["tenant_id", "employment_status"])

    # --- Payroll Records ---
    op.create_table(
        "payroll_records",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("pay_period_start", sa.Date, nullable=False),
        sa.Column("pay_period_end", sa.Date, nullable=False),
        sa.Column("pay_type", sa.String(20), nullable=False),
        sa.Column("status", payroll_status, nullable=False),
        sa.Column("basic_salary", MONEY, nullable=False, server_default="0"),
        sa.Column("shift_pay", MONEY, nullable=False, server_default="0"),
        sa.Column("hours_worked", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("days_worked", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("shifts_worked", sa.Numeric(8, 2), nullable=False, server_default="0"),
        sa.Column("rate", MONEY, nullable=False, server_default="0"),
        sa.Column("allowances", MONEY, nullable=False, server_default="0"),
        sa.Column("overtime_pay", MONEY, nullable=False, server_default="0"),
        sa.Column("bonus", MONEY, nullable=False, server_default="0"),
        sa.Column("gross_pay", MONEY, nullable=False),
        sa.Column("napsa_deduction", MONEY, nullable=False, server_default="0"),
        sa.Column("nhima_deduction", MONEY, nullable=False, server_default="0"),
        sa.Column("paye_deduction", MONEY, nullable=False, server_default="0"),
        sa.Column("loan_deduction", MONEY, nullable=False, server_default="0"),
        sa.Column("other_deductions", MONEY, nullable=False, server_default="0"),
        sa.Column("total_deductions", MONEY, nullable=False),
        sa.Column("net_pay", MONEY, nullable=False),
        sa.Column("employer_napsa", MONEY, nullable=False, server_default="0"),
        sa.Column("employer_nhima", MONEY, nullable=False, server_default="0"),
        sa.Column("paid_date", sa.Date),
        sa.Column("payment_method", sa.String(30)),
        sa.Column("payment_reference", sa.String(100)),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("employee_id", UUID, sa.ForeignKey("employees.id", ondelete="CASCADE"), nullable=False),
        sa.Column("approved_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
        sa.UniqueConstraint("employee_id", "pay_period_start", name="uq_payroll_employee_period"),
    )
    op.create_index("ix_payroll_tenant_period", "payroll_records", ["tenant_id", "pay_period_start"])
    op.create_index("ix_payroll_records_status", "payroll_records", ["status"])
    op.create_index("ix_payroll_records_employee_id", "payroll_records", ["employee_id"])

    # --- Expenses ---
    op.create_table(
        "expenses",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("date_incurred", sa.Date, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("recorded_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_expenses_tenant_date", "expenses", ["tenant_id", "date_incurred"])
    op.create_index("ix_expenses_category", "expenses", ["category"])

    # --- Recurring Expenses ---
    op.create_table(
        "recurring_expenses",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("category", sa.String(100), nullable=False, server_default="Operations/Rent"),
        sa.Column("frequency", frequency, nullable=False),
        sa.Column("custom_interval_days", sa.Integer),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date),
        sa.Column("next_due_date", sa.Date, nullable=False),
        sa.Column("last_generated_date", sa.Date),
        sa.Column("advance_notice_days", sa.Integer, nullable=False, server_default="7"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("created_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index(
        "ix_recurring_expenses_tenant_due", "recurring_expenses", ["tenant_id", "is_active", "next_due_date"]
    )

    # --- Accounts Payable ---
    op.create_table(
        "accounts_payable",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("vendor_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("paid_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("due_date", sa.Date),
        sa.Column("paid_date", sa.Date),
        sa.Column("invoice_reference", sa.String(100)),
        sa.Column("status", payable_status, nullable=False),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column(
            "recurring_expense_id", UUID, sa.ForeignKey("recurring_expenses.id", ondelete="SET NULL")
        ),
        sa.Column("recorded_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_accounts_payable_tenant_due", "accounts_payable", ["tenant_id", "due_date"])
    op.create_index("ix_accounts_payable_tenant_reference", "accounts_payable", ["tenant_id", "invoice_reference"])
    op.create_index("ix_accounts_payable_status", "accounts_payable", ["status"])

    # --- Invoices ---
    op.create_table(
        "invoices",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("invoice_number", sa.String(50), nullable=False),
        sa.Column("client_name", sa.String(255), nullable=False),
        sa.Column("client_email", sa.String(255)),
        sa.Column("invoice_date", sa.Date, nullable=False),
        sa.Column("due_date", sa.Date),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("status", invoice_status, nullable=False),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        *_timestamps(),
    )
    op.create_index("ix_invoices_tenant_number", "invoices", ["tenant_id", "invoice_number"], unique=True)
    op.create_index("ix_invoices_tenant_due", "invoices", ["tenant_id", "due_date"])
    op.create_index("ix_invoices_status", "invoices", ["status"])

    # --- Sales ---
    op.create_table(
        "sales_transactions",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("receipt_number", sa.String(20), nullable=False),
        sa.Column("sale_date", sa.Date, nullable=False),
        sa.Column("transaction_type", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("item_type", sa.String(20), nullable=False, server_default="product"),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("discount_reason", sa.String(255)),
        sa.Column("total_amount", MONEY, nullable=False),
        sa.Column("payment_method", payment_method, nullable=False),
        sa.Column("customer_name", sa.String(255)),
        sa.Column("customer_email", sa.String(255)),
        sa.Column("customer_phone", sa.String(20)),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("branch_id", UUID, sa.ForeignKey("branches.id", ondelete="SET NULL")),
        sa.Column("product_id", UUID, sa.ForeignKey("products.id", ondelete="SET NULL")),
        sa.Column("invoice_id", UUID, sa.ForeignKey("invoices.id", ondelete="SET NULL")),
        sa.Column("recorded_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_sales_tenant_date", "sales_transactions", ["tenant_id", "sale_date"])
    op.create_index("ix_sales_tenant_receipt", "sales_transactions", ["tenant_id", "receipt_number"])
    op.create_index("ix_sales_transactions_branch_id", "sales_transactions", ["branch_id"])

    # --- Agents ---
    op.create_table(
        "agent_applications",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("contact_person", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(20), nullable=False),
        sa.Column("province", sa.String(100), nullable=False),
        sa.Column("address", sa.Text),
        sa.Column("latitude", sa.Float),
        sa.Column("longitude", sa.Float),
        sa.Column("status", agent_status, nullable=False),
        sa.Column("review_notes", sa.Text),
        _tenant_fk(),
        sa.Column("reviewed_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_agent_applications_tenant_status", "agent_applications", ["tenant_id", "status"])

    op.create_table(
        "agent_transactions",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("transaction_type", agent_transaction_type, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("notes", sa.Text),
        _tenant_fk(),
        sa.Column("agent_id", UUID, sa.ForeignKey("agent_applications.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invoice_id", UUID, sa.ForeignKey("invoices.id", ondelete="SET NULL")),
        sa.Column("recorded_by", UUID, sa.ForeignKey("users.id")),
        *_timestamps(),
    )
    op.create_index("ix_agent_transactions_tenant_id", "agent_transactions", ["tenant_id"])
    op.create_index("ix_agent_transactions_agent_id", "agent_transactions", ["agent_id"])

    # --- Admin Alerts ---
    op.create_table(
        "admin_alerts",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("alert_type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("related_table", sa.String(100)),
        sa.Column("related_id", UUID),
        sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.text("false")),
        _tenant_fk(),
        *_timestamps(),
    )
    op.create_index("ix_admin_alerts_tenant_related", "admin_alerts", ["tenant_id", "related_id", "alert_type"])


def downgrade() -> None:
    op.drop_table("admin_alerts")
    op.drop_table("agent_transactions")
    op.drop_table("agent_applications")
    op.drop_table("sales_transactions")
    op.drop_table("invoices")
    op.drop_table("accounts_payable")
    op.drop_table("recurring_expenses")
    op.drop_table("expenses")
    op.drop_table("payroll_records")
    op.drop_table("employees")
    op.drop_table("stock_transfers")
    op.drop_table("branch_inventory")
    op.drop_table("products")
    op.drop_constraint("fk_users_branch_id", "users", type_="foreignkey")
    op.drop_table("branches")
    op.drop_table("users")
    op.drop_table("role_permissions")
    op.drop_table("roles")
    op.drop_table("permissions")
    op.drop_table("tenants")
    for enum_type in (
        agent_transaction_type, agent_status, payment_method, transfer_status, invoice_status,
        payable_status,
        frequency, payroll_status, pay_type, employment_status, role_type, permission_action,
    ):
        enum_type.drop(op.get_bind(), checkfirst=True)
