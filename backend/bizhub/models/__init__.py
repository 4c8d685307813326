"""SQLAlchemy models for BizHub."""

from bizhub.models.tenant import Tenant
from bizhub.models.role import Role, Permission, RolePermission
from bizhub.models.user import User
from bizhub.models.branch import Branch
from bizhub.models.product import Product
from bizhub.models.inventory import BranchInventory
from bizhub.models.stock_transfer import StockTransfer
from bizhub.models.employee import Employee
from bizhub.models.payroll import PayrollRecord
from bizhub.models.expense import Expense
from bizhub.models.recurring_expense import RecurringExpense
from bizhub.models.payable import AccountsPayable
from bizhub.models.invoice import Invoice
from bizhub.models.sale import SalesTransaction
from bizhub.models.agent import AgentApplication, AgentTransaction
from bizhub.models.alert import AdminAlert

__all__ = [
    "Tenant",
    "Role",
    "Permission",
    "RolePermission",
    "User",
    "Branch",
    "Product",
    "BranchInventory",
    "StockTransfer",
    "Employee",
    "PayrollRecord",
    "Expense",
    "RecurringExpense",
    "AccountsPayable",
    "Invoice",
    "SalesTransaction",
    "AgentApplication",
    "AgentTransaction",
    "AdminAlert",
]
