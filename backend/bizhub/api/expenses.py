"""Expense ledger, spending summaries and the profit & loss statement."""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.expense import Expense
from bizhub.models.invoice import Invoice, InvoiceStatus
from bizhub.models.role import PermissionAction
from bizhub.models.sale import PaymentMethod, SalesTransaction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    ExpenseListResponse,
    CategoryTotal,
    MonthTotal,
    ExpenseSummary,
)
from bizhub.schemas.sale import ProfitLossStatement
from bizhub.services.sales import build_profit_and_loss

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _date_range(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    end_date = end_date or date.today()
    start_date = start_date or end_date - timedelta(days=30)
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must be before or equal to end_date",
        )
    return start_date, end_date


def summarize(expenses: list[Expense], start_date: date, end_date: date) -> ExpenseSummary:
    by_category: dict[str, list[Decimal]] = defaultdict(list)
    by_month: dict[str, list[Decimal]] = defaultdict(list)
    for expense in expenses:
        by_category[expense.category].append(expense.amount)
        by_month[expense.date_incurred.strftime("%Y-%m")].append(expense.amount)

    categories = sorted(
        (CategoryTotal(category=name, count=len(amounts), total=sum(amounts, Decimal("0.00")))
         for name, amounts in by_category.items()),
        key=lambda c: c.total,
        reverse=True,
    )
    months = [
        MonthTotal(month=month, count=len(amounts), total=sum(amounts, Decimal("0.00")))
        for month, amounts in sorted(by_month.items())
    ]
    return ExpenseSummary(
        period_start=start_date,
        period_end=end_date,
        by_category=categories,
        by_month=months,
        total=sum((c.total for c in categories), Decimal("0.00")),
    )


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EXPENSE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(Expense).where(Expense.tenant_id == current_user.tenant_id)
    if start_date:
        query = query.where(Expense.date_incurred >= start_date)
    if end_date:
        query = query.where(Expense.date_incurred <= end_date)
    if category:
        query = query.where(Expense.category == category)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Expense.date_incurred.desc()).offset((page - 1) * size).limit(size)
    )
    return ExpenseListResponse(items=result.scalars().all(), total=total, page=page, size=size)


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    body: ExpenseCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EXPENSE_CREATE.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = Expense(**body.model_dump(), tenant_id=current_user.tenant_id, recorded_by=current_user.id)
    db.add(expense)
    await db.commit()
    await db.refresh(expense)
    return expense


@router.get("/summary", response_model=ExpenseSummary)
async def expense_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EXPENSE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """Totals by category and by month (defaults to the last 30 days)."""
    start_date, end_date = _date_range(start_date, end_date)
    result = await db.execute(
        select(Expense).where(
            Expense.tenant_id == current_user.tenant_id,
            Expense.date_incurred >= start_date,
            Expense.date_incurred <= end_date,
        )
    )
    return summarize(list(result.scalars().all()), start_date, end_date)


@router.get("/profit-loss", response_model=ProfitLossStatement)
async def profit_and_loss(
    start_date: date | None = None,
    end_date: date | None = None,
    current_user: CurrentUser = Depends(
        require_permission(PermissionAction.EXPENSE_READ, PermissionAction.SALES_READ)
    ),
    db: AsyncSession = Depends(get_db),
):
    """Sales and paid invoices against expenses by category.

    Credit sales are left out of sales revenue; they are counted through
    their invoice once it is paid.
    """
    start_date, end_date = _date_range(start_date, end_date)
    tenant_id = current_user.tenant_id

    sales_revenue = (await db.execute(
        select(func.coalesce(func.sum(SalesTransaction.total_amount), 0)).where(
            SalesTransaction.tenant_id == tenant_id,
            SalesTransaction.sale_date >= start_date,
            SalesTransaction.sale_date <= end_date,
            SalesTransaction.payment_method != PaymentMethod.CREDIT_INVOICE,
        )
    )).scalar_one()
    invoice_revenue = (await db.execute(
        select(func.coalesce(func.sum(Invoice.total_amount), 0)).where(
            Invoice.tenant_id == tenant_id,
            Invoice.status == InvoiceStatus.PAID,
            Invoice.invoice_date >= start_date,
            Invoice.invoice_date <= end_date,
        )
    )).scalar_one()
    result = await db.execute(
        select(Expense).where(
            Expense.tenant_id == tenant_id,
            Expense.date_incurred >= start_date,
            Expense.date_incurred <= end_date,
        )
    )
    expenses = summarize(list(result.scalars().all()), start_date, end_date)

    return build_profit_and_loss(
        Decimal(sales_revenue), Decimal(invoice_revenue), expenses.by_category, start_date, end_date
    )
