"""Accounts payable: vendor bills, payments and statutory tax provisions."""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.filters import search_filter
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.expense import Expense
from bizhub.models.payable import AccountsPayable, PayableStatus, CLOSED_PAYABLE_STATUSES
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.payable import (
    PayableCreate,
    PayableResponse,
    PayableListResponse,
    PayablePaymentRequest,
    PayableSummary,
    TaxType,
    StatutoryProvisionCreate,
)
from bizhub.services.payroll_tax import to_money
from bizhub.services.statutory import (
    STATUTORY_PREFIX,
    ZAMBIAN_TAX_TYPES,
    build_statutory_payable,
    get_tax_type,
    statutory_reference,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payables", tags=["payables"])


def _overdue_clause(today: date):
    return (
        AccountsPayable.due_date.is_not(None)
        & (AccountsPayable.due_date < today)
        & AccountsPayable.status.not_in(CLOSED_PAYABLE_STATUSES)
    )


async def get_payable_or_404(db: AsyncSession, payable_id: UUID, tenant_id: UUID) -> AccountsPayable:
    result = await db.execute(
        select(AccountsPayable).where(
            AccountsPayable.id == payable_id,
            AccountsPayable.tenant_id == tenant_id,
        )
    )
    payable = result.scalar_one_or_none()
    if not payable:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payable not found")
    return payable


@router.get("", response_model=PayableListResponse)
async def list_payables(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    status_filter: PayableStatus | None = Query(None, alias="status"),
    overdue: bool = False,
    search: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(AccountsPayable).where(AccountsPayable.tenant_id == current_user.tenant_id)
    if status_filter is not None:
        query = query.where(AccountsPayable.status == status_filter)
    if overdue:
        query = query.where(_overdue_clause(date.today()))
    if search:
        query = query.where(search_filter(search, AccountsPayable.vendor_name))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    result = await db.execute(
        query.order_by(AccountsPayable.due_date.asc().nulls_last())
        .offset((page - 1) * size)
        .limit(size)
    )
    return PayableListResponse(items=result.scalars().all(), total=total, page=page, size=size)


@router.post("", response_model=PayableResponse, status_code=status.HTTP_201_CREATED)
async def create_payable(
    body: PayableCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    payable = AccountsPayable(
        **body.model_dump(),
        tenant_id=current_user.tenant_id,
        status=PayableStatus.PENDING,
        paid_amount=Decimal("0.00"),
        recorded_by=current_user.id,
    )
    db.add(payable)
    await db.commit()
    await db.refresh(payable)
    return payable


@router.get("/summary", response_model=PayableSummary)
async def payables_summary(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(AccountsPayable).where(
            AccountsPayable.tenant_id == current_user.tenant_id,
            AccountsPayable.status.not_in(CLOSED_PAYABLE_STATUSES),
        )
    )
    open_payables = result.scalars().all()

    today = date.today()
    overdue = [p for p in open_payables if p.is_overdue(today)]
    return PayableSummary(
        total_outstanding=sum((p.balance for p in open_payables), Decimal("0.00")),
        total_overdue=sum((p.balance for p in overdue), Decimal("0.00")),
        open_count=len(open_payables),
        overdue_count=len(overdue),
    )


@router.get("/tax-types", response_model=list[TaxType])
async def list_tax_types(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_READ.value)),
):
    """Zambian statutory taxes with their authority and default due day."""
    return [
        TaxType(
            key=tax.key,
            label=tax.label,
            description=tax.description,
            authority=tax.authority,
            default_due_day=tax.due_day,
        )
        for tax in ZAMBIAN_TAX_TYPES
    ]


@router.get("/statutory", response_model=list[PayableResponse])
async def list_statutory_provisions(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(AccountsPayable)
        .where(
            AccountsPayable.tenant_id == current_user.tenant_id,
            AccountsPayable.description.like(f"{STATUTORY_PREFIX}%"),
        )
        .order_by(AccountsPayable.due_date.asc())
    )
    return result.scalars().all()


@router.post("/statutory", response_model=PayableResponse, status_code=status.HTTP_201_CREATED)
async def create_statutory_provision(
    body: StatutoryProvisionCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    """Record a tax liability for a period, payable to the collecting authority."""
    try:
        tax = get_tax_type(body.tax_type)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    reference = statutory_reference(tax.key, body.period)
    existing = await db.execute(
        select(AccountsPayable.id).where(
            AccountsPayable.tenant_id == current_user.tenant_id,
            AccountsPayable.invoice_reference == reference,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Provision {reference} already recorded",
        )

    payable = build_statutory_payable(
        current_user.tenant_id,
        tax,
        body.amount,
        body.period,
        due_date=body.due_date,
        notes=body.notes,
        recorded_by=current_user.id,
    )
    payable.paid_amount = Decimal("0.00")
    db.add(payable)
    await db.commit()
    await db.refresh(payable)
    return payable


@router.get("/{payable_id}", response_model=PayableResponse)
async def get_payable(
    payable_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    return await get_payable_or_404(db, payable_id, current_user.tenant_id)


@router.post("/{payable_id}/payments", response_model=PayableResponse)
async def pay_payable(
    payable_id: UUID,
    body: PayablePaymentRequest,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_PAY.value)),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a payment against a payable and book it as an expense.

    Without an amount the remaining balance is paid in full.
    """
    payable = await get_payable_or_404(db, payable_id, current_user.tenant_id)
    if payable.status in CLOSED_PAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payable is already {PayableStatus(payable.status).value}",
        )

    balance = payable.balance
    amount = to_money(body.amount if body.amount is not None else balance)
    if amount > balance:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Payment {amount} exceeds outstanding balance {balance}",
        )

    paid_date = body.paid_date or date.today()
    payable.paid_amount = (payable.paid_amount or Decimal("0.00")) + amount
    if payable.paid_amount >= payable.amount:
        payable.status = PayableStatus.PAID
        payable.paid_date = paid_date
    else:
        payable.status = PayableStatus.PARTIALLY_PAID

    db.add(Expense(
        tenant_id=current_user.tenant_id,
        date_incurred=paid_date,
        category=body.category,
        amount=amount,
        vendor_name=payable.vendor_name,
        notes=f"Payment for {payable.description or payable.vendor_name}",
        recorded_by=current_user.id,
    ))

    await db.commit()
    await db.refresh(payable)
    logger.info("Payment of %s recorded on payable %s (%s)", amount, payable.id, payable.status)
    return payable


@router.post("/{payable_id}/cancel", response_model=PayableResponse)
async def cancel_payable(
    payable_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    payable = await get_payable_or_404(db, payable_id, current_user.tenant_id)
    if payable.status in CLOSED_PAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payable is already {PayableStatus(payable.status).value}",
        )
    payable.status = PayableStatus.CANCELLED
    await db.commit()
    await db.refresh(payable)
    return payable
