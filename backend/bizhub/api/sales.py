"""Sales recording: till receipts, stock deduction and credit-sale invoices."""

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.branches import get_branch_or_404, get_product_or_404
from bizhub.api.expenses import _date_range
from bizhub.api.inventory import low_stock_alert
from bizhub.core.config import settings
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.inventory import BranchInventory
from bizhub.models.invoice import Invoice, InvoiceStatus
from bizhub.models.role import PermissionAction
from bizhub.models.sale import PaymentMethod, SalesTransaction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.sale import (
    SaleCreate,
    SaleListResponse,
    SaleReceipt,
    SaleResponse,
    SalesSummary,
)
from bizhub.services.payroll_tax import to_money
from bizhub.services.sales import allocate_discount, new_receipt_number, summarize_sales

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["sales"])

RECEIPT_NUMBER_ATTEMPTS = 5


async def _unused_receipt_number(db: AsyncSession, tenant_id: UUID, sale_date: date) -> str:
    for _ in range(RECEIPT_NUMBER_ATTEMPTS):
        number = new_receipt_number(sale_date)
        existing = await db.execute(
            select(SalesTransaction.id)
            .where(SalesTransaction.tenant_id == tenant_id, SalesTransaction.receipt_number == number)
            .limit(1)
        )
        if existing.scalar_one_or_none() is None:
            return number
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Could not allocate a free receipt number, try again",
    )


async def _deduct_stock(
    db: AsyncSession,
    tenant_id: UUID,
    branch_id: UUID,
    product_id: UUID,
    product_name: str,
    quantity: int,
) -> None:
    result = await db.execute(
        select(BranchInventory).where(
            BranchInventory.tenant_id == tenant_id,
            BranchInventory.branch_id == branch_id,
            BranchInventory.product_id == product_id,
        )
    )
    inventory = result.scalar_one_or_none()
    if inventory is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{product_name} is not stocked at this branch",
        )
    if inventory.quantity < quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock for {product_name}. Available: {inventory.quantity}, requested: {quantity}",
        )

    was_low = inventory.is_low_stock
    inventory.quantity -= quantity
    if inventory.is_low_stock and not was_low:
        db.add(low_stock_alert(inventory, product_name))


@router.get("", response_model=SaleListResponse)
async def list_sales(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    start_date: date | None = None,
    end_date: date | None = None,
    branch_id: UUID | None = None,
    payment_method: PaymentMethod | None = None,
    receipt_number: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.SALES_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(SalesTransaction).where(SalesTransaction.tenant_id == current_user.tenant_id)
    if start_date:
        query = query.where(SalesTransaction.sale_date >= start_date)
    if end_date:
        query = query.where(SalesTransaction.sale_date <= end_date)
    if branch_id is not None:
        query = query.where(SalesTransaction.branch_id == branch_id)
    if payment_method is not None:
        query = query.where(SalesTransaction.payment_method == payment_method)
    if receipt_number:
        query = query.where(SalesTransaction.receipt_number == receipt_number)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(SalesTransaction.sale_date.desc(), SalesTransaction.receipt_number)
        .offset((page - 1) * size)
        .limit(size)
    )
    return SaleListResponse(items=result.scalars().all(), total=total, page=page, size=size)


@router.post("", response_model=SaleReceipt, status_code=status.HTTP_201_CREATED)
async def record_sale(
    body: SaleCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.SALES_RECORD.value)),
    db: AsyncSession = Depends(get_db),
):
    """
    Record one receipt of one or more lines.

    Catalogue products sold at a branch come out of that branch's stock and
    the whole receipt is rejected if any line is short. A credit sale also
    raises an invoice for the customer so it shows up in receivables.
    """
    tenant_id = current_user.tenant_id
    sale_date = body.sale_date or date.today()
    branch_id = body.branch_id or current_user.branch_id
    if branch_id is not None:
        await get_branch_or_404(db, branch_id, tenant_id)

    lines = []
    for item in body.items:
        name, unit_price = item.product_name, item.unit_price
        if item.product_id is not None:
            product = await get_product_or_404(db, item.product_id, tenant_id)
            if not product.is_active:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"{product.name} is no longer sold",
                )
            name = name or product.name
            unit_price = product.unit_price if unit_price is None else unit_price
        lines.append((item, name, to_money(unit_price)))

    subtotals = [to_money(unit_price * item.quantity) for item, _, unit_price in lines]
    try:
        discounts = allocate_discount(subtotals, body.discount_amount)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    if branch_id is not None:
        for item, name, _ in lines:
            if item.product_id is not None and item.item_type == "product":
                await _deduct_stock(db, tenant_id, branch_id, item.product_id, name, item.quantity)

    receipt_number = await _unused_receipt_number(db, tenant_id, sale_date)
    subtotal = sum(subtotals, Decimal("0.00"))
    total = subtotal - body.discount_amount

    invoice = None
    if body.payment_method == PaymentMethod.CREDIT_INVOICE:
        invoice = Invoice(
            id=uuid.uuid4(),
            tenant_id=tenant_id,
            invoice_number=receipt_number,
            client_name=body.customer_name.strip(),
            client_email=body.customer_email,
            invoice_date=sale_date,
            due_date=sale_date + timedelta(days=settings.CREDIT_SALE_TERMS_DAYS),
            total_amount=total,
            status=InvoiceStatus.SENT,
            notes=f"Credit sale {receipt_number}",
        )
        db.add(invoice)

    sales = []
    for (item, name, unit_price), line_subtotal, discount in zip(lines, subtotals, discounts):
        sale = SalesTransaction(
            tenant_id=tenant_id,
            branch_id=branch_id,
            product_id=item.product_id,
            invoice_id=invoice.id if invoice else None,
            recorded_by=current_user.id,
            receipt_number=receipt_number,
            sale_date=sale_date,
            item_type=item.item_type,
            product_name=name,
            quantity=item.quantity,
            unit_price=unit_price,
            discount_amount=discount,
            discount_reason=body.discount_reason if discount else None,
            total_amount=line_subtotal - discount,
            payment_method=body.payment_method,
            customer_name=body.customer_name,
            customer_email=body.customer_email,
            customer_phone=body.customer_phone,
            notes=body.notes,
        )
        db.add(sale)
        sales.append(sale)

    await db.commit()
    for sale in sales:
        await db.refresh(sale)
    logger.info(
        "Sale %s recorded: %d line(s), %s %s via %s",
        receipt_number, len(sales), settings.CURRENCY_SYMBOL, total, body.payment_method.value,
    )

    return SaleReceipt(
        receipt_number=receipt_number,
        sale_date=sale_date,
        items=[SaleResponse.model_validate(sale) for sale in sales],
        subtotal=subtotal,
        discount_amount=body.discount_amount,
        total=total,
        invoice_id=invoice.id if invoice else None,
    )


@router.get("/summary", response_model=SalesSummary)
async def sales_summary(
    start_date: date | None = None,
    end_date: date | None = None,
    branch_id: UUID | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.SALES_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """Receipts, units and takings by payment method (defaults to the last 30 days)."""
    start_date, end_date = _date_range(start_date, end_date)
    query = select(SalesTransaction).where(
        SalesTransaction.tenant_id == current_user.tenant_id,
        SalesTransaction.sale_date >= start_date,
        SalesTransaction.sale_date <= end_date,
    )
    if branch_id is not None:
        query = query.where(SalesTransaction.branch_id == branch_id)
    result = await db.execute(query)
    return summarize_sales(list(result.scalars().all()), start_date, end_date)
