"""Customer invoices."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.filters import search_filter
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.invoice import Invoice, InvoiceStatus
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.invoice import InvoiceCreate, InvoiceResponse, InvoiceListResponse

router = APIRouter(prefix="/invoices", tags=["invoices"])

CLOSED_INVOICE_STATUSES = (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)


async def get_invoice_or_404(db: AsyncSession, invoice_id: UUID, tenant_id: UUID) -> Invoice:
    result = await db.execute(
        select(Invoice).where(Invoice.id == invoice_id, Invoice.tenant_id == tenant_id)
    )
    invoice = result.scalar_one_or_none()
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    status_filter: InvoiceStatus | None = Query(None, alias="status"),
    search: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVOICE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(Invoice).where(Invoice.tenant_id == current_user.tenant_id)
    if status_filter is not None:
        query = query.where(Invoice.status == status_filter)
    if search:
        query = query.where(search_filter(search, Invoice.client_name, Invoice.invoice_number))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(Invoice.invoice_date.desc()).offset((page - 1) * size).limit(size)
    )
    return InvoiceListResponse(items=result.scalars().all(), total=total, page=page, size=size)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    body: InvoiceCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVOICE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(Invoice.id).where(
            Invoice.tenant_id == current_user.tenant_id,
            Invoice.invoice_number == body.invoice_number,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice number '{body.invoice_number}' already exists",
        )

    invoice = Invoice(**body.model_dump(), tenant_id=current_user.tenant_id)
    db.add(invoice)
    await db.commit()
    await db.refresh(invoice)
    return invoice


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVOICE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    return await get_invoice_or_404(db, invoice_id, current_user.tenant_id)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceResponse)
async def mark_invoice_paid(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVOICE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_invoice_or_404(db, invoice_id, current_user.tenant_id)
    if invoice.status in CLOSED_INVOICE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice is already {InvoiceStatus(invoice.status).value}",
        )
    invoice.status = InvoiceStatus.PAID
    await db.commit()
    await db.refresh(invoice)
    return invoice
