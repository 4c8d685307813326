"""Receivables aging and overdue-invoice reminders."""

import logging
from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.invoices import CLOSED_INVOICE_STATUSES, get_invoice_or_404
from bizhub.core.config import settings
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.invoice import Invoice
from bizhub.models.role import PermissionAction
from bizhub.models.tenant import Tenant
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.invoice import (
    AgingInvoice,
    AgingBucketResponse,
    AgingReportResponse,
    ReminderResult,
    BulkReminderResponse,
)
from bizhub.services.aging import build_aging_report, days_overdue
from bizhub.services.reminders import (
    ReminderDeliveryError,
    ReminderNotConfigured,
    send_invoice_reminder,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receivables", tags=["receivables"])


async def _open_invoices(db: AsyncSession, tenant_id: UUID) -> list[Invoice]:
    result = await db.execute(
        select(Invoice)
        .where(
            Invoice.tenant_id == tenant_id,
            Invoice.status.not_in(CLOSED_INVOICE_STATUSES),
        )
        .order_by(Invoice.due_date.asc())
    )
    return list(result.scalars().all())


@router.get("/aging", response_model=AgingReportResponse)
async def aging_report(
    as_of: date | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVOICE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """Open invoices bucketed by days past due."""
    as_of = as_of or date.today()
    report = build_aging_report(await _open_invoices(db, current_user.tenant_id), as_of)

    buckets = [
        AgingBucketResponse(
            label=bucket.label,
            count=len(bucket.invoices),
            total=bucket.total,
            invoices=[
                AgingInvoice(
                    id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    client_name=invoice.client_name,
                    client_email=invoice.client_email,
                    due_date=invoice.due_date,
                    total_amount=invoice.total_amount,
                    days_overdue=days_overdue(invoice, as_of),
                )
                for invoice in bucket.invoices
            ],
        )
        for bucket in report.buckets
    ]
    return AgingReportResponse(
        as_of=report.as_of,
        buckets=buckets,
        total_receivables=report.total_receivables,
        total_overdue=report.total_overdue,
    )


@router.post("/reminders", response_model=BulkReminderResponse)
async def send_bulk_reminders(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECEIVABLE_REMIND.value)),
    db: AsyncSession = Depends(get_db),
):
    """Remind every client with an overdue invoice and an email address."""
    if not settings.REMINDER_FUNCTION_URL:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reminder delivery is not configured",
        )

    today = date.today()
    targets = [
        invoice
        for invoice in await _open_invoices(db, current_user.tenant_id)
        if invoice.client_email and days_overdue(invoice, today) > 0
    ]
    if not targets:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No overdue invoices with email addresses",
        )

    sender = await db.get(Tenant, current_user.tenant_id)
    results = []
    for invoice in targets:
        try:
            await send_invoice_reminder(invoice, days_overdue(invoice, today), sender)
            results.append(ReminderResult(invoice_id=invoice.id, invoice_number=invoice.invoice_number, sent=True))
        except ReminderDeliveryError as exc:
            results.append(ReminderResult(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                sent=False,
                error=str(exc),
            ))

    success_count = sum(1 for r in results if r.sent)
    logger.info(
        "Bulk reminders for tenant %s: %d sent, %d failed",
        current_user.tenant_id, success_count, len(results) - success_count,
    )
    return BulkReminderResponse(
        success_count=success_count,
        fail_count=len(results) - success_count,
        results=results,
    )


@router.post("/{invoice_id}/reminder", response_model=ReminderResult)
async def send_reminder(
    invoice_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECEIVABLE_REMIND.value)),
    db: AsyncSession = Depends(get_db),
):
    invoice = await get_invoice_or_404(db, invoice_id, current_user.tenant_id)
    if not invoice.client_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No email address for this client",
        )
    overdue = days_overdue(invoice, date.today())
    if overdue <= 0 or invoice.status in CLOSED_INVOICE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invoice is not overdue",
        )

    sender = await db.get(Tenant, current_user.tenant_id)
    try:
        await send_invoice_reminder(invoice, overdue, sender)
    except ReminderNotConfigured as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    except ReminderDeliveryError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))

    logger.info("Reminder sent for invoice %s to %s", invoice.invoice_number, invoice.client_email)
    return ReminderResult(invoice_id=invoice.id, invoice_number=invoice.invoice_number, sent=True)
