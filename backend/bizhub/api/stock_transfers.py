"""Stock transfers between branches.

Lifecycle::

    pending ──approve──> in_transit ──complete──> completed
       │                     │
       ├──reject──> rejected └──cancel──> cancelled
       └──cancel──> cancelled

Stock only moves on completion.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.branches import get_branch_or_404, get_product_or_404
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.inventory import BranchInventory
from bizhub.models.role import PermissionAction
from bizhub.models.stock_transfer import StockTransfer, TransferStatus
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.inventory import (
    StockTransferCreate,
    StockTransferReject,
    StockTransferResponse,
    StockTransferListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stock-transfers", tags=["stock-transfers"])


async def get_transfer_or_404(db: AsyncSession, transfer_id: UUID, tenant_id: UUID) -> StockTransfer:
    result = await db.execute(
        select(StockTransfer).where(
            StockTransfer.id == transfer_id,
            StockTransfer.tenant_id == tenant_id,
        )
    )
    transfer = result.scalar_one_or_none()
    if not transfer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stock transfer not found")
    return transfer


def ensure_status(transfer: StockTransfer, *allowed: TransferStatus, action: str) -> None:
    if transfer.status not in allowed:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot {action} a transfer that is {TransferStatus(transfer.status).value}",
        )


async def _inventory_row(db: AsyncSession, branch_id: UUID, product_id: UUID) -> BranchInventory | None:
    result = await db.execute(
        select(BranchInventory).where(
            BranchInventory.branch_id == branch_id,
            BranchInventory.product_id == product_id,
        )
    )
    return result.scalar_one_or_none()


@router.get("", response_model=StockTransferListResponse)
async def list_transfers(
    status_filter: TransferStatus | None = Query(None, alias="status"),
    branch_id: UUID | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(StockTransfer).where(StockTransfer.tenant_id == current_user.tenant_id)
    if branch_id is not None:
        query = query.where(
            (StockTransfer.from_branch_id == branch_id) | (StockTransfer.to_branch_id == branch_id)
        )
    result = await db.execute(query.order_by(StockTransfer.created_at.desc()))
    transfers = result.scalars().all()

    counts = Counter(TransferStatus(t.status).value for t in transfers)
    items = [t for t in transfers if status_filter is None or t.status == status_filter]
    return StockTransferListResponse(
        items=[StockTransferResponse.model_validate(t) for t in items],
        total=len(items),
        status_counts=dict(counts),
    )


@router.post("", response_model=StockTransferResponse, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    body: StockTransferCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.TRANSFER_CREATE.value)),
    db: AsyncSession = Depends(get_db),
):
    """Request a transfer; an approver's own request goes straight to in_transit."""
    await get_branch_or_404(db, body.from_branch_id, current_user.tenant_id)
    await get_branch_or_404(db, body.to_branch_id, current_user.tenant_id)
    await get_product_or_404(db, body.product_id, current_user.tenant_id)

    transfer = StockTransfer(
        **body.model_dump(),
        tenant_id=current_user.tenant_id,
        requested_by=current_user.id,
        status=TransferStatus.PENDING,
    )
    if current_user.can(PermissionAction.TRANSFER_APPROVE.value):
        transfer.status = TransferStatus.IN_TRANSIT
        transfer.approved_by = current_user.id
        transfer.approved_at = datetime.now(timezone.utc)

    db.add(transfer)
    await db.commit()
    await db.refresh(transfer)
    return transfer


@router.post("/{transfer_id}/approve", response_model=StockTransferResponse)
async def approve_transfer(
    transfer_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.TRANSFER_APPROVE.value)),
    db: AsyncSession = Depends(get_db),
):
    transfer = await get_transfer_or_404(db, transfer_id, current_user.tenant_id)
    ensure_status(transfer, TransferStatus.PENDING, action="approve")

    transfer.status = TransferStatus.IN_TRANSIT
    transfer.approved_by = current_user.id
    transfer.approved_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(transfer)
    return transfer


@router.post("/{transfer_id}/reject", response_model=StockTransferResponse)
async def reject_transfer(
    transfer_id: UUID,
    body: StockTransferReject,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.TRANSFER_APPROVE.value)),
    db: AsyncSession = Depends(get_db),
):
    transfer = await get_transfer_or_404(db, transfer_id, current_user.tenant_id)
    ensure_status(transfer, TransferStatus.PENDING, action="reject")

    transfer.status = TransferStatus.REJECTED
    transfer.rejection_reason = body.reason
    transfer.approved_by = current_user.id
    await db.commit()
    await db.refresh(transfer)
    return transfer


@router.post("/{transfer_id}/cancel", response_model=StockTransferResponse)
async def cancel_transfer(
    transfer_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.TRANSFER_CREATE.value)),
    db: AsyncSession = Depends(get_db),
):
    transfer = await get_transfer_or_404(db, transfer_id, current_user.tenant_id)
    ensure_status(transfer, TransferStatus.PENDING, TransferStatus.IN_TRANSIT, action="cancel")

    transfer.status = TransferStatus.CANCELLED
    await db.commit()
    await db.refresh(transfer)
    return transfer


@router.post("/{transfer_id}/complete", response_model=StockTransferResponse)
async def complete_transfer(
    transfer_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.TRANSFER_APPROVE.value)),
    db: AsyncSession = Depends(get_db),
):
    """Receive an in-transit transfer: move stock from source to destination."""
    transfer = await get_transfer_or_404(db, transfer_id, current_user.tenant_id)
    ensure_status(transfer, TransferStatus.IN_TRANSIT, action="complete")

    source = await _inventory_row(db, transfer.from_branch_id, transfer.product_id)
    available = source.quantity if source else 0
    if source is None or available < transfer.quantity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock at source branch. Available: {available}, requested: {transfer.quantity}",
        )

    destination = await _inventory_row(db, transfer.to_branch_id, transfer.product_id)
    if destination is None:
        destination = BranchInventory(
            tenant_id=transfer.tenant_id,
            branch_id=transfer.to_branch_id,
            product_id=transfer.product_id,
            quantity=0,
            low_stock_threshold=source.low_stock_threshold,
            reorder_quantity=source.reorder_quantity,
        )
        db.add(destination)

    source.quantity -= transfer.quantity
    destination.quantity += transfer.quantity
    transfer.status = TransferStatus.COMPLETED
    transfer.completed_at = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(transfer)
    logger.info(
        "Transfer %s completed: %d units %s -> %s",
        transfer.id, transfer.quantity, transfer.from_branch_id, transfer.to_branch_id,
    )
    return transfer
