"""Branch inventory endpoints with RBAC enforcement."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.branches import get_branch_or_404, get_product_or_404
from bizhub.api.filters import search_filter
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.alert import AdminAlert, AlertType
from bizhub.models.inventory import BranchInventory
from bizhub.models.product import Product
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.inventory import (
    InventoryCreate,
    InventoryUpdate,
    InventoryAdjustment,
    InventoryResponse,
    InventoryListResponse,
    LowStockResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/inventory", tags=["inventory"])


async def get_inventory_or_404(db: AsyncSession, inventory_id: UUID, tenant_id: UUID) -> BranchInventory:
    result = await db.execute(
        select(BranchInventory).where(
            BranchInventory.id == inventory_id,
            BranchInventory.tenant_id == tenant_id,
        )
    )
    inventory = result.scalar_one_or_none()
    if not inventory:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Inventory record not found",
        )
    return inventory


def low_stock_alert(inventory: BranchInventory, product_name: str) -> AdminAlert:
    return AdminAlert(
        tenant_id=inventory.tenant_id,
        alert_type=AlertType.LOW_STOCK,
        message=(
            f"Low stock: {product_name} has {inventory.quantity} left "
            f"(threshold {inventory.low_stock_threshold})"
        ),
        related_table="branch_inventory",
        related_id=inventory.id,
    )


@router.get("", response_model=InventoryListResponse)
async def list_inventory(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    branch_id: UUID | None = None,
    low_stock_only: bool = False,
    search: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """List inventory rows with pagination and optional filters."""
    offset = (page - 1) * size

    query = (
        select(BranchInventory)
        .join(Product, BranchInventory.product_id == Product.id)
        .where(BranchInventory.tenant_id == current_user.tenant_id)
    )

    if branch_id is not None:
        query = query.where(BranchInventory.branch_id == branch_id)
    if low_stock_only:
        query = query.where(BranchInventory.quantity <= BranchInventory.low_stock_threshold)
    if search:
        query = query.where(search_filter(search, Product.name, Product.sku))

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar_one()

    query = query.offset(offset).limit(size).order_by(BranchInventory.updated_at.desc())
    result = await db.execute(query)
    items = result.scalars().all()

    return InventoryListResponse(
        items=[InventoryResponse.model_validate(inv) for inv in items],
        total=total,
        page=page,
        size=size,
    )


@router.get("/low-stock", response_model=LowStockResponse)
async def get_low_stock_items(
    branch_id: UUID | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """Rows at or below their low-stock threshold, emptiest first."""
    query = select(BranchInventory).where(
        BranchInventory.tenant_id == current_user.tenant_id,
        BranchInventory.quantity <= BranchInventory.low_stock_threshold,
    )
    if branch_id is not None:
        query = query.where(BranchInventory.branch_id == branch_id)

    result = await db.execute(query.order_by(BranchInventory.quantity.asc()))
    items = result.scalars().all()

    return LowStockResponse(
        items=[InventoryResponse.model_validate(inv) for inv in items],
        count=len(items),
    )


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
async def create_inventory(
    body: InventoryCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_ADJUST.value)),
    db: AsyncSession = Depends(get_db),
):
    """Start stocking a product at a branch."""
    await get_branch_or_404(db, body.branch_id, current_user.tenant_id)
    await get_product_or_404(db, body.product_id, current_user.tenant_id)

    existing = await db.execute(
        select(BranchInventory).where(
            BranchInventory.branch_id == body.branch_id,
            BranchInventory.product_id == body.product_id,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Inventory record already exists for this product at this branch",
        )

    inventory = BranchInventory(**body.model_dump(), tenant_id=current_user.tenant_id)
    db.add(inventory)
    await db.commit()
    await db.refresh(inventory)

    return inventory


@router.patch("/{inventory_id}", response_model=InventoryResponse)
async def update_inventory(
    inventory_id: UUID,
    body: InventoryUpdate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_ADJUST.value)),
    db: AsyncSession = Depends(get_db),
):
    """Update thresholds and reorder quantity."""
    inventory = await get_inventory_or_404(db, inventory_id, current_user.tenant_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(inventory, field, value)

    await db.commit()
    await db.refresh(inventory)

    return inventory


@router.post("/{inventory_id}/adjust", response_model=InventoryResponse)
async def adjust_inventory(
    inventory_id: UUID,
    adjustment: InventoryAdjustment,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_ADJUST.value)),
    db: AsyncSession = Depends(get_db),
):
    """
    Adjust inventory quantity (stock in/out).

    Use positive quantity_delta for stock in, negative for stock out.
    Crossing the low-stock threshold raises an admin alert.
    """
    inventory = await get_inventory_or_404(db, inventory_id, current_user.tenant_id)

    new_quantity = inventory.quantity + adjustment.quantity_delta
    if new_quantity < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Insufficient stock. Current: {inventory.quantity}, requested: {abs(adjustment.quantity_delta)}",
        )

    was_low = inventory.is_low_stock
    inventory.quantity = new_quantity
    if inventory.is_low_stock and not was_low:
        product = await get_product_or_404(db, inventory.product_id, current_user.tenant_id)
        db.add(low_stock_alert(inventory, product.name))

    logger.info(
        "Inventory %s adjusted by %+d (%s) by user %s",
        inventory.id, adjustment.quantity_delta, adjustment.reason, current_user.id,
    )
    await db.commit()
    await db.refresh(inventory)

    return inventory
