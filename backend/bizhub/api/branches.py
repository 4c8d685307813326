"""Branches and the tenant product catalogue."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.filters import search_filter
from bizhub.core.deps import get_current_user, require_permission
from bizhub.db.base import get_db
from bizhub.models.branch import Branch
from bizhub.models.product import Product
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.inventory import (
    BranchCreate,
    BranchUpdate,
    BranchResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
)

router = APIRouter(tags=["branches"])


async def get_branch_or_404(db: AsyncSession, branch_id: UUID, tenant_id: UUID) -> Branch:
    result = await db.execute(
        select(Branch).where(Branch.id == branch_id, Branch.tenant_id == tenant_id)
    )
    branch = result.scalar_one_or_none()
    if not branch:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Branch not found")
    return branch


async def get_product_or_404(db: AsyncSession, product_id: UUID, tenant_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


# ── Branches ───────────────────────────────────────
@router.get("/branches", response_model=list[BranchResponse])
async def list_branches(
    include_inactive: bool = False,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = select(Branch).where(Branch.tenant_id == current_user.tenant_id)
    if not include_inactive:
        query = query.where(Branch.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(Branch.name))
    return result.scalars().all()


@router.post("/branches", response_model=BranchResponse, status_code=status.HTTP_201_CREATED)
async def create_branch(
    body: BranchCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.BRANCH_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(Branch.id).where(Branch.tenant_id == current_user.tenant_id, Branch.code == body.code)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Branch code '{body.code}' already exists",
        )

    branch = Branch(**body.model_dump(), tenant_id=current_user.tenant_id, is_active=True)
    db.add(branch)
    await db.commit()
    await db.refresh(branch)
    return branch


@router.patch("/branches/{branch_id}", response_model=BranchResponse)
async def update_branch(
    branch_id: UUID,
    body: BranchUpdate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.BRANCH_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    branch = await get_branch_or_404(db, branch_id, current_user.tenant_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(branch, field, value)
    await db.commit()
    await db.refresh(branch)
    return branch


# ── Products ───────────────────────────────────────
@router.get("/products", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    search: str | None = None,
    category: str | None = None,
    is_active: bool | None = True,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(Product).where(Product.tenant_id == current_user.tenant_id)
    if is_active is not None:
        query = query.where(Product.is_active == is_active)
    if category:
        query = query.where(Product.category == category)
    if search:
        query = query.where(search_filter(search, Product.name, Product.sku))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(Product.name).offset((page - 1) * size).limit(size))
    return ProductListResponse(items=result.scalars().all(), total=total, page=page, size=size)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_ADJUST.value)),
    db: AsyncSession = Depends(get_db),
):
    existing = await db.execute(
        select(Product.id).where(Product.tenant_id == current_user.tenant_id, Product.sku == body.sku)
    )
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"SKU '{body.sku}' already exists",
        )

    product = Product(**body.model_dump(), tenant_id=current_user.tenant_id, is_active=True)
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.INVENTORY_ADJUST.value)),
    db: AsyncSession = Depends(get_db),
):
    product = await get_product_or_404(db, product_id, current_user.tenant_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    await db.commit()
    await db.refresh(product)
    return product
