"""Branch, inventory and stock transfer schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bizhub.models.stock_transfer import TransferStatus


# ── Branches ───────────────────────────────────────
class BranchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    address: str | None = None


class BranchResponse(BranchCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    is_active: bool
    created_at: datetime


class BranchUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    address: str | None = None
    is_active: bool | None = None


# ── Products ───────────────────────────────────────
class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: str = Field(..., min_length=1, max_length=100)
    category: str | None = Field(None, max_length=100)
    unit: str = Field("each", min_length=1, max_length=20)
    description: str | None = None
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    cost_price: Decimal | None = Field(None, ge=0, decimal_places=2)


class ProductUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    category: str | None = Field(None, max_length=100)
    unit: str | None = Field(None, min_length=1, max_length=20)
    description: str | None = None
    unit_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    cost_price: Decimal | None = Field(None, ge=0, decimal_places=2)
    is_active: bool | None = None


class ProductResponse(ProductCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    is_active: bool
    margin: Decimal | None
    created_at: datetime


class ProductListResponse(BaseModel):
    items: list[ProductResponse]
    total: int
    page: int
    size: int


# ── Inventory ──────────────────────────────────────
class InventoryCreate(BaseModel):
    branch_id: UUID
    product_id: UUID
    quantity: int = Field(0, ge=0)
    low_stock_threshold: int = Field(10, ge=0)
    reorder_quantity: int = Field(50, ge=0)


class InventoryUpdate(BaseModel):
    low_stock_threshold: int | None = Field(None, ge=0)
    reorder_quantity: int | None = Field(None, ge=0)


class InventoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    branch_id: UUID
    product_id: UUID
    quantity: int
    low_stock_threshold: int
    reorder_quantity: int
    is_low_stock: bool
    updated_at: datetime


class InventoryListResponse(BaseModel):
    items: list[InventoryResponse]
    total: int
    page: int
    size: int


class LowStockResponse(BaseModel):
    items: list[InventoryResponse]
    count: int


class InventoryAdjustment(BaseModel):
    """Schema for adjusting inventory quantity."""
    quantity_delta: int = Field(..., description="Change in quantity (positive=in, negative=out)")
    reason: str = Field(..., pattern="^(purchase|sale|adjustment|damage|return)$")
    note: str | None = Field(None, max_length=500)


# ── Stock transfers ────────────────────────────────
class StockTransferCreate(BaseModel):
    from_branch_id: UUID
    to_branch_id: UUID
    product_id: UUID
    quantity: int = Field(..., gt=0)
    notes: str | None = None

    @model_validator(mode="after")
    def check_branches(self):
        if self.from_branch_id == self.to_branch_id:
            raise ValueError("Source and destination branch must differ")
        return self


class StockTransferReject(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class StockTransferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    from_branch_id: UUID
    to_branch_id: UUID
    product_id: UUID
    quantity: int
    status: TransferStatus
    notes: str | None
    rejection_reason: str | None
    requested_by: UUID | None
    approved_by: UUID | None
    approved_at: datetime | None
    completed_at: datetime | None
    created_at: datetime


class StockTransferListResponse(BaseModel):
    items: list[StockTransferResponse]
    total: int
    status_counts: dict[str, int]
