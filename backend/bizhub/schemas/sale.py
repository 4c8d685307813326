"""Sales recording and profit & loss schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from bizhub.models.sale import PaymentMethod
from bizhub.schemas.expense import CategoryTotal


class SaleItem(BaseModel):
    product_id: UUID | None = None
    product_name: str | None = Field(None, max_length=255)
    item_type: str = Field("product", pattern=r"^(product|service)$")
    quantity: int = Field(..., gt=0)
    unit_price: Decimal | None = Field(None, ge=0, decimal_places=2, description="Defaults to the catalogue price")

    @model_validator(mode="after")
    def check_item(self):
        if self.product_id is None:
            if not self.product_name:
                raise ValueError("a line needs either product_id or product_name")
            if self.unit_price is None:
                raise ValueError("unit_price is required for lines without a catalogue product")
        return self


class SaleCreate(BaseModel):
    items: list[SaleItem] = Field(..., min_length=1)
    branch_id: UUID | None = Field(None, description="Defaults to the caller's home branch")
    sale_date: date | None = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    customer_name: str | None = Field(None, max_length=255)
    customer_email: EmailStr | None = None
    customer_phone: str | None = Field(None, max_length=20)
    discount_amount: Decimal = Field(Decimal("0.00"), ge=0, decimal_places=2)
    discount_reason: str | None = Field(None, max_length=255)
    notes: str | None = None

    @model_validator(mode="after")
    def check_credit_customer(self):
        if self.payment_method == PaymentMethod.CREDIT_INVOICE and not (self.customer_name or "").strip():
            raise ValueError("credit sales need a customer name for the invoice")
        if self.discount_amount > 0 and not self.discount_reason:
            raise ValueError("a discount needs a reason")
        return self


class SaleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    receipt_number: str
    sale_date: date
    item_type: str
    product_id: UUID | None
    product_name: str
    quantity: int
    unit_price: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    payment_method: PaymentMethod
    customer_name: str | None
    branch_id: UUID | None
    invoice_id: UUID | None
    recorded_by: UUID | None
    created_at: datetime


class SaleReceipt(BaseModel):
    receipt_number: str
    sale_date: date
    items: list[SaleResponse]
    subtotal: Decimal
    discount_amount: Decimal
    total: Decimal
    invoice_id: UUID | None = None


class SaleListResponse(BaseModel):
    items: list[SaleResponse]
    total: int
    page: int
    size: int


class PaymentMethodTotal(BaseModel):
    payment_method: PaymentMethod
    count: int
    total: Decimal


class SalesSummary(BaseModel):
    period_start: date
    period_end: date
    receipts: int
    items_sold: int
    by_payment_method: list[PaymentMethodTotal]
    total: Decimal


class ProfitLossStatement(BaseModel):
    period_start: date
    period_end: date
    sales_revenue: Decimal = Field(..., description="Paid-at-till sales; credit sales count once their invoice is paid")
    invoice_revenue: Decimal
    total_revenue: Decimal
    expenses_by_category: list[CategoryTotal]
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal | None = Field(None, description="Net profit as a percentage of revenue")
