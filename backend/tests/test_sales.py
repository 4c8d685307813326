"""Sales recording, receipts and the profit & loss statement."""

import re
import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from bizhub.models.alert import AdminAlert, AlertType
from bizhub.models.branch import Branch
from bizhub.models.expense import Expense
from bizhub.models.inventory import BranchInventory
from bizhub.models.invoice import Invoice, InvoiceStatus
from bizhub.models.product import Product
from bizhub.models.sale import PaymentMethod, SalesTransaction
from bizhub.schemas.sale import SaleCreate, SaleItem
from bizhub.services.sales import (
    allocate_discount,
    build_profit_and_loss,
    new_receipt_number,
    summarize_sales,
)
from conftest import rows, one, count


def make_branch(tenant_id):
    return Branch(id=uuid.uuid4(), tenant_id=tenant_id, name="Kabwata", code="KBW", is_active=True)


def make_product(tenant_id, **overrides):
    values = dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        name="Cooking Oil 2L",
        sku="OIL-2L",
        unit_price=Decimal("85.00"),
        is_active=True,
    )
    values.update(overrides)
    return Product(**values)


def make_stock(tenant_id, branch, product, quantity, threshold=10):
    return BranchInventory(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        branch_id=branch.id,
        product_id=product.id,
        quantity=quantity,
        low_stock_threshold=threshold,
        reorder_quantity=50,
    )


def make_sale(receipt, method, total, quantity=1):
    return SalesTransaction(
        id=uuid.uuid4(),
        tenant_id=uuid.uuid4(),
        receipt_number=receipt,
        sale_date=date(2024, 5, 2),
        product_name="Mealie Meal 25kg",
        quantity=quantity,
        unit_price=Decimal(total),
        total_amount=Decimal(total),
        payment_method=method,
    )


def added(mock_db, kind):
    return [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], kind)]


@pytest.fixture
def fixed_receipt(monkeypatch):
    monkeypatch.setattr("bizhub.api.sales.new_receipt_number", lambda today: f"SR{today.year}-0042")


# ── Discounts and receipt numbers ──────────────────

def test_discount_shares_add_up():
    shares = allocate_discount([Decimal("10.00")] * 3, Decimal("10.00"))
    assert shares == [Decimal("3.33"), Decimal("3.33"), Decimal("3.34")]
    assert sum(shares) == Decimal("10.00")


def test_discount_follows_line_size():
    assert allocate_discount([Decimal("255.00"), Decimal("50.00")], Decimal("27.00")) == [
        Decimal("22.57"),
        Decimal("4.43"),
    ]


def test_no_discount():
    assert allocate_discount([Decimal("85.00")], Decimal("0")) == [Decimal("0.00")]


def test_discount_larger_than_sale_rejected():
    with pytest.raises(ValueError):
        allocate_discount([Decimal("85.00")], Decimal("90.00"))


def test_receipt_number_format():
    assert re.fullmatch(r"SR2024-\d{4}", new_receipt_number(date(2024, 7, 1)))


# ── Validation ─────────────────────────────────────

def test_credit_sale_needs_customer():
    item = SaleItem(product_name="Consultation", item_type="service", quantity=1, unit_price=Decimal("500"))
    with pytest.raises(ValidationError):
        SaleCreate(items=[item], payment_method=PaymentMethod.CREDIT_INVOICE, customer_name="  ")


def test_discount_needs_reason():
    item = SaleItem(product_name="Consultation", quantity=1, unit_price=Decimal("500"))
    with pytest.raises(ValidationError):
        SaleCreate(items=[item], discount_amount=Decimal("50.00"))


def test_free_text_line_needs_name_and_price():
    with pytest.raises(ValidationError):
        SaleItem(quantity=1, unit_price=Decimal("10"))
    with pytest.raises(ValidationError):
        SaleItem(product_name="Delivery", quantity=1)
    with pytest.raises(ValidationError):
        SaleCreate(items=[])


# ── Recording a sale ───────────────────────────────

@pytest.mark.asyncio
async def test_record_sale_deducts_stock_and_splits_discount(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    tenant = current_user.tenant_id
    branch = make_branch(tenant)
    oil = make_product(tenant)
    stock = make_stock(tenant, branch, oil, quantity=12)
    mock_db.execute.side_effect = [one(branch), one(oil), one(stock), one(None)]

    body = SaleCreate(
        branch_id=branch.id,
        items=[
            SaleItem(product_id=oil.id, quantity=3),
            SaleItem(product_name="Delivery", item_type="service", quantity=1, unit_price=Decimal("50.00")),
        ],
        discount_amount=Decimal("27.00"),
        discount_reason="Loyal customer",
        payment_method=PaymentMethod.MOBILE_MONEY,
    )
    receipt = await record_sale(body=body, current_user=current_user, db=mock_db)

    assert receipt.receipt_number == f"SR{date.today().year}-0042"
    assert receipt.subtotal == Decimal("305.00")
    assert receipt.total == Decimal("278.00")
    assert [line.product_name for line in receipt.items] == ["Cooking Oil 2L", "Delivery"]
    assert [line.total_amount for line in receipt.items] == [Decimal("232.43"), Decimal("45.57")]
    assert receipt.items[0].unit_price == Decimal("85.00")
    assert receipt.invoice_id is None

    assert stock.quantity == 9
    alerts = added(mock_db, AdminAlert)
    assert len(alerts) == 1 and alerts[0].alert_type == AlertType.LOW_STOCK
    sales = added(mock_db, SalesTransaction)
    assert {s.branch_id for s in sales} == {branch.id}
    assert all(s.tenant_id == tenant and s.recorded_by == current_user.id for s in sales)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_sale_uses_home_branch(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    tenant = current_user.tenant_id
    branch = make_branch(tenant)
    cashier = current_user.model_copy(update={"branch_id": branch.id})
    oil = make_product(tenant)
    stock = make_stock(tenant, branch, oil, quantity=40)
    mock_db.execute.side_effect = [one(branch), one(oil), one(stock), one(None)]

    body = SaleCreate(items=[SaleItem(product_id=oil.id, quantity=2, unit_price=Decimal("80.00"))])
    receipt = await record_sale(body=body, current_user=cashier, db=mock_db)

    assert stock.quantity == 38
    assert receipt.items[0].branch_id == branch.id
    assert receipt.total == Decimal("160.00")
    assert added(mock_db, AdminAlert) == []


@pytest.mark.asyncio
async def test_record_sale_insufficient_stock(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    tenant = current_user.tenant_id
    branch = make_branch(tenant)
    oil = make_product(tenant)
    stock = make_stock(tenant, branch, oil, quantity=2)
    mock_db.execute.side_effect = [one(branch), one(oil), one(stock)]

    body = SaleCreate(branch_id=branch.id, items=[SaleItem(product_id=oil.id, quantity=5)])
    with pytest.raises(HTTPException) as exc:
        await record_sale(body=body, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 400
    assert "Insufficient stock" in exc.value.detail
    assert stock.quantity == 2
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_record_sale_product_not_stocked_at_branch(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    tenant = current_user.tenant_id
    branch = make_branch(tenant)
    oil = make_product(tenant)
    mock_db.execute.side_effect = [one(branch), one(oil), one(None)]

    body = SaleCreate(branch_id=branch.id, items=[SaleItem(product_id=oil.id, quantity=1)])
    with pytest.raises(HTTPException) as exc:
        await record_sale(body=body, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 400
    assert "not stocked" in exc.value.detail


@pytest.mark.asyncio
async def test_record_sale_inactive_product(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    discontinued = make_product(current_user.tenant_id, is_active=False)
    mock_db.execute.side_effect = [one(discontinued)]

    body = SaleCreate(items=[SaleItem(product_id=discontinued.id, quantity=1)])
    with pytest.raises(HTTPException) as exc:
        await record_sale(body=body, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_record_sale_discount_over_subtotal(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    body = SaleCreate(
        items=[SaleItem(product_name="Delivery", quantity=1, unit_price=Decimal("50.00"))],
        discount_amount=Decimal("60.00"),
        discount_reason="Goodwill",
    )
    with pytest.raises(HTTPException) as exc:
        await record_sale(body=body, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 400
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
async def test_credit_sale_raises_invoice(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import record_sale

    mock_db.execute.side_effect = [one(None)]
    body = SaleCreate(
        items=[SaleItem(product_name="Site survey", item_type="service", quantity=2, unit_price=Decimal("750.00"))],
        payment_method=PaymentMethod.CREDIT_INVOICE,
        customer_name=" Mwansa Builders ",
        customer_email="accounts@mwansa.co.zm",
        sale_date=date(2024, 5, 2),
    )
    receipt = await record_sale(body=body, current_user=current_user, db=mock_db)

    [invoice] = added(mock_db, Invoice)
    assert invoice.invoice_number == "SR2024-0042"
    assert invoice.client_name == "Mwansa Builders"
    assert invoice.status == InvoiceStatus.SENT
    assert invoice.total_amount == Decimal("1500.00")
    assert invoice.due_date == date(2024, 5, 2) + timedelta(days=30)
    assert invoice.tenant_id == current_user.tenant_id
    assert receipt.invoice_id == invoice.id
    assert receipt.items[0].invoice_id == invoice.id


@pytest.mark.asyncio
async def test_receipt_number_retried_when_taken(current_user, mock_db, monkeypatch):
    from bizhub.api.sales import record_sale

    numbers = iter(["SR2024-0001", "SR2024-0002"])
    monkeypatch.setattr("bizhub.api.sales.new_receipt_number", lambda today: next(numbers))
    mock_db.execute.side_effect = [one(uuid.uuid4()), one(None)]

    body = SaleCreate(items=[SaleItem(product_name="Delivery", quantity=1, unit_price=Decimal("50.00"))])
    receipt = await record_sale(body=body, current_user=current_user, db=mock_db)

    assert receipt.receipt_number == "SR2024-0002"


@pytest.mark.asyncio
async def test_receipt_numbers_exhausted(current_user, mock_db, fixed_receipt):
    from bizhub.api.sales import RECEIPT_NUMBER_ATTEMPTS, record_sale

    mock_db.execute.side_effect = [one(uuid.uuid4())] * RECEIPT_NUMBER_ATTEMPTS
    body = SaleCreate(items=[SaleItem(product_name="Delivery", quantity=1, unit_price=Decimal("50.00"))])

    with pytest.raises(HTTPException) as exc:
        await record_sale(body=body, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 409


# ── Listing and summaries ──────────────────────────

@pytest.mark.asyncio
async def test_list_sales_scoped_to_tenant(current_user, mock_db):
    from bizhub.api.sales import list_sales

    mock_db.execute.side_effect = [count(0), rows([])]

    response = await list_sales(
        page=1,
        size=50,
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 31),
        branch_id=None,
        payment_method=PaymentMethod.CASH,
        receipt_number=None,
        current_user=current_user,
        db=mock_db,
    )

    assert response.total == 0
    stmt = mock_db.execute.call_args.args[0]
    assert "sales_transactions.tenant_id = " in str(stmt)
    assert current_user.tenant_id in stmt.compile().params.values()


def test_summarize_sales_by_payment_method():
    sales = [
        make_sale("SR2024-0001", PaymentMethod.CASH, "120.00", quantity=2),
        make_sale("SR2024-0001", PaymentMethod.CASH, "30.00"),
        make_sale("SR2024-0002", PaymentMethod.MOBILE_MONEY, "400.00", quantity=4),
    ]

    summary = summarize_sales(sales, date(2024, 5, 1), date(2024, 5, 31))

    assert summary.receipts == 2
    assert summary.items_sold == 7
    assert [(m.payment_method, m.count, m.total) for m in summary.by_payment_method] == [
        (PaymentMethod.MOBILE_MONEY, 1, Decimal("400.00")),
        (PaymentMethod.CASH, 2, Decimal("150.00")),
    ]
    assert summary.total == Decimal("550.00")


# ── Profit & loss ──────────────────────────────────

def test_profit_and_loss_without_revenue():
    statement = build_profit_and_loss(Decimal("0"), Decimal("0"), [], date(2024, 5, 1), date(2024, 5, 31))
    assert statement.net_profit == Decimal("0.00")
    assert statement.profit_margin is None


@pytest.mark.asyncio
async def test_profit_and_loss_statement(current_user, mock_db):
    from bizhub.api.expenses import profit_and_loss

    tenant = current_user.tenant_id
    expenses = [
        Expense(id=uuid.uuid4(), tenant_id=tenant, category="Operations/Rent", amount=Decimal("1000.00"),
                vendor_name="Cairo Road Properties", date_incurred=date(2024, 5, 1)),
        Expense(id=uuid.uuid4(), tenant_id=tenant, category="Utilities", amount=Decimal("300.00"),
                vendor_name="ZESCO", date_incurred=date(2024, 5, 9)),
    ]
    mock_db.execute.side_effect = [count(Decimal("1200.00")), count(Decimal("800.00")), rows(expenses)]

    statement = await profit_and_loss(
        start_date=date(2024, 5, 1),
        end_date=date(2024, 5, 31),
        current_user=current_user,
        db=mock_db,
    )

    assert statement.sales_revenue == Decimal("1200.00")
    assert statement.invoice_revenue == Decimal("800.00")
    assert statement.total_revenue == Decimal("2000.00")
    assert [c.category for c in statement.expenses_by_category] == ["Operations/Rent", "Utilities"]
    assert statement.total_expenses == Decimal("1300.00")
    assert statement.net_profit == Decimal("700.00")
    assert statement.profit_margin == Decimal("35.00")

    sales_stmt = mock_db.execute.call_args_list[0].args[0]
    assert "sales_transactions.payment_method != " in str(sales_stmt)
    assert tenant in sales_stmt.compile().params.values()
