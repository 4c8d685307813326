"""Accounts payable: payments, summary and statutory provisions."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException

from bizhub.models.expense import Expense
from bizhub.models.payable import AccountsPayable, PayableStatus
from bizhub.schemas.payable import PayablePaymentRequest, StatutoryProvisionCreate
from bizhub.services.statutory import get_tax_type, statutory_due_date, statutory_reference
from conftest import rows, one


def make_payable(tenant_id, **overrides):
    values = dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        vendor_name="Zamtel",
        description="Fibre line",
        amount=Decimal("1000.00"),
        paid_amount=Decimal("0.00"),
        due_date=date.today() + timedelta(days=10),
        status=PayableStatus.PENDING,
    )
    values.update(overrides)
    return AccountsPayable(**values)


# ── Model ──────────────────────────────────────────

def test_overdue_is_derived():
    today = date(2024, 5, 10)
    tid = uuid.uuid4()
    assert make_payable(tid, due_date=date(2024, 5, 9)).is_overdue(today)
    assert not make_payable(tid, due_date=date(2024, 5, 10)).is_overdue(today)
    assert not make_payable(tid, due_date=date(2024, 5, 9), status=PayableStatus.PAID).is_overdue(today)
    assert not make_payable(tid, due_date=None).is_overdue(today)


def test_balance():
    payable = make_payable(uuid.uuid4(), paid_amount=Decimal("250.00"))
    assert payable.balance == Decimal("750.00")


# ── Payments ───────────────────────────────────────

@pytest.mark.asyncio
async def test_full_payment_defaults_to_balance(current_user, mock_db):
    from bizhub.api.payables import pay_payable

    payable = make_payable(current_user.tenant_id, paid_amount=Decimal("400.00"), status=PayableStatus.PARTIALLY_PAID)
    mock_db.execute.return_value = one(payable)

    result = await pay_payable(
        payable_id=payable.id,
        body=PayablePaymentRequest(paid_date=date(2024, 5, 2)),
        current_user=current_user,
        db=mock_db,
    )

    assert result.status == PayableStatus.PAID
    assert result.paid_amount == Decimal("1000.00")
    assert result.paid_date == date(2024, 5, 2)
    expense = mock_db.add.call_args[0][0]
    assert isinstance(expense, Expense)
    assert expense.amount == Decimal("600.00")
    assert expense.category == "Other"
    assert expense.vendor_name == "Zamtel"


@pytest.mark.asyncio
async def test_partial_payment(current_user, mock_db):
    from bizhub.api.payables import pay_payable

    payable = make_payable(current_user.tenant_id)
    mock_db.execute.return_value = one(payable)

    result = await pay_payable(
        payable_id=payable.id,
        body=PayablePaymentRequest(amount=Decimal("300.00"), category="Utilities"),
        current_user=current_user,
        db=mock_db,
    )

    assert result.status == PayableStatus.PARTIALLY_PAID
    assert result.paid_date is None
    assert result.balance == Decimal("700.00")
    assert mock_db.add.call_args[0][0].category == "Utilities"


@pytest.mark.asyncio
async def test_overpayment_rejected(current_user, mock_db):
    from bizhub.api.payables import pay_payable

    payable = make_payable(current_user.tenant_id)
    mock_db.execute.return_value = one(payable)

    with pytest.raises(HTTPException) as exc:
        await pay_payable(
            payable_id=payable.id,
            body=PayablePaymentRequest(amount=Decimal("1000.01")),
            current_user=current_user,
            db=mock_db,
        )
    assert exc.value.status_code == 400
    mock_db.add.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("closed", [PayableStatus.PAID, PayableStatus.CANCELLED])
async def test_paying_closed_payable_conflicts(current_user, mock_db, closed):
    from bizhub.api.payables import pay_payable

    payable = make_payable(current_user.tenant_id, status=closed)
    mock_db.execute.return_value = one(payable)

    with pytest.raises(HTTPException) as exc:
        await pay_payable(payable_id=payable.id, body=PayablePaymentRequest(), current_user=current_user, db=mock_db)
    assert exc.value.status_code == 409


# ── Summary ────────────────────────────────────────

@pytest.mark.asyncio
async def test_summary_totals(current_user, mock_db):
    from bizhub.api.payables import payables_summary

    tid = current_user.tenant_id
    open_payables = [
        make_payable(tid, amount=Decimal("1000.00"), due_date=date.today() - timedelta(days=3)),
        make_payable(tid, amount=Decimal("500.00"), paid_amount=Decimal("200.00"), status=PayableStatus.PARTIALLY_PAID),
    ]
    mock_db.execute.return_value = rows(open_payables)

    result = await payables_summary(current_user=current_user, db=mock_db)

    assert result.total_outstanding == Decimal("1300.00")
    assert result.total_overdue == Decimal("1000.00")
    assert result.open_count == 2
    assert result.overdue_count == 1


# ── Statutory ──────────────────────────────────────

def test_tax_catalogue():
    assert get_tax_type("vat").default_due_day == 18
    assert get_tax_type("skills_dev_levy").authority == "TEVETA"
    with pytest.raises(ValueError):
        get_tax_type("carbon_tax")


def test_statutory_due_date_rolls_year():
    assert statutory_due_date("2024-12", 10) == date(2025, 1, 10)
    assert statutory_due_date("2024-05", 18) == date(2024, 6, 18)


def test_payroll_taxes_follow_configured_due_day(monkeypatch):
    from bizhub.core.config import settings
    from bizhub.services.statutory import build_statutory_payable

    monkeypatch.setattr(settings, "STATUTORY_DUE_DAY", 25)
    tenant = uuid.uuid4()

    paye = build_statutory_payable(tenant, get_tax_type("paye"), Decimal("100.00"), "2024-03")
    vat = build_statutory_payable(tenant, get_tax_type("vat"), Decimal("100.00"), "2024-03")

    assert paye.due_date == date(2024, 4, 25)
    assert get_tax_type("napsa").due_day == 25
    assert vat.due_date == date(2024, 4, 18)


def test_statutory_reference():
    assert statutory_reference("turnover_tax", "2024-05") == "TURNOVER_TAX-2024-05"


@pytest.mark.asyncio
async def test_list_tax_types(current_user):
    from bizhub.api.payables import list_tax_types

    result = await list_tax_types(current_user=current_user)
    assert [t.key for t in result] == [
        "paye", "napsa", "nhima", "vat", "wht", "turnover_tax", "property_transfer_tax", "skills_dev_levy",
    ]


@pytest.mark.asyncio
async def test_record_statutory_provision(current_user, mock_db):
    from bizhub.api.payables import create_statutory_provision

    mock_db.execute.return_value = one(None)

    result = await create_statutory_provision(
        body=StatutoryProvisionCreate(tax_type="vat", amount=Decimal("3200.00"), period="2024-05"),
        current_user=current_user,
        db=mock_db,
    )

    assert result.description == "Statutory: VAT (Value Added Tax) - 2024-05"
    assert result.invoice_reference == "VAT-2024-05"
    assert result.vendor_name == "Zambia Revenue Authority (ZRA)"
    assert result.due_date == date(2024, 6, 18)
    assert result.status == PayableStatus.PENDING


@pytest.mark.asyncio
async def test_statutory_provision_duplicate(current_user, mock_db):
    from bizhub.api.payables import create_statutory_provision

    mock_db.execute.return_value = one(uuid.uuid4())

    with pytest.raises(HTTPException) as exc:
        await create_statutory_provision(
            body=StatutoryProvisionCreate(tax_type="paye", amount=Decimal("10.00"), period="2024-05"),
            current_user=current_user,
            db=mock_db,
        )
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_statutory_provision_unknown_type(current_user, mock_db):
    from bizhub.api.payables import create_statutory_provision

    with pytest.raises(HTTPException) as exc:
        await create_statutory_provision(
            body=StatutoryProvisionCreate(tax_type="bogus", amount=Decimal("10.00"), period="2024-05"),
            current_user=current_user,
            db=mock_db,
        )
    assert exc.value.status_code == 400
