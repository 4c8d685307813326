"""Recurring expense scheduling, status and processing."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from fastapi import HTTPException

from bizhub.models.alert import AdminAlert, AlertType
from bizhub.models.payable import AccountsPayable, PayableStatus
from bizhub.models.recurring_expense import Frequency, RecurringExpense
from bizhub.services.recurring import (
    RecurringStatus,
    add_months,
    expense_status,
    monthly_equivalent,
    next_due_date,
    plan_occurrences,
    process_recurring_expenses,
    total_monthly_cost,
)
from conftest import rows, one


def make_expense(tenant_id=None, **overrides):
    values = dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id or uuid.uuid4(),
        vendor_name="Cairo Road Properties",
        description=None,
        amount=Decimal("4500.00"),
        category="Operations/Rent",
        frequency=Frequency.MONTHLY,
        custom_interval_days=None,
        start_date=date(2024, 1, 1),
        end_date=None,
        next_due_date=date(2024, 1, 1),
        last_generated_date=None,
        advance_notice_days=7,
        is_active=True,
        notes=None,
    )
    values.update(overrides)
    return RecurringExpense(**values)


# ── Due-date arithmetic ────────────────────────────

@pytest.mark.parametrize(
    "frequency, expected",
    [
        (Frequency.DAILY, date(2024, 3, 16)),
        (Frequency.WEEKLY, date(2024, 3, 22)),
        (Frequency.BI_WEEKLY, date(2024, 3, 29)),
        (Frequency.MONTHLY, date(2024, 4, 15)),
        (Frequency.QUARTERLY, date(2024, 6, 15)),
        (Frequency.YEARLY, date(2025, 3, 15)),
    ],
)
def test_next_due_date(frequency, expected):
    assert next_due_date(date(2024, 3, 15), frequency) == expected


def test_custom_interval_and_default():
    assert next_due_date(date(2024, 3, 1), Frequency.CUSTOM, 10) == date(2024, 3, 11)
    assert next_due_date(date(2024, 3, 1), Frequency.CUSTOM) == date(2024, 3, 31)


def test_custom_negative_interval_rejected():
    with pytest.raises(ValueError):
        next_due_date(date(2024, 3, 1), Frequency.CUSTOM, -3)


def test_month_end_clamps():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)


def test_anchor_day_survives_short_month():
    feb = next_due_date(date(2024, 1, 31), Frequency.MONTHLY, anchor_day=31)
    assert feb == date(2024, 2, 29)
    assert next_due_date(feb, Frequency.MONTHLY, anchor_day=31) == date(2024, 3, 31)


def test_string_frequency_accepted():
    assert next_due_date(date(2024, 3, 1), "bi-weekly") == date(2024, 3, 15)


# ── Status ─────────────────────────────────────────

def test_expense_status():
    today = date(2024, 3, 10)
    assert expense_status(make_expense(next_due_date=date(2024, 3, 9)), today) == RecurringStatus.OVERDUE
    assert expense_status(make_expense(next_due_date=date(2024, 3, 10)), today) == RecurringStatus.DUE_SOON
    assert expense_status(make_expense(next_due_date=date(2024, 3, 17)), today) == RecurringStatus.DUE_SOON
    assert expense_status(make_expense(next_due_date=date(2024, 3, 18)), today) == RecurringStatus.SCHEDULED
    assert expense_status(make_expense(is_active=False), today) == RecurringStatus.PAUSED


# ── Occurrence planning ────────────────────────────

def test_plan_catches_up_missed_periods():
    plan = plan_occurrences(make_expense(), date(2024, 3, 5))
    assert plan.due_dates == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
    assert plan.next_due_date == date(2024, 4, 1)
    assert plan.deactivate is False


def test_plan_skips_already_generated_date():
    expense = make_expense(next_due_date=date(2024, 2, 1), last_generated_date=date(2024, 2, 1))
    plan = plan_occurrences(expense, date(2024, 2, 10))
    assert plan.due_dates == []
    assert plan.next_due_date == date(2024, 3, 1)


def test_plan_stops_at_end_date():
    expense = make_expense(end_date=date(2024, 2, 15))
    plan = plan_occurrences(expense, date(2024, 5, 1))
    assert plan.due_dates == [date(2024, 1, 1), date(2024, 2, 1)]
    assert plan.deactivate is True


def test_plan_final_occurrence_on_end_date():
    expense = make_expense(end_date=date(2024, 2, 1))
    plan = plan_occurrences(expense, date(2024, 2, 1))
    assert plan.due_dates == [date(2024, 1, 1), date(2024, 2, 1)]
    assert plan.deactivate is True


# ── Processing ─────────────────────────────────────

@pytest.mark.asyncio
async def test_process_generates_payable_and_alert(mock_db):
    tenant_id = uuid.uuid4()
    expense = make_expense(tenant_id, next_due_date=date(2024, 3, 1), start_date=date(2024, 1, 1))
    mock_db.execute.side_effect = [rows([expense]), rows([])]

    outcome = await process_recurring_expenses(mock_db, tenant_id, date(2024, 3, 1), currency="K")

    added = [call[0][0] for call in mock_db.add.call_args_list]
    payable = next(obj for obj in added if isinstance(obj, AccountsPayable))
    alert = next(obj for obj in added if isinstance(obj, AdminAlert))

    assert outcome.generated == 1
    assert outcome.payable_ids == [payable.id]
    assert payable.status == PayableStatus.PENDING
    assert payable.due_date == date(2024, 3, 1)
    assert payable.description == "Recurring: Cairo Road Properties"
    assert payable.notes.startswith("Auto-generated from recurring expense.")
    assert payable.recurring_expense_id == expense.id
    assert alert.alert_type == AlertType.RECURRING_EXPENSE
    assert "K 4,500.00" in alert.message

    assert expense.next_due_date == date(2024, 4, 1)
    assert expense.last_generated_date == date(2024, 3, 1)
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_process_deactivates_finished_expense(mock_db):
    tenant_id = uuid.uuid4()
    expense = make_expense(tenant_id, next_due_date=date(2024, 3, 1), end_date=date(2024, 3, 1))
    mock_db.execute.side_effect = [rows([expense]), rows([])]

    outcome = await process_recurring_expenses(mock_db, tenant_id, date(2024, 3, 1))

    assert outcome.generated == 1
    assert outcome.deactivated == 1
    assert expense.is_active is False


@pytest.mark.asyncio
async def test_process_reminds_once_within_notice(mock_db):
    tenant_id = uuid.uuid4()
    soon = make_expense(tenant_id, next_due_date=date(2024, 3, 5))
    later = make_expense(tenant_id, next_due_date=date(2024, 4, 1))
    already = make_expense(tenant_id, next_due_date=date(2024, 3, 4))
    mock_db.execute.side_effect = [
        rows([]),
        rows([soon, later, already]),
        one(None),          # no reminder yet for `soon`
        one(uuid.uuid4()),  # `already` was reminded
    ]

    outcome = await process_recurring_expenses(mock_db, tenant_id, date(2024, 3, 1), currency="K")

    assert outcome.reminders == 1
    alert = mock_db.add.call_args[0][0]
    assert alert.alert_type == AlertType.RECURRING_EXPENSE_REMINDER
    assert alert.related_id == soon.id
    assert "in 4 days" in alert.message


# ── Endpoints ──────────────────────────────────────

def test_custom_frequency_requires_interval():
    from pydantic import ValidationError
    from bizhub.schemas.recurring import RecurringExpenseCreate

    with pytest.raises(ValidationError):
        RecurringExpenseCreate(
            vendor_name="Zesco",
            amount=Decimal("100"),
            frequency=Frequency.CUSTOM,
            start_date=date(2024, 1, 1),
        )


def test_interval_dropped_for_fixed_frequency():
    from bizhub.schemas.recurring import RecurringExpenseCreate

    body = RecurringExpenseCreate(
        vendor_name="Zesco",
        amount=Decimal("100"),
        frequency=Frequency.WEEKLY,
        custom_interval_days=9,
        start_date=date(2024, 1, 1),
    )
    assert body.custom_interval_days is None


@pytest.mark.asyncio
async def test_create_starts_on_start_date(current_user, mock_db):
    from bizhub.api.recurring_expenses import create_recurring_expense
    from bizhub.schemas.recurring import RecurringExpenseCreate

    body = RecurringExpenseCreate(
        vendor_name="Liquid Telecom",
        amount=Decimal("899.00"),
        category="Utilities",
        start_date=date(2030, 1, 15),
    )

    result = await create_recurring_expense(body=body, current_user=current_user, db=mock_db)

    assert result.next_due_date == date(2030, 1, 15)
    assert result.status == RecurringStatus.SCHEDULED
    assert result.tenant_id == current_user.tenant_id


@pytest.mark.asyncio
async def test_update_keeps_next_due_date(current_user, mock_db):
    from bizhub.api.recurring_expenses import update_recurring_expense
    from bizhub.schemas.recurring import RecurringExpenseUpdate

    expense = make_expense(current_user.tenant_id, next_due_date=date(2030, 6, 1))
    mock_db.execute.return_value = one(expense)

    result = await update_recurring_expense(
        expense_id=expense.id,
        body=RecurringExpenseUpdate(
            vendor_name="Cairo Road Properties",
            amount=Decimal("5000.00"),
            start_date=date(2024, 1, 1),
        ),
        current_user=current_user,
        db=mock_db,
    )
    assert result.amount == Decimal("5000.00")
    assert result.next_due_date == date(2030, 6, 1)


@pytest.mark.asyncio
async def test_toggle_pauses(current_user, mock_db):
    from bizhub.api.recurring_expenses import toggle_recurring_expense

    expense = make_expense(current_user.tenant_id)
    mock_db.execute.return_value = one(expense)

    result = await toggle_recurring_expense(expense_id=expense.id, current_user=current_user, db=mock_db)
    assert result.is_active is False
    assert result.status == RecurringStatus.PAUSED


@pytest.mark.asyncio
async def test_get_other_tenant_is_404(current_user, mock_db):
    from bizhub.api.recurring_expenses import get_recurring_expense

    mock_db.execute.return_value = one(None)
    with pytest.raises(HTTPException) as exc:
        await get_recurring_expense(expense_id=uuid.uuid4(), current_user=current_user, db=mock_db)
    assert exc.value.status_code == 404


# ── Monthly cost ───────────────────────────────────

@pytest.mark.parametrize(
    "frequency, amount, interval, expected",
    [
        (Frequency.DAILY, "10.00", None, "300.00"),
        (Frequency.WEEKLY, "100.00", None, "433.00"),
        (Frequency.BI_WEEKLY, "1000.00", None, "2170.00"),
        (Frequency.MONTHLY, "4500.00", None, "4500.00"),
        (Frequency.QUARTERLY, "3000.00", None, "1000.00"),
        (Frequency.YEARLY, "1200.00", None, "100.00"),
        (Frequency.CUSTOM, "50.00", 15, "100.00"),
    ],
)
def test_monthly_equivalent(frequency, amount, interval, expected):
    expense = make_expense(frequency=frequency, amount=Decimal(amount), custom_interval_days=interval)
    assert round(monthly_equivalent(expense), 2) == Decimal(expected)


def test_total_monthly_ignores_paused():
    expenses = [
        make_expense(),
        make_expense(frequency=Frequency.YEARLY, amount=Decimal("1200.00")),
        make_expense(frequency=Frequency.WEEKLY, amount=Decimal("100.00"), is_active=False),
    ]
    assert total_monthly_cost(expenses) == Decimal("4600.00")
    assert total_monthly_cost([]) == Decimal("0.00")


@pytest.mark.asyncio
async def test_list_reports_monthly_total_for_own_tenant(current_user, mock_db):
    from bizhub.api.recurring_expenses import list_recurring_expenses

    tenant = current_user.tenant_id
    mock_db.execute.return_value = rows([
        make_expense(tenant, next_due_date=date(2099, 1, 1)),
        make_expense(tenant, frequency=Frequency.QUARTERLY, amount=Decimal("3000.00"),
                     next_due_date=date(2099, 2, 1)),
        make_expense(tenant, is_active=False, next_due_date=date(2099, 3, 1)),
    ])

    response = await list_recurring_expenses(active_only=False, current_user=current_user, db=mock_db)

    assert response.total == 3
    assert response.total_monthly == Decimal("5500.00")
    assert [item.status for item in response.items][-1] == RecurringStatus.PAUSED

    stmt = mock_db.execute.call_args.args[0]
    assert "recurring_expenses.tenant_id = " in str(stmt)
    assert tenant in stmt.compile().params.values()
