"""Recurring expense scheduling and materialisation into accounts payable."""

import calendar
import enum
import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.core.config import settings
from bizhub.models.alert import AdminAlert, AlertType
from bizhub.models.payable import AccountsPayable, PayableStatus
from bizhub.models.recurring_expense import Frequency, RecurringExpense
from bizhub.services.payroll_tax import to_money

logger = logging.getLogger(__name__)

DEFAULT_CUSTOM_INTERVAL_DAYS = 30

_DAY_STEPS = {
    Frequency.DAILY: 1,
    Frequency.WEEKLY: 7,
    Frequency.BI_WEEKLY: 14,
}
_MONTH_STEPS = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}
# Occurrences per month, for the monthly cost estimate
_MONTHLY_FACTORS = {
    Frequency.DAILY: Decimal("30"),
    Frequency.WEEKLY: Decimal("4.33"),
    Frequency.BI_WEEKLY: Decimal("2.17"),
    Frequency.MONTHLY: Decimal("1"),
    Frequency.QUARTERLY: Decimal("1") / 3,
    Frequency.YEARLY: Decimal("1") / 12,
}


class RecurringStatus(str, enum.Enum):
    PAUSED = "paused"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    SCHEDULED = "scheduled"


def add_months(current: date, months: int, anchor_day: int | None = None) -> date:
    """Shift by whole months, clamping to the last day of the target month.

    ``anchor_day`` keeps a schedule that started on the 31st on the last day
    of every month instead of drifting to the 28th after February.
    """
    month_index = current.month - 1 + months
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, min(anchor_day or current.day, last_day))


def next_due_date(
    current: date,
    frequency: Frequency | str,
    custom_interval_days: int | None = None,
    anchor_day: int | None = None,
) -> date:
    frequency = Frequency(frequency)
    if frequency in _DAY_STEPS:
        return current + timedelta(days=_DAY_STEPS[frequency])
    if frequency in _MONTH_STEPS:
        return add_months(current, _MONTH_STEPS[frequency], anchor_day)

    interval = custom_interval_days or DEFAULT_CUSTOM_INTERVAL_DAYS
    if interval < 0:
        raise ValueError("custom_interval_days must be positive")
    return current + timedelta(days=interval)


def monthly_equivalent(expense: RecurringExpense) -> Decimal:
    """Approximate cost per month of one occurrence schedule."""
    frequency = Frequency(expense.frequency)
    if frequency == Frequency.CUSTOM:
        factor = Decimal(30) / (expense.custom_interval_days or DEFAULT_CUSTOM_INTERVAL_DAYS)
    else:
        factor = _MONTHLY_FACTORS[frequency]
    return expense.amount * factor


def total_monthly_cost(expenses: list[RecurringExpense]) -> Decimal:
    """Monthly run-rate of the active schedules; paused ones cost nothing."""
    return to_money(sum((monthly_equivalent(e) for e in expenses if e.is_active), Decimal("0")))


def expense_status(expense: RecurringExpense, today: date) -> RecurringStatus:
    if not expense.is_active:
        return RecurringStatus.PAUSED
    days_until_due = (expense.next_due_date - today).days
    if days_until_due < 0:
        return RecurringStatus.OVERDUE
    if days_until_due <= expense.advance_notice_days:
        return RecurringStatus.DUE_SOON
    return RecurringStatus.SCHEDULED


@dataclass
class OccurrencePlan:
    due_dates: list[date]
    next_due_date: date
    deactivate: bool


def plan_occurrences(expense: RecurringExpense, today: date) -> OccurrencePlan:
    """Work out which periods are due as of ``today``.

    Every missed period up to today is emitted once. A period already recorded
    in ``last_generated_date`` is skipped, and nothing past ``end_date`` is emitted.
    """
    due_dates: list[date] = []
    due = expense.next_due_date
    while due <= today:
        if expense.end_date is not None and due > expense.end_date:
            break
        if due != expense.last_generated_date:
            due_dates.append(due)
        due = next_due_date(
            due,
            expense.frequency,
            expense.custom_interval_days,
            anchor_day=expense.start_date.day,
        )
    deactivate = expense.end_date is not None and due > expense.end_date
    return OccurrencePlan(due_dates=due_dates, next_due_date=due, deactivate=deactivate)


@dataclass
class ProcessingResult:
    generated: int = 0
    deactivated: int = 0
    reminders: int = 0
    payable_ids: list[UUID] = field(default_factory=list)


def _format_amount(expense: RecurringExpense, currency: str) -> str:
    return f"{currency} {expense.amount:,.2f}"


def _build_payable(expense: RecurringExpense, due: date) -> AccountsPayable:
    notes = f"Auto-generated from recurring expense. {expense.notes or ''}".strip()
    return AccountsPayable(
        id=uuid.uuid4(),
        tenant_id=expense.tenant_id,
        vendor_name=expense.vendor_name,
        description=expense.description or f"Recurring: {expense.vendor_name}",
        amount=expense.amount,
        due_date=due,
        status=PayableStatus.PENDING,
        notes=notes,
        recurring_expense_id=expense.id,
    )


async def process_recurring_expenses(
    db: AsyncSession,
    tenant_id: UUID,
    today: date,
    currency: str | None = None,
) -> ProcessingResult:
    """Materialise due recurring expenses and raise upcoming-due reminders."""
    currency = currency or settings.CURRENCY_SYMBOL
    outcome = ProcessingResult()

    result = await db.execute(
        select(RecurringExpense)
        .where(
            RecurringExpense.tenant_id == tenant_id,
            RecurringExpense.is_active == True,  # noqa: E712
            RecurringExpense.next_due_date <= today,
        )
        .order_by(RecurringExpense.next_due_date)
    )
    due_expenses = result.scalars().all()

    for expense in due_expenses:
        plan = plan_occurrences(expense, today)
        for due in plan.due_dates:
            payable = _build_payable(expense, due)
            db.add(payable)
            db.add(AdminAlert(
                tenant_id=tenant_id,
                alert_type=AlertType.RECURRING_EXPENSE,
                message=f"Recurring expense due: {expense.vendor_name} - {_format_amount(expense, currency)}",
                related_table="recurring_expenses",
                related_id=expense.id,
            ))
            expense.last_generated_date = due
            outcome.generated += 1
            outcome.payable_ids.append(payable.id)
        expense.next_due_date = plan.next_due_date
        if plan.deactivate:
            expense.is_active = False
            outcome.deactivated += 1

    result = await db.execute(
        select(RecurringExpense).where(
            RecurringExpense.tenant_id == tenant_id,
            RecurringExpense.is_active == True,  # noqa: E712
            RecurringExpense.next_due_date > today,
        )
    )
    upcoming = result.scalars().all()

    for expense in upcoming:
        days_until_due = (expense.next_due_date - today).days
        if days_until_due > expense.advance_notice_days:
            continue

        since = today - timedelta(days=expense.advance_notice_days)
        existing = await db.execute(
            select(AdminAlert.id)
            .where(
                AdminAlert.tenant_id == tenant_id,
                AdminAlert.related_id == expense.id,
                AdminAlert.alert_type == AlertType.RECURRING_EXPENSE_REMINDER,
                func.date(AdminAlert.created_at) >= since,
            )
            .limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            continue

        db.add(AdminAlert(
            tenant_id=tenant_id,
            alert_type=AlertType.RECURRING_EXPENSE_REMINDER,
            message=(
                f"Upcoming recurring expense in {days_until_due} days: "
                f"{expense.vendor_name} - {_format_amount(expense, currency)}"
            ),
            related_table="recurring_expenses",
            related_id=expense.id,
        ))
        outcome.reminders += 1

    await db.commit()
    logger.info(
        "Processed recurring expenses for tenant %s: %d payables, %d deactivated, %d reminders",
        tenant_id, outcome.generated, outcome.deactivated, outcome.reminders,
    )
    return outcome
