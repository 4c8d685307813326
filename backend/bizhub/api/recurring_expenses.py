"""Recurring expense templates and the processing job that turns them into payables."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.recurring_expense import RecurringExpense
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.recurring import (
    RecurringExpenseCreate,
    RecurringExpenseUpdate,
    RecurringExpenseResponse,
    RecurringExpenseListResponse,
    ProcessingResponse,
)
from bizhub.services.recurring import (
    RecurringStatus,
    expense_status,
    process_recurring_expenses,
    total_monthly_cost,
)

router = APIRouter(prefix="/recurring-expenses", tags=["recurring-expenses"])


def to_response(expense: RecurringExpense, today: date) -> RecurringExpenseResponse:
    values = {
        name: getattr(expense, name)
        for name in RecurringExpenseResponse.model_fields
        if name != "status"
    }
    return RecurringExpenseResponse(**values, status=expense_status(expense, today))


async def get_recurring_or_404(db: AsyncSession, expense_id: UUID, tenant_id: UUID) -> RecurringExpense:
    result = await db.execute(
        select(RecurringExpense).where(
            RecurringExpense.id == expense_id,
            RecurringExpense.tenant_id == tenant_id,
        )
    )
    expense = result.scalar_one_or_none()
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recurring expense not found")
    return expense


@router.get("", response_model=RecurringExpenseListResponse)
async def list_recurring_expenses(
    active_only: bool = False,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(RecurringExpense).where(RecurringExpense.tenant_id == current_user.tenant_id)
    if active_only:
        query = query.where(RecurringExpense.is_active == True)  # noqa: E712
    result = await db.execute(query.order_by(RecurringExpense.next_due_date))

    today = date.today()
    expenses = result.scalars().all()
    items = [to_response(expense, today) for expense in expenses]
    return RecurringExpenseListResponse(
        items=items,
        total=len(items),
        upcoming_count=sum(1 for item in items if item.status == RecurringStatus.DUE_SOON),
        total_monthly=total_monthly_cost(expenses),
    )


@router.post("", response_model=RecurringExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_expense(
    body: RecurringExpenseCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = RecurringExpense(
        **body.model_dump(),
        tenant_id=current_user.tenant_id,
        next_due_date=body.start_date,
        created_by=current_user.id,
    )
    db.add(expense)
    await db.commit()
    await db.refresh(expense)
    return to_response(expense, date.today())


@router.post("/process", response_model=ProcessingResponse)
async def process_due_expenses(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    """Generate payables for everything due today or earlier and raise upcoming reminders."""
    outcome = await process_recurring_expenses(db, current_user.tenant_id, date.today())
    return ProcessingResponse(
        generated=outcome.generated,
        deactivated=outcome.deactivated,
        reminders=outcome.reminders,
        payable_ids=outcome.payable_ids,
    )


@router.get("/{expense_id}", response_model=RecurringExpenseResponse)
async def get_recurring_expense(
    expense_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = await get_recurring_or_404(db, expense_id, current_user.tenant_id)
    return to_response(expense, date.today())


@router.put("/{expense_id}", response_model=RecurringExpenseResponse)
async def update_recurring_expense(
    expense_id: UUID,
    body: RecurringExpenseUpdate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = await get_recurring_or_404(db, expense_id, current_user.tenant_id)
    for field, value in body.model_dump().items():
        setattr(expense, field, value)

    await db.commit()
    await db.refresh(expense)
    return to_response(expense, date.today())


@router.post("/{expense_id}/toggle", response_model=RecurringExpenseResponse)
async def toggle_recurring_expense(
    expense_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = await get_recurring_or_404(db, expense_id, current_user.tenant_id)
    expense.is_active = not expense.is_active
    await db.commit()
    await db.refresh(expense)
    return to_response(expense, date.today())


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring_expense(
    expense_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.RECURRING_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    expense = await get_recurring_or_404(db, expense_id, current_user.tenant_id)
    await db.delete(expense)
    await db.commit()
