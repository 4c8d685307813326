"""Payroll runs: preview, draft, approve, pay, statutory provisions."""

import logging
from collections import Counter
from datetime import date
from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.employee import Employee, EmploymentStatus, PayType
from bizhub.models.expense import Expense
from bizhub.models.payable import AccountsPayable
from bizhub.models.payroll import PayrollRecord, PayrollStatus
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.payroll import (
    MONTH_PATTERN,
    PayrollEntry,
    PayrollRunRequest,
    PayslipPreview,
    PayrollPreviewResponse,
    PayrollRecordResponse,
    PayrollRunResponse,
    PayrollListResponse,
    PayrollPayRequest,
    PayrollSummary,
    StatutoryProvisionResult,
)
from bizhub.services.payroll import (
    PayrollTotals,
    Payslip,
    PayslipInput,
    compute_payslip,
    pay_period,
    sum_payslips,
)
from bizhub.services.statutory import build_statutory_payable, get_tax_type, statutory_reference

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll", tags=["payroll"])

SALARIES_CATEGORY = "Salaries & Wages"
ZERO = Decimal("0.00")


def _pick(override: Decimal | None, default: Decimal | None) -> Decimal:
    if override is not None:
        return override
    return default if default is not None else ZERO


def resolve_entry(entry: PayrollEntry, employee: Employee) -> PayslipInput:
    """Fill any rate the entry leaves out from the employee record."""
    return PayslipInput(
        pay_type=entry.pay_type or PayType(employee.pay_type),
        basic_salary=_pick(entry.basic_salary, employee.base_salary),
        hourly_rate=_pick(entry.hourly_rate, employee.hourly_rate),
        daily_rate=_pick(entry.daily_rate, employee.daily_rate),
        shift_rate=_pick(entry.shift_rate, employee.shift_rate),
        hours_worked=entry.hours_worked,
        days_worked=entry.days_worked,
        shifts_worked=entry.shifts_worked,
        allowances=entry.allowances,
        overtime_pay=entry.overtime_pay,
        bonus=entry.bonus,
        loan_deduction=entry.loan_deduction,
        other_deductions=entry.other_deductions,
    )


async def load_employees(
    db: AsyncSession, tenant_id: UUID, entries: list[PayrollEntry]
) -> dict[UUID, Employee]:
    """Active employees for the entries, keyed by id. 400/404 on bad input."""
    if not entries:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No payroll entries given")

    ids = [entry.employee_id for entry in entries]
    if len(set(ids)) != len(ids):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An employee appears more than once in the run",
        )

    result = await db.execute(
        select(Employee).where(
            Employee.tenant_id == tenant_id,
            Employee.id.in_(ids),
            Employee.employment_status == EmploymentStatus.ACTIVE,
        )
    )
    employees = {employee.id: employee for employee in result.scalars().all()}

    missing = [str(employee_id) for employee_id in ids if employee_id not in employees]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Active employee not found: {', '.join(missing)}",
        )
    return employees


def build_record(
    tenant_id: UUID,
    entry: PayslipInput,
    slip: Payslip,
    employee_id: UUID,
    period_start: date,
    period_end: date,
    notes: str | None = None,
) -> PayrollRecord:
    is_shift = slip.pay_type == PayType.PER_SHIFT
    return PayrollRecord(
        tenant_id=tenant_id,
        employee_id=employee_id,
        pay_period_start=period_start,
        pay_period_end=period_end,
        pay_type=slip.pay_type.value,
        status=PayrollStatus.DRAFT,
        basic_salary=ZERO if is_shift else slip.base_pay,
        shift_pay=slip.base_pay if is_shift else ZERO,
        hours_worked=entry.hours_worked,
        days_worked=entry.days_worked,
        shifts_worked=entry.shifts_worked,
        rate=slip.rate,
        allowances=entry.allowances,
        overtime_pay=entry.overtime_pay,
        bonus=entry.bonus,
        gross_pay=slip.gross_pay,
        napsa_deduction=slip.napsa,
        nhima_deduction=slip.nhima,
        paye_deduction=slip.paye,
        loan_deduction=slip.loan_deduction,
        other_deductions=slip.other_deductions,
        total_deductions=slip.total_deductions,
        net_pay=slip.net_pay,
        employer_napsa=slip.employer_napsa,
        employer_nhima=slip.employer_nhima,
        notes=notes,
    )


def totals_from_records(records: list[PayrollRecord]) -> PayrollTotals:
    totals = PayrollTotals()
    for record in records:
        totals.gross += record.gross_pay
        totals.napsa += record.napsa_deduction
        totals.nhima += record.nhima_deduction
        totals.paye += record.paye_deduction
        totals.deductions += record.total_deductions
        totals.net += record.net_pay
        totals.employer_napsa += record.employer_napsa
        totals.employer_nhima += record.employer_nhima
    return totals


def _period_or_400(month: str) -> tuple[date, date]:
    try:
        return pay_period(month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


async def _records_for_month(db: AsyncSession, tenant_id: UUID, month: str) -> list[PayrollRecord]:
    start, _ = _period_or_400(month)
    result = await db.execute(
        select(PayrollRecord)
        .where(PayrollRecord.tenant_id == tenant_id, PayrollRecord.pay_period_start == start)
        .order_by(PayrollRecord.created_at)
    )
    return list(result.scalars().all())


async def get_record_or_404(db: AsyncSession, record_id: UUID, tenant_id: UUID) -> PayrollRecord:
    result = await db.execute(
        select(PayrollRecord)
        .where(PayrollRecord.id == record_id, PayrollRecord.tenant_id == tenant_id)
        .options(selectinload(PayrollRecord.employee))
    )
    record = result.scalar_one_or_none()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payroll record not found")
    return record


@router.post("/preview", response_model=PayrollPreviewResponse)
async def preview_payroll(
    body: PayrollRunRequest,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_RUN.value)),
    db: AsyncSession = Depends(get_db),
):
    """Price every entry without saving anything."""
    start, end = _period_or_400(body.month)
    employees = await load_employees(db, current_user.tenant_id, body.entries)

    items = []
    for entry in body.entries:
        employee = employees[entry.employee_id]
        slip = compute_payslip(resolve_entry(entry, employee))
        items.append(PayslipPreview(employee_id=employee.id, employee_name=employee.full_name, payslip=slip))

    return PayrollPreviewResponse(
        month=body.month,
        pay_period_start=start,
        pay_period_end=end,
        items=items,
        totals=sum_payslips([item.payslip for item in items]),
    )


@router.post("/runs", response_model=PayrollRunResponse, status_code=status.HTTP_201_CREATED)
async def create_payroll_run(
    body: PayrollRunRequest,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_RUN.value)),
    db: AsyncSession = Depends(get_db),
):
    """Create one draft record per entry for the month."""
    start, end = _period_or_400(body.month)
    employees = await load_employees(db, current_user.tenant_id, body.entries)

    existing = await db.execute(
        select(PayrollRecord.employee_id).where(
            PayrollRecord.tenant_id == current_user.tenant_id,
            PayrollRecord.pay_period_start == start,
            PayrollRecord.employee_id.in_(list(employees)),
        )
    )
    duplicates = existing.scalars().all()
    if duplicates:
        names = ", ".join(employees[employee_id].full_name for employee_id in duplicates)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Payroll for {body.month} already exists for: {names}",
        )

    records = []
    slips = []
    for entry in body.entries:
        payslip_input = resolve_entry(entry, employees[entry.employee_id])
        slip = compute_payslip(payslip_input)
        record = build_record(
            current_user.tenant_id, payslip_input, slip, entry.employee_id, start, end, body.notes
        )
        db.add(record)
        records.append(record)
        slips.append(slip)

    await db.commit()
    for record in records:
        await db.refresh(record)

    logger.info("Payroll run %s created for tenant %s: %d records", body.month, current_user.tenant_id, len(records))
    return PayrollRunResponse(
        month=body.month,
        items=[PayrollRecordResponse.model_validate(record) for record in records],
        totals=sum_payslips(slips),
    )


@router.get("", response_model=PayrollListResponse)
async def list_payroll(
    month: str = Query(..., pattern=MONTH_PATTERN),
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    records = await _records_for_month(db, current_user.tenant_id, month)
    return PayrollListResponse(
        month=month,
        items=[PayrollRecordResponse.model_validate(record) for record in records],
        total=len(records),
    )


@router.get("/summary", response_model=PayrollSummary)
async def payroll_summary(
    month: str = Query(..., pattern=MONTH_PATTERN),
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    records = await _records_for_month(db, current_user.tenant_id, month)
    counts = Counter(PayrollStatus(record.status).value for record in records)
    return PayrollSummary(
        month=month,
        record_count=len(records),
        status_counts=dict(counts),
        totals=totals_from_records(records),
    )


@router.post("/statutory-provisions", response_model=StatutoryProvisionResult, status_code=status.HTTP_201_CREATED)
async def create_statutory_provisions(
    month: str = Query(..., pattern=MONTH_PATTERN),
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYABLE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    """Raise PAYE, NAPSA and NHIMA payables for the month's payroll."""
    records = await _records_for_month(db, current_user.tenant_id, month)
    if not records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"No payroll records for {month}",
        )

    totals = totals_from_records(records)
    amounts = {
        "paye": totals.paye,
        "napsa": totals.napsa + totals.employer_napsa,
        "nhima": totals.nhima + totals.employer_nhima,
    }

    references = [statutory_reference(key, month) for key in amounts]
    result = await db.execute(
        select(AccountsPayable.invoice_reference).where(
            AccountsPayable.tenant_id == current_user.tenant_id,
            AccountsPayable.invoice_reference.in_(references),
        )
    )
    existing = set(result.scalars().all())

    created, skipped = [], []
    for key, amount in amounts.items():
        reference = statutory_reference(key, month)
        if reference in existing or amount <= 0:
            skipped.append(reference)
            continue
        db.add(build_statutory_payable(
            current_user.tenant_id,
            get_tax_type(key),
            amount,
            month,
            notes=f"Payroll provision for {month}",
            recorded_by=current_user.id,
        ))
        created.append(reference)

    await db.commit()
    logger.info("Statutory provisions for %s: created %s, skipped %s", month, created, skipped)
    return StatutoryProvisionResult(month=month, created=created, skipped=skipped)


@router.post("/{record_id}/approve", response_model=PayrollRecordResponse)
async def approve_payroll(
    record_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_APPROVE.value)),
    db: AsyncSession = Depends(get_db),
):
    record = await get_record_or_404(db, record_id, current_user.tenant_id)
    if record.status != PayrollStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot approve a payroll record in status '{PayrollStatus(record.status).value}'",
        )

    record.status = PayrollStatus.APPROVED
    record.approved_by = current_user.id
    await db.commit()
    await db.refresh(record)
    return record


@router.post("/{record_id}/pay", response_model=PayrollRecordResponse)
async def pay_payroll(
    record_id: UUID,
    body: PayrollPayRequest,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.PAYROLL_PAY.value)),
    db: AsyncSession = Depends(get_db),
):
    """Mark an approved record paid and book the net pay as an expense."""
    record = await get_record_or_404(db, record_id, current_user.tenant_id)
    if record.status != PayrollStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only approved payroll can be paid (status '{PayrollStatus(record.status).value}')",
        )

    paid_date = body.paid_date or date.today()
    record.status = PayrollStatus.PAID
    record.paid_date = paid_date
    record.payment_method = body.payment_method
    record.payment_reference = body.payment_reference

    period = record.pay_period_start.strftime("%Y-%m")
    db.add(Expense(
        tenant_id=current_user.tenant_id,
        date_incurred=paid_date,
        category=SALARIES_CATEGORY,
        amount=record.net_pay,
        vendor_name=record.employee.full_name,
        notes=f"Payroll {period}",
        recorded_by=current_user.id,
    ))

    await db.commit()
    await db.refresh(record)
    logger.info("Payroll %s paid: %s", record.id, record.net_pay)
    return record
