"""Employee records."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.api.filters import search_filter
from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.employee import Employee, EmploymentStatus
from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.employee import (
    EmployeeCreate,
    EmployeeUpdate,
    EmployeeTerminate,
    EmployeeResponse,
    EmployeeListResponse,
)

router = APIRouter(prefix="/employees", tags=["employees"])


async def get_employee_or_404(db: AsyncSession, employee_id: UUID, tenant_id: UUID) -> Employee:
    result = await db.execute(
        select(Employee).where(Employee.id == employee_id, Employee.tenant_id == tenant_id)
    )
    employee = result.scalar_one_or_none()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=100),
    employment_status: EmploymentStatus | None = None,
    search: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EMPLOYEE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(Employee).where(Employee.tenant_id == current_user.tenant_id)
    if employment_status is not None:
        query = query.where(Employee.employment_status == employment_status)
    if search:
        query = query.where(search_filter(search, Employee.full_name))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    result = await db.execute(
        query.order_by(Employee.full_name).offset((page - 1) * size).limit(size)
    )
    return EmployeeListResponse(
        items=result.scalars().all(),
        total=total,
        page=page,
        size=size,
    )


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EMPLOYEE_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    return await get_employee_or_404(db, employee_id, current_user.tenant_id)


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    body: EmployeeCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EMPLOYEE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    employee = Employee(**body.model_dump(), tenant_id=current_user.tenant_id)
    db.add(employee)
    await db.commit()
    await db.refresh(employee)
    return employee


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: UUID,
    body: EmployeeUpdate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EMPLOYEE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    employee = await get_employee_or_404(db, employee_id, current_user.tenant_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(employee, field, value)

    await db.commit()
    await db.refresh(employee)
    return employee


@router.post("/{employee_id}/terminate", response_model=EmployeeResponse)
async def terminate_employee(
    employee_id: UUID,
    body: EmployeeTerminate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.EMPLOYEE_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    employee = await get_employee_or_404(db, employee_id, current_user.tenant_id)
    if employee.employment_status == EmploymentStatus.TERMINATED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee already terminated")
    if body.termination_date < employee.hire_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Termination date is before the hire date",
        )

    employee.employment_status = EmploymentStatus.TERMINATED
    employee.termination_date = body.termination_date
    if body.notes:
        employee.notes = body.notes

    await db.commit()
    await db.refresh(employee)
    return employee
