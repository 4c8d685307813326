"""Admin alerts."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.alert import AdminAlert
from bizhub.models.role import PermissionAction
from bizhub.schemas.alert import AlertResponse, AlertListResponse
from bizhub.schemas.auth import CurrentUser

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=AlertListResponse)
async def list_alerts(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current_user: CurrentUser = Depends(require_permission(PermissionAction.ALERT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(AdminAlert).where(AdminAlert.tenant_id == current_user.tenant_id)
    if unread_only:
        query = query.where(AdminAlert.is_read == False)  # noqa: E712
    result = await db.execute(query.order_by(AdminAlert.created_at.desc()).limit(limit))
    items = result.scalars().all()

    unread = (await db.execute(
        select(func.count(AdminAlert.id)).where(
            AdminAlert.tenant_id == current_user.tenant_id,
            AdminAlert.is_read == False,  # noqa: E712
        )
    )).scalar_one()
    return AlertListResponse(items=items, total=len(items), unread=unread)


@router.post("/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_read(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.ALERT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    await db.execute(
        update(AdminAlert)
        .where(AdminAlert.tenant_id == current_user.tenant_id, AdminAlert.is_read == False)  # noqa: E712
        .values(is_read=True)
    )
    await db.commit()


@router.post("/{alert_id}/read", response_model=AlertResponse)
async def mark_read(
    alert_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.ALERT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(AdminAlert).where(AdminAlert.id == alert_id, AdminAlert.tenant_id == current_user.tenant_id)
    )
    alert = result.scalar_one_or_none()
    if not alert:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alert not found")

    alert.is_read = True
    await db.commit()
    await db.refresh(alert)
    return alert
