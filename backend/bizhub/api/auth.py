"""Authentication: login, organization sign-up and the caller's profile."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bizhub.core.deps import get_current_user
from bizhub.core.security import create_access_token, hash_password, token_lifetime, verify_password
from bizhub.db.base import get_db
from bizhub.models.role import Role, RolePermission, RoleType
from bizhub.models.tenant import Tenant
from bizhub.models.user import User
from bizhub.schemas.auth import (
    CurrentUser,
    LoginRequest,
    RegisterOwnerRequest,
    RegisterOwnerResponse,
    TokenResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_WITH_PERMISSIONS = selectinload(User.role).selectinload(Role.permissions).selectinload(RolePermission.permission)


def _role_permissions(role: Role) -> list[str]:
    return sorted(rp.permission.action.value for rp in role.permissions)


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Exchange email + password for a tenant-scoped access token."""
    result = await db.execute(select(User).where(User.email == body.email).options(_WITH_PERMISSIONS))
    user = result.scalar_one_or_none()

    if not user or not verify_password(body.password, user.hashed_password):
        logger.info("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated")

    permissions = _role_permissions(user.role)
    token = create_access_token(
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role.name.value,
        permissions=permissions,
        branch_id=user.branch_id,
    )
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()

    return TokenResponse(
        access_token=token,
        expires_in=int(token_lifetime().total_seconds()),
        user_id=user.id,
        tenant_id=user.tenant_id,
        role=user.role.name.value,
        permissions=permissions,
    )


@router.post("/register", response_model=RegisterOwnerResponse, status_code=status.HTTP_201_CREATED)
async def register_owner(body: RegisterOwnerRequest, db: AsyncSession = Depends(get_db)):
    """Create a new organization (tenant) together with its owner account."""
    existing_user = await db.execute(select(User.id).where(User.email == body.email))
    if existing_user.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    existing_tenant = await db.execute(select(Tenant.id).where(Tenant.code == body.organization_code))
    if existing_tenant.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Organization code already taken")

    role_result = await db.execute(
        select(Role)
        .where(Role.name == RoleType.OWNER)
        .options(selectinload(Role.permissions).selectinload(RolePermission.permission))
    )
    owner_role = role_result.scalar_one_or_none()
    if not owner_role:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Roles are not seeded; run bizhub.db.seed_rbac first",
        )

    tenant = Tenant(
        name=body.organization_name,
        code=body.organization_code,
        tpin=body.tpin,
        email=body.organization_email or body.email,
        address=body.address,
        phone=body.phone,
    )
    db.add(tenant)
    await db.flush()

    user = User(
        email=body.email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        phone=body.phone,
        tenant_id=tenant.id,
        role_id=owner_role.id,
    )
    db.add(user)
    await db.flush()
    await db.commit()
    logger.info("Registered organization %s with owner %s", tenant.code, user.email)

    token = create_access_token(
        user_id=user.id,
        tenant_id=tenant.id,
        role=RoleType.OWNER.value,
        permissions=_role_permissions(owner_role),
    )
    return RegisterOwnerResponse(user_id=user.id, tenant_id=tenant.id, access_token=token)


@router.get("/me", response_model=CurrentUser)
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(User)
        .where(User.id == current_user.id, User.tenant_id == current_user.tenant_id)
        .options(_WITH_PERMISSIONS)
    )
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return CurrentUser(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.name.value,
        tenant_id=user.tenant_id,
        branch_id=user.branch_id,
        permissions=_role_permissions(user.role),
        is_active=user.is_active,
    )
