"""Seed default roles and permissions.

RBAC Matrix:
┌─────────────────────┬───────┬─────────┬────────────┬───────┐
│ Permission          │ Owner │ Manager │ Accountant │ Staff │
├─────────────────────┼───────┼─────────┼────────────┼───────┤
│ employee:read       │  ✓    │   ✓     │     ✓      │       │
│ employee:manage     │  ✓    │   ✓     │            │       │
│ payroll:read        │  ✓    │   ✓     │     ✓      │       │
│ payroll:run         │  ✓    │   ✓     │     ✓      │       │
│ payroll:approve     │  ✓    │         │            │       │
│ payroll:pay         │  ✓    │         │     ✓      │       │
│ expense:read        │  ✓    │   ✓     │     ✓      │       │
│ expense:create      │  ✓    │   ✓     │     ✓      │       │
│ recurring:read      │  ✓    │   ✓     │     ✓      │       │
│ recurring:manage    │  ✓    │         │     ✓      │       │
│ payable:read        │  ✓    │   ✓     │     ✓      │       │
│ payable:manage      │  ✓    │         │     ✓      │       │
│ payable:pay         │  ✓    │         │     ✓      │       │
│ invoice:read        │  ✓    │   ✓     │     ✓      │       │
│ invoice:manage      │  ✓    │   ✓     │     ✓      │       │
│ receivable:remind   │  ✓    │   ✓     │     ✓      │       │
│ branch:manage       │  ✓    │         │            │       │
│ inventory:read      │  ✓    │   ✓     │            │   ✓   │
│ inventory:adjust    │  ✓    │   ✓     │            │       │
│ transfer:create     │  ✓    │   ✓     │            │   ✓   │
│ transfer:approve    │  ✓    │   ✓     │            │       │
│ agent:read          │  ✓    │   ✓     │            │   ✓   │
│ agent:manage        │  ✓    │   ✓     │            │       │
│ agent:transact      │  ✓    │   ✓     │            │       │
│ sales:read          │  ✓    │   ✓     │     ✓      │   ✓   │
│ sales:record        │  ✓    │   ✓     │            │   ✓   │
│ alert:read          │  ✓    │   ✓     │     ✓      │   ✓   │
└─────────────────────┴───────┴─────────┴────────────┴───────┘
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.models.role import Permission, PermissionAction, Role, RolePermission, RoleType

logger = logging.getLogger(__name__)

_STAFF = [
    PermissionAction.INVENTORY_READ,
    PermissionAction.TRANSFER_CREATE,
    PermissionAction.AGENT_READ,
    PermissionAction.SALES_READ,
    PermissionAction.SALES_RECORD,
    PermissionAction.ALERT_READ,
]

ROLE_PERMISSIONS: dict[RoleType, list[PermissionAction]] = {
    RoleType.OWNER: list(PermissionAction),  # All permissions
    RoleType.MANAGER: _STAFF + [
        PermissionAction.EMPLOYEE_READ,
        PermissionAction.EMPLOYEE_MANAGE,
        PermissionAction.PAYROLL_READ,
        PermissionAction.PAYROLL_RUN,
        PermissionAction.EXPENSE_READ,
        PermissionAction.EXPENSE_CREATE,
        PermissionAction.RECURRING_READ,
        PermissionAction.PAYABLE_READ,
        PermissionAction.INVOICE_READ,
        PermissionAction.INVOICE_MANAGE,
        PermissionAction.RECEIVABLE_REMIND,
        PermissionAction.INVENTORY_ADJUST,
        PermissionAction.TRANSFER_APPROVE,
        PermissionAction.AGENT_MANAGE,
        PermissionAction.AGENT_TRANSACT,
    ],
    RoleType.ACCOUNTANT: [
        PermissionAction.EMPLOYEE_READ,
        PermissionAction.PAYROLL_READ,
        PermissionAction.PAYROLL_RUN,
        PermissionAction.PAYROLL_PAY,
        PermissionAction.EXPENSE_READ,
        PermissionAction.EXPENSE_CREATE,
        PermissionAction.RECURRING_READ,
        PermissionAction.RECURRING_MANAGE,
        PermissionAction.PAYABLE_READ,
        PermissionAction.PAYABLE_MANAGE,
        PermissionAction.PAYABLE_PAY,
        PermissionAction.INVOICE_READ,
        PermissionAction.INVOICE_MANAGE,
        PermissionAction.RECEIVABLE_REMIND,
        PermissionAction.SALES_READ,
        PermissionAction.ALERT_READ,
    ],
    RoleType.STAFF: _STAFF,
}


async def seed_rbac(db: AsyncSession) -> None:
    """Create any missing permissions, roles and role grants. Safe to re-run."""
    result = await db.execute(select(Permission))
    permissions = {p.action: p for p in result.scalars().all()}
    for action in PermissionAction:
        if action not in permissions:
            permissions[action] = Permission(action=action, description=action.value)
            db.add(permissions[action])

    result = await db.execute(select(Role))
    roles = {r.name: r for r in result.scalars().all()}
    await db.flush()

    for role_type, actions in ROLE_PERMISSIONS.items():
        role = roles.get(role_type)
        if role is None:
            role = Role(name=role_type, description=f"{role_type.value.title()} role")
            db.add(role)
            await db.flush()
            granted = set()
        else:
            granted = {rp.permission_id for rp in role.permissions}

        for action in actions:
            permission = permissions[action]
            if permission.id not in granted:
                db.add(RolePermission(role_id=role.id, permission_id=permission.id))

    await db.commit()
    logger.info("RBAC seeded: %d roles, %d permissions", len(ROLE_PERMISSIONS), len(permissions))
