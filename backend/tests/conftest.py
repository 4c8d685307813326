"""Shared fixtures: a signed-in owner and an AsyncSession stand-in."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from bizhub.models.role import PermissionAction
from bizhub.schemas.auth import CurrentUser


def _apply_insert_defaults(obj) -> None:
    """Mimic what a flush + refresh gives back for a freshly added row."""
    if getattr(obj, "id", None) is None:
        obj.id = uuid.uuid4()
    table = getattr(obj, "__table__", None)
    if table is not None:
        for column in table.columns:
            default = column.default
            if default is not None and default.is_scalar and getattr(obj, column.key, None) is None:
                setattr(obj, column.key, default.arg)
    now = datetime.now(timezone.utc)
    for attr in ("created_at", "updated_at"):
        if hasattr(obj, attr) and getattr(obj, attr) is None:
            setattr(obj, attr, now)


@pytest.fixture
def tenant_id():
    return uuid.uuid4()


@pytest.fixture
def current_user(tenant_id):
    return CurrentUser(
        id=uuid.uuid4(),
        email="owner@example.com",
        full_name="Owner",
        role="owner",
        tenant_id=tenant_id,
        permissions=[p.value for p in PermissionAction],
        is_active=True,
    )


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.add = MagicMock()

    async def refresh(obj):
        _apply_insert_defaults(obj)

    db.refresh.side_effect = refresh
    return db


def rows(items):
    """Result whose .scalars().all() yields items."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(items)
    return result


def one(item):
    """Result whose .scalar_one_or_none() yields item."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = item
    return result


def count(n):
    result = MagicMock()
    result.scalar_one.return_value = n
    return result
