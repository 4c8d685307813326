"""Unit tests for branch inventory and stock transfers."""

import uuid

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from bizhub.models.alert import AdminAlert, AlertType
from bizhub.models.branch import Branch
from bizhub.models.inventory import BranchInventory
from bizhub.models.product import Product
from bizhub.models.role import PermissionAction
from bizhub.models.stock_transfer import StockTransfer, TransferStatus
from bizhub.schemas.auth import CurrentUser
from bizhub.schemas.inventory import InventoryAdjustment, StockTransferCreate, StockTransferReject
from conftest import rows, one, count


def make_inventory(tenant_id, quantity=100, threshold=10, **overrides):
    values = dict(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        branch_id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        quantity=quantity,
        low_stock_threshold=threshold,
        reorder_quantity=50,
    )
    values.update(overrides)
    return BranchInventory(**values)


def make_transfer(tenant_id, status=TransferStatus.IN_TRANSIT, quantity=20):
    return StockTransfer(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        from_branch_id=uuid.uuid4(),
        to_branch_id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        quantity=quantity,
        status=status,
    )


def make_branch(tenant_id):
    return Branch(id=uuid.uuid4(), tenant_id=tenant_id, name="Lusaka Central", code="LSK", is_active=True)


def make_product(tenant_id, name="Cooking Oil 2L"):
    return Product(id=uuid.uuid4(), tenant_id=tenant_id, name=name, sku="OIL-2L", unit_price=85, is_active=True)


def added(mock_db, kind):
    return [c.args[0] for c in mock_db.add.call_args_list if isinstance(c.args[0], kind)]


# ── Inventory model properties ──────────────────────

def test_inventory_is_low_stock_property(tenant_id):
    """Inventory.is_low_stock should return True when quantity <= threshold."""
    inventory = make_inventory(tenant_id, quantity=5)
    assert inventory.is_low_stock is True

    inventory.quantity = 15
    assert inventory.is_low_stock is False

    inventory.quantity = 10  # exactly at threshold
    assert inventory.is_low_stock is True


# ── Inventory list ─────────────────────────────────

@pytest.mark.asyncio
async def test_list_inventory_paginates(current_user, mock_db):
    from bizhub.api.inventory import list_inventory

    inventory = make_inventory(current_user.tenant_id)
    stamp = mock_db.refresh.side_effect
    await stamp(inventory)
    mock_db.execute.side_effect = [count(1), rows([inventory])]

    result = await list_inventory(
        page=1,
        size=50,
        branch_id=None,
        low_stock_only=False,
        search=None,
        current_user=current_user,
        db=mock_db,
    )

    assert result.total == 1
    assert result.items[0].quantity == 100
    assert mock_db.execute.call_count == 2


# ── Adjustments ────────────────────────────────────

@pytest.mark.asyncio
async def test_adjust_inventory_stock_in(current_user, mock_db):
    from bizhub.api.inventory import adjust_inventory

    inventory = make_inventory(current_user.tenant_id, quantity=100)
    mock_db.execute.return_value = one(inventory)

    result = await adjust_inventory(
        inventory_id=inventory.id,
        adjustment=InventoryAdjustment(quantity_delta=25, reason="purchase"),
        current_user=current_user,
        db=mock_db,
    )

    assert result.quantity == 125
    assert added(mock_db, AdminAlert) == []
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_adjust_inventory_stock_out(current_user, mock_db):
    from bizhub.api.inventory import adjust_inventory

    inventory = make_inventory(current_user.tenant_id, quantity=100)
    mock_db.execute.return_value = one(inventory)

    result = await adjust_inventory(
        inventory_id=inventory.id,
        adjustment=InventoryAdjustment(quantity_delta=-30, reason="sale"),
        current_user=current_user,
        db=mock_db,
    )

    assert result.quantity == 70


@pytest.mark.asyncio
async def test_adjust_inventory_insufficient_stock(current_user, mock_db):
    """Stock out beyond what is on hand is refused and nothing is committed."""
    from bizhub.api.inventory import adjust_inventory

    inventory = make_inventory(current_user.tenant_id, quantity=10)
    mock_db.execute.return_value = one(inventory)

    with pytest.raises(HTTPException) as exc:
        await adjust_inventory(
            inventory_id=inventory.id,
            adjustment=InventoryAdjustment(quantity_delta=-20, reason="sale"),
            current_user=current_user,
            db=mock_db,
        )

    assert exc.value.status_code == 400
    assert "Insufficient stock" in exc.value.detail
    assert inventory.quantity == 10
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_adjust_inventory_raises_low_stock_alert(current_user, mock_db):
    from bizhub.api.inventory import adjust_inventory

    inventory = make_inventory(current_user.tenant_id, quantity=15, threshold=10)
    product = make_product(current_user.tenant_id)
    mock_db.execute.side_effect = [one(inventory), one(product)]

    await adjust_inventory(
        inventory_id=inventory.id,
        adjustment=InventoryAdjustment(quantity_delta=-8, reason="sale"),
        current_user=current_user,
        db=mock_db,
    )

    alerts = added(mock_db, AdminAlert)
    assert len(alerts) == 1
    assert alerts[0].alert_type == AlertType.LOW_STOCK
    assert "Cooking Oil 2L has 7 left" in alerts[0].message
    assert alerts[0].related_id == inventory.id


@pytest.mark.asyncio
async def test_adjust_already_low_does_not_alert_again(current_user, mock_db):
    from bizhub.api.inventory import adjust_inventory

    inventory = make_inventory(current_user.tenant_id, quantity=5, threshold=10)
    mock_db.execute.return_value = one(inventory)

    await adjust_inventory(
        inventory_id=inventory.id,
        adjustment=InventoryAdjustment(quantity_delta=-1, reason="damage"),
        current_user=current_user,
        db=mock_db,
    )

    assert added(mock_db, AdminAlert) == []


def test_adjustment_reason_validated():
    with pytest.raises(ValidationError):
        InventoryAdjustment(quantity_delta=1, reason="theft")


@pytest.mark.asyncio
async def test_create_inventory_duplicate(current_user, mock_db):
    from bizhub.api.inventory import create_inventory
    from bizhub.schemas.inventory import InventoryCreate

    branch = make_branch(current_user.tenant_id)
    product = make_product(current_user.tenant_id)
    existing = make_inventory(current_user.tenant_id, branch_id=branch.id, product_id=product.id)
    mock_db.execute.side_effect = [one(branch), one(product), one(existing)]

    with pytest.raises(HTTPException) as exc:
        await create_inventory(
            body=InventoryCreate(branch_id=branch.id, product_id=product.id, quantity=5),
            current_user=current_user,
            db=mock_db,
        )
    assert exc.value.status_code == 409


# ── Stock transfers ────────────────────────────────

def test_transfer_requires_distinct_branches():
    branch_id = uuid.uuid4()
    with pytest.raises(ValidationError):
        StockTransferCreate(from_branch_id=branch_id, to_branch_id=branch_id, product_id=uuid.uuid4(), quantity=5)


def test_transfer_quantity_positive():
    with pytest.raises(ValidationError):
        StockTransferCreate(
            from_branch_id=uuid.uuid4(), to_branch_id=uuid.uuid4(), product_id=uuid.uuid4(), quantity=0
        )


@pytest.mark.asyncio
async def test_create_transfer_by_approver_goes_in_transit(current_user, mock_db):
    from bizhub.api.stock_transfers import create_transfer

    source, destination = make_branch(current_user.tenant_id), make_branch(current_user.tenant_id)
    product = make_product(current_user.tenant_id)
    mock_db.execute.side_effect = [one(source), one(destination), one(product)]

    result = await create_transfer(
        body=StockTransferCreate(
            from_branch_id=source.id, to_branch_id=destination.id, product_id=product.id, quantity=12
        ),
        current_user=current_user,
        db=mock_db,
    )

    assert result.status == TransferStatus.IN_TRANSIT
    assert result.approved_by == current_user.id
    assert result.approved_at is not None
    assert result.requested_by == current_user.id


@pytest.mark.asyncio
async def test_create_transfer_by_staff_is_pending(current_user, mock_db):
    from bizhub.api.stock_transfers import create_transfer

    staff = CurrentUser(
        **current_user.model_dump(exclude={"permissions", "role"}),
        role="staff",
        permissions=[PermissionAction.INVENTORY_READ.value, PermissionAction.TRANSFER_CREATE.value],
    )
    source, destination = make_branch(staff.tenant_id), make_branch(staff.tenant_id)
    product = make_product(staff.tenant_id)
    mock_db.execute.side_effect = [one(source), one(destination), one(product)]

    result = await create_transfer(
        body=StockTransferCreate(
            from_branch_id=source.id, to_branch_id=destination.id, product_id=product.id, quantity=12
        ),
        current_user=staff,
        db=mock_db,
    )

    assert result.status == TransferStatus.PENDING
    assert result.approved_by is None


@pytest.mark.asyncio
async def test_approve_pending_transfer(current_user, mock_db):
    from bizhub.api.stock_transfers import approve_transfer

    transfer = make_transfer(current_user.tenant_id, status=TransferStatus.PENDING)
    mock_db.execute.return_value = one(transfer)

    result = await approve_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)

    assert result.status == TransferStatus.IN_TRANSIT
    assert result.approved_by == current_user.id


@pytest.mark.asyncio
async def test_reject_pending_transfer_records_reason(current_user, mock_db):
    from bizhub.api.stock_transfers import reject_transfer

    transfer = make_transfer(current_user.tenant_id, status=TransferStatus.PENDING)
    mock_db.execute.return_value = one(transfer)

    result = await reject_transfer(
        transfer_id=transfer.id,
        body=StockTransferReject(reason="Branch is overstocked"),
        current_user=current_user,
        db=mock_db,
    )

    assert result.status == TransferStatus.REJECTED
    assert result.rejection_reason == "Branch is overstocked"


@pytest.mark.asyncio
@pytest.mark.parametrize("state", [TransferStatus.COMPLETED, TransferStatus.REJECTED, TransferStatus.CANCELLED])
async def test_cancel_closed_transfer_conflicts(current_user, mock_db, state):
    from bizhub.api.stock_transfers import cancel_transfer

    transfer = make_transfer(current_user.tenant_id, status=state)
    mock_db.execute.return_value = one(transfer)

    with pytest.raises(HTTPException) as exc:
        await cancel_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_cancel_in_transit_transfer(current_user, mock_db):
    from bizhub.api.stock_transfers import cancel_transfer

    transfer = make_transfer(current_user.tenant_id, status=TransferStatus.IN_TRANSIT)
    mock_db.execute.return_value = one(transfer)

    result = await cancel_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)
    assert result.status == TransferStatus.CANCELLED


@pytest.mark.asyncio
async def test_complete_pending_transfer_conflicts(current_user, mock_db):
    from bizhub.api.stock_transfers import complete_transfer

    transfer = make_transfer(current_user.tenant_id, status=TransferStatus.PENDING)
    mock_db.execute.return_value = one(transfer)

    with pytest.raises(HTTPException) as exc:
        await complete_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_complete_transfer_moves_stock(current_user, mock_db):
    from bizhub.api.stock_transfers import complete_transfer

    transfer = make_transfer(current_user.tenant_id, quantity=20)
    source = make_inventory(current_user.tenant_id, quantity=50)
    destination = make_inventory(current_user.tenant_id, quantity=5)
    mock_db.execute.side_effect = [one(transfer), one(source), one(destination)]

    result = await complete_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)

    assert result.status == TransferStatus.COMPLETED
    assert result.completed_at is not None
    assert source.quantity == 30
    assert destination.quantity == 25
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_complete_transfer_creates_destination_row(current_user, mock_db):
    from bizhub.api.stock_transfers import complete_transfer

    transfer = make_transfer(current_user.tenant_id, quantity=20)
    source = make_inventory(current_user.tenant_id, quantity=50, threshold=7)
    mock_db.execute.side_effect = [one(transfer), one(source), one(None)]

    await complete_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)

    created = added(mock_db, BranchInventory)
    assert len(created) == 1
    assert created[0].branch_id == transfer.to_branch_id
    assert created[0].quantity == 20
    assert created[0].low_stock_threshold == 7
    assert source.quantity == 30


@pytest.mark.asyncio
async def test_complete_transfer_insufficient_source_stock(current_user, mock_db):
    from bizhub.api.stock_transfers import complete_transfer

    transfer = make_transfer(current_user.tenant_id, quantity=20)
    source = make_inventory(current_user.tenant_id, quantity=5)
    mock_db.execute.side_effect = [one(transfer), one(source)]

    with pytest.raises(HTTPException) as exc:
        await complete_transfer(transfer_id=transfer.id, current_user=current_user, db=mock_db)

    assert exc.value.status_code == 400
    assert transfer.status == TransferStatus.IN_TRANSIT
    assert source.quantity == 5
    mock_db.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_list_transfers_counts_statuses(current_user, mock_db):
    from bizhub.api.stock_transfers import list_transfers

    transfers = [
        make_transfer(current_user.tenant_id, status=TransferStatus.PENDING),
        make_transfer(current_user.tenant_id, status=TransferStatus.PENDING),
        make_transfer(current_user.tenant_id, status=TransferStatus.COMPLETED),
    ]
    for transfer in transfers:
        await mock_db.refresh.side_effect(transfer)
    mock_db.execute.return_value = rows(transfers)

    result = await list_transfers(
        status_filter=TransferStatus.PENDING,
        branch_id=None,
        current_user=current_user,
        db=mock_db,
    )

    assert result.total == 2
    assert result.status_counts == {"pending": 2, "completed": 1}
