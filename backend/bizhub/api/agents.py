"""Distribution agents: applications, review and ledger."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizhub.core.deps import require_permission
from bizhub.db.base import get_db
from bizhub.models.agent import AgentApplication, AgentStatus, AgentTransaction
from bizhub.models.role import PermissionAction
from bizhub.schemas.agent import (
    AgentApplicationCreate,
    AgentApplicationResponse,
    AgentReview,
    AgentTransactionCreate,
    AgentTransactionResponse,
    AgentBalance,
    AgentSummary,
)
from bizhub.schemas.auth import CurrentUser
from bizhub.services.agents import agent_balances, province_counts, total_outstanding

router = APIRouter(prefix="/agents", tags=["agents"])


async def get_agent_or_404(db: AsyncSession, agent_id: UUID, tenant_id: UUID) -> AgentApplication:
    result = await db.execute(
        select(AgentApplication).where(
            AgentApplication.id == agent_id,
            AgentApplication.tenant_id == tenant_id,
        )
    )
    agent = result.scalar_one_or_none()
    if not agent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Agent not found")
    return agent


@router.get("", response_model=list[AgentApplicationResponse])
async def list_agents(
    status_filter: AgentStatus | None = Query(None, alias="status"),
    province: str | None = None,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    query = select(AgentApplication).where(AgentApplication.tenant_id == current_user.tenant_id)
    if status_filter is not None:
        query = query.where(AgentApplication.status == status_filter)
    if province:
        query = query.where(AgentApplication.province == province)
    result = await db.execute(query.order_by(AgentApplication.created_at.desc()))
    return result.scalars().all()


@router.post("", response_model=AgentApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    body: AgentApplicationCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    agent = AgentApplication(
        **body.model_dump(),
        tenant_id=current_user.tenant_id,
        status=AgentStatus.PENDING,
    )
    db.add(agent)
    await db.commit()
    await db.refresh(agent)
    return agent


@router.get("/summary", response_model=AgentSummary)
async def agents_summary(
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    """Balances of approved agents, total owed and the spread across provinces."""
    result = await db.execute(
        select(AgentApplication).where(
            AgentApplication.tenant_id == current_user.tenant_id,
            AgentApplication.status == AgentStatus.APPROVED,
        )
    )
    agents = list(result.scalars().all())

    result = await db.execute(
        select(AgentTransaction).where(AgentTransaction.tenant_id == current_user.tenant_id)
    )
    balances = agent_balances(list(result.scalars().all()))

    return AgentSummary(
        agents=[
            AgentBalance(
                agent_id=agent.id,
                business_name=agent.business_name,
                province=agent.province,
                balance=balances.get(agent.id, Decimal("0.00")),
            )
            for agent in agents
        ],
        total_outstanding=total_outstanding(agents, balances),
        province_counts=province_counts(agents),
    )


@router.post("/transactions", response_model=AgentTransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_transaction(
    body: AgentTransactionCreate,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_TRANSACT.value)),
    db: AsyncSession = Depends(get_db),
):
    agent = await get_agent_or_404(db, body.agent_id, current_user.tenant_id)
    if agent.status != AgentStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Only approved agents can transact",
        )

    transaction = AgentTransaction(
        **body.model_dump(),
        tenant_id=current_user.tenant_id,
        recorded_by=current_user.id,
    )
    db.add(transaction)
    await db.commit()
    await db.refresh(transaction)
    return transaction


@router.get("/{agent_id}/transactions", response_model=list[AgentTransactionResponse])
async def list_agent_transactions(
    agent_id: UUID,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_READ.value)),
    db: AsyncSession = Depends(get_db),
):
    await get_agent_or_404(db, agent_id, current_user.tenant_id)
    result = await db.execute(
        select(AgentTransaction)
        .where(
            AgentTransaction.tenant_id == current_user.tenant_id,
            AgentTransaction.agent_id == agent_id,
        )
        .order_by(AgentTransaction.created_at.desc())
    )
    return result.scalars().all()


@router.post("/{agent_id}/review", response_model=AgentApplicationResponse)
async def review_application(
    agent_id: UUID,
    body: AgentReview,
    current_user: CurrentUser = Depends(require_permission(PermissionAction.AGENT_MANAGE.value)),
    db: AsyncSession = Depends(get_db),
):
    agent = await get_agent_or_404(db, agent_id, current_user.tenant_id)
    if agent.status != AgentStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Application already {AgentStatus(agent.status).value}",
        )

    agent.status = AgentStatus.APPROVED if body.approve else AgentStatus.REJECTED
    agent.review_notes = body.notes
    agent.reviewed_by = current_user.id
    await db.commit()
    await db.refresh(agent)
    return agent
