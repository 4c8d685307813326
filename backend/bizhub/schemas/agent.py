"""Agent schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from bizhub.models.agent import AgentStatus, AgentTransactionType


class AgentApplicationCreate(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=255)
    contact_person: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=20)
    province: str = Field(..., min_length=1, max_length=100)
    address: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)


class AgentApplicationResponse(AgentApplicationCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    status: AgentStatus
    review_notes: str | None
    created_at: datetime


class AgentReview(BaseModel):
    approve: bool
    notes: str | None = None


class AgentTransactionCreate(BaseModel):
    agent_id: UUID
    transaction_type: AgentTransactionType = AgentTransactionType.INVOICE
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    invoice_id: UUID | None = None
    notes: str | None = None


class AgentTransactionResponse(AgentTransactionCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    recorded_by: UUID | None
    created_at: datetime


class AgentBalance(BaseModel):
    agent_id: UUID
    business_name: str
    province: str
    balance: Decimal


class AgentSummary(BaseModel):
    agents: list[AgentBalance]
    total_outstanding: Decimal
    province_counts: dict[str, int]
