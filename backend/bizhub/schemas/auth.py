"""Auth request/response schemas and the signed-in caller."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


# ── Login ──────────────────────────────────────────
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Seconds until the token expires")
    user_id: UUID
    tenant_id: UUID
    role: str
    permissions: list[str]


# ── Register organization owner ────────────────────
class RegisterOwnerRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=20)
    organization_name: str = Field(min_length=1, max_length=255)
    organization_code: str = Field(min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    tpin: str | None = Field(None, max_length=20, description="ZRA taxpayer identification number")
    organization_email: EmailStr | None = Field(None, description="Defaults to the owner's email")
    address: str | None = None


class RegisterOwnerResponse(BaseModel):
    user_id: UUID
    tenant_id: UUID
    access_token: str
    token_type: str = "bearer"
    message: str = "Organization registered successfully"


# ── Token claims ───────────────────────────────────
class TokenClaims(BaseModel):
    """Decoded access-token payload."""
    sub: UUID
    tenant_id: UUID
    role: str
    permissions: list[str] = []
    branch_id: UUID | None = None
    exp: datetime


# ── Current user ───────────────────────────────────
class CurrentUser(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    tenant_id: UUID
    branch_id: UUID | None = None
    permissions: list[str]
    is_active: bool

    def can(self, *actions: str) -> bool:
        return all(action in self.permissions for action in actions)

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "CurrentUser":
        # Profile fields are only filled by /auth/me
        return cls(
            id=claims.sub,
            email="",
            full_name="",
            role=claims.role,
            tenant_id=claims.tenant_id,
            branch_id=claims.branch_id,
            permissions=claims.permissions,
            is_active=True,
        )
