"""Password hashing and access tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

from jose import jwt
from passlib.context import CryptContext

from bizhub.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def token_lifetime() -> timedelta:
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(
    user_id: UUID,
    tenant_id: UUID,
    role: str,
    permissions: list[str],
    branch_id: UUID | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token scoping the caller to one tenant and its role's permissions."""
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "tenant_id": str(tenant_id),
        "role": role,
        "permissions": sorted(permissions),
        "iat": issued_at,
        "exp": issued_at + (expires_delta or token_lifetime()),
    }
    if branch_id is not None:
        claims["branch_id"] = str(branch_id)
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry. Raises JWTError on failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
