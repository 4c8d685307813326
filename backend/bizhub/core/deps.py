"""Request dependencies: the signed-in caller and RBAC checks."""

import logging
from enum import Enum

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from pydantic import ValidationError

from bizhub.core.security import decode_access_token
from bizhub.schemas.auth import CurrentUser, TokenClaims

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Caller built from the token alone; every query filters on its tenant_id."""
    try:
        claims = TokenClaims.model_validate(decode_access_token(token))
    except (JWTError, ValidationError) as exc:
        logger.debug("Rejected access token: %s", exc)
        raise _unauthorized()
    return CurrentUser.from_claims(claims)


def require_permission(*required: str | Enum):
    """Dependency factory: the caller must hold every listed permission."""
    actions = [p.value if isinstance(p, Enum) else p for p in required]

    async def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.can(*actions):
            missing = [a for a in actions if a not in user.permissions]
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return user

    return checker
