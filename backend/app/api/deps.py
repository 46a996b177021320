"""
Shared route dependencies: bearer authentication, role guard, rate limiting.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from app.core.logging import get_logger
from app.core.rate_limit import rate_limit_headers, rate_limiters
from app.core.security import Role, decode_access_token

logger = get_logger("auth")

# auto_error=False so a missing header maps to 401 instead of FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Identity and custom claims taken from a verified token."""

    id: str
    email: str = ""
    role: Role
    company_id: Optional[str] = None

    def has_role(self, *roles: Role) -> bool:
        return self.role in roles


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """
    Dependency to get the current user from the bearer token.

    Raises 401 if the token is missing, invalid or carries an unknown role.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise credentials_exception

    try:
        role = Role(payload.get("role") or Role.CANDIDATE.value)
    except ValueError:
        logger.warning(f"Token for {payload.get('sub')} carries unknown role {payload.get('role')!r}")
        raise credentials_exception

    return AuthenticatedUser(
        id=payload["sub"],
        email=payload.get("email") or "",
        role=role,
        company_id=payload.get("companyId"),
    )


def require_roles(*roles: Role):
    """Dependency factory: the current user must hold one of ``roles``."""
    allowed = set(roles)

    async def role_guard(
        current_user: AuthenticatedUser = Depends(get_current_user),
    ) -> AuthenticatedUser:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return role_guard


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit(bucket: str):
    """Dependency factory applying the named in-memory rate limiter."""
    limiter = rate_limiters[bucket]

    async def check_rate_limit(request: Request, response: Response) -> None:
        identifier = f"{client_identifier(request)}:{bucket}"
        result = limiter.check(identifier)
        headers = rate_limit_headers(result)

        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {identifier}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Rate limit exceeded",
                headers=headers,
            )

        response.headers.update(headers)

    return check_rate_limit
