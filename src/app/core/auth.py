"""
Authentication and Authorization Module

FastAPI dependencies that validate bearer JWTs (see security.py) and
enforce the admin role on the enrollment review endpoints.

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
- Any other environment requires a real signed access token
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class AuthenticatedUser:
    """
    Identity extracted from a validated access token.

    Attributes:
        id: User's unique identifier
        email: User's email address
        role: "student" or "admin"
        name: Display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def __str__(self) -> str:
        return f"AuthenticatedUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    True only when both settings and the raw environment say development.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()
    is_safe = settings.is_development and env_var not in ("production", "staging")

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = AuthenticatedUser(
    id=UUID("00000000-0000-0000-0000-0000000000ad"),
    email="admin@shikhilab.dev",
    role=ADMIN_ROLE,
    name="Development Admin",
)


def _invalid_token(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> AuthenticatedUser:
    """
    Validate a bearer token and extract user claims.

    Args:
        token: JWT token string from Authorization header

    Returns:
        AuthenticatedUser built from the token claims

    Raises:
        HTTPException 401: If token is invalid, expired, or not an access token
    """
    if _DEVELOPMENT_MODE and token in ("dev-token", "test-token"):
        logger.debug("Development mode: Using test token")
        return _DEV_ADMIN

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _invalid_token("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _invalid_token("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _invalid_token(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e

    return AuthenticatedUser(
        id=user_id,
        email=payload.get("email", ""),
        role=payload.get("role", ""),
        name=payload.get("name"),
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AuthenticatedUser:
    """FastAPI dependency returning the authenticated user of any role."""
    return await _validate_jwt_token(credentials.credentials)


async def get_current_admin_user(
    user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """
    FastAPI dependency that requires an authenticated admin.

    Usage:
        @router.patch("/{enrollment_id}/approve")
        async def approve(admin: AuthenticatedUser = Depends(get_current_admin_user)):
            ...

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the user is not an admin
    """
    if not user.is_admin:
        logger.warning(
            f"Access denied: User {user.id} ({user.email}) has role '{user.role}', "
            f"but '{ADMIN_ROLE}' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id} ({user.email})")
    return user


__all__ = [
    "ADMIN_ROLE",
    "AuthenticatedUser",
    "get_current_user",
    "get_current_admin_user",
]
