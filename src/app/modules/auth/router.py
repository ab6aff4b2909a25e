"""Authentication router."""

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from app.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshRequest,
    TokenResponse,
    UserResponse,
)
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()

_INVALID_CREDENTIALS = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail={
        "error": "INVALID_CREDENTIALS",
        "message": "Invalid email or password.",
    },
)


def _access_claims(user: User) -> dict[str, str]:
    return {
        "email": user.email,
        "role": user.role.value,
        "name": user.full_name,
    }


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        Access token, refresh token, and user info

    Raises:
        HTTPException 401: Invalid credentials
    """
    user = await UserRepository.get_by_email(db, credentials.email.lower())

    if not user:
        logger.warning(f"Login attempt for non-existent email: {credentials.email}")
        raise _INVALID_CREDENTIALS

    if not await asyncio.to_thread(verify_password, credentials.password, user.password_hash):
        logger.warning(f"Invalid password for user: {credentials.email}")
        raise _INVALID_CREDENTIALS

    access_token = create_access_token(
        subject=str(user.id),
        additional_claims=_access_claims(user),
    )
    refresh_token = create_refresh_token(subject=str(user.id))

    logger.info(f"User logged in: {user.email} (role: {user.role.value})")

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserResponse(
            id=str(user.id),
            email=user.email,
            full_name=user.full_name,
            role=user.role.value,
            ai_credits=user.ai_credits,
            interface_language=user.interface_language,
            ai_feedback_language=user.ai_feedback_language,
            created_at=user.created_at.isoformat(),
            updated_at=user.updated_at.isoformat(),
        ),
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> TokenResponse:
    """
    Exchange a refresh token for a new access token.

    Claims are re-read from the database so role changes take effect.

    Raises:
        HTTPException 401: Invalid refresh token or unknown user
    """
    payload = decode_token(body.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid refresh token."},
        )

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "INVALID_TOKEN", "message": "Invalid refresh token."},
        ) from e

    user = await UserRepository.get_by_id(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "USER_NOT_FOUND", "message": "User not found."},
        )

    return TokenResponse(
        access_token=create_access_token(subject=str(user.id), additional_claims=_access_claims(user))
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(response: Response) -> LogoutResponse:
    """
    Log out.

    Tokens are stateless and stay valid until they expire; the client
    discards them. A refreshToken cookie, if the client stored one, is
    cleared.
    """
    response.delete_cookie("refreshToken")
    return LogoutResponse()
