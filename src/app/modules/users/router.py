"""
Users Router

Endpoints:
- POST /users/set-password - Set the first password using a setup token

Security:
- Rate limited per client IP: 5 attempts per 15 minutes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.modules.users import service
from app.modules.users.schemas import SetPasswordRequest, SetPasswordResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# (limit, window_seconds)
RATE_LIMIT_SET_PASSWORD = (5, 15 * 60)


@router.post(
    "/set-password",
    response_model=SetPasswordResponse,
    summary="Set Password",
    description="""
Set the password of a newly approved student using the token from the
password-setup email. Each token works once and expires after 24 hours.
""",
    responses={
        400: {"description": "Invalid or expired token"},
        429: {"description": "Too many attempts from this IP (retry after 900 seconds)"},
    },
)
async def set_password(
    data: SetPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> SetPasswordResponse:
    """
    Raises:
        HTTPException 400: Token invalid or expired
        HTTPException 429: Rate limit exceeded
    """
    await enforce_rate_limit(
        f"users:set_password:{get_client_ip(request)}",
        *RATE_LIMIT_SET_PASSWORD,
        message="Too many password setup attempts. Please try again in 15 minutes.",
    )

    try:
        await service.set_password(db, data.token, data.password)
    except service.SetPasswordError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    return SetPasswordResponse()
