"""
User Service

Setting the first password of an account provisioned by enrollment
approval.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password
from app.modules.password_setup.service import TokenErrorCode, TokenResult, consume_token
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class SetPasswordError(Exception):
    """Raised when a password cannot be set."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def from_token_result(cls, result: TokenResult) -> "SetPasswordError":
        status_code = 500 if result.error == TokenErrorCode.INTERNAL_ERROR else 400
        return cls(
            message=result.message or "Invalid or expired token",
            error_code=result.error.value if result.error else TokenErrorCode.INVALID_TOKEN.value,
            status_code=status_code,
        )


async def set_password(db: AsyncSession, token: str, password: str) -> str:
    """
    Consume a password-setup token and set the account's password.

    The token deletion and the password update commit together: if the
    update fails the token stays usable.

    Args:
        db: Database session
        token: Password setup token
        password: New plain text password (already validated)

    Returns:
        The email of the account whose password was set

    Raises:
        SetPasswordError: Token invalid, expired, or the account is missing
    """
    result = await consume_token(db, token, commit=False)
    if not result.valid:
        logger.warning(f"Set password rejected: {result.error.value if result.error else 'unknown'}")
        raise SetPasswordError.from_token_result(result)

    email = result.email
    password_hash = await asyncio.to_thread(hash_password, password)

    try:
        updated = await UserRepository.update_password_by_email(db, email, password_hash)
        if not updated:
            logger.error(f"Password setup token for {email} has no matching user")
            await db.rollback()
            raise SetPasswordError(
                message="User account not found",
                error_code="USER_NOT_FOUND",
                status_code=404,
            )
        await db.commit()
    except SetPasswordError:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to set password for {email}: {e}", exc_info=True)
        raise SetPasswordError(
            message="Internal server error",
            error_code="INTERNAL_ERROR",
            status_code=500,
        ) from e

    logger.info(f"Password set for {email}")
    return email
