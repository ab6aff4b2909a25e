"""
Password Setup Token Service

Lifecycle of password-setup tokens:

- issue: 256-bit random token, hex encoded, valid for 24 hours, replacing
  any earlier token for the same email
- validate: returns the token's email, deleting the row if it has expired
- consume: validate, then delete so the token can only be used once

validate and consume never raise. Database failures are logged and
reported as INTERNAL_ERROR so driver messages (which may contain
connection details) never reach a response.
"""

import contextlib
import enum
import hmac
import logging
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.password_setup import repository

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_HOURS = 24
TOKEN_BYTES = 32

_TOKEN_PATTERN = re.compile(rf"^[0-9a-f]{{{TOKEN_BYTES * 2}}}$")


class TokenErrorCode(str, enum.Enum):
    """Reasons a token check can fail."""

    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_ERROR_MESSAGES = {
    TokenErrorCode.INVALID_TOKEN: "Invalid or expired token",
    TokenErrorCode.TOKEN_EXPIRED: "Token has expired",
    TokenErrorCode.INTERNAL_ERROR: "Internal server error",
}


@dataclass
class TokenResult:
    """Outcome of validating or consuming a token."""

    valid: bool
    email: str | None = None
    error: TokenErrorCode | None = None

    @property
    def message(self) -> str | None:
        return _ERROR_MESSAGES[self.error] if self.error else None

    @classmethod
    def ok(cls, email: str) -> "TokenResult":
        return cls(valid=True, email=email)

    @classmethod
    def fail(cls, error: TokenErrorCode) -> "TokenResult":
        return cls(valid=False, error=error)


@dataclass
class IssuedToken:
    """A freshly issued token."""

    token: str
    email: str
    expires_at: datetime


def generate_token() -> str:
    """Generate a 64-character hex token (256 bits of entropy)."""
    return secrets.token_hex(TOKEN_BYTES)


async def issue_token(db: AsyncSession, email: str, *, commit: bool = True) -> IssuedToken:
    """
    Issue a password-setup token for an email.

    Any token previously issued for the email stops working.

    Args:
        db: Database session
        email: Account email the token is bound to
        commit: Commit immediately. Pass False to make issuance part of
            a larger transaction owned by the caller.

    Returns:
        The issued token and its expiry
    """
    token = generate_token()
    expires_at = datetime.now(UTC) + timedelta(hours=TOKEN_EXPIRY_HOURS)

    await repository.upsert_token(db, email=email, token=token, expires_at=expires_at)
    if commit:
        await db.commit()

    logger.info(f"Issued password setup token for {email}, expires {expires_at.isoformat()}")
    return IssuedToken(token=token, email=email, expires_at=expires_at)


async def validate_token(db: AsyncSession, token: str) -> TokenResult:
    """
    Check a token and return the email it belongs to.

    An expired token is deleted as a side effect.

    Args:
        db: Database session
        token: Token value supplied by the user

    Returns:
        TokenResult with the email on success, or an error code
    """
    if not token or not _TOKEN_PATTERN.match(token):
        return TokenResult.fail(TokenErrorCode.INVALID_TOKEN)

    try:
        row = await repository.get_token(db, token)

        if row is None or not hmac.compare_digest(row.token.encode(), token.encode()):
            return TokenResult.fail(TokenErrorCode.INVALID_TOKEN)

        if datetime.now(UTC) > row.expires_at:
            await repository.delete_token(db, row.token)
            await db.commit()
            logger.info(f"Deleted expired password setup token for {row.email}")
            return TokenResult.fail(TokenErrorCode.TOKEN_EXPIRED)

        return TokenResult.ok(row.email)

    except Exception as e:
        logger.error(f"Password setup token validation failed: {type(e).__name__}", exc_info=True)
        with contextlib.suppress(Exception):
            await db.rollback()
        return TokenResult.fail(TokenErrorCode.INTERNAL_ERROR)


async def consume_token(db: AsyncSession, token: str, *, commit: bool = True) -> TokenResult:
    """
    Validate a token and delete it so it cannot be used again.

    An invalid token leaves storage untouched. If two requests race to
    consume the same token, only the one whose delete removes the row
    succeeds.

    Args:
        db: Database session
        token: Token value supplied by the user
        commit: Commit the deletion. Pass False when the caller writes
            more changes (e.g. the new password) in the same transaction.

    Returns:
        TokenResult with the email on success, or an error code
    """
    result = await validate_token(db, token)
    if not result.valid:
        return result

    try:
        deleted = await repository.delete_token(db, token)
        if not deleted:
            return TokenResult.fail(TokenErrorCode.INVALID_TOKEN)
        if commit:
            await db.commit()
    except Exception as e:
        logger.error(f"Password setup token consumption failed: {type(e).__name__}", exc_info=True)
        with contextlib.suppress(Exception):
            await db.rollback()
        return TokenResult.fail(TokenErrorCode.INTERNAL_ERROR)

    return result
