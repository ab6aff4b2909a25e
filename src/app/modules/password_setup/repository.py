"""
Password Setup Token Repository

Data access for password_setup_tokens. Functions do not commit.
"""

from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.password_setup.models import PasswordSetupToken


async def upsert_token(
    db: AsyncSession,
    email: str,
    token: str,
    expires_at: datetime,
) -> None:
    """
    Store a token for an email, replacing any token the email already has.
    """
    stmt = insert(PasswordSetupToken).values(email=email, token=token, expires_at=expires_at)
    stmt = stmt.on_conflict_do_update(
        index_elements=[PasswordSetupToken.email],
        set_={
            "token": stmt.excluded.token,
            "expires_at": stmt.excluded.expires_at,
            "created_at": func.now(),
        },
    )
    await db.execute(stmt)


async def get_token(db: AsyncSession, token: str) -> PasswordSetupToken | None:
    """Look up a token row by its value."""
    result = await db.execute(select(PasswordSetupToken).where(PasswordSetupToken.token == token))
    return result.scalar_one_or_none()


async def delete_token(db: AsyncSession, token: str) -> bool:
    """
    Delete a token row.

    Returns:
        True if a row was deleted; False if it was already gone
    """
    result = await db.execute(
        delete(PasswordSetupToken).where(PasswordSetupToken.token == token)
    )
    return result.rowcount > 0
