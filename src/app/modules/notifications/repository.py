"""
Failed Email Attempt Repository

Data access for failed_email_attempts. Functions do not commit.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.notifications.models import FailedEmailAttempt


async def create_attempt(
    db: AsyncSession,
    *,
    email_type: str,
    recipient: str,
    data: dict[str, Any],
    enrollment_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
) -> FailedEmailAttempt:
    """Insert a failed attempt with retry_count 0."""
    attempt = FailedEmailAttempt(
        type=email_type,
        recipient=recipient,
        data=data,
        enrollment_id=enrollment_id,
        user_id=user_id,
        retry_count=0,
    )
    db.add(attempt)
    await db.flush()
    return attempt


async def get_retryable_attempts(
    db: AsyncSession,
    *,
    max_retries: int,
    created_after: datetime,
    limit: int,
) -> list[FailedEmailAttempt]:
    """
    Attempts still eligible for redelivery, oldest first.

    Args:
        db: Database session
        max_retries: Only attempts with retry_count below this
        created_after: Only attempts created after this instant
        limit: Maximum rows returned
    """
    result = await db.execute(
        select(FailedEmailAttempt)
        .where(
            FailedEmailAttempt.retry_count < max_retries,
            FailedEmailAttempt.created_at > created_after,
        )
        .order_by(FailedEmailAttempt.created_at.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_attempt(db: AsyncSession, attempt_id: int) -> None:
    await db.execute(delete(FailedEmailAttempt).where(FailedEmailAttempt.id == attempt_id))


async def mark_retry_failed(db: AsyncSession, attempt_id: int, retried_at: datetime) -> None:
    """Increment retry_count and stamp last_retry."""
    await db.execute(
        update(FailedEmailAttempt)
        .where(FailedEmailAttempt.id == attempt_id)
        .values(
            retry_count=FailedEmailAttempt.retry_count + 1,
            last_retry=retried_at,
        )
    )


async def count_retryable(db: AsyncSession, *, max_retries: int, created_after: datetime) -> int:
    """Number of attempts the next sweep would still consider."""
    result = await db.execute(
        select(func.count(FailedEmailAttempt.id)).where(
            FailedEmailAttempt.retry_count < max_retries,
            FailedEmailAttempt.created_at > created_after,
        )
    )
    return result.scalar_one()
