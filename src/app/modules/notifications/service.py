"""
Notification Service

Records emails that could not be delivered and redelivers them later.

Recording is best-effort: a failure to store the attempt is logged and
swallowed, because it runs after the business transaction has committed
and must not make a successful operation look failed.

The redelivery sweep is safe to run repeatedly and from any trigger
(scheduler, admin endpoint, debug endpoint). Each attempt is committed on
its own, so an interrupted sweep loses at most the attempt in flight, and
a database error on one attempt does not stop the others.
"""

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.email import EmailService
from app.modules.notifications import repository

logger = logging.getLogger(__name__)

# Sweep limits
RETRY_BATCH_SIZE = 100
RETRY_WINDOW_DAYS = 7


@dataclass
class RetrySummary:
    """Counts from one redelivery sweep."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


async def record_failed_email(
    db: AsyncSession,
    *,
    email_type: str,
    recipient: str,
    data: dict[str, Any],
    enrollment_id: uuid.UUID | None = None,
    user_id: uuid.UUID | None = None,
) -> bool:
    """
    Persist an undelivered email for the redelivery sweep.

    Args:
        db: Database session (no transaction of the caller may be pending)
        email_type: Template name
        recipient: Recipient address
        data: Template data needed to render the email again
        enrollment_id: Related enrollment, for audit
        user_id: Related user, for audit

    Returns:
        True if the attempt was stored, False if storing it failed
    """
    try:
        await repository.create_attempt(
            db,
            email_type=email_type,
            recipient=recipient,
            data=data,
            enrollment_id=enrollment_id,
            user_id=user_id,
        )
        await db.commit()
    except Exception as e:
        logger.error(
            f"Failed to store failed email attempt ({email_type} to {recipient}): {e}",
            exc_info=True,
        )
        try:
            await db.rollback()
        except Exception:
            logger.debug("Rollback after failed email attempt storage also failed")
        return False

    logger.info(f"Stored failed {email_type} email to {recipient} for retry")
    return True


async def retry_failed_emails(
    db: AsyncSession,
    email_service: EmailService,
    max_retries: int,
) -> RetrySummary:
    """
    Redeliver stored failed emails.

    Picks up to 100 attempts created within the last 7 days whose
    retry_count is below max_retries, oldest first. A delivered attempt is
    deleted; an undelivered one (including one whose send raised) gets
    retry_count + 1 and last_retry = now and stays for a later sweep.
    A database error on one attempt is logged, rolled back and counted as
    failed, and the sweep moves on; a failure to load the batch returns an
    empty summary. The sweep never raises.

    Args:
        db: Database session
        email_service: Service used to send the emails
        max_retries: Attempts that have been retried this many times are skipped

    Returns:
        RetrySummary with processed, succeeded and failed counts
    """
    summary = RetrySummary()
    now = datetime.now(UTC)

    try:
        attempts = await repository.get_retryable_attempts(
            db,
            max_retries=max_retries,
            created_after=now - timedelta(days=RETRY_WINDOW_DAYS),
            limit=RETRY_BATCH_SIZE,
        )
    except Exception as e:
        logger.error(f"Failed to load failed email attempts: {type(e).__name__}", exc_info=True)
        await _rollback_quietly(db)
        return summary

    if not attempts:
        logger.debug("No failed emails to retry")
        return summary

    logger.info(f"Retrying {len(attempts)} failed email(s)")

    for attempt in attempts:
        # Read everything needed before any commit expires the instance
        attempt_id = attempt.id
        email_type = attempt.type
        recipient = attempt.recipient
        data = attempt.data or {}

        summary.processed += 1

        try:
            result = await email_service.send_email(
                to=recipient,
                template=email_type,
                template_data=data,
            )
            delivered = result.success
            error = result.error
        except Exception as e:
            delivered = False
            error = str(e)

        try:
            if delivered:
                await repository.delete_attempt(db, attempt_id)
            else:
                await repository.mark_retry_failed(db, attempt_id, datetime.now(UTC))
            await db.commit()
        except Exception as e:
            # The attempt stays as it was and is picked up by a later sweep
            summary.failed += 1
            logger.error(
                f"Failed to update failed email attempt {attempt_id}: {type(e).__name__}",
                exc_info=True,
            )
            await _rollback_quietly(db)
            continue

        if delivered:
            summary.succeeded += 1
            logger.info(f"Redelivered {email_type} email to {recipient}")
        else:
            summary.failed += 1
            logger.warning(f"Redelivery of {email_type} email to {recipient} failed: {error}")

    logger.info(
        f"Failed email sweep complete: processed={summary.processed} "
        f"succeeded={summary.succeeded} failed={summary.failed}"
    )
    return summary


async def _rollback_quietly(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except Exception:
        logger.debug("Rollback after failed email sweep error also failed")
