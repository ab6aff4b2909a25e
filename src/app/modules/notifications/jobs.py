"""
Notification Background Jobs

Periodic redelivery of emails that failed at send time (for example the
password-setup email sent after an enrollment is approved).

Schedule:
- Runs every FAILED_EMAIL_RETRY_INTERVAL_MINUTES (default 30)
- Can also be triggered manually via /debug/jobs/{job_id}/trigger or the
  admin retry endpoint
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.email import get_email_service
from app.core.scheduler import register_job
from app.modules.notifications.service import retry_failed_emails

logger = logging.getLogger(__name__)

JOB_ID_RETRY_FAILED_EMAILS = "notifications_retry_failed_emails"


async def retry_failed_emails_job() -> dict[str, Any]:
    """
    Run one redelivery sweep with its own database session.

    Returns:
        Dict with executed_at plus the processed/succeeded/failed counts
    """
    executed_at = datetime.now(UTC)
    logger.info("Starting failed email retry job")

    async with async_session_maker() as db:
        summary = await retry_failed_emails(
            db,
            email_service=get_email_service(),
            max_retries=settings.failed_email_max_retries,
        )

    return {"executed_at": executed_at.isoformat(), **summary.as_dict()}


def register_notification_jobs() -> None:
    """
    Register notification background jobs with the scheduler.

    Call during application startup, before the scheduler is started.
    """
    interval = settings.failed_email_retry_interval_minutes

    register_job(
        job_id=JOB_ID_RETRY_FAILED_EMAILS,
        func=retry_failed_emails_job,
        trigger=IntervalTrigger(minutes=interval),
    )
    logger.info(f"Registered job: {JOB_ID_RETRY_FAILED_EMAILS} (interval: {interval} minutes)")
