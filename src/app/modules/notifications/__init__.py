"""
Notifications module - Durable record of undelivered emails and the
sweep that redelivers them.
"""

from app.modules.notifications.models import FailedEmailAttempt
from app.modules.notifications.service import (
    RetrySummary,
    record_failed_email,
    retry_failed_emails,
)

__all__ = [
    "FailedEmailAttempt",
    "RetrySummary",
    "record_failed_email",
    "retry_failed_emails",
]
