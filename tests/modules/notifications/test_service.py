"""
Tests for failed email recording and redelivery.

Tests:
- record_failed_email stores the attempt and never raises
- retry_failed_emails: delivered attempts deleted, failed ones marked
- Sends that raise count as failures
- Database errors during the sweep are contained
- Sweep parameters (retry limit, 7-day window, batch size)
- The scheduled job and its registration
"""

from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from app.core import scheduler
from app.core.email import TEMPLATE_PASSWORD_SETUP, EmailResult, EmailService
from app.modules.notifications.jobs import (
    JOB_ID_RETRY_FAILED_EMAILS,
    register_notification_jobs,
    retry_failed_emails_job,
)
from app.modules.notifications.service import (
    RETRY_BATCH_SIZE,
    RETRY_WINDOW_DAYS,
    RetrySummary,
    record_failed_email,
    retry_failed_emails,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


def _attempt(attempt_id, recipient, retry_count=0):
    return SimpleNamespace(
        id=attempt_id,
        type=TEMPLATE_PASSWORD_SETUP,
        recipient=recipient,
        data={"fullName": "Student", "setupUrl": "http://localhost:3000/password-setup?token=x"},
        retry_count=retry_count,
    )


def _email_service(*results):
    email_service = MagicMock(spec=EmailService)
    email_service.send_email = AsyncMock(side_effect=list(results))
    return email_service


# ============================================
# Test record_failed_email
# ============================================


@pytest.mark.asyncio
async def test_record_failed_email_success(mock_db):
    enrollment_id = uuid4()
    user_id = uuid4()

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.create_attempt = AsyncMock()

        stored = await record_failed_email(
            mock_db,
            email_type=TEMPLATE_PASSWORD_SETUP,
            recipient="student@example.com",
            data={"fullName": "Student"},
            enrollment_id=enrollment_id,
            user_id=user_id,
        )

        assert stored is True
        mock_repo.create_attempt.assert_called_once_with(
            mock_db,
            email_type=TEMPLATE_PASSWORD_SETUP,
            recipient="student@example.com",
            data={"fullName": "Student"},
            enrollment_id=enrollment_id,
            user_id=user_id,
        )
        mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_failed_email_swallows_storage_errors(mock_db):
    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.create_attempt = AsyncMock(side_effect=RuntimeError("table missing"))

        stored = await record_failed_email(
            mock_db,
            email_type=TEMPLATE_PASSWORD_SETUP,
            recipient="student@example.com",
            data={},
        )

        assert stored is False
        mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_record_failed_email_survives_failed_rollback(mock_db):
    mock_db.rollback = AsyncMock(side_effect=RuntimeError("connection closed"))

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.create_attempt = AsyncMock(side_effect=RuntimeError("connection closed"))

        stored = await record_failed_email(
            mock_db,
            email_type=TEMPLATE_PASSWORD_SETUP,
            recipient="student@example.com",
            data={},
        )

    assert stored is False


# ============================================
# Test retry_failed_emails
# ============================================


@pytest.mark.asyncio
async def test_retry_failed_emails_mixed_results(mock_db):
    """One delivered attempt is deleted; two undelivered ones are marked."""
    attempts = [
        _attempt(1, "one@example.com"),
        _attempt(2, "two@example.com", retry_count=1),
        _attempt(3, "three@example.com", retry_count=2),
    ]
    email_service = _email_service(
        EmailResult(success=False, error="bounced", retryable=True),
        EmailResult(success=True, message_id="mock-2"),
        EmailResult(success=False, error="timeout", retryable=True),
    )

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=attempts)
        mock_repo.delete_attempt = AsyncMock()
        mock_repo.mark_retry_failed = AsyncMock()

        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

        assert summary == RetrySummary(processed=3, succeeded=1, failed=2)
        mock_repo.delete_attempt.assert_called_once_with(mock_db, 2)
        marked = [c.args[1] for c in mock_repo.mark_retry_failed.call_args_list]
        assert marked == [1, 3]
        for call in mock_repo.mark_retry_failed.call_args_list:
            assert isinstance(call.args[2], datetime)
        assert mock_db.commit.await_count == 3


@pytest.mark.asyncio
async def test_retry_failed_emails_resends_stored_template(mock_db):
    attempt = _attempt(7, "student@example.com")
    email_service = _email_service(EmailResult(success=True))

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=[attempt])
        mock_repo.delete_attempt = AsyncMock()

        await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

    email_service.send_email.assert_called_once_with(
        to="student@example.com",
        template=TEMPLATE_PASSWORD_SETUP,
        template_data=attempt.data,
    )


@pytest.mark.asyncio
async def test_retry_failed_emails_send_exception_counts_as_failure(mock_db):
    email_service = _email_service(RuntimeError("provider unreachable"))

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=[_attempt(1, "a@example.com")])
        mock_repo.delete_attempt = AsyncMock()
        mock_repo.mark_retry_failed = AsyncMock()

        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

        assert summary.as_dict() == {"processed": 1, "succeeded": 0, "failed": 1}
        mock_repo.mark_retry_failed.assert_called_once()
        mock_repo.delete_attempt.assert_not_called()


@pytest.mark.asyncio
async def test_retry_failed_emails_continues_after_database_error(mock_db):
    """A failing update on one attempt is rolled back and the sweep moves on."""
    attempts = [_attempt(1, "one@example.com"), _attempt(2, "two@example.com")]
    email_service = _email_service(
        EmailResult(success=False, error="bounced", retryable=True),
        EmailResult(success=True, message_id="mock-2"),
    )

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=attempts)
        mock_repo.delete_attempt = AsyncMock()
        mock_repo.mark_retry_failed = AsyncMock(
            side_effect=RuntimeError("password=secret connection lost")
        )

        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

    assert summary == RetrySummary(processed=2, succeeded=1, failed=1)
    assert email_service.send_email.await_count == 2
    mock_repo.delete_attempt.assert_called_once_with(mock_db, 2)
    mock_db.rollback.assert_awaited_once()
    assert mock_db.commit.await_count == 1


@pytest.mark.asyncio
async def test_retry_failed_emails_commit_failure_counts_as_failed(mock_db):
    mock_db.commit = AsyncMock(side_effect=[RuntimeError("deadlock"), None])
    attempts = [_attempt(1, "one@example.com"), _attempt(2, "two@example.com")]
    email_service = _email_service(EmailResult(success=True), EmailResult(success=True))

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=attempts)
        mock_repo.delete_attempt = AsyncMock()

        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

    assert summary == RetrySummary(processed=2, succeeded=1, failed=1)
    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_failed_emails_load_failure_returns_empty_summary(mock_db):
    email_service = _email_service()

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(side_effect=ConnectionError("db down"))

        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=3)

    assert summary == RetrySummary()
    email_service.send_email.assert_not_called()
    mock_db.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_retry_failed_emails_query_parameters(mock_db):
    email_service = _email_service()

    with patch("app.modules.notifications.service.repository") as mock_repo:
        mock_repo.get_retryable_attempts = AsyncMock(return_value=[])

        before = datetime.now(UTC)
        summary = await retry_failed_emails(mock_db, email_service=email_service, max_retries=5)

        assert summary == RetrySummary()
        kwargs = mock_repo.get_retryable_attempts.call_args.kwargs
        assert kwargs["max_retries"] == 5
        assert kwargs["limit"] == RETRY_BATCH_SIZE == 100
        window = before - kwargs["created_after"]
        assert abs(window - timedelta(days=RETRY_WINDOW_DAYS)) < timedelta(seconds=5)
        mock_db.commit.assert_not_called()


# ============================================
# Test scheduled job
# ============================================


@pytest.mark.asyncio
async def test_retry_failed_emails_job_uses_own_session(mock_db):
    @asynccontextmanager
    async def session_maker():
        yield mock_db

    with (
        patch("app.modules.notifications.jobs.async_session_maker", session_maker),
        patch(
            "app.modules.notifications.jobs.retry_failed_emails",
            new_callable=AsyncMock,
            return_value=RetrySummary(processed=2, succeeded=1, failed=1),
        ) as mock_retry,
    ):
        result = await retry_failed_emails_job()

    assert result["processed"] == 2
    assert result["succeeded"] == 1
    assert result["failed"] == 1
    assert "executed_at" in result
    assert mock_retry.call_args.args[0] is mock_db


def test_register_notification_jobs():
    scheduler.clear_registry()
    try:
        register_notification_jobs()

        jobs = scheduler.list_registered_jobs()
        assert [job["job_id"] for job in jobs] == [JOB_ID_RETRY_FAILED_EMAILS]
        registered = scheduler._job_registry[JOB_ID_RETRY_FAILED_EMAILS]
        assert isinstance(registered.trigger, IntervalTrigger)
        assert registered.trigger.interval == timedelta(minutes=30)
    finally:
        scheduler.clear_registry()


@pytest.mark.asyncio
async def test_trigger_job_manually_reports_result():
    scheduler.clear_registry()
    try:
        scheduler.register_job(
            "sample_job",
            AsyncMock(return_value={"processed": 0}),
            IntervalTrigger(minutes=5),
        )
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        scheduler.register_job("failing_job", failing, IntervalTrigger(minutes=5))

        ok = await scheduler.trigger_job_manually("sample_job")
        err = await scheduler.trigger_job_manually("failing_job")

        assert ok["status"] == "success"
        assert ok["result"] == {"processed": 0}
        assert err["status"] == "error"
        assert err["error"] == "boom"
        with pytest.raises(ValueError):
            await scheduler.trigger_job_manually("missing_job")
    finally:
        scheduler.clear_registry()
