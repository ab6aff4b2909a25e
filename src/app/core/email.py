"""
Email Service

Template rendering and delivery for enrollment notifications.

Delivery goes through a provider (Resend in deployed environments, a mock
provider for local development and tests). EmailService wraps the
provider with a bounded retry loop and reports the outcome as an
EmailResult instead of raising, so callers can decide whether a failure
needs to be recorded for later redelivery.
"""

import asyncio
import logging
import random
import time
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from html import escape
from typing import Any, Protocol

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

# Template identifiers
TEMPLATE_PASSWORD_SETUP = "password-setup"
TEMPLATE_ENROLLMENT_APPROVED = "enrollment-approved"
TEMPLATE_ENROLLMENT_REJECTED = "enrollment-rejected"

# Provider error codes that will not succeed on retry
NON_RETRYABLE_STATUS_CODES = {400, 401, 403, 404, 422}


@dataclass
class EmailResult:
    """Outcome of a delivery attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    retryable: bool = False


@dataclass
class RenderedEmail:
    """A template rendered for a single recipient."""

    subject: str
    html: str
    text: str


@dataclass
class EmailMessage:
    """A fully addressed message handed to a provider."""

    to: str
    from_address: str
    subject: str
    html: str
    text: str
    template: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class EmailProvider(Protocol):
    """Transport used by EmailService."""

    async def send(self, message: EmailMessage) -> EmailResult: ...


# ============================================
# Templates
# ============================================


def _render_password_setup(data: dict[str, Any]) -> RenderedEmail:
    safe_full_name = escape(str(data.get("fullName", "")))
    safe_email = escape(str(data.get("email", "")))
    setup_url = escape(str(data.get("setupUrl", "")), quote=True)
    expiry_hours = int(data.get("expiryHours", 24))

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #374151; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1f2937; margin-bottom: 24px; text-align: center; }}
            .button {{ display: inline-block; background-color: #3b82f6; color: white; padding: 14px 32px; text-decoration: none; border-radius: 6px; margin: 24px 0; font-weight: 600; }}
            .notice {{ background-color: #fef3c7; padding: 20px; border-radius: 6px; border-left: 4px solid #f59e0b; color: #92400e; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Welcome to Shikhi Lab IELTS!</h1>

            <p>Dear {safe_full_name},</p>

            <p>Congratulations! Your enrollment application has been approved. To complete your registration and access your student dashboard, please set up your account password.</p>

            <a href="{setup_url}" class="button">Set Your Password</a>

            <div class="notice">
                <p><strong>Important Security Notice</strong></p>
                <p>This link will expire in <strong>{expiry_hours} hours</strong>. If you don't set your password within this time, you'll need to contact support for a new invitation.</p>
            </div>

            <p>If the button doesn't work, copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #3b82f6;">{setup_url}</p>

            <div class="footer">
                <p>Best regards,<br><strong>The Shikhi Lab IELTS Team</strong></p>
                <p>This email was sent to {safe_email}. If you didn't request this, please ignore this email.</p>
            </div>
        </div>
    </body>
    </html>
    """

    text = (
        "Welcome to Shikhi Lab IELTS!\n\n"
        f"Dear {data.get('fullName', '')},\n\n"
        "Congratulations! Your enrollment application has been approved. To complete your "
        "registration and access your student dashboard, please set up your account password.\n\n"
        f"Set your password by visiting: {data.get('setupUrl', '')}\n\n"
        f"IMPORTANT: This link will expire in {expiry_hours} hours.\n\n"
        "Best regards,\nThe Shikhi Lab IELTS Team"
    )

    return RenderedEmail(
        subject="Welcome to Shikhi Lab IELTS - Set Your Password",
        html=html,
        text=text,
    )


def _render_enrollment_approved(data: dict[str, Any]) -> RenderedEmail:
    full_name = str(data.get("fullName", ""))
    course_name = str(data.get("courseName", ""))
    return RenderedEmail(
        subject="Enrollment Approved - Welcome to Shikhi Lab IELTS!",
        html=(
            f"<h1>Welcome {escape(full_name)}!</h1>"
            f"<p>Your enrollment for {escape(course_name)} has been approved.</p>"
        ),
        text=f"Welcome {full_name}! Your enrollment for {course_name} has been approved.",
    )


def _render_enrollment_rejected(data: dict[str, Any]) -> RenderedEmail:
    full_name = str(data.get("fullName", ""))
    course_name = str(data.get("courseName", ""))
    reason = str(data.get("reason", ""))
    return RenderedEmail(
        subject="Enrollment Update - Shikhi Lab IELTS",
        html=(
            f"<h1>Hello {escape(full_name)},</h1>"
            f"<p>We regret to inform you that your enrollment for {escape(course_name)} "
            f"could not be approved. Reason: {escape(reason)}</p>"
        ),
        text=(
            f"Hello {full_name}, We regret to inform you that your enrollment for "
            f"{course_name} could not be approved. Reason: {reason}"
        ),
    )


TEMPLATES = {
    TEMPLATE_PASSWORD_SETUP: _render_password_setup,
    TEMPLATE_ENROLLMENT_APPROVED: _render_enrollment_approved,
    TEMPLATE_ENROLLMENT_REJECTED: _render_enrollment_rejected,
}


def render_template(template: str, data: dict[str, Any]) -> RenderedEmail:
    """
    Render a named template.

    Raises:
        ValueError: If the template name is unknown
    """
    renderer = TEMPLATES.get(template)
    if renderer is None:
        raise ValueError(f"Unknown email template: {template}")
    return renderer(data)


# ============================================
# Providers
# ============================================


class ResendEmailProvider:
    """Sends email through the Resend API."""

    def __init__(self, api_key: str | None, from_address: str) -> None:
        self.api_key = api_key
        self.from_address = from_address
        if api_key:
            resend.api_key = api_key

    async def send(self, message: EmailMessage) -> EmailResult:
        if not self.api_key:
            logger.warning("RESEND_API_KEY not set - logging email instead of sending")
            logger.info(f"EMAIL TO: {message.to} | SUBJECT: {message.subject}")
            return EmailResult(success=True, message_id=f"logged-{uuid.uuid4()}")

        params: resend.Emails.SendParams = {
            "from": message.from_address,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }

        try:
            # Run sync Resend call in thread pool to avoid blocking event loop
            email = await asyncio.to_thread(resend.Emails.send, params)
        except Exception as e:
            code = getattr(e, "code", None)
            try:
                status_code = int(code) if code is not None else None
            except (TypeError, ValueError):
                status_code = None
            return EmailResult(
                success=False,
                error=str(e),
                retryable=status_code not in NON_RETRYABLE_STATUS_CODES,
            )

        return EmailResult(success=True, message_id=email["id"])


class MockEmailProvider:
    """
    In-process provider for development and tests.

    Keeps every message it was asked to send and fails a configurable
    fraction of sends with a retryable error.
    """

    def __init__(self, failure_rate: float = 0.1) -> None:
        self.failure_rate = failure_rate
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> EmailResult:
        logger.info(
            f"[MOCK EMAIL] to={message.to} subject={message.subject!r} template={message.template}"
        )
        self.sent.append(message)

        if random.random() < self.failure_rate:
            return EmailResult(
                success=False,
                error="Simulated email provider failure",
                retryable=True,
            )

        return EmailResult(
            success=True,
            message_id=f"mock-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}",
        )

    def clear(self) -> None:
        self.sent.clear()


# ============================================
# Service
# ============================================


class EmailService:
    """
    Renders templates and delivers them with retry.

    Args:
        provider: Transport used for delivery
        default_from: Sender address used when none is given
        max_attempts: Total delivery attempts per send
        base_delay: Seconds to wait before the second attempt; the wait
            before attempt n+1 is base_delay * n
    """

    def __init__(
        self,
        provider: EmailProvider,
        default_from: str,
        max_attempts: int = 3,
        base_delay: float = 1.0,
    ) -> None:
        self.provider = provider
        self.default_from = default_from
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def send_email(
        self,
        to: str,
        template: str,
        template_data: dict[str, Any] | None = None,
        from_address: str | None = None,
    ) -> EmailResult:
        """
        Render a template and deliver it to one recipient.

        Args:
            to: Recipient address
            template: Template name (see TEMPLATES)
            template_data: Values substituted into the template
            from_address: Sender override

        Returns:
            EmailResult describing the final outcome

        Raises:
            ValueError: If the template name is unknown
        """
        rendered = render_template(template, template_data or {})
        message = EmailMessage(
            to=to,
            from_address=from_address or self.default_from,
            subject=rendered.subject,
            html=rendered.html,
            text=rendered.text,
            template=template,
        )
        return await self._send_with_retry(message)

    async def _send_with_retry(self, message: EmailMessage) -> EmailResult:
        last_error = "unknown error"

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self.provider.send(message)
            except Exception as e:
                logger.warning(
                    f"Email attempt {attempt}/{self.max_attempts} to {message.to} raised: {e}"
                )
                result = EmailResult(success=False, error=str(e), retryable=True)

            if result.success:
                if attempt > 1:
                    logger.info(f"Email to {message.to} delivered on attempt {attempt}")
                return result

            last_error = result.error or last_error

            if not result.retryable:
                logger.error(f"Non-retryable email failure for {message.to}: {last_error}")
                return result

            if attempt < self.max_attempts:
                await asyncio.sleep(self.base_delay * attempt)

        logger.error(
            f"Email to {message.to} failed after {self.max_attempts} attempts: {last_error}"
        )
        return EmailResult(
            success=False,
            error=f"Failed after {self.max_attempts} attempts. Last error: {last_error}",
            retryable=True,
        )


def create_email_service() -> EmailService:
    """Build an EmailService from settings."""
    provider: EmailProvider
    if settings.email_provider == "mock":
        provider = MockEmailProvider(failure_rate=settings.email_mock_failure_rate)
    else:
        provider = ResendEmailProvider(
            api_key=settings.resend_api_key,
            from_address=settings.email_from,
        )

    return EmailService(
        provider=provider,
        default_from=f"{settings.email_from_name} <{settings.email_from}>",
        max_attempts=settings.email_max_attempts,
        base_delay=settings.email_retry_base_delay_seconds,
    )


@lru_cache
def get_email_service() -> EmailService:
    """Return the process-wide EmailService (also usable as a FastAPI dependency)."""
    return create_email_service()
