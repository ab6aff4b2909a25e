"""
Enrollment Approval Service

Admin decisions on pending enrollments.

State machine: pending -> approved, pending -> rejected. Both are
terminal; deciding an enrollment that is not pending fails with
AlreadyProcessedError and changes nothing.

Approval is a single database transaction:
1. Fetch the enrollment only if still pending, locking its row
2. Lock the course row and check approved seats against capacity
3. Reuse the user with the applicant's email, or create a student
   account with a throwaway random password
4. Compare-and-swap the status from pending to approved
5. Issue (upsert) a 24-hour password-setup token for new accounts
6. Commit

Only after the commit is the password-setup email sent, so a slow or
failing mail provider never holds locks or undoes an approval. An email
that still fails after EmailService's own retries is stored as a
FailedEmailAttempt for the redelivery sweep.
"""

import asyncio
import base64
import logging
import secrets
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import TEMPLATE_PASSWORD_SETUP, EmailService
from app.core.security import hash_password
from app.modules.courses.repository import CourseRepository
from app.modules.enrollments import repository
from app.modules.enrollments.exceptions import (
    AlreadyProcessedError,
    CapacityExceededError,
    CourseNotFoundError,
    EnrollmentServiceError,
    InternalServiceError,
    UserCreationFailedError,
)
from app.modules.enrollments.models import EnrollmentStatus
from app.modules.notifications.service import record_failed_email
from app.modules.password_setup.service import TOKEN_EXPIRY_HOURS, issue_token
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

TEMP_PASSWORD_BYTES = 12


@dataclass
class ApprovalResult:
    """Outcome of a successful approval."""

    enrollment_id: UUID
    user_id: UUID
    password_token: str | None
    email_sent: bool
    success: bool = True

    @property
    def password_token_generated(self) -> bool:
        return self.password_token is not None


def _generate_temporary_password() -> str:
    """Random placeholder password; never shown to anyone."""
    return base64.b64encode(secrets.token_bytes(TEMP_PASSWORD_BYTES)).decode("ascii")


def build_setup_url(token: str) -> str:
    return f"{settings.frontend_url.rstrip('/')}/password-setup?token={token}"


async def _mark_decided(db: AsyncSession, enrollment_id: UUID, status: EnrollmentStatus) -> None:
    if not await repository.update_status_if_pending(db, enrollment_id, status):
        raise AlreadyProcessedError(enrollment_id)


async def approve_enrollment(
    db: AsyncSession,
    enrollment_id: UUID,
    email_service: EmailService,
    admin_id: UUID | None = None,
) -> ApprovalResult:
    """
    Approve a pending enrollment and provision the student's account.

    Args:
        db: Database session
        enrollment_id: Enrollment to approve
        email_service: Used for the password-setup email after commit
        admin_id: Approving admin, for the audit log

    Returns:
        ApprovalResult. password_token is None when the applicant already
        had an account (no token is issued and no email is sent).
        email_sent reports notification only; the approval stands either way.

    Raises:
        AlreadyProcessedError: Enrollment missing or not pending
        CourseNotFoundError: The enrollment's course was deleted
        CapacityExceededError: Approved enrollments already fill the course
        UserCreationFailedError: Account or token could not be written
        InternalServiceError: Any other failure (details are logged only)
    """
    logger.info(f"Admin {admin_id} approving enrollment {enrollment_id}")

    try:
        enrollment = await repository.get_pending_for_update(db, enrollment_id)
        if enrollment is None:
            logger.warning(f"Enrollment {enrollment_id} not found or already processed")
            raise AlreadyProcessedError(enrollment_id)

        course = await CourseRepository.get_by_id_for_update(db, enrollment.course_id)
        if course is None:
            raise CourseNotFoundError(enrollment.course_id)

        approved = await repository.count_approved(db, course.id)
        if approved >= course.capacity:
            logger.warning(
                f"Cannot approve enrollment {enrollment_id}: course {course.id} has "
                f"{approved}/{course.capacity} approved"
            )
            raise CapacityExceededError()

        applicant_email = enrollment.email
        applicant_name = enrollment.full_name

        existing_user = await UserRepository.get_by_email(db, applicant_email)
        if existing_user is not None:
            await _mark_decided(db, enrollment_id, EnrollmentStatus.APPROVED)
            await db.commit()
            logger.info(
                f"Enrollment {enrollment_id} approved for existing user {existing_user.id}"
            )
            return ApprovalResult(
                enrollment_id=enrollment_id,
                user_id=existing_user.id,
                password_token=None,
                email_sent=False,
            )

        try:
            password_hash = await asyncio.to_thread(hash_password, _generate_temporary_password())
            user = await UserRepository.create(
                db,
                email=applicant_email,
                password_hash=password_hash,
                full_name=applicant_name,
                role=UserRole.STUDENT,
            )
            await _mark_decided(db, enrollment_id, EnrollmentStatus.APPROVED)
            issued = await issue_token(db, applicant_email, commit=False)
            await db.commit()
        except EnrollmentServiceError:
            raise
        except Exception as e:
            logger.error(
                f"Account provisioning failed for enrollment {enrollment_id}: {e}",
                exc_info=True,
            )
            raise UserCreationFailedError() from e

    except EnrollmentServiceError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Unexpected error approving enrollment {enrollment_id}: {e}", exc_info=True)
        raise InternalServiceError("Internal server error during approval") from e

    user_id = user.id
    logger.info(f"Enrollment {enrollment_id} approved, created user {user_id}")

    email_sent = await _send_password_setup_email(
        db,
        email_service,
        enrollment_id=enrollment_id,
        user_id=user_id,
        email=applicant_email,
        full_name=applicant_name,
        token=issued.token,
    )

    return ApprovalResult(
        enrollment_id=enrollment_id,
        user_id=user_id,
        password_token=issued.token,
        email_sent=email_sent,
    )


async def _send_password_setup_email(
    db: AsyncSession,
    email_service: EmailService,
    *,
    enrollment_id: UUID,
    user_id: UUID,
    email: str,
    full_name: str,
    token: str,
) -> bool:
    """
    Send the password-setup email; on failure store it for redelivery.

    Never raises.
    """
    template_data = {
        "fullName": full_name,
        "email": email,
        "setupUrl": build_setup_url(token),
        "expiryHours": TOKEN_EXPIRY_HOURS,
    }

    try:
        result = await email_service.send_email(
            to=email,
            template=TEMPLATE_PASSWORD_SETUP,
            template_data=template_data,
        )
        if result.success:
            logger.info(f"Sent password setup email to {email}")
            return True
        error = result.error
    except Exception as e:
        error = str(e)

    logger.error(f"Password setup email to {email} failed: {error}")
    await record_failed_email(
        db,
        email_type=TEMPLATE_PASSWORD_SETUP,
        recipient=email,
        data=template_data,
        enrollment_id=enrollment_id,
        user_id=user_id,
    )
    return False


async def reject_enrollment(
    db: AsyncSession,
    enrollment_id: UUID,
    admin_id: UUID | None = None,
) -> None:
    """
    Reject a pending enrollment.

    No notification is sent.

    Raises:
        AlreadyProcessedError: Enrollment missing or not pending
    """
    logger.info(f"Admin {admin_id} rejecting enrollment {enrollment_id}")

    try:
        await _mark_decided(db, enrollment_id, EnrollmentStatus.REJECTED)
        await db.commit()
    except EnrollmentServiceError:
        await db.rollback()
        logger.warning(f"Enrollment {enrollment_id} not found or already processed")
        raise

    logger.info(f"Enrollment {enrollment_id} rejected")
