"""
Admin Enrollments Router

Admin-only endpoints for reviewing enrollment applications.

All endpoints require authentication with the admin role.

Endpoints:
- GET /admin/enrollments/pending - Review queue, oldest first
- GET /admin/enrollments/capacity - Capacity breakdown (one course or all)
- PATCH /admin/enrollments/{id}/approve - Approve and provision the student account
- PATCH /admin/enrollments/{id}/reject - Reject
- POST /admin/enrollments/failed-emails/retry - Redeliver failed emails now
- GET /admin/enrollments/{id} - A single enrollment

Security:
- Approve/reject are rate limited per admin
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_admin_user
from app.core.config import settings
from app.core.database import get_db
from app.core.email import EmailService, get_email_service
from app.core.rate_limit import enforce_rate_limit
from app.modules.enrollments import admin_service, service
from app.modules.enrollments.exceptions import EnrollmentServiceError
from app.modules.enrollments.schemas import (
    ApproveEnrollmentResponse,
    EnrollmentCapacityResponse,
    EnrollmentResponse,
    PendingEnrollmentItem,
    PendingEnrollmentListResponse,
    RejectEnrollmentResponse,
    RetryFailedEmailsResponse,
)
from app.modules.notifications.service import retry_failed_emails

logger = logging.getLogger(__name__)

router = APIRouter()

# (limit, window_seconds)
RATE_LIMIT_DECIDE = (30, 60)
RATE_LIMIT_RETRY_EMAILS = (5, 60)


async def _check_admin_rate_limit(
    admin: AuthenticatedUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Rate limit an admin action per admin.

    Raises:
        RateLimitExceeded: If rate limit is exceeded
    """
    await enforce_rate_limit(f"admin:{action}:{admin.id}", limit, window_seconds)


def _to_http_exception(e: EnrollmentServiceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get(
    "/pending",
    response_model=PendingEnrollmentListResponse,
    summary="List Pending Enrollments",
    description="Pending enrollments with their course title, oldest first.",
)
async def list_pending_enrollments(
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> PendingEnrollmentListResponse:
    rows = await service.get_pending_enrollments(db)

    items = [
        PendingEnrollmentItem(
            **EnrollmentResponse.model_validate(enrollment).model_dump(),
            course_title=course_title,
        )
        for enrollment, course_title in rows
    ]
    return PendingEnrollmentListResponse(enrollments=items, count=len(items))


@router.get(
    "/capacity",
    response_model=EnrollmentCapacityResponse,
    summary="Get Enrollment Capacity",
    description="""
Capacity breakdown for one course (`courseId`) or summed over all courses.

`availableSlots = max(0, totalCapacity - currentApproved - currentPending)`
""",
    responses={404: {"description": "Course not found"}},
)
async def get_enrollment_capacity(
    course_id: UUID | None = Query(None, alias="courseId"),
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> EnrollmentCapacityResponse:
    try:
        capacity = await service.get_capacity_info(db, course_id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return EnrollmentCapacityResponse(
        total_capacity=capacity.total_capacity,
        current_approved=capacity.current_approved,
        current_pending=capacity.current_pending,
        available_slots=capacity.available_slots,
    )


@router.patch(
    "/{enrollment_id}/approve",
    response_model=ApproveEnrollmentResponse,
    summary="Approve Enrollment",
    description="""
Approve a pending enrollment.

**Actions performed (single transaction):**
1. Checks the enrollment is still pending
2. Checks the course still has a seat for another approved student
3. Creates the student account unless one exists for the email
4. Marks the enrollment approved
5. Issues a 24-hour password-setup token for new accounts

After the transaction commits, the password-setup email is sent.
`emailSent: false` means delivery failed and the email was queued for
retry; the approval itself has succeeded.
""",
    responses={
        400: {
            "description": "Enrollment not found or already processed, or course capacity exceeded",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Enrollment not found or already processed",
                        "code": "ALREADY_PROCESSED",
                        "message": "The enrollment does not exist or has already been "
                        "approved or rejected.",
                    }
                }
            },
        },
        429: {"description": "Rate limit exceeded"},
    },
)
async def approve_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    email_service: EmailService = Depends(get_email_service),
) -> ApproveEnrollmentResponse:
    """
    Raises:
        HTTPException 400: Not pending, or no seat left
        HTTPException 500: Account provisioning failed
    """
    await _check_admin_rate_limit(admin, "approve", *RATE_LIMIT_DECIDE)

    try:
        result = await admin_service.approve_enrollment(
            db, enrollment_id, email_service=email_service, admin_id=admin.id
        )
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return ApproveEnrollmentResponse(
        enrollment_id=result.enrollment_id,
        password_token_generated=result.password_token_generated,
        email_sent=result.email_sent,
    )


@router.patch(
    "/{enrollment_id}/reject",
    response_model=RejectEnrollmentResponse,
    summary="Reject Enrollment",
    responses={400: {"description": "Enrollment not found or already processed"}},
)
async def reject_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> RejectEnrollmentResponse:
    """Reject a pending enrollment. No email is sent."""
    await _check_admin_rate_limit(admin, "reject", *RATE_LIMIT_DECIDE)

    try:
        await admin_service.reject_enrollment(db, enrollment_id, admin_id=admin.id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return RejectEnrollmentResponse(enrollment_id=enrollment_id)


@router.post(
    "/failed-emails/retry",
    response_model=RetryFailedEmailsResponse,
    summary="Retry Failed Emails",
    description="""
Redeliver stored failed emails now instead of waiting for the scheduled
sweep. Attempts already retried `maxRetries` times, or older than 7 days,
are skipped.
""",
)
async def retry_failed_emails_now(
    max_retries: int = Query(settings.failed_email_max_retries, alias="maxRetries", ge=1, le=10),
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    email_service: EmailService = Depends(get_email_service),
) -> RetryFailedEmailsResponse:
    await _check_admin_rate_limit(admin, "retry_emails", *RATE_LIMIT_RETRY_EMAILS)

    logger.info(f"Admin {admin.id} triggered failed email retry (max_retries={max_retries})")
    summary = await retry_failed_emails(db, email_service=email_service, max_retries=max_retries)

    return RetryFailedEmailsResponse(**summary.as_dict())


@router.get(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Get Enrollment",
    responses={404: {"description": "Enrollment not found"}},
)
async def get_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> EnrollmentResponse:
    """A single enrollment in any status."""
    try:
        enrollment = await service.get_enrollment(db, enrollment_id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return EnrollmentResponse.model_validate(enrollment)
