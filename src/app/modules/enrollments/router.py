"""
Enrollments Router

Public endpoints used by prospective students.

Endpoints:
- POST /enrollments - Apply to a course
- GET /enrollments - List enrollments (optional courseId/status filters)
- GET /enrollments/capacity/{course_id} - Seats used and available in a course

Security:
- Submissions are rate limited per client IP (3 per 5 minutes)
- Input validation via Pydantic schemas
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit, get_client_ip
from app.modules.enrollments import service
from app.modules.enrollments.exceptions import EnrollmentServiceError
from app.modules.enrollments.models import EnrollmentStatus
from app.modules.enrollments.schemas import (
    CourseCapacityResponse,
    EnrollmentCreate,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentSubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# (limit, window_seconds)
RATE_LIMIT_SUBMIT = (3, 5 * 60)


def _to_http_exception(e: EnrollmentServiceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


def _internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.post(
    "",
    response_model=EnrollmentSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to a Course",
    description="""
Submit an enrollment application for a course.

The application is stored as **pending** until an admin approves or
rejects it. No email is sent at this stage.

**Admission rules:**
- One pending or approved application per email and course
- Pending plus approved applications never exceed the course capacity
""",
    responses={
        201: {"description": "Application created", "model": EnrollmentSubmitResponse},
        400: {"description": "Validation error"},
        404: {
            "description": "Course not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Course not found",
                        "code": "COURSE_NOT_FOUND",
                        "message": "The requested course does not exist.",
                    }
                }
            },
        },
        409: {
            "description": "Batch is full, or the applicant already applied",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Batch is full",
                        "code": "BATCH_FULL",
                        "message": "The batch has reached its maximum capacity. "
                        "Please try again for the next batch.",
                    }
                }
            },
        },
        429: {"description": "Too many submissions from this IP"},
    },
)
async def submit_enrollment(
    data: EnrollmentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> EnrollmentSubmitResponse:
    """
    Submit an enrollment application.

    Raises:
        HTTPException 404: Course does not exist
        HTTPException 409: Batch is full or duplicate application
        HTTPException 429: Rate limit exceeded
    """
    if settings.python_env != "test":
        await enforce_rate_limit(
            f"enrollments:submit:{get_client_ip(request)}",
            *RATE_LIMIT_SUBMIT,
            message="Too many enrollment attempts. Please wait 5 minutes before trying again.",
        )

    try:
        enrollment = await service.submit_application(
            db,
            course_id=data.course_id,
            full_name=data.full_name,
            email=data.email,
            transaction_id=data.transaction_id,
        )
    except EnrollmentServiceError as e:
        logger.warning(f"Enrollment rejected: {e.error_code} ({data.email}, {data.course_id})")
        raise _to_http_exception(e) from e
    except Exception as e:
        logger.exception(f"Unexpected error submitting enrollment: {e}")
        raise _internal_error() from e

    return EnrollmentSubmitResponse(enrollment=EnrollmentResponse.model_validate(enrollment))


@router.get(
    "",
    response_model=EnrollmentListResponse,
    summary="List Enrollments",
)
async def list_enrollments(
    course_id: UUID | None = Query(None, alias="courseId"),
    enrollment_status: EnrollmentStatus | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> EnrollmentListResponse:
    """List enrollments, newest first."""
    enrollments = await service.list_enrollments(
        db,
        course_id=course_id,
        status=enrollment_status,
        limit=limit,
        offset=offset,
    )
    return EnrollmentListResponse(
        enrollments=[EnrollmentResponse.model_validate(e) for e in enrollments],
        count=len(enrollments),
    )


@router.get(
    "/capacity/{course_id}",
    response_model=CourseCapacityResponse,
    summary="Get Course Capacity",
    description="Seats used (pending plus approved) and still available in a course.",
    responses={404: {"description": "Course not found"}},
)
async def get_course_capacity(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CourseCapacityResponse:
    """
    Raises:
        HTTPException 404: Course does not exist
    """
    try:
        capacity = await service.get_course_capacity(db, course_id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return CourseCapacityResponse(
        capacity=capacity.capacity,
        current=capacity.current,
        available=capacity.available,
    )
