"""
Admin Courses Router

Admin-only course catalogue management.

Endpoints:
- POST /admin/courses - Create a course
- GET /admin/courses - Live courses with seat usage
- GET /admin/courses/{id} - One course with seat usage
- PATCH /admin/courses/{id} - Update title, description or capacity
- DELETE /admin/courses/{id} - Soft-delete a course
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_admin_user
from app.core.database import get_db
from app.modules.courses import service
from app.modules.courses.schemas import (
    CourseCreate,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    DeleteCourseResponse,
)
from app.modules.enrollments.exceptions import EnrollmentServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_http_exception(e: EnrollmentServiceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post(
    "",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Course",
    description="Create a course. Capacity defaults to 50 seats.",
    responses={400: {"description": "Validation error"}},
)
async def create_course(
    data: CourseCreate,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> CourseResponse:
    try:
        overview = await service.create_course(
            db, title=data.title, capacity=data.capacity, description=data.description
        )
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    logger.info(f"Admin {admin.id} created course {overview.course.id}")
    return CourseResponse.model_validate(overview.as_dict())


@router.get(
    "",
    response_model=CourseListResponse,
    summary="List Courses",
    description="Live courses, newest first, with approved and pending counts.",
)
async def list_courses(
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> CourseListResponse:
    overviews = await service.list_courses(db)
    courses = [CourseResponse.model_validate(o.as_dict()) for o in overviews]
    return CourseListResponse(courses=courses, count=len(courses))


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Get Course",
    responses={404: {"description": "Course not found"}},
)
async def get_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> CourseResponse:
    try:
        overview = await service.get_course(db, course_id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return CourseResponse.model_validate(overview.as_dict())


@router.patch(
    "/{course_id}",
    response_model=CourseResponse,
    summary="Update Course",
    description="""
Change a course's title, description or capacity. Fields left out of the
body are unchanged.

Capacity must stay at least 1 and cannot drop below the course's
current pending plus approved enrollments.
""",
    responses={
        400: {
            "description": "Capacity below current enrollments, or validation error",
            "content": {
                "application/json": {
                    "example": {
                        "error": "Capacity below current enrollments",
                        "code": "CAPACITY_BELOW_ENROLLED",
                        "message": "The course already has 12 pending or approved "
                        "enrollment(s); capacity cannot be set lower.",
                    }
                }
            },
        },
        404: {"description": "Course not found"},
    },
)
async def update_course(
    course_id: UUID,
    data: CourseUpdate,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> CourseResponse:
    try:
        overview = await service.update_course(
            db, course_id, data.model_dump(exclude_unset=True)
        )
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    return CourseResponse.model_validate(overview.as_dict())


@router.delete(
    "/{course_id}",
    response_model=DeleteCourseResponse,
    summary="Delete Course",
    description="""
Soft-delete a course. It stops accepting applications and no longer
appears in course or capacity listings. Existing enrollments are kept.
""",
    responses={404: {"description": "Course not found"}},
)
async def delete_course(
    course_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> DeleteCourseResponse:
    try:
        await service.delete_course(db, course_id)
    except EnrollmentServiceError as e:
        raise _to_http_exception(e) from e

    logger.info(f"Admin {admin.id} deleted course {course_id}")
    return DeleteCourseResponse(course_id=course_id)
