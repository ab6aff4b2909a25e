"""
Enrollment Admission Service

Business logic for students applying to a course.

Admission control:
- The course row is locked (SELECT ... FOR UPDATE) before anything is
  counted, so concurrent submissions for the same course are serialized
  and pending plus approved enrollments can never exceed capacity.
- The duplicate check runs before the capacity check so a student who
  already applied gets the more specific error.
- A partial unique index on (email, course_id) for non-rejected rows
  backs up the duplicate check at the database level.

No email is sent at submission time.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.courses.repository import CourseRepository
from app.modules.enrollments import repository
from app.modules.enrollments.exceptions import (
    BatchFullError,
    CourseNotFoundError,
    DuplicateApplicationError,
    EnrollmentNotFoundError,
    EnrollmentServiceError,
)
from app.modules.enrollments.models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)


@dataclass
class CourseCapacity:
    """Seat usage for a single course as shown to applicants."""

    capacity: int
    current: int

    @property
    def available(self) -> int:
        return max(0, self.capacity - self.current)


@dataclass
class EnrollmentCapacity:
    """Capacity breakdown for one course or all courses (admin view)."""

    total_capacity: int
    current_approved: int
    current_pending: int

    @property
    def available_slots(self) -> int:
        return max(0, self.total_capacity - self.current_approved - self.current_pending)


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def submit_application(
    db: AsyncSession,
    *,
    course_id: UUID,
    full_name: str,
    email: str,
    transaction_id: str,
) -> Enrollment:
    """
    Record a new enrollment application.

    Runs as one transaction holding the course row lock:
    1. Lock the course (404 if it does not exist)
    2. Reject if the applicant already has a pending/approved enrollment
    3. Reject if pending + approved enrollments have reached capacity
    4. Insert the enrollment as pending and commit

    Args:
        db: Database session
        course_id: Course being applied to
        full_name: Applicant's full name
        email: Applicant's email
        transaction_id: Payment transaction reference

    Returns:
        The created pending Enrollment

    Raises:
        CourseNotFoundError: Course does not exist or is deleted
        DuplicateApplicationError: Applicant already applied to this course
        BatchFullError: Course is at capacity
    """
    email = normalize_email(email)

    try:
        course = await CourseRepository.get_by_id_for_update(db, course_id)
        if course is None:
            raise CourseNotFoundError(course_id)

        existing = await repository.find_active_enrollment(db, email, course_id)
        if existing is not None:
            logger.info(f"Duplicate application from {email} for course {course_id}")
            raise DuplicateApplicationError()

        current = await repository.count_seat_holders(db, course_id)
        if current >= course.capacity:
            logger.info(f"Course {course_id} is full ({current}/{course.capacity})")
            raise BatchFullError()

        enrollment = await repository.create_enrollment(
            db,
            course_id=course_id,
            full_name=full_name,
            email=email,
            transaction_id=transaction_id,
        )
        await db.commit()

    except EnrollmentServiceError:
        await db.rollback()
        raise
    except IntegrityError as e:
        # Unique index on active (email, course_id) caught a race
        await db.rollback()
        logger.info(f"Duplicate application from {email} rejected by unique index")
        raise DuplicateApplicationError() from e

    logger.info(
        f"Enrollment {enrollment.id} submitted for course {course_id} "
        f"({current + 1}/{course.capacity} seats taken)"
    )
    return enrollment


async def get_course_capacity(db: AsyncSession, course_id: UUID) -> CourseCapacity:
    """
    Current seat usage of a course.

    Raises:
        CourseNotFoundError: Course does not exist or is deleted
    """
    course = await CourseRepository.get_by_id(db, course_id)
    if course is None:
        raise CourseNotFoundError(course_id)

    current = await repository.count_seat_holders(db, course_id)
    return CourseCapacity(capacity=course.capacity, current=current)


async def get_capacity_info(db: AsyncSession, course_id: UUID | None = None) -> EnrollmentCapacity:
    """
    Approved/pending breakdown for one course, or aggregated over all
    live courses when course_id is None.

    Raises:
        CourseNotFoundError: course_id given but no such live course
    """
    if course_id is not None and await CourseRepository.get_by_id(db, course_id) is None:
        raise CourseNotFoundError(course_id)

    totals = await repository.get_capacity_totals(db, course_id)
    return EnrollmentCapacity(
        total_capacity=totals.total_capacity,
        current_approved=totals.approved,
        current_pending=totals.pending,
    )


async def list_enrollments(
    db: AsyncSession,
    *,
    course_id: UUID | None = None,
    status: EnrollmentStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Enrollment]:
    """Enrollments, newest first, optionally filtered."""
    return await repository.list_enrollments(
        db, course_id=course_id, status=status, limit=limit, offset=offset
    )


async def get_pending_enrollments(db: AsyncSession) -> list[tuple[Enrollment, str]]:
    """Review queue: pending enrollments with course titles, oldest first."""
    return await repository.get_pending_with_course_title(db)


async def get_enrollment(db: AsyncSession, enrollment_id: UUID) -> Enrollment:
    """
    Raises:
        EnrollmentNotFoundError: No enrollment with this ID
    """
    enrollment = await repository.get_by_id(db, enrollment_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(enrollment_id)
    return enrollment
