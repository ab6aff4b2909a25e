"""
Course Management Service

Admin operations on the course catalogue.

Capacity changes take the same course row lock as admission and
approval, so a capacity can never be lowered below the pending plus
approved enrollments that already hold a seat. Deletion is soft: the
course disappears from admission and capacity lookups, its enrollments
are kept.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.courses.models import Course
from app.modules.courses.repository import CourseRepository
from app.modules.enrollments import repository as enrollment_repository
from app.modules.enrollments.exceptions import (
    CapacityBelowSeatHoldersError,
    CourseNotFoundError,
    EnrollmentServiceError,
    InternalServiceError,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "capacity")


@dataclass
class CourseOverview:
    """A course with its seat usage."""

    course: Course
    current_approved: int = 0
    current_pending: int = 0

    @property
    def available_slots(self) -> int:
        return max(0, self.course.capacity - self.current_approved - self.current_pending)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.course.id,
            "title": self.course.title,
            "description": self.course.description,
            "capacity": self.course.capacity,
            "current_approved": self.current_approved,
            "current_pending": self.current_pending,
            "available_slots": self.available_slots,
            "created_at": self.course.created_at,
            "updated_at": self.course.updated_at,
        }


async def create_course(
    db: AsyncSession,
    *,
    title: str,
    capacity: int,
    description: str | None = None,
) -> CourseOverview:
    """Create a course and commit."""
    try:
        course = await CourseRepository.create(
            db, title=title, capacity=capacity, description=description
        )
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create course {title!r}: {type(e).__name__}", exc_info=True)
        raise InternalServiceError("Failed to create course") from e

    return CourseOverview(course=course)


async def list_courses(db: AsyncSession) -> list[CourseOverview]:
    """Live courses, newest first, with seat usage."""
    courses = await CourseRepository.list_active(db)
    counts = await enrollment_repository.get_seat_counts_by_course(
        db, [course.id for course in courses]
    )
    return [
        CourseOverview(course, *counts.get(course.id, (0, 0)))
        for course in courses
    ]


async def get_course(db: AsyncSession, course_id: UUID) -> CourseOverview:
    """
    Raises:
        CourseNotFoundError: Course does not exist or is deleted
    """
    course = await CourseRepository.get_by_id(db, course_id)
    if course is None:
        raise CourseNotFoundError(course_id)

    counts = await enrollment_repository.get_seat_counts_by_course(db, [course_id])
    return CourseOverview(course, *counts.get(course_id, (0, 0)))


async def update_course(
    db: AsyncSession,
    course_id: UUID,
    changes: dict[str, Any],
) -> CourseOverview:
    """
    Apply a partial update to a course.

    Args:
        db: Database session
        course_id: Course to update
        changes: Field values to set; keys outside title, description and
            capacity are ignored

    Raises:
        CourseNotFoundError: Course does not exist or is deleted
        CapacityBelowSeatHoldersError: New capacity is below the pending plus
            approved enrollments of the course
    """
    changes = {field: value for field, value in changes.items() if field in UPDATABLE_FIELDS}

    try:
        course = await CourseRepository.get_by_id_for_update(db, course_id)
        if course is None:
            raise CourseNotFoundError(course_id)

        if "capacity" in changes:
            seat_holders = await enrollment_repository.count_seat_holders(db, course_id)
            if changes["capacity"] < seat_holders:
                logger.info(
                    f"Refused capacity {changes['capacity']} for course {course_id}: "
                    f"{seat_holders} seat(s) held"
                )
                raise CapacityBelowSeatHoldersError(seat_holders)

        for field, value in changes.items():
            setattr(course, field, value)

        await db.flush()
        await db.refresh(course)
        await db.commit()

    except EnrollmentServiceError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to update course {course_id}: {type(e).__name__}", exc_info=True)
        raise InternalServiceError("Failed to update course") from e

    logger.info(f"Updated course {course_id}: {sorted(changes)}")
    return await get_course(db, course_id)


async def delete_course(db: AsyncSession, course_id: UUID) -> None:
    """
    Soft-delete a course.

    Raises:
        CourseNotFoundError: Course does not exist or is already deleted
    """
    deleted = await CourseRepository.soft_delete(db, course_id)
    if not deleted:
        await db.rollback()
        raise CourseNotFoundError(course_id)

    await db.commit()
    logger.info(f"Soft-deleted course {course_id}")
