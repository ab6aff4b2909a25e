"""
Course Repository

Database operations for courses. All lookups ignore soft-deleted rows.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.courses.models import Course

logger = logging.getLogger(__name__)


class CourseRepository:
    """Repository for course database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        title: str,
        capacity: int,
        description: str | None = None,
        course_id: UUID | None = None,
    ) -> Course:
        """
        Create a course (flushes, does not commit).

        Args:
            db: Database session
            title: Course title
            capacity: Maximum number of pending plus approved enrollments
            description: Optional description
            course_id: Explicit ID, generated when omitted

        Returns:
            Created Course instance
        """
        course = Course(title=title, capacity=capacity, description=description)
        if course_id is not None:
            course.id = course_id

        db.add(course)
        await db.flush()
        await db.refresh(course)

        logger.info(f"Created course: {course.id} - {course.title} (capacity {course.capacity})")
        return course

    @staticmethod
    async def get_by_id(db: AsyncSession, course_id: UUID) -> Course | None:
        """Get a live course by ID."""
        result = await db.execute(
            select(Course).where(Course.id == course_id, Course.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_id_for_update(db: AsyncSession, course_id: UUID) -> Course | None:
        """
        Get a live course by ID and lock its row until the transaction ends.

        Every transaction that counts enrollments against the course's
        capacity and then writes must take this lock first, so that
        concurrent admissions and approvals for the same course run one at
        a time.
        """
        result = await db.execute(
            select(Course)
            .where(Course.id == course_id, Course.deleted_at.is_(None))
            .with_for_update()
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_active(db: AsyncSession) -> list[Course]:
        """All live courses, newest first."""
        result = await db.execute(
            select(Course).where(Course.deleted_at.is_(None)).order_by(Course.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_active(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Course.id)).where(Course.deleted_at.is_(None))
        )
        return result.scalar_one()

    @staticmethod
    async def soft_delete(db: AsyncSession, course_id: UUID) -> bool:
        """
        Stamp deleted_at on a live course.

        Returns:
            True if a live course was deleted
        """
        result = await db.execute(
            update(Course)
            .where(Course.id == course_id, Course.deleted_at.is_(None))
            .values(deleted_at=func.now())
        )
        return result.rowcount > 0
