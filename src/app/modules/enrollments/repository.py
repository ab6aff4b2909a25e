"""
Enrollment Repository

Data access layer for enrollments. Functions flush but never commit:
admission and approval each run as a single transaction owned by the
service layer.

Status changes go through update_status_if_pending, a compare-and-swap
on status (UPDATE ... WHERE status = 'pending') whose row count tells
the caller whether it won.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.courses.models import Course
from app.modules.enrollments.models import SEAT_HOLDING_STATUSES, Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)


@dataclass
class CapacityTotals:
    """Raw numbers behind an EnrollmentCapacity."""

    total_capacity: int
    approved: int
    pending: int


async def create_enrollment(
    db: AsyncSession,
    *,
    course_id: UUID,
    full_name: str,
    email: str,
    transaction_id: str,
) -> Enrollment:
    """Insert a pending enrollment."""
    enrollment = Enrollment(
        course_id=course_id,
        full_name=full_name,
        email=email,
        transaction_id=transaction_id,
        status=EnrollmentStatus.PENDING,
    )
    db.add(enrollment)
    await db.flush()
    await db.refresh(enrollment)

    logger.info(f"Created enrollment: {enrollment.id} for course {course_id}")
    return enrollment


async def get_by_id(db: AsyncSession, enrollment_id: UUID) -> Enrollment | None:
    result = await db.execute(select(Enrollment).where(Enrollment.id == enrollment_id))
    return result.scalar_one_or_none()


async def find_active_enrollment(
    db: AsyncSession,
    email: str,
    course_id: UUID,
) -> Enrollment | None:
    """
    Find a pending or approved enrollment for (email, course).

    Email comparison is case-insensitive.
    """
    result = await db.execute(
        select(Enrollment)
        .where(
            func.lower(Enrollment.email) == email.lower(),
            Enrollment.course_id == course_id,
            Enrollment.status.in_(SEAT_HOLDING_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def count_seat_holders(db: AsyncSession, course_id: UUID) -> int:
    """Number of pending plus approved enrollments in a course."""
    result = await db.execute(
        select(func.count(Enrollment.id)).where(
            Enrollment.course_id == course_id,
            Enrollment.status.in_(SEAT_HOLDING_STATUSES),
        )
    )
    return result.scalar_one()


async def count_approved(db: AsyncSession, course_id: UUID) -> int:
    """Number of approved enrollments in a course."""
    result = await db.execute(
        select(func.count(Enrollment.id)).where(
            Enrollment.course_id == course_id,
            Enrollment.status == EnrollmentStatus.APPROVED,
        )
    )
    return result.scalar_one()


async def get_pending_for_update(db: AsyncSession, enrollment_id: UUID) -> Enrollment | None:
    """
    Fetch an enrollment only if it is still pending, locking its row.

    Returns None when the enrollment does not exist or has already been
    decided.
    """
    result = await db.execute(
        select(Enrollment)
        .where(
            Enrollment.id == enrollment_id,
            Enrollment.status == EnrollmentStatus.PENDING,
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def update_status_if_pending(
    db: AsyncSession,
    enrollment_id: UUID,
    new_status: EnrollmentStatus,
) -> bool:
    """
    Move a pending enrollment to new_status.

    Returns:
        True if this call changed the row, False if it was not pending
    """
    result = await db.execute(
        update(Enrollment)
        .where(
            Enrollment.id == enrollment_id,
            Enrollment.status == EnrollmentStatus.PENDING,
        )
        .values(status=new_status, updated_at=func.now())
    )
    return result.rowcount == 1


async def list_enrollments(
    db: AsyncSession,
    *,
    course_id: UUID | None = None,
    status: EnrollmentStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Enrollment]:
    """Enrollments, newest first, optionally filtered by course and status."""
    query = select(Enrollment)

    if course_id is not None:
        query = query.where(Enrollment.course_id == course_id)
    if status is not None:
        query = query.where(Enrollment.status == status)

    query = query.order_by(Enrollment.created_at.desc()).offset(offset).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def get_pending_with_course_title(db: AsyncSession) -> list[tuple[Enrollment, str]]:
    """Pending enrollments with their course title, oldest first (review queue order)."""
    result = await db.execute(
        select(Enrollment, Course.title)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Enrollment.status == EnrollmentStatus.PENDING)
        .order_by(Enrollment.created_at.asc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def get_capacity_totals(db: AsyncSession, course_id: UUID | None = None) -> CapacityTotals:
    """
    Capacity and seat usage for one course, or summed over all live courses.

    Args:
        db: Database session
        course_id: Course to inspect; None aggregates every live course
    """
    capacity_query = select(func.coalesce(func.sum(Course.capacity), 0)).where(
        Course.deleted_at.is_(None)
    )
    counts_query = (
        select(
            func.count(case((Enrollment.status == EnrollmentStatus.APPROVED, 1))),
            func.count(case((Enrollment.status == EnrollmentStatus.PENDING, 1))),
        )
        .select_from(Enrollment)
        .join(Course, Course.id == Enrollment.course_id)
        .where(Course.deleted_at.is_(None))
    )

    if course_id is not None:
        capacity_query = capacity_query.where(Course.id == course_id)
        counts_query = counts_query.where(Enrollment.course_id == course_id)

    total_capacity = (await db.execute(capacity_query)).scalar_one()
    approved, pending = (await db.execute(counts_query)).one()

    return CapacityTotals(
        total_capacity=int(total_capacity),
        approved=int(approved),
        pending=int(pending),
    )


async def get_seat_counts_by_course(
    db: AsyncSession, course_ids: list[UUID]
) -> dict[UUID, tuple[int, int]]:
    """
    Approved and pending counts per course.

    Returns:
        {course_id: (approved, pending)}; courses without enrollments are absent
    """
    if not course_ids:
        return {}

    result = await db.execute(
        select(
            Enrollment.course_id,
            func.count(case((Enrollment.status == EnrollmentStatus.APPROVED, 1))),
            func.count(case((Enrollment.status == EnrollmentStatus.PENDING, 1))),
        )
        .where(Enrollment.course_id.in_(course_ids))
        .group_by(Enrollment.course_id)
    )
    return {row[0]: (int(row[1]), int(row[2])) for row in result.all()}


async def count_by_status(db: AsyncSession) -> dict[EnrollmentStatus, int]:
    """Number of enrollments in each status, zero-filled."""
    result = await db.execute(
        select(Enrollment.status, func.count(Enrollment.id)).group_by(Enrollment.status)
    )
    counts = {status: 0 for status in EnrollmentStatus}
    for status, count in result.all():
        counts[EnrollmentStatus(status)] = int(count)
    return counts
