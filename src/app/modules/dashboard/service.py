"""
Dashboard Service

Aggregates counts from the course, enrollment, user and notification
tables. Read-only.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.courses.repository import CourseRepository
from app.modules.enrollments import repository as enrollment_repository
from app.modules.enrollments.models import EnrollmentStatus
from app.modules.notifications import repository as notification_repository
from app.modules.notifications.service import RETRY_WINDOW_DAYS
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository


@dataclass
class DashboardStats:
    total_courses: int = 0
    total_capacity: int = 0
    # Pending plus approved enrollments in live courses
    seats_taken: int = 0
    total_students: int = 0
    enrollments: dict[EnrollmentStatus, int] = field(default_factory=dict)
    failed_emails_pending: int = 0

    @property
    def available_slots(self) -> int:
        return max(0, self.total_capacity - self.seats_taken)


async def get_dashboard_stats(db: AsyncSession, *, max_retries: int) -> DashboardStats:
    """
    Args:
        db: Database session
        max_retries: Failed emails retried this many times no longer count as pending
    """
    totals = await enrollment_repository.get_capacity_totals(db)

    return DashboardStats(
        total_courses=await CourseRepository.count_active(db),
        total_capacity=totals.total_capacity,
        seats_taken=totals.approved + totals.pending,
        total_students=await UserRepository.count_by_role(db, UserRole.STUDENT),
        enrollments=await enrollment_repository.count_by_status(db),
        failed_emails_pending=await notification_repository.count_retryable(
            db,
            max_retries=max_retries,
            created_after=datetime.now(UTC) - timedelta(days=RETRY_WINDOW_DAYS),
        ),
    )
