"""
Admin Dashboard Router

Endpoints:
- GET /admin/dashboard - Course, capacity, enrollment and email counts
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_admin_user
from app.core.config import settings
from app.core.database import get_db
from app.modules.dashboard import service
from app.modules.dashboard.schemas import DashboardResponse, EnrollmentCounts
from app.modules.enrollments.models import EnrollmentStatus

router = APIRouter()


@router.get(
    "",
    response_model=DashboardResponse,
    summary="Admin Dashboard",
    description="""
Headline numbers for the admin dashboard.

`availableSlots` is summed over live courses and counts pending
applications as taken. `failedEmailsPending` counts stored emails the
redelivery sweep will still retry.
""",
)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> DashboardResponse:
    stats = await service.get_dashboard_stats(
        db, max_retries=settings.failed_email_max_retries
    )

    return DashboardResponse(
        total_courses=stats.total_courses,
        total_capacity=stats.total_capacity,
        available_slots=stats.available_slots,
        total_students=stats.total_students,
        enrollments=EnrollmentCounts(
            pending=stats.enrollments.get(EnrollmentStatus.PENDING, 0),
            approved=stats.enrollments.get(EnrollmentStatus.APPROVED, 0),
            rejected=stats.enrollments.get(EnrollmentStatus.REJECTED, 0),
        ),
        failed_emails_pending=stats.failed_emails_pending,
    )
