"""
Dashboard Schemas
"""

from app.modules.shared.schemas import CamelModel


class EnrollmentCounts(CamelModel):
    pending: int
    approved: int
    rejected: int


class DashboardResponse(CamelModel):
    """Response for GET /admin/dashboard."""

    total_courses: int
    total_capacity: int
    available_slots: int
    total_students: int
    enrollments: EnrollmentCounts
    failed_emails_pending: int
