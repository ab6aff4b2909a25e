"""
Enrollments module - Course applications, admission control and admin
approval.
"""

from app.modules.enrollments.admin_router import router as admin_router
from app.modules.enrollments.models import Enrollment, EnrollmentStatus
from app.modules.enrollments.router import router

__all__ = ["router", "admin_router", "Enrollment", "EnrollmentStatus"]
