"""
Enrollment Schemas

Pydantic schemas for request validation and response serialization.
The public API uses camelCase field names.
"""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.modules.enrollments.models import EnrollmentStatus
from app.modules.shared.schemas import CamelModel


# ============================================
# Public
# ============================================


class EnrollmentCreate(CamelModel):
    """Request body for POST /enrollments."""

    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    transaction_id: str = Field(..., min_length=1, max_length=255)
    course_id: UUID

    @field_validator("full_name", "transaction_id")
    @classmethod
    def strip_whitespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class EnrollmentResponse(CamelModel):
    """An enrollment record."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    course_id: UUID
    full_name: str
    email: str
    transaction_id: str
    status: EnrollmentStatus
    created_at: datetime
    updated_at: datetime


class EnrollmentSubmitResponse(CamelModel):
    """Response for a successful submission."""

    message: str = (
        "Application submitted successfully! "
        "We will review your application and contact you soon."
    )
    enrollment: EnrollmentResponse


class EnrollmentListResponse(CamelModel):
    """Response for GET /enrollments."""

    enrollments: list[EnrollmentResponse]
    count: int


class CourseCapacityResponse(CamelModel):
    """Response for GET /enrollments/capacity/{courseId}."""

    capacity: int = Field(..., description="Course capacity ceiling")
    current: int = Field(..., description="Pending plus approved enrollments")
    available: int = Field(..., description="Seats still open to new applications")


# ============================================
# Admin
# ============================================


class PendingEnrollmentItem(EnrollmentResponse):
    """A pending enrollment in the review queue."""

    course_title: str


class PendingEnrollmentListResponse(CamelModel):
    enrollments: list[PendingEnrollmentItem]
    count: int


class EnrollmentCapacityResponse(CamelModel):
    """Capacity for one course or summed over all courses."""

    total_capacity: int
    current_approved: int
    current_pending: int
    available_slots: int


class ApproveEnrollmentResponse(CamelModel):
    """
    Response for PATCH /admin/enrollments/{id}/approve.

    email_sent is independent of approval: an approved enrollment whose
    email failed is still approved, and the email is queued for retry.
    """

    enrollment_id: UUID
    password_token_generated: bool
    email_sent: bool
    message: str = "Enrollment approved successfully"


class RejectEnrollmentResponse(CamelModel):
    enrollment_id: UUID
    message: str = "Enrollment rejected successfully"


class RetryFailedEmailsResponse(CamelModel):
    """Counts from a failed-email redelivery sweep."""

    processed: int
    succeeded: int
    failed: int
