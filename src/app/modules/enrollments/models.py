"""
Enrollment Models

An enrollment is a student's application to a course. It is created as
pending by admission and decided exactly once by an admin.
"""

import enum
import uuid

from sqlalchemy import Enum, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.courses.models import Course
from app.modules.shared import BaseModel


class EnrollmentStatus(str, enum.Enum):
    """Status of an enrollment."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that hold a seat in the course
SEAT_HOLDING_STATUSES = (EnrollmentStatus.PENDING, EnrollmentStatus.APPROVED)


class Enrollment(BaseModel):
    """
    Enrollment application.

    At most one non-rejected enrollment may exist per (email, course).
    Enrollments are never deleted.
    """

    __tablename__ = "enrollments"

    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("courses.id"),
        nullable=False,
    )

    # Applicant
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # Payment reference supplied by the applicant
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[EnrollmentStatus] = mapped_column(
        Enum(
            EnrollmentStatus,
            name="enrollment_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=EnrollmentStatus.PENDING,
    )

    course: Mapped[Course] = relationship("Course", lazy="raise")

    __table_args__ = (
        Index("idx_enrollments_course_status", "course_id", "status"),
        Index("idx_enrollments_status_created", "status", "created_at"),
        Index(
            "uq_enrollments_active_email_course",
            "email",
            "course_id",
            unique=True,
            postgresql_where=text("status <> 'rejected'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Enrollment(id={self.id}, email={self.email}, status={self.status.value})>"
