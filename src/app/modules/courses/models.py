"""
Course Models

A course is the unit students apply to. Its capacity is the ceiling on
pending plus approved enrollments.
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel

# Seeded by the initial migration
DEFAULT_COURSE_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

# Capacity of courses created through the admin API when none is given
NEW_COURSE_CAPACITY = 50


class Course(BaseModel):
    """
    Course offered for enrollment.

    Soft-deleted courses (deleted_at set) are invisible to admission and
    capacity lookups.
    """

    __tablename__ = "courses"
    __table_args__ = (CheckConstraint("capacity >= 1", name="ck_courses_capacity_positive"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=NEW_COURSE_CAPACITY)

    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title={self.title}, capacity={self.capacity})>"
