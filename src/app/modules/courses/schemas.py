"""
Course Schemas

Request and response bodies for the admin course endpoints.
"""

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.modules.courses.models import NEW_COURSE_CAPACITY
from app.modules.shared.schemas import CamelModel


class CourseCreate(CamelModel):
    """Request body for POST /admin/courses."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    capacity: int = Field(NEW_COURSE_CAPACITY, ge=1, le=10_000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CourseUpdate(CamelModel):
    """
    Request body for PATCH /admin/courses/{id}.

    Only the fields present in the body are changed. An explicit null
    description clears it; title and capacity cannot be null.
    """

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    capacity: int | None = Field(None, ge=1, le=10_000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("capacity")
    @classmethod
    def capacity_not_null(cls, value: int | None) -> int:
        if value is None:
            raise ValueError("must not be null")
        return value


class CourseResponse(CamelModel):
    """A course with its current seat usage."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    title: str
    description: str | None
    capacity: int
    current_approved: int
    current_pending: int
    available_slots: int
    created_at: datetime
    updated_at: datetime


class CourseListResponse(CamelModel):
    courses: list[CourseResponse]
    count: int


class DeleteCourseResponse(CamelModel):
    course_id: UUID
    message: str = "Course deleted successfully"
