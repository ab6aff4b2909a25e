"""
Fixtures for course management tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.courses.models import Course


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def course_id():
    return uuid4()


@pytest.fixture
def sample_course(course_id):
    course = MagicMock(spec=Course)
    course.id = course_id
    course.title = "IELTS Preparation Course"
    course.description = "Eight week evening batch"
    course.capacity = 25
    course.deleted_at = None
    course.created_at = datetime.now(UTC)
    course.updated_at = datetime.now(UTC)
    return course
