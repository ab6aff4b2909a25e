"""
Fixtures for enrollment tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.core.email import EmailResult, EmailService
from app.modules.courses.models import Course
from app.modules.enrollments.models import Enrollment, EnrollmentStatus
from app.modules.users.models import User, UserRole


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.refresh = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def course_id():
    return uuid4()


@pytest.fixture
def enrollment_id():
    return uuid4()


@pytest.fixture
def admin_id():
    return uuid4()


@pytest.fixture
def sample_course(course_id):
    """A course with the default 25 seats."""
    course = MagicMock(spec=Course)
    course.id = course_id
    course.title = "IELTS Preparation Course"
    course.capacity = 25
    course.deleted_at = None
    return course


@pytest.fixture
def sample_pending_enrollment(enrollment_id, course_id):
    """A pending enrollment awaiting review."""
    enrollment = MagicMock(spec=Enrollment)
    enrollment.id = enrollment_id
    enrollment.course_id = course_id
    enrollment.full_name = "Nusrat Jahan"
    enrollment.email = "nusrat@example.com"
    enrollment.transaction_id = "TXN-1001"
    enrollment.status = EnrollmentStatus.PENDING
    enrollment.created_at = datetime.now(UTC)
    enrollment.updated_at = datetime.now(UTC)
    return enrollment


@pytest.fixture
def sample_user():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "nusrat@example.com"
    user.full_name = "Nusrat Jahan"
    user.role = UserRole.STUDENT
    return user


@pytest.fixture
def mock_email_service():
    """EmailService whose sends succeed."""
    email_service = MagicMock(spec=EmailService)
    email_service.send_email = AsyncMock(
        return_value=EmailResult(success=True, message_id="mock-1")
    )
    return email_service
