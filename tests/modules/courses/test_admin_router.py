"""
HTTP tests for the admin course endpoints.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.auth import AuthenticatedUser, get_current_admin_user
from app.core.database import get_db
from app.main import app
from app.modules.courses.service import CourseOverview
from app.modules.enrollments.exceptions import CapacityBelowSeatHoldersError, CourseNotFoundError

COURSES = "/api/v1/admin/courses"
SERVICE = "app.modules.courses.service"


@pytest_asyncio.fixture
async def client(mock_db):
    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_admin_user] = lambda: AuthenticatedUser(
        id=uuid4(), email="admin@example.com", role="admin"
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_create_course(client, sample_course):
    with patch(
        f"{SERVICE}.create_course",
        new_callable=AsyncMock,
        return_value=CourseOverview(sample_course),
    ) as mock_create:
        response = await client.post(
            COURSES, json={"title": "  IELTS Preparation Course ", "capacity": 25}
        )

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == str(sample_course.id)
    assert body["capacity"] == 25
    assert body["availableSlots"] == 25
    assert mock_create.call_args.kwargs == {
        "title": "IELTS Preparation Course",
        "capacity": 25,
        "description": None,
    }


@pytest.mark.asyncio
async def test_create_course_default_capacity(client, sample_course):
    with patch(
        f"{SERVICE}.create_course",
        new_callable=AsyncMock,
        return_value=CourseOverview(sample_course),
    ) as mock_create:
        await client.post(COURSES, json={"title": "Weekend Batch"})

    assert mock_create.call_args.kwargs["capacity"] == 50


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"title": "Batch", "capacity": 0},
        {"title": "   ", "capacity": 10},
        {"capacity": 10},
    ],
)
async def test_create_course_validation(client, body):
    with patch(f"{SERVICE}.create_course", new_callable=AsyncMock) as mock_create:
        response = await client.post(COURSES, json=body)

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
    mock_create.assert_not_called()


@pytest.mark.asyncio
async def test_list_courses(client, sample_course):
    with patch(
        f"{SERVICE}.list_courses",
        new_callable=AsyncMock,
        return_value=[CourseOverview(sample_course, 12, 3)],
    ):
        response = await client.get(COURSES)

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    course = body["courses"][0]
    assert course["currentApproved"] == 12
    assert course["currentPending"] == 3
    assert course["availableSlots"] == 10


@pytest.mark.asyncio
async def test_get_course_not_found(client, course_id):
    with patch(
        f"{SERVICE}.get_course",
        new_callable=AsyncMock,
        side_effect=CourseNotFoundError(course_id),
    ):
        response = await client.get(f"{COURSES}/{course_id}")

    assert response.status_code == 404
    assert response.json()["error"] == "Course not found"


@pytest.mark.asyncio
async def test_update_course_sends_only_given_fields(client, course_id, sample_course):
    with patch(
        f"{SERVICE}.update_course",
        new_callable=AsyncMock,
        return_value=CourseOverview(sample_course),
    ) as mock_update:
        response = await client.patch(f"{COURSES}/{course_id}", json={"capacity": 30})

    assert response.status_code == 200
    assert mock_update.call_args.args[1:] == (course_id, {"capacity": 30})


@pytest.mark.asyncio
async def test_update_course_capacity_below_seat_holders(client, course_id):
    with patch(
        f"{SERVICE}.update_course",
        new_callable=AsyncMock,
        side_effect=CapacityBelowSeatHoldersError(12),
    ):
        response = await client.patch(f"{COURSES}/{course_id}", json={"capacity": 5})

    assert response.status_code == 400
    assert response.json()["code"] == "CAPACITY_BELOW_ENROLLED"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"capacity": 0}, {"capacity": None}, {"title": None}])
async def test_update_course_validation(client, course_id, body):
    with patch(f"{SERVICE}.update_course", new_callable=AsyncMock) as mock_update:
        response = await client.patch(f"{COURSES}/{course_id}", json=body)

    assert response.status_code == 400
    mock_update.assert_not_called()


@pytest.mark.asyncio
async def test_delete_course(client, course_id):
    with patch(f"{SERVICE}.delete_course", new_callable=AsyncMock) as mock_delete:
        response = await client.delete(f"{COURSES}/{course_id}")

    assert response.status_code == 200
    assert response.json() == {
        "courseId": str(course_id),
        "message": "Course deleted successfully",
    }
    mock_delete.assert_awaited_once()


@pytest.mark.asyncio
async def test_course_endpoints_require_authentication(mock_db):
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get(COURSES)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code in (401, 403)
