"""
HTTP tests for login and token refresh.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.database import get_db
from app.core.security import create_access_token, create_refresh_token, decode_token
from app.main import app
from app.modules.users.models import User, UserRole


@pytest.fixture
def sample_user():
    user = MagicMock(spec=User)
    user.id = uuid4()
    user.email = "student@example.com"
    user.password_hash = "hashed"
    user.full_name = "Student"
    user.role = UserRole.STUDENT
    user.ai_credits = 500
    user.interface_language = "en"
    user.ai_feedback_language = "bn"
    user.created_at = datetime.now(UTC)
    user.updated_at = datetime.now(UTC)
    return user


@pytest_asyncio.fixture
async def client():
    async def override_get_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_login_success(client, sample_user):
    with (
        patch("app.modules.auth.router.UserRepository") as mock_user_repo,
        patch("app.modules.auth.router.verify_password", return_value=True),
    ):
        mock_user_repo.get_by_email = AsyncMock(return_value=sample_user)

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "Student@Example.com", "password": "NewPass123"},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["role"] == "student"
    assert body["user"]["ai_credits"] == 500
    claims = decode_token(body["access_token"])
    assert claims["sub"] == str(sample_user.id)
    assert claims["role"] == "student"
    mock_user_repo.get_by_email.assert_called_once()
    assert mock_user_repo.get_by_email.call_args.args[1] == "student@example.com"


@pytest.mark.asyncio
async def test_login_wrong_password(client, sample_user):
    with (
        patch("app.modules.auth.router.UserRepository") as mock_user_repo,
        patch("app.modules.auth.router.verify_password", return_value=False),
    ):
        mock_user_repo.get_by_email = AsyncMock(return_value=sample_user)

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "student@example.com", "password": "WrongPass1"},
        )

    assert response.status_code == 401
    assert response.json()["error"] == "INVALID_CREDENTIALS"


@pytest.mark.asyncio
async def test_refresh_issues_access_token(client, sample_user):
    with patch("app.modules.auth.router.UserRepository") as mock_user_repo:
        mock_user_repo.get_by_id = AsyncMock(return_value=sample_user)

        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": create_refresh_token(str(sample_user.id))},
        )

    assert response.status_code == 200
    assert decode_token(response.json()["access_token"])["type"] == "access"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client):
    response = await client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": create_access_token(str(uuid4()))},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_logout(client):
    response = await client.post("/api/v1/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Logged out successfully"}
    assert "refreshToken=" in response.headers["set-cookie"]
