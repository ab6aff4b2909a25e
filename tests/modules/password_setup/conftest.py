"""
Fixtures for password setup token tests.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest


class InMemoryTokenRepository:
    """Stands in for the token repository: one row per email, looked up by token."""

    def __init__(self):
        self.rows = {}

    async def upsert_token(self, db, email, token, expires_at):
        self.rows[email] = SimpleNamespace(email=email, token=token, expires_at=expires_at)

    async def get_token(self, db, token):
        for row in self.rows.values():
            if row.token == token:
                return row
        return None

    async def delete_token(self, db, token):
        for email, row in list(self.rows.items()):
            if row.token == token:
                del self.rows[email]
                return True
        return False


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def token_repo():
    repo = InMemoryTokenRepository()
    with patch("app.modules.password_setup.service.repository", repo):
        yield repo
