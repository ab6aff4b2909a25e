"""
Tests for the password setup token lifecycle.

Tests:
- generate_token format and uniqueness
- issue_token replaces earlier tokens for the same email
- validate_token: valid, unknown, malformed, expired (row deleted)
- consume_token is single use and leaves invalid tokens untouched
- Storage failures are reported as INTERNAL_ERROR
"""

import re
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from app.modules.password_setup.service import (
    TOKEN_EXPIRY_HOURS,
    TokenErrorCode,
    consume_token,
    generate_token,
    issue_token,
    validate_token,
)

EMAIL = "student@example.com"


# ============================================
# Test generate_token / issue_token
# ============================================


def test_generate_token_is_64_hex_chars():
    token = generate_token()

    assert re.fullmatch(r"[0-9a-f]{64}", token)
    assert generate_token() != token


@pytest.mark.asyncio
async def test_issue_token_sets_24_hour_expiry(mock_db, token_repo):
    before = datetime.now(UTC)

    issued = await issue_token(mock_db, EMAIL)

    assert issued.email == EMAIL
    assert token_repo.rows[EMAIL].token == issued.token
    expected = before + timedelta(hours=TOKEN_EXPIRY_HOURS)
    assert abs((issued.expires_at - expected).total_seconds()) < 5
    mock_db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_issue_token_without_commit(mock_db, token_repo):
    await issue_token(mock_db, EMAIL, commit=False)

    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_reissue_invalidates_previous_token(mock_db, token_repo):
    first = await issue_token(mock_db, EMAIL)
    second = await issue_token(mock_db, EMAIL)

    assert first.token != second.token
    assert len(token_repo.rows) == 1

    old = await validate_token(mock_db, first.token)
    new = await validate_token(mock_db, second.token)

    assert old.valid is False
    assert old.error == TokenErrorCode.INVALID_TOKEN
    assert new.valid is True
    assert new.email == EMAIL


# ============================================
# Test validate_token
# ============================================


@pytest.mark.asyncio
async def test_validate_token_valid(mock_db, token_repo):
    issued = await issue_token(mock_db, EMAIL)

    result = await validate_token(mock_db, issued.token)

    assert result.valid is True
    assert result.email == EMAIL
    assert result.error is None
    # Validation alone never consumes
    assert EMAIL in token_repo.rows


@pytest.mark.asyncio
async def test_validate_token_unknown(mock_db, token_repo):
    result = await validate_token(mock_db, generate_token())

    assert result.valid is False
    assert result.error == TokenErrorCode.INVALID_TOKEN
    assert result.message == "Invalid or expired token"


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "short", "Z" * 64, "ab" * 33])
async def test_validate_token_malformed(mock_db, token_repo, token):
    result = await validate_token(mock_db, token)

    assert result.valid is False
    assert result.error == TokenErrorCode.INVALID_TOKEN


@pytest.mark.asyncio
async def test_validate_token_expired_deletes_row(mock_db, token_repo):
    token = generate_token()
    await token_repo.upsert_token(
        mock_db, EMAIL, token, datetime.now(UTC) - timedelta(seconds=1)
    )

    result = await validate_token(mock_db, token)

    assert result.valid is False
    assert result.error == TokenErrorCode.TOKEN_EXPIRED
    assert result.message == "Token has expired"
    assert EMAIL not in token_repo.rows
    mock_db.commit.assert_awaited_once()

    again = await validate_token(mock_db, token)
    assert again.error == TokenErrorCode.INVALID_TOKEN


@pytest.mark.asyncio
async def test_validate_token_storage_error(mock_db):
    with patch("app.modules.password_setup.service.repository") as mock_repo:
        mock_repo.get_token = AsyncMock(
            side_effect=RuntimeError("could not connect to postgres://user:secret@db")
        )

        result = await validate_token(mock_db, generate_token())

    assert result.valid is False
    assert result.error == TokenErrorCode.INTERNAL_ERROR
    assert result.message == "Internal server error"
    assert "secret" not in result.message


# ============================================
# Test consume_token
# ============================================


@pytest.mark.asyncio
async def test_consume_token_is_single_use(mock_db, token_repo):
    issued = await issue_token(mock_db, EMAIL)

    first = await consume_token(mock_db, issued.token)
    second = await consume_token(mock_db, issued.token)

    assert first.valid is True
    assert first.email == EMAIL
    assert second.valid is False
    assert second.error == TokenErrorCode.INVALID_TOKEN
    assert token_repo.rows == {}


@pytest.mark.asyncio
async def test_consume_token_without_commit(mock_db, token_repo):
    issued = await issue_token(mock_db, EMAIL, commit=False)

    result = await consume_token(mock_db, issued.token, commit=False)

    assert result.valid is True
    mock_db.commit.assert_not_called()


@pytest.mark.asyncio
async def test_consume_invalid_token_leaves_storage_untouched(mock_db, token_repo):
    issued = await issue_token(mock_db, EMAIL)

    result = await consume_token(mock_db, generate_token())

    assert result.valid is False
    assert token_repo.rows[EMAIL].token == issued.token


@pytest.mark.asyncio
async def test_consume_token_lost_delete_race(mock_db, token_repo):
    """If another request deleted the row first, this consume fails."""
    issued = await issue_token(mock_db, EMAIL)
    token_repo.delete_token = AsyncMock(return_value=False)

    result = await consume_token(mock_db, issued.token)

    assert result.valid is False
    assert result.error == TokenErrorCode.INVALID_TOKEN


@pytest.mark.asyncio
async def test_consume_token_delete_error(mock_db, token_repo):
    issued = await issue_token(mock_db, EMAIL)
    token_repo.delete_token = AsyncMock(side_effect=RuntimeError("deadlock detected"))

    result = await consume_token(mock_db, issued.token)

    assert result.valid is False
    assert result.error == TokenErrorCode.INTERNAL_ERROR
    mock_db.rollback.assert_awaited()
