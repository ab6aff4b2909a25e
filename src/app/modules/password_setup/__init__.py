"""
Password setup module - Single-use, time-limited tokens that let newly
provisioned users choose their first password.
"""

from app.modules.password_setup.models import PasswordSetupToken
from app.modules.password_setup.service import (
    IssuedToken,
    TokenErrorCode,
    TokenResult,
    consume_token,
    issue_token,
    validate_token,
)

__all__ = [
    "PasswordSetupToken",
    "IssuedToken",
    "TokenErrorCode",
    "TokenResult",
    "issue_token",
    "validate_token",
    "consume_token",
]
