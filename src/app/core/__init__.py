"""
Core module - Settings, persistence, security and shared infrastructure
(email delivery, rate limiting, background jobs).
"""

from app.core.config import Settings, get_settings, settings
from app.core.database import Base, async_session_maker, close_db, get_db, init_db
from app.core.email import EmailResult, EmailService, get_email_service
from app.core.rate_limit import RateLimitExceeded, enforce_rate_limit
from app.core.redis import close_redis, get_redis, init_redis
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)

__all__ = [
    "Settings",
    "settings",
    "get_settings",
    "Base",
    "async_session_maker",
    "get_db",
    "init_db",
    "close_db",
    "EmailResult",
    "EmailService",
    "get_email_service",
    "RateLimitExceeded",
    "enforce_rate_limit",
    "get_redis",
    "init_redis",
    "close_redis",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
