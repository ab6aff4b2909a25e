"""
User Repository

Database operations for user management. Methods flush but never
commit; the caller owns the transaction.
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import (
    DEFAULT_AI_CREDITS,
    DEFAULT_AI_FEEDBACK_LANGUAGE,
    DEFAULT_INTERFACE_LANGUAGE,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        full_name: str,
        role: UserRole = UserRole.STUDENT,
        ai_credits: int = DEFAULT_AI_CREDITS,
        interface_language: str = DEFAULT_INTERFACE_LANGUAGE,
        ai_feedback_language: str = DEFAULT_AI_FEEDBACK_LANGUAGE,
        gamification_opt_out: bool = False,
        gamification_is_anonymous: bool = False,
    ) -> User:
        """
        Create a new user record.

        Args:
            db: Database session
            email: User's email address (unique)
            password_hash: Hashed password
            full_name: User's full name
            role: User's role
            ai_credits: Starting AI credit balance
            interface_language: UI language code
            ai_feedback_language: Language for AI feedback
            gamification_opt_out: Hide the user from gamification features
            gamification_is_anonymous: Show the user anonymously on leaderboards

        Returns:
            Created User instance
        """
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            ai_credits=ai_credits,
            interface_language=interface_language,
            ai_feedback_language=ai_feedback_language,
            gamification_opt_out=gamification_opt_out,
            gamification_is_anonymous=gamification_is_anonymous,
        )

        db.add(user)
        await db.flush()
        await db.refresh(user)

        logger.info(f"Created user: {user.id} - {user.email} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by email address."""
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def update_password_by_email(db: AsyncSession, email: str, password_hash: str) -> bool:
        """
        Replace the password hash of the user with the given email.

        Returns:
            True if a user row was updated
        """
        result = await db.execute(
            update(User).where(User.email == email).values(password_hash=password_hash)
        )
        return result.rowcount > 0

    @staticmethod
    async def list_users(
        db: AsyncSession,
        *,
        role: UserRole | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[User]:
        """Users ordered by full name, optionally filtered by role."""
        query = select(User)
        if role is not None:
            query = query.where(User.role == role)
        query = query.order_by(User.full_name.asc()).limit(limit).offset(offset)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def count_by_role(db: AsyncSession, role: UserRole) -> int:
        result = await db.execute(select(func.count(User.id)).where(User.role == role))
        return result.scalar_one()
