"""
User Models

Database models for user accounts and authentication.
"""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel

DEFAULT_AI_CREDITS = 500
DEFAULT_INTERFACE_LANGUAGE = "en"
DEFAULT_AI_FEEDBACK_LANGUAGE = "bn"


class UserRole(str, Enum):
    """User roles in the system."""

    STUDENT = "student"
    ADMIN = "admin"


class User(BaseModel):
    """
    User account.

    Student accounts are provisioned when an admin approves an
    enrollment; the student then chooses a password through a
    password-setup token.
    """

    __tablename__ = "users"

    # Authentication fields
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    # Profile fields
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role: Mapped[UserRole] = mapped_column(
        ENUM(
            UserRole,
            name="user_role",
            create_type=True,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
        default=UserRole.STUDENT,
    )

    # Learning profile
    ai_credits: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=DEFAULT_AI_CREDITS,
    )
    target_band_score: Mapped[Decimal | None] = mapped_column(
        Numeric(2, 1),
        nullable=True,
    )
    target_test_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
    )
    interface_language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=DEFAULT_INTERFACE_LANGUAGE,
    )
    ai_feedback_language: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=DEFAULT_AI_FEEDBACK_LANGUAGE,
    )

    # Gamification preferences
    gamification_opt_out: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    gamification_is_anonymous: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role.value})>"
