"""
User Schemas
"""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.modules.shared.schemas import CamelModel
from app.modules.users.models import UserRole

_PASSWORD_COMPLEXITY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class SetPasswordRequest(BaseModel):
    """Request body for POST /users/set-password."""

    token: str = Field(..., min_length=1, description="Password setup token from the email link")
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def validate_complexity(cls, value: str) -> str:
        if not _PASSWORD_COMPLEXITY.match(value):
            raise ValueError(
                "Password must contain at least one lowercase letter, "
                "one uppercase letter, and one number"
            )
        return value


class SetPasswordResponse(BaseModel):
    success: bool = True
    message: str = "Password set successfully. You can now login with your new password."


class UserSummaryResponse(CamelModel):
    """A user account as listed to admins (no credentials)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: UUID
    email: str
    full_name: str
    role: UserRole
    created_at: datetime


class UserListResponse(CamelModel):
    users: list[UserSummaryResponse]
    count: int
