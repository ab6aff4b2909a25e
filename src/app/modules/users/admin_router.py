"""
Admin Users Router

Endpoints:
- GET /admin/users - User accounts, optionally filtered by role
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_admin_user
from app.core.database import get_db
from app.modules.users.models import UserRole
from app.modules.users.repository import UserRepository
from app.modules.users.schemas import UserListResponse, UserSummaryResponse

router = APIRouter()


@router.get(
    "",
    response_model=UserListResponse,
    summary="List Users",
    description="User accounts ordered by name. Pass `role=student` for assignable students.",
)
async def list_users(
    role: UserRole | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> UserListResponse:
    users = await UserRepository.list_users(db, role=role, limit=limit, offset=offset)
    items = [UserSummaryResponse.model_validate(user) for user in users]
    return UserListResponse(users=items, count=len(items))
