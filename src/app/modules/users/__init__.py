"""
Users module - User accounts and first-password setup.
"""

from app.modules.users.admin_router import router as admin_router
from app.modules.users.models import User, UserRole
from app.modules.users.repository import UserRepository
from app.modules.users.router import router

__all__ = ["User", "UserRole", "UserRepository", "router", "admin_router"]
