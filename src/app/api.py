from fastapi import APIRouter

from app.modules.auth import router as auth_router
from app.modules.courses.admin_router import router as admin_courses_router
from app.modules.dashboard import router as dashboard_router
from app.modules.enrollments import admin_router as admin_enrollments_router
from app.modules.enrollments import router as enrollments_router
from app.modules.users import admin_router as admin_users_router
from app.modules.users import router as users_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(enrollments_router, prefix="/enrollments", tags=["Enrollments"])

api_router.include_router(users_router, prefix="/users", tags=["Users"])

api_router.include_router(
    admin_enrollments_router,
    prefix="/admin/enrollments",
    tags=["Admin - Enrollments"],
)

api_router.include_router(admin_courses_router, prefix="/admin/courses", tags=["Admin - Courses"])

api_router.include_router(admin_users_router, prefix="/admin/users", tags=["Admin - Users"])

api_router.include_router(dashboard_router, prefix="/admin/dashboard", tags=["Admin - Dashboard"])
