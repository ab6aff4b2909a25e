"""
Courses module - Course catalogue, capacity ceilings and admin management.
"""

from app.modules.courses.models import DEFAULT_COURSE_ID, Course
from app.modules.courses.repository import CourseRepository

__all__ = ["Course", "CourseRepository", "DEFAULT_COURSE_ID"]
