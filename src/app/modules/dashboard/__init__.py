"""
Dashboard module - Headline numbers for the admin dashboard.
"""

from app.modules.dashboard.router import router

__all__ = ["router"]
