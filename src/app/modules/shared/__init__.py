"""
Shared module - Base model and mixins used across feature modules.
"""

from app.modules.shared.models import BaseModel

__all__ = ["BaseModel"]
