# backend/tonypoem/core/database/__init__.py
"""
Database package.

Provides SQLAlchemy models and the declarative base.
"""

from .base import Base
from .models import AdminUser, ContentDocument

__all__ = [
    "Base",
    "AdminUser",
    "ContentDocument",
]
