# backend/tonypoem/core/database/base.py
"""
SQLAlchemy base class.

Provides the declarative base for all models.
"""

from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()
