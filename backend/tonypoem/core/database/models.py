# backend/tonypoem/core/database/models.py
"""
SQLAlchemy ORM models for the site's persistence layer.

Models:
    - ContentDocument: One schemaless document in a named content collection
      (blogs, programs, leadership, testimonials, donations, contacts)
    - AdminUser: Administrator account allowed to manage content

Documents keep their fields in a JSON column so each collection can carry its
own shape; the typed view over a document is ContentRecord.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String

from .base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentDocument(Base):
    """
    A document stored in a content collection.

    Attributes:
        id: Store-assigned identifier, unique across all collections
        collection: Collection name (see Collection enum)
        data: Document fields (camelCase keys, as written by the site)
        created_at: Server-assigned insertion timestamp
    """

    __tablename__ = "content_documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    collection = Column(String(64), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_content_documents_collection_created", "collection", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ContentDocument(id={self.id}, collection={self.collection})>"


class AdminUser(Base):
    """
    Administrator account.

    Attributes:
        id: Unique user identifier
        email: Login email (unique)
        password_hash: Bcrypt hashed password
        is_active: Whether the account may sign in
        created_at: Timestamp when the account was created
        last_login_at: Timestamp of last successful sign-in
    """

    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<AdminUser(id={self.id}, email={self.email})>"
