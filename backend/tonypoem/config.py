# ============================================================================
# Tony Poem Foundation Site - Application Configuration
# ============================================================================
"""
Application configuration module using Pydantic Settings.

This module defines all configuration parameters for the site, including:
- Site/API metadata and logging
- Listing page sizes
- Database connection and pooling
- Blob storage backend (filesystem or MinIO)
- Admin authentication (JWT session cookie, bcrypt)
- Upload limits

Environment Variables:
    Every field can be set through an environment variable of the same name
    (case-insensitive) or a `.env` file.

Usage:
    from tonypoem.config import settings
    page_size = settings.blog_page_size
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # SITE SETTINGS
    # =========================================================================
    site_name: str = "Tony Poem Foundation"
    api_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable verbose logging & dev helpers")
    log_level: str = Field(default="INFO", description="Root log level for tonypoem.* loggers")

    # =========================================================================
    # LISTING SETTINGS
    # =========================================================================
    blog_page_size: int = Field(default=3, ge=1, description="Posts per blog listing page")
    program_page_size: int = Field(default=2, ge=1, description="Programs per listing page")
    admin_page_size: int = Field(default=5, ge=1, description="Items per dashboard section page")
    related_posts_limit: int = Field(default=3, ge=0, description="Related posts on a blog detail page")

    # =========================================================================
    # DATABASE SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./tonypoem.db",
        description="SQLAlchemy async URL (sqlite+aiosqlite or postgresql+asyncpg)",
    )
    db_pool_size: int = Field(default=5, description="PostgreSQL connection pool size")
    db_max_overflow: int = Field(default=10, description="Extra connections allowed during peak load")
    db_pool_recycle: int = Field(default=3600, description="Recycle connections after N seconds")

    # =========================================================================
    # BLOB STORAGE SETTINGS
    # =========================================================================
    blob_backend: str = Field(default="filesystem", description="filesystem | minio")
    media_root: str = Field(default="./media", description="Root directory for the filesystem backend")
    media_url_prefix: str = Field(default="/media", description="URL prefix the filesystem backend is served under")

    minio_endpoint: str = Field(default="localhost:9000", description="MinIO endpoint used by the backend")
    minio_public_endpoint: Optional[str] = Field(
        default=None, description="Endpoint embedded in public object URLs (defaults to minio_endpoint)"
    )
    minio_access_key: str = Field(default="minioadmin")
    minio_secret_key: str = Field(default="minioadmin")
    minio_secure: bool = Field(default=False)
    minio_bucket: str = Field(default="tonypoem-media", description="Bucket holding uploaded images")

    # =========================================================================
    # AUTHENTICATION SETTINGS
    # =========================================================================
    jwt_secret_key: str = Field(default="change-me-in-production", description="Secret for signing session tokens")
    jwt_algorithm: str = Field(default="HS256")
    session_expire_minutes: int = Field(default=12 * 60, description="Admin session lifetime")
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    session_cookie_name: str = Field(default="tp_session")
    session_cookie_secure: bool = Field(default=False, description="Set the Secure flag on the session cookie")

    admin_email: Optional[str] = Field(default=None, description="Bootstrap admin email (created on startup)")
    admin_password: Optional[str] = Field(default=None, description="Bootstrap admin password")

    # =========================================================================
    # UPLOAD SETTINGS
    # =========================================================================
    max_upload_size: int = Field(default=10 * 1024 * 1024, description="Max image size in bytes")
    allowed_image_types: List[str] = Field(
        default=["image/jpeg", "image/png", "image/gif", "image/webp"],
        description="Accepted Content-Type values for uploaded images",
    )

    # -------- Path helpers --------
    @property
    def media_root_path(self) -> Path:
        return Path(self.media_root)

    @property
    def uses_object_storage(self) -> bool:
        return self.blob_backend.lower() == "minio"


# Global settings instance (imported elsewhere)
settings = Settings()
