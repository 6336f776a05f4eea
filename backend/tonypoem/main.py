# ============================================================================
# Tony Poem Foundation Site - FastAPI Application Entry Point
# ============================================================================
"""
Main FastAPI application module for the Tony Poem Foundation site.

This module builds the application with:
- Service construction (database, blob store, repository, auth, busy guard)
- Startup/shutdown handling (table creation, bootstrap admin, bucket setup)
- Static file and local media mounts
- Error handling (admin login redirect, not-found page, JSON errors)
- Page, admin and system router integration

Usage:
    Direct: python -m tonypoem.main
    Server: uvicorn tonypoem.main:app --host 0.0.0.0 --port 8000 --reload

Architecture:
    - FastAPI routes rendering Jinja2 templates
    - Pydantic for form validation and settings
    - Service layer (ContentRepository, SessionContext) for business logic
    - SQLAlchemy async document store, filesystem or MinIO blob store
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tonypoem.api.routers import admin, pages, system
from tonypoem.config import Settings, settings as default_settings
from tonypoem.core.auth.admin_accounts import ensure_admin
from tonypoem.core.auth.auth_service import AuthService
from tonypoem.core.content.busy import BusyGuard
from tonypoem.core.content.repository import ContentRepository
from tonypoem.core.shared.database_service import DatabaseService
from tonypoem.core.storage.blob_store import FilesystemBlobStore, get_blob_store
from tonypoem.dependencies import LOGIN_PATH, AdminLoginRequired, Services
from tonypoem.models import ErrorResponse
from tonypoem.templating import STATIC_DIR, render

logger = logging.getLogger("tonypoem.main")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("tonypoem").setLevel(getattr(logging, level.upper(), logging.INFO))


def build_services(config: Settings) -> Services:
    """Construct the per-application service graph from `config`."""
    database = DatabaseService(config.database_url)
    blob_store = get_blob_store(config)
    return Services(
        settings=config,
        database=database,
        blob_store=blob_store,
        repository=ContentRepository(database, blob_store),
        auth=AuthService(config),
        busy=BusyGuard(),
    )


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to run with (defaults to the environment-derived settings)

    Returns:
        FastAPI: Application with services on `app.state.services`
    """
    config = config or default_settings
    configure_logging("DEBUG" if config.debug else config.log_level)
    services = build_services(config)

    # ========================================================================
    # APPLICATION EVENT HANDLERS
    # ========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {config.site_name} site (version {config.api_version})")
        logger.info(f"Database: {services.database.dialect}, blob backend: {config.blob_backend}")

        await services.database.init_db()

        if config.admin_email and config.admin_password:
            await ensure_admin(services.database, services.auth, config.admin_email, config.admin_password)

        ensure_bucket = getattr(services.blob_store, "ensure_bucket", None)
        if ensure_bucket is not None:
            try:
                await asyncio.to_thread(ensure_bucket)
            except Exception as e:
                logger.warning(f"Media bucket not ready; each upload attempts to create it until one succeeds: {e}")

        logger.info("Startup complete")
        yield

        logger.info("Shutting down")
        await services.database.close()

    app = FastAPI(
        title=config.site_name,
        version=config.api_version,
        description="Tony Poem Foundation public site and content management.",
        lifespan=lifespan,
        docs_url="/docs" if config.debug else None,
        redoc_url=None,
    )
    app.state.services = services

    # ========================================================================
    # STATIC FILES
    # ========================================================================

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    if isinstance(services.blob_store, FilesystemBlobStore):
        services.blob_store.root.mkdir(parents=True, exist_ok=True)
        app.mount(
            config.media_url_prefix,
            StaticFiles(directory=str(services.blob_store.root)),
            name="media",
        )

    # ========================================================================
    # ERROR HANDLERS
    # ========================================================================

    @app.exception_handler(AdminLoginRequired)
    async def admin_login_handler(request: Request, exc: AdminLoginRequired):
        return RedirectResponse(f"{LOGIN_PATH}?next={quote(exc.next_path)}", status_code=303)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and "text/html" in request.headers.get("accept", "text/html"):
            return render(request, "not_found.html", {"detail": exc.detail}, status_code=404)
        error_response = ErrorResponse(
            error=f"HTTP {exc.status_code}",
            detail=str(exc.detail),
            timestamp=datetime.now(),
        )
        return JSONResponse(status_code=exc.status_code, content=error_response.model_dump(mode="json"))

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError):
        error_response = ErrorResponse(
            error="Validation Error",
            detail=str(exc),
            timestamp=datetime.now(),
        )
        return JSONResponse(status_code=422, content=error_response.model_dump(mode="json"))

    # ========================================================================
    # ROUTER CONFIGURATION
    # ========================================================================

    app.include_router(pages.router)
    app.include_router(admin.router)
    app.include_router(system.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("tonypoem.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
