# backend/tonypoem/dependencies.py
"""
FastAPI dependency injection functions.

Services are built once per application (see tonypoem.main.create_app) and
kept on `app.state.services`; these dependencies hand them to routes.

Key Dependencies:
    - get_services: The application's Services container
    - get_session_context: SessionContext restored from the session cookie
    - require_admin: Gate for the admin route tree; redirects to /adminlogin

Usage:
    from fastapi import Depends
    from tonypoem.dependencies import require_admin

    @router.get("/manageContent")
    async def manage(context: SessionContext = Depends(require_admin)):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request

from tonypoem.config import Settings
from tonypoem.core.auth.auth_service import AuthService
from tonypoem.core.auth.session_context import AdminSession, SessionContext
from tonypoem.core.content.busy import BusyGuard
from tonypoem.core.content.repository import ContentRepository
from tonypoem.core.shared.database_service import DatabaseService
from tonypoem.core.storage.blob_store import BlobStore

logger = logging.getLogger("tonypoem.dependencies")

LOGIN_PATH = "/adminlogin"


@dataclass
class Services:
    """Everything a request handler may need, built once per app."""

    settings: Settings
    database: DatabaseService
    blob_store: BlobStore
    repository: ContentRepository
    auth: AuthService
    busy: BusyGuard


class AdminLoginRequired(Exception):
    """Raised by the admin gate; handled as a redirect to the login page."""

    def __init__(self, next_path: str = "/manageContent"):
        super().__init__(next_path)
        self.next_path = next_path


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_session_context(
    request: Request,
    services: Services = Depends(get_services),
) -> SessionContext:
    """Session context for this request, restored from the session cookie."""
    context = SessionContext(services.auth, services.database)
    context.restore(request.cookies.get(services.settings.session_cookie_name))
    return context


def require_admin(
    request: Request,
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """
    Gate every admin route on an active session.

    Subscribes to the session context; when the callback sees no session the
    request is turned away to the login page.
    """
    seen: dict = {}

    def on_session_change(session: Optional[AdminSession]) -> None:
        seen["session"] = session

    unsubscribe = context.subscribe(on_session_change)
    unsubscribe()

    if seen.get("session") is None:
        logger.info(f"Unauthenticated request for {request.url.path}; redirecting to login")
        raise AdminLoginRequired(request.url.path)
    return context
