"""
Admin session context.

An explicit session object handed to the admin route tree instead of ambient
global auth state. It carries the current session (or None) and a
subscription contract: callbacks registered with subscribe() are invoked
immediately with the current session and again on every sign-in/sign-out.

Usage:
    context = SessionContext(auth_service, database)
    context.restore(request.cookies.get("tp_session"))

    unsubscribe = context.subscribe(lambda session: ...)
    await context.sign_in("admin@example.org", "secret")
    context.sign_out()
    unsubscribe()
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

import jwt
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from tonypoem.core.auth.auth_service import AuthService
from tonypoem.core.content.errors import AuthError, FetchError
from tonypoem.core.database.models import AdminUser
from tonypoem.core.shared.database_service import DatabaseService

logger = logging.getLogger("tonypoem.auth")


@dataclass(frozen=True)
class AdminSession:
    user_id: str
    email: str
    token: str
    expires_at: Optional[datetime] = None


SessionListener = Callable[[Optional[AdminSession]], None]


class SessionContext:
    def __init__(self, auth: AuthService, database: DatabaseService):
        self._auth = auth
        self._database = database
        self._session: Optional[AdminSession] = None
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> Optional[AdminSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register `listener`; it is called right away with the current session."""
        self._listeners.append(listener)
        listener(self._session)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._session)

    def restore(self, token: Optional[str]) -> Optional[AdminSession]:
        """Rebuild the session from a cookie token; invalid tokens yield no session."""
        session = None
        if token:
            try:
                payload = self._auth.decode_token(token)
                if self._auth.verify_token_type(payload) and payload.get("sub"):
                    session = AdminSession(
                        user_id=payload["sub"],
                        email=payload.get("email", ""),
                        token=token,
                        expires_at=self._auth.get_token_expiration(token),
                    )
            except jwt.InvalidTokenError:
                session = None

        changed = (session is None) != (self._session is None)
        self._session = session
        if changed:
            self._notify()
        return session

    async def sign_in(self, email: str, password: str) -> AdminSession:
        """
        Verify credentials and establish a session.

        Raises:
            AuthError: Unknown email, inactive account or wrong password
            FetchError: The account store could not be read
        """
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthError("missing credentials", user_message="Please enter your email and password.")

        try:
            async with self._database.get_session() as db:
                result = await db.execute(select(AdminUser).where(AdminUser.email == email))
                user = result.scalar_one_or_none()
                valid = (
                    user is not None
                    and user.is_active
                    and await self._auth.verify_password(password, user.password_hash)
                )
                if valid:
                    user.last_login_at = datetime.now(timezone.utc)
        except SQLAlchemyError as e:
            logger.error(f"Sign-in lookup failed: {e}")
            raise FetchError(f"admin lookup failed: {e}") from e

        if not valid:
            logger.warning(f"Rejected sign-in for {email}")
            raise AuthError(f"invalid credentials for {email}")

        token = self._auth.create_session_token(user_id=user.id, email=user.email)
        self._session = AdminSession(
            user_id=user.id,
            email=user.email,
            token=token,
            expires_at=self._auth.get_token_expiration(token),
        )
        logger.info(f"Admin signed in: {user.email}")
        self._notify()
        return self._session

    def sign_out(self) -> None:
        if self._session is None:
            return
        logger.info(f"Admin signed out: {self._session.email}")
        self._session = None
        self._notify()
