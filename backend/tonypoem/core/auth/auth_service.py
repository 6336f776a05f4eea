# backend/tonypoem/core/auth/auth_service.py
"""
Authentication service.

Provides password hashing and JWT session tokens for administrator sign-in.

Key Features:
    - Password hashing with bcrypt
    - Constant-time password verification
    - JWT session token generation and validation

Usage:
    from tonypoem.core.auth.auth_service import AuthService

    auth_service = AuthService(settings)

    # Hash password
    hashed = await auth_service.hash_password("password123")

    # Verify password
    is_valid = await auth_service.verify_password("password123", hashed)

    # Create session token
    token = auth_service.create_session_token(user_id="user-uuid", email="admin@example.org")

    # Validate token
    payload = auth_service.decode_token(token)

Dependencies:
    - PyJWT for JWT token handling
    - bcrypt for password hashing

Configuration:
    Uses settings from config.py:
    - JWT_SECRET_KEY: Secret key for signing JWT tokens
    - JWT_ALGORITHM: Algorithm for JWT signing (default: HS256)
    - SESSION_EXPIRE_MINUTES: Session token TTL
    - BCRYPT_ROUNDS: Work factor for bcrypt hashing
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from tonypoem.config import Settings, settings as default_settings

SESSION_TOKEN_TYPE = "session"


class AuthService:
    """
    Authentication service for passwords and session tokens.

    Attributes:
        _logger: Logger instance for authentication events
        jwt_secret: Secret key for JWT signing
        jwt_algorithm: Algorithm for JWT signing
        session_expire: Timedelta for session token expiration
        bcrypt_rounds: Work factor for bcrypt hashing
    """

    def __init__(self, config: Optional[Settings] = None):
        """Initialize the authentication service with settings from config."""
        config = config or default_settings
        self._logger = logging.getLogger("tonypoem.auth")

        self.jwt_secret = config.jwt_secret_key
        self.jwt_algorithm = config.jwt_algorithm
        self.session_expire = timedelta(minutes=config.session_expire_minutes)
        self.bcrypt_rounds = config.bcrypt_rounds

        self._logger.info(
            f"AuthService initialized (JWT algo: {self.jwt_algorithm}, "
            f"session TTL: {self.session_expire}, "
            f"bcrypt rounds: {self.bcrypt_rounds})"
        )

    # =========================================================================
    # PASSWORD HASHING & VERIFICATION
    # =========================================================================

    async def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password to hash

        Returns:
            str: Bcrypt hash of the password (includes salt)
        """
        self._logger.debug("Hashing password")
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    async def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a bcrypt hash.

        Returns False for any error (invalid hash, etc.).
        """
        self._logger.debug("Verifying password")
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except Exception as e:
            self._logger.warning(f"Password verification failed: {e}")
            return False

    # =========================================================================
    # JWT SESSION TOKENS
    # =========================================================================

    def create_session_token(
        self,
        user_id: str,
        email: str,
        additional_claims: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Create a JWT session token for an administrator.

        Token Claims:
            - sub: User ID (subject)
            - email: Login email
            - type: "session"
            - exp: Expiration timestamp
            - iat: Issued at timestamp
        """
        now = datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "email": email,
            "type": SESSION_TOKEN_TYPE,
            "exp": now + self.session_expire,
            "iat": now,
        }
        if additional_claims:
            claims.update(additional_claims)

        token = jwt.encode(claims, self.jwt_secret, algorithm=self.jwt_algorithm)
        self._logger.debug(f"Created session token for user {user_id} (expires in {self.session_expire})")
        return token

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT token.

        Raises:
            jwt.ExpiredSignatureError: Token has expired
            jwt.InvalidTokenError: Token is invalid (bad signature, malformed, etc.)
        """
        try:
            return jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except jwt.ExpiredSignatureError:
            self._logger.warning("Token has expired")
            raise
        except jwt.InvalidTokenError as e:
            self._logger.warning(f"Invalid token: {e}")
            raise

    def verify_token_type(self, payload: Dict[str, Any], expected_type: str = SESSION_TOKEN_TYPE) -> bool:
        token_type = payload.get("type")
        if token_type != expected_type:
            self._logger.warning(f"Token type mismatch: expected {expected_type}, got {token_type}")
            return False
        return True

    def get_token_expiration(self, token: str) -> Optional[datetime]:
        """Expiration time of a token without verifying it, or None if unreadable."""
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
            exp = payload.get("exp")
            return datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
        except Exception as e:
            self._logger.warning(f"Failed to get token expiration: {e}")
            return None

