"""
Administrator account provisioning.

Used by application startup (bootstrap admin from ADMIN_EMAIL/ADMIN_PASSWORD)
and by the create_admin command.
"""

import logging

from sqlalchemy import select

from tonypoem.core.auth.auth_service import AuthService
from tonypoem.core.database.models import AdminUser
from tonypoem.core.shared.database_service import DatabaseService

logger = logging.getLogger("tonypoem.auth")


async def ensure_admin(
    database: DatabaseService,
    auth: AuthService,
    email: str,
    password: str,
    reset_password: bool = False,
) -> bool:
    """
    Create the admin account `email` unless it already exists.

    With reset_password, an existing account gets the new password and is
    re-activated.

    Returns:
        bool: True if an account was created or changed
    """
    email = email.strip().lower()
    async with database.get_session() as session:
        result = await session.execute(select(AdminUser).where(AdminUser.email == email))
        user = result.scalar_one_or_none()

        if user is None:
            session.add(AdminUser(email=email, password_hash=await auth.hash_password(password)))
            logger.info(f"Created admin account {email}")
            return True

        if reset_password:
            user.password_hash = await auth.hash_password(password)
            user.is_active = True
            logger.info(f"Reset password for admin account {email}")
            return True

    logger.debug(f"Admin account {email} already exists")
    return False
