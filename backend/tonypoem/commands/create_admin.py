#!/usr/bin/env python3
# backend/tonypoem/commands/create_admin.py
"""
Create (or reset) an administrator account.

Usage:
    # Create from arguments
    python -m tonypoem.commands.create_admin --email admin@example.org --password 'S3cret!'

    # Create from ADMIN_EMAIL / ADMIN_PASSWORD
    python -m tonypoem.commands.create_admin

    # Reset the password of an existing account
    python -m tonypoem.commands.create_admin --email admin@example.org --password 'N3w!' --reset

Security:
    - Prefer environment variables over command-line passwords on shared hosts
    - Never commit .env files with real credentials
"""

import argparse
import asyncio
import logging
import sys

from tonypoem.config import settings
from tonypoem.core.auth.admin_accounts import ensure_admin
from tonypoem.core.auth.auth_service import AuthService
from tonypoem.core.shared.database_service import DatabaseService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tonypoem.create_admin")


async def create_admin(email: str, password: str, reset: bool = False) -> bool:
    database = DatabaseService(settings.database_url)
    try:
        await database.init_db()
        return await ensure_admin(database, AuthService(settings), email, password, reset_password=reset)
    finally:
        await database.close()


def main():
    """Main entry point for create_admin command."""
    parser = argparse.ArgumentParser(
        description="Create or reset a Tony Poem Foundation admin account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  ADMIN_EMAIL        Used when --email is not given
  ADMIN_PASSWORD     Used when --password is not given
  DATABASE_URL       Target database
        """,
    )
    parser.add_argument("--email", default=settings.admin_email, help="Admin email address")
    parser.add_argument("--password", default=settings.admin_password, help="Admin password")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Reset the password of an existing account",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.email or not args.password:
        parser.error("an email and password are required (arguments or ADMIN_EMAIL/ADMIN_PASSWORD)")

    changed = asyncio.run(create_admin(args.email, args.password, reset=args.reset))
    if changed:
        logger.info(f"Admin account ready: {args.email}")
    else:
        logger.info(f"Admin account {args.email} already exists (use --reset to change its password)")
    sys.exit(0)


if __name__ == "__main__":
    main()
