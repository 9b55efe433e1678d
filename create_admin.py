#!/usr/bin/env python3
"""
Create an administrator in the Events API database.

If the username does not exist yet, a new admin user is created with the
given name and password.  If it already exists, the user is promoted to
admin and the password is left untouched.

Usage:
    python create_admin.py --username admin --name "Admin" --password "a long password"

If --password is omitted for a new user, you will be prompted to enter it
securely.  The database location and hashing cost come from the usual
environment variables (``DATABASE_URL``, ``PASSWORD_HASH_ITERATIONS``).
"""

import argparse
import asyncio
import getpass
import sys
from typing import List, Optional

from events_api.app.core.config import Settings
from events_api.app.core.logging_config import setup_logging
from events_api.app.services import Services

MIN_PASSWORD_LENGTH = 10


async def create_admin(
    services: Services,
    username: str,
    name: str,
    password: Optional[str],
) -> str:
    """Create or promote ``username``; return a short description of what happened."""
    existing = await services.users.find_by_username(username)
    if existing is not None:
        await services.users.set_admin(username)
        return f"promoted existing user {username} (id {existing.id}) to admin"
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    user = await services.users.create_user(name, username, password, admin=True)
    return f"created admin {username} (id {user.id})"


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    ap = argparse.ArgumentParser(description="Create or promote an Events API admin.")
    ap.add_argument("--username", required=True, help="Username of the admin")
    ap.add_argument("--name", help="Display name for a new admin (defaults to the username)")
    ap.add_argument("--password", help="Password for a new admin. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    settings = settings or Settings()
    setup_logging(settings.log_level)
    services = Services.build(settings)
    try:
        services.db.init_db()
        password = args.password
        if password is None and asyncio.run(services.users.find_by_username(args.username)) is None:
            password = getpass.getpass("Enter password: ")
        message = asyncio.run(create_admin(services, args.username, args.name or args.username, password))
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    finally:
        services.db.close()
    print(f"[+] {message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
