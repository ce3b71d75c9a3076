#!/usr/bin/env python3
"""
Create (or promote) an administrator account and print a bearer token.

If a user with the given email exists it is promoted to ``admin``;
otherwise it is created with the supplied password.  The printed token
carries the ``admin`` role claim.

Usage:
    python create_admin.py --email admin@example.com --password "NewStrongPass!234" --days 365

If --password is omitted for a new account, you will be prompted to
enter it securely.
"""

import argparse
import asyncio
import getpass
import sys

from event_hub_api.app.core.db import get_connection, init_db
from event_hub_api.app.core.security import create_user_token
from event_hub_api.app.schemas.user import UserCreate
from event_hub_api.app.services.user_service import UserService


async def ensure_admin(email: str, password: str | None, full_name: str | None) -> int:
    conn = get_connection()
    try:
        row = conn.execute("SELECT id FROM users WHERE email = ?", (email.strip().lower(),)).fetchone()
    finally:
        conn.close()
    if row:
        user = await UserService.set_role(row["id"], "admin")
        return user.id
    if not password:
        password = getpass.getpass("New admin password: ")
    user = await UserService.create_user(
        UserCreate(email=email, password=password, full_name=full_name),
        role="admin",
    )
    return user.id


def main() -> int:
    parser = argparse.ArgumentParser(description="Create an Event Hub administrator and print a token")
    parser.add_argument("--email", required=True, help="Administrator email")
    parser.add_argument("--password", help="Password for a newly created account")
    parser.add_argument("--full-name", help="Display name for a newly created account")
    parser.add_argument("--days", type=int, default=365, help="Token lifetime in days")
    args = parser.parse_args()

    init_db()
    try:
        user_id = asyncio.run(ensure_admin(args.email, args.password, args.full_name))
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(create_user_token(user_id, "admin", expires_delta=args.days * 24 * 60 * 60))
    return 0


if __name__ == "__main__":
    sys.exit(main())
