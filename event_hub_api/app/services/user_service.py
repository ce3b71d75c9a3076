"""
Business logic for users.

Users register with an email and password; passwords are stored as
PBKDF2 hashes.  New accounts get the ``user`` role; administrators are
created with ``create_admin.py`` or promoted via ``set_role``.
"""

import logging
import sqlite3
from typing import Optional

from event_hub_api.app.core.db import get_connection, now_timestamp
from event_hub_api.app.core.security import hash_password, verify_password
from event_hub_api.app.schemas.user import UserCreate, UserRead
from event_hub_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        email=row["email"],
        full_name=row["full_name"],
        role=row["role"],
        disabled=bool(row["disabled"]),
        created_at=row["created_at"],
    )


class UserService:
    """Service for registering, authenticating and looking up users."""

    @classmethod
    async def create_user(cls, data: UserCreate, role: str = "user") -> UserRead:
        """Create a new user and return it.

        Raises ``ValueError`` if the email is already registered.
        """
        email = data.email.strip().lower()
        logger.info("Registering user %s", email)
        created_at = now_timestamp()
        conn = get_connection()
        try:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (email, full_name, password, role, created_at) VALUES (?, ?, ?, ?, ?)",
                    (email, data.full_name, hash_password(data.password), role, created_at),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise ValueError("User already exists")
            user_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        await AuditService.log(
            user_id=None,
            action="create",
            object_type="user",
            object_id=user_id,
            details={"email": email, "role": role},
        )
        return UserRead(
            id=user_id,
            email=email,
            full_name=data.full_name,
            role=role,
            disabled=False,
            created_at=created_at,
        )

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user when the credentials match, else ``None``."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, full_name, password, role, disabled, created_at FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
        finally:
            conn.close()
        if not row or row["disabled"]:
            return None
        if not verify_password(password, row["password"]):
            return None
        return _row_to_user(row)

    @classmethod
    async def get_user(cls, user_id: int) -> UserRead:
        """Retrieve a user by id.  Raises ``LookupError`` if missing."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, email, full_name, role, disabled, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise LookupError("User not found")
        return _row_to_user(row)

    @classmethod
    async def set_role(cls, user_id: int, role: str) -> UserRead:
        conn = get_connection()
        try:
            cursor = conn.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
            if cursor.rowcount == 0:
                raise LookupError("User not found")
            conn.commit()
        finally:
            conn.close()
        await AuditService.log(
            user_id=None,
            action="update",
            object_type="user",
            object_id=user_id,
            details={"role": role},
        )
        return await cls.get_user(user_id)
