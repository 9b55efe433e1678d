"""
Business logic for users.

``UserService`` reads and writes the ``users`` table.  Password digests
are produced by the credential manager and only ever travel inside
``UserInDB``; every public method that hands a user to the API layer
returns ``UserRead``.
"""

import logging
import sqlite3
from typing import List, Optional

from ..core.db import Database
from ..core.errors import FieldError, ValidationFailed
from ..core.security import CredentialManager
from ..schemas.user import UserInDB, UserRead


logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = "id, name, username, admin"


class UserService:
    """Storage access for principals."""

    def __init__(self, db: Database, credentials: CredentialManager) -> None:
        self.db = db
        self.credentials = credentials

    async def find_by_username(self, username: str) -> Optional[UserInDB]:
        row = await self.db.fetch_one(
            "SELECT id, name, username, password, admin FROM users WHERE username = ?",
            (username,),
        )
        return UserInDB.model_validate(row) if row else None

    async def find_by_id(self, user_id: int) -> Optional[UserInDB]:
        row = await self.db.fetch_one(
            "SELECT id, name, username, password, admin FROM users WHERE id = ?",
            (user_id,),
        )
        return UserInDB.model_validate(row) if row else None

    async def get_user(self, user_id: int) -> Optional[UserRead]:
        row = await self.db.fetch_one(
            f"SELECT {PUBLIC_COLUMNS} FROM users WHERE id = ?",
            (user_id,),
        )
        return UserRead.model_validate(row) if row else None

    async def create_user(
        self,
        name: str,
        username: str,
        password: str,
        admin: bool = False,
    ) -> UserRead:
        """Hash the password and insert a new principal.

        A username taken between validation and insert is reported as
        the same validation error the uniqueness rule produces.
        """
        logger.info("Registering user %s", username)
        digest = await self.credentials.hash_password_async(password)
        try:
            _, user_id = await self.db.execute(
                "INSERT INTO users (name, username, password, admin) VALUES (?, ?, ?, ?)",
                (name, username, digest, int(admin)),
            )
        except sqlite3.IntegrityError as e:
            raise ValidationFailed([FieldError("username", "username already exists")]) from e
        return UserRead(id=user_id, name=name, username=username, admin=admin)

    async def set_admin(self, username: str, admin: bool = True) -> int:
        rowcount, _ = await self.db.execute(
            "UPDATE users SET admin = ? WHERE username = ?",
            (int(admin), username),
        )
        return rowcount

    async def list_users(self, offset: int = 0, limit: int = 10) -> List[UserRead]:
        rows = await self.db.paged_query(
            f"SELECT {PUBLIC_COLUMNS} FROM users ORDER BY id ASC",
            offset=offset,
            limit=limit,
        )
        return [UserRead.model_validate(row) for row in rows]
