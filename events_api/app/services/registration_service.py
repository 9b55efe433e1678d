"""
Business logic for event registrations.

A registration ties a principal to an event together with an optional
comment.  Each principal may hold at most one registration per event;
the ``registrations`` table carries a unique index to back this up.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional

from ..core.db import Database
from ..core.errors import FieldError, ValidationFailed
from ..schemas.registration import RegistrationRead
from ..schemas.user import UserRead


logger = logging.getLogger(__name__)


class RegistrationService:
    """Storage access for registrations."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def register(
        self,
        event_id: int,
        user: UserRead,
        comment: Optional[str] = None,
    ) -> RegistrationRead:
        created = datetime.now(timezone.utc).isoformat()
        try:
            _, registration_id = await self.db.execute(
                """
                INSERT INTO registrations (name, comment, event_id, user_id, created)
                VALUES (?, ?, ?, ?, ?)
                """,
                (user.name, comment, event_id, user.id, created),
            )
        except sqlite3.IntegrityError as e:
            raise ValidationFailed([FieldError("event", "already registered for this event")]) from e
        logger.info("User %s registered for event %s", user.id, event_id)
        return RegistrationRead(
            id=registration_id,
            name=user.name,
            comment=comment,
            event_id=event_id,
            user_id=user.id,
            created=created,
        )

    async def unregister(self, event_id: int, user_id: int) -> int:
        rowcount, _ = await self.db.execute(
            "DELETE FROM registrations WHERE event_id = ? AND user_id = ?",
            (event_id, user_id),
        )
        if rowcount:
            logger.info("User %s unregistered from event %s", user_id, event_id)
        return rowcount

    async def is_registered(self, event_id: int, user_id: int) -> bool:
        row = await self.db.fetch_one(
            "SELECT id FROM registrations WHERE event_id = ? AND user_id = ?",
            (event_id, user_id),
        )
        return row is not None

    async def list_for_event(self, event_id: int) -> List[RegistrationRead]:
        rows = await self.db.fetch_all(
            """
            SELECT id, name, comment, event_id, user_id, created
            FROM registrations
            WHERE event_id = ?
            ORDER BY id ASC
            """,
            (event_id,),
        )
        return [RegistrationRead.model_validate(row) for row in rows]
