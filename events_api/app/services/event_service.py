"""
Business logic for events.

``EventService`` reads and writes the ``events`` table.  An event's
``slug`` is always derived from its ``name`` with ``slugify`` and is
recomputed whenever the name changes; the ``creator_id`` is written once
on insert and never touched again.
"""

import logging
import re
import sqlite3
import unicodedata
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.db import Database
from ..core.errors import FieldError, ValidationFailed
from ..schemas.event import EventRead


logger = logging.getLogger(__name__)

COLUMNS = "id, name, slug, description, creator_id, created, updated"

# Letters NFKD does not decompose into ASCII.
TRANSLITERATIONS = str.maketrans({
    "þ": "th",
    "ð": "d",
    "æ": "ae",
    "ø": "o",
    "ß": "ss",
    "œ": "oe",
})


def slugify(text: str) -> str:
    """Normalise ``text`` into a lowercase, dash separated ASCII slug."""
    text = text.lower().translate(TRANSLITERATIONS)
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return text or "event"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _name_taken() -> ValidationFailed:
    return ValidationFailed([FieldError("name", "event name already exists")])


class EventService:
    """Storage access for events."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def get_event(self, event_id: int) -> Optional[EventRead]:
        row = await self.db.fetch_one(f"SELECT {COLUMNS} FROM events WHERE id = ?", (event_id,))
        return EventRead.model_validate(row) if row else None

    async def find_by_slug(self, slug: str) -> Optional[EventRead]:
        row = await self.db.fetch_one(f"SELECT {COLUMNS} FROM events WHERE slug = ?", (slug,))
        return EventRead.model_validate(row) if row else None

    async def list_events(self, offset: int = 0, limit: int = 10) -> List[EventRead]:
        rows = await self.db.paged_query(
            f"SELECT {COLUMNS} FROM events ORDER BY id ASC",
            offset=offset,
            limit=limit,
        )
        return [EventRead.model_validate(row) for row in rows]

    async def create_event(
        self,
        name: str,
        description: Optional[str],
        creator_id: Optional[int],
    ) -> EventRead:
        now = _now()
        slug = slugify(name)
        description = description or None
        try:
            _, event_id = await self.db.execute(
                """
                INSERT INTO events (name, slug, description, creator_id, created, updated)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (name, slug, description, creator_id, now, now),
            )
        except sqlite3.IntegrityError as e:
            raise _name_taken() from e
        logger.info("User %s created event %s (%s)", creator_id, event_id, slug)
        return EventRead(
            id=event_id,
            name=name,
            slug=slug,
            description=description,
            creator_id=creator_id,
            created=now,
            updated=now,
        )

    async def update_event(self, event: EventRead, changes: Dict[str, Any]) -> EventRead:
        """Apply ``changes`` (``name`` and/or ``description``) to ``event``.

        Keys with a ``None`` value are ignored and an empty description
        clears it.  A new name also replaces the slug.
        """
        updates = {k: v for k, v in changes.items() if k in {"name", "description"} and v is not None}
        if updates.get("description") == "":
            updates["description"] = None
        if "name" in updates:
            updates["slug"] = slugify(updates["name"])
        updates["updated"] = _now()

        assignments = ", ".join(f"{key} = ?" for key in updates)
        try:
            await self.db.execute(
                f"UPDATE events SET {assignments} WHERE id = ?",
                (*updates.values(), event.id),
            )
        except sqlite3.IntegrityError as e:
            raise _name_taken() from e
        logger.info("Updated event %s: %s", event.id, sorted(updates))
        return EventRead.model_validate({**event.model_dump(), **updates})

    async def delete_event(self, event_id: int) -> int:
        """Delete an event and, by cascade, its registrations."""
        rowcount, _ = await self.db.execute("DELETE FROM events WHERE id = ?", (event_id,))
        if rowcount:
            logger.info("Deleted event %s", event_id)
        return rowcount
