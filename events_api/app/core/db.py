"""
SQLite database integration, connection pool and migration system.

``Database`` owns a bounded pool of SQLite connections.  Every query
acquires a connection through ``Database.connection`` and gives it back
unconditionally when done, rolling back if the query failed.  The async
helpers (``fetch_one``, ``fetch_all``, ``execute``, ``paged_query``) run
the blocking sqlite3 calls in the threadpool so handlers can simply
``await`` them without stalling the event loop.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import queue
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from fastapi.concurrency import run_in_threadpool

from .config import Settings


logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Largest value sqlite3 binds as an INTEGER; anything above raises OverflowError.
SQLITE_MAX_INT = 2**63 - 1

MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            username TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            admin INTEGER NOT NULL DEFAULT 0,
            created TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            slug TEXT NOT NULL UNIQUE,
            description TEXT,
            creator_id INTEGER,
            created TIMESTAMP NOT NULL,
            updated TIMESTAMP NOT NULL,
            FOREIGN KEY(creator_id) REFERENCES users(id) ON DELETE SET NULL
        );

        CREATE TABLE IF NOT EXISTS registrations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            comment TEXT,
            event_id INTEGER NOT NULL,
            user_id INTEGER,
            created TIMESTAMP NOT NULL,
            FOREIGN KEY(event_id) REFERENCES events(id) ON DELETE CASCADE,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 2: one registration per user per event, faster lookups
    (
        2,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_registrations_event_user
            ON registrations(event_id, user_id);
        CREATE INDEX IF NOT EXISTS idx_events_creator_id ON events(creator_id);
        """,
    ),
]


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths are used as is; relative paths are resolved against
    the project root.
    """
    if os.path.isabs(database_url):
        return database_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / database_url).resolve())


class Database:
    """Pooled access to the SQLite store."""

    def __init__(self, settings: Settings) -> None:
        self.path = resolve_database_path(settings.database_url)
        self._pool: "queue.LifoQueue[sqlite3.Connection]" = queue.LifoQueue(
            maxsize=max(settings.db_pool_size, 1)
        )

    def _connect(self) -> sqlite3.Connection:
        # Connections are handed between threadpool workers, never shared
        # by two of them at once.
        conn = sqlite3.connect(self.path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Acquire a pooled connection, commit on success, always release."""
        try:
            conn = self._pool.get_nowait()
        except queue.Empty:
            conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            try:
                self._pool.put_nowait(conn)
            except queue.Full:
                conn.close()

    def close(self) -> None:
        """Close every idle pooled connection."""
        while True:
            try:
                conn = self._pool.get_nowait()
            except queue.Empty:
                break
            conn.close()

    # -- synchronous primitives, run inside the threadpool ------------------

    def _fetch_one(self, sql: str, params: Sequence[Any]) -> Optional[Row]:
        with self.connection() as conn:
            row = conn.execute(sql, tuple(params)).fetchone()
            return dict(row) if row else None

    def _fetch_all(self, sql: str, params: Sequence[Any]) -> List[Row]:
        with self.connection() as conn:
            return [dict(row) for row in conn.execute(sql, tuple(params)).fetchall()]

    def _execute(self, sql: str, params: Sequence[Any]) -> Tuple[int, Optional[int]]:
        with self.connection() as conn:
            cursor = conn.execute(sql, tuple(params))
            return cursor.rowcount, cursor.lastrowid

    # -- async API used by the services -------------------------------------

    async def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Row]:
        return await run_in_threadpool(self._fetch_one, sql, params)

    async def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[Row]:
        return await run_in_threadpool(self._fetch_all, sql, params)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> Tuple[int, Optional[int]]:
        """Run a write statement and return ``(rowcount, lastrowid)``."""
        return await run_in_threadpool(self._execute, sql, params)

    async def paged_query(
        self,
        sql: str,
        params: Sequence[Any] = (),
        offset: int = 0,
        limit: int = 10,
    ) -> List[Row]:
        """Run ``sql`` with ``LIMIT``/``OFFSET`` appended.

        ``sql`` must provide a stable ``ORDER BY`` so pages do not overlap.
        """
        paged = f"{sql} LIMIT ? OFFSET ?"
        return await self.fetch_all(paged, list(params) + [limit, offset])

    def init_db(self) -> None:
        """Initialise the database and apply pending migrations.

        Creates the ``migrations`` table if it does not exist, checks the
        current schema version, and applies any new migrations defined in
        ``MIGRATIONS``.  New migrations are appended with an incremented
        version number.
        """
        with self.connection() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = conn.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0

            for version, sql in MIGRATIONS:
                if version > current_version:
                    logger.info("Applying migration %s to %s", version, self.path)
                    conn.executescript(sql)
                    conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version

