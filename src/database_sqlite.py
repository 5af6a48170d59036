"""
SQLite Database - Local store for pending events and ignored messages.

This is the default store, and the fallback when Supabase is configured
but unavailable. It provides the same async API as the Supabase Database.

Timestamps are stored as naive UTC text ("YYYY-MM-DD HH:MM:SS.fff") so
that deadline comparisons can be done on the column directly.
"""

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from config import settings
from src.events import PendingEvent, to_utc_naive
from src.exceptions import StoreError

logger = logging.getLogger(__name__)


def to_db_timestamp(value: datetime) -> str:
    """Serialize a datetime as naive UTC text with millisecond precision."""
    return to_utc_naive(value).isoformat(sep=" ", timespec="milliseconds")


class SQLiteDatabase:
    """
    SQLite implementation of the store interface.

    Tables:
        pending_events: one row per resolved mention, unique by message id
        ignored_messages: one row per mention answered with a
            disambiguation or rejection reply
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Open (and create if needed) the SQLite database."""
        self.db_path = db_path or settings.database_path
        self.conn: Optional[sqlite3.Connection] = None
        self._is_connected = False

        self._connect()
        self._create_tables()
        logger.info(f"SQLite database initialized: {self.db_path}")

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            self._is_connected = True
            logger.info("SQLite connection established")
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to SQLite: {e}")
            self._is_connected = False
            raise StoreError(f"Cannot open SQLite database {self.db_path}: {e}") from e

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        try:
            self.conn.executescript("""
                CREATE TABLE IF NOT EXISTS pending_events (
                    id INTEGER PRIMARY KEY NOT NULL,
                    source_message_id INTEGER NOT NULL UNIQUE,
                    celestial_body TEXT NOT NULL,
                    replied BOOLEAN NOT NULL DEFAULT 0,
                    deadline TEXT NOT NULL,
                    round_trip_seconds REAL NOT NULL,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );

                CREATE INDEX IF NOT EXISTS idx_pending_events_due
                    ON pending_events(replied, deadline);

                CREATE TABLE IF NOT EXISTS ignored_messages (
                    id INTEGER PRIMARY KEY NOT NULL,
                    source_message_id INTEGER NOT NULL UNIQUE,
                    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
            """)
            self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot create SQLite tables: {e}") from e
        logger.info("SQLite tables created/verified")

    def _ensure_connection(self) -> None:
        """Reconnect if the connection was closed."""
        if not self._is_connected or self.conn is None:
            self._connect()

    def _execute(self, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        """Run one statement and commit, wrapping driver errors."""
        self._ensure_connection()
        try:
            cursor = self.conn.execute(sql, tuple(params))
            self.conn.commit()
            return cursor
        except sqlite3.Error as e:
            self.conn.rollback()
            raise StoreError(str(e)) from e

    async def health_check(self) -> bool:
        """Check database connection health."""
        try:
            self._execute("SELECT 1")
            return True
        except StoreError as e:
            logger.error(f"SQLite health check failed: {e}")
            return False

    def close(self) -> None:
        """Close the connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
        self._is_connected = False

    # =========================================================================
    # Pending Events
    # =========================================================================

    async def record_event(self, event: PendingEvent) -> bool:
        """
        Insert a pending event unless one exists for the same message.

        An existing row is left untouched, so a re-fetched mention never
        duplicates an event nor resets its replied flag.

        Returns:
            True if a new row was inserted, False if the message was known.

        Raises:
            StoreError: On any database failure.
        """
        cursor = self._execute("""
            INSERT INTO pending_events
                (source_message_id, celestial_body, replied, deadline, round_trip_seconds)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(source_message_id) DO NOTHING
        """, (
            event.source_message_id,
            event.celestial_body,
            int(event.replied),
            to_db_timestamp(event.deadline),
            event.round_trip_seconds,
        ))

        if cursor.rowcount == 0:
            logger.warning(f"Event for message {event.source_message_id} already recorded, skipping")
            return False

        event.id = cursor.lastrowid
        logger.info(f"Recorded event {event.id} for message {event.source_message_id}")
        return True

    async def get_due_events(self, now: Optional[datetime] = None) -> list[PendingEvent]:
        """Get unreplied events whose deadline is at or before now."""
        now = now or datetime.now(timezone.utc)
        cursor = self._execute("""
            SELECT * FROM pending_events
            WHERE replied = 0 AND deadline <= ?
            ORDER BY deadline
        """, (to_db_timestamp(now),))
        return [PendingEvent.from_row(dict(row)) for row in cursor.fetchall()]

    async def mark_replied(self, event_id: int) -> None:
        """Mark an event as replied. Already replied events are unchanged."""
        self._execute("""
            UPDATE pending_events SET replied = 1, updated_at = ?
            WHERE id = ? AND replied = 0
        """, (to_db_timestamp(datetime.now(timezone.utc)), event_id))
        logger.info(f"Marked event {event_id} as replied")

    async def get_max_message_id(self) -> Optional[int]:
        """Largest message id with a recorded event, or None when empty."""
        cursor = self._execute("SELECT MAX(source_message_id) FROM pending_events")
        value = cursor.fetchone()[0]
        return int(value) if value is not None else None

    async def get_pending_count(self) -> int:
        """Count of events not yet replied to."""
        cursor = self._execute("SELECT COUNT(*) FROM pending_events WHERE replied = 0")
        return cursor.fetchone()[0]

    # =========================================================================
    # Ignored Messages
    # =========================================================================

    async def is_message_ignored(self, message_id: int) -> bool:
        """Check whether a message already received a disambiguation reply."""
        cursor = self._execute(
            "SELECT COUNT(*) FROM ignored_messages WHERE source_message_id = ?",
            (message_id,),
        )
        return cursor.fetchone()[0] > 0

    async def mark_message_ignored(self, message_id: int) -> None:
        """Record that a message was answered. Idempotent."""
        self._execute("""
            INSERT INTO ignored_messages (source_message_id) VALUES (?)
            ON CONFLICT(source_message_id) DO NOTHING
        """, (message_id,))
        logger.info(f"Marked message {message_id} as ignored")
