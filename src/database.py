"""
Database Client - Supabase integration for persistence.

Used instead of the local SQLite store when SUPABASE_URL and SUPABASE_KEY
are set. Both stores expose the same async API.

Tables:
    pending_events:
        - id: BIGINT identity (primary key)
        - source_message_id: Mention the event answers (unique)
        - celestial_body: Query text from the mention
        - replied: Whether the round-trip reply was posted
        - deadline: When the reply becomes due (UTC)
        - round_trip_seconds: Delay used for the reply text
        - created_at / updated_at: Bookkeeping

    ignored_messages:
        - id: BIGINT identity (primary key)
        - source_message_id: Mention already answered (unique)
        - created_at: Record creation time

SQL Setup (run in Supabase SQL Editor):
    CREATE TABLE pending_events (
        id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        source_message_id BIGINT NOT NULL UNIQUE,
        celestial_body TEXT NOT NULL,
        replied BOOLEAN NOT NULL DEFAULT false,
        deadline TIMESTAMP NOT NULL,
        round_trip_seconds DOUBLE PRECISION NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
        updated_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
    );

    CREATE INDEX IF NOT EXISTS idx_pending_events_due
        ON pending_events(deadline) WHERE replied = false;

    CREATE TABLE ignored_messages (
        id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
        source_message_id BIGINT NOT NULL UNIQUE,
        created_at TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc')
    );
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from supabase import create_client, Client

from config import settings
from src.events import PendingEvent, to_utc_naive
from src.exceptions import StoreError

logger = logging.getLogger(__name__)


def _iso(value: datetime) -> str:
    return to_utc_naive(value).isoformat(timespec="milliseconds")


class Database:
    """
    Supabase client for pending events and ignored messages.

    Every method raises StoreError when the request fails, so callers
    can apply their own failure policy.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
    ) -> None:
        """
        Initialize database connection.

        Args:
            url: Supabase project URL. Defaults to config.
            key: Supabase anon/service key. Defaults to config.
        """
        self._url = url or settings.supabase_url
        self._key = key or settings.supabase_key
        self.client: Optional[Client] = None
        self._is_connected = False

        self._connect()
        logger.info("Database client initialized")

    def _connect(self) -> None:
        """Establish database connection."""
        if not self._url or not self._key:
            raise StoreError("Supabase URL and key are required")
        try:
            # Sanitize URL (strip trailing slashes)
            url = self._url.rstrip("/")

            logger.info(f"Connecting to database at: {url}")
            self.client = create_client(url, self._key)
            self._is_connected = True
            logger.info("Database connection established")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            self._is_connected = False
            raise StoreError(f"Cannot connect to Supabase: {e}") from e

    def _run(self, description: str, request: Callable[[], Any]) -> Any:
        """Execute a query builder call, wrapping failures in StoreError."""
        if not self._is_connected or self.client is None:
            logger.warning("Database connection lost, attempting reconnect...")
            self._connect()
        try:
            return request()
        except Exception as e:
            logger.error(f"Database {description} failed: {e}")
            raise StoreError(f"{description} failed: {e}") from e

    async def health_check(self) -> bool:
        """
        Check database connection health.

        Returns:
            True if database is accessible, False otherwise.
        """
        try:
            self._run(
                "health check",
                lambda: self.client.table("pending_events").select("id").limit(1).execute(),
            )
            logger.debug("Database health check: OK")
            return True
        except StoreError:
            self._is_connected = False
            return False

    def close(self) -> None:
        """Supabase uses stateless HTTP requests; nothing to release."""
        self._is_connected = False

    # =========================================================================
    # Pending Events
    # =========================================================================

    async def record_event(self, event: PendingEvent) -> bool:
        """
        Insert a pending event unless one exists for the same message.

        Returns:
            True if a new row was inserted, False if the message was known.
        """
        result = self._run(
            "record event",
            lambda: self.client.table("pending_events").upsert(
                {
                    "source_message_id": event.source_message_id,
                    "celestial_body": event.celestial_body,
                    "replied": event.replied,
                    "deadline": _iso(event.deadline),
                    "round_trip_seconds": event.round_trip_seconds,
                },
                on_conflict="source_message_id",
                ignore_duplicates=True,
            ).execute(),
        )

        if not result.data:
            logger.warning(f"Event for message {event.source_message_id} already recorded, skipping")
            return False

        event.id = result.data[0]["id"]
        logger.info(f"Recorded event {event.id} for message {event.source_message_id}")
        return True

    async def get_due_events(self, now: Optional[datetime] = None) -> list[PendingEvent]:
        """Get unreplied events whose deadline is at or before now."""
        now = now or datetime.now(timezone.utc)
        result = self._run(
            "get due events",
            lambda: self.client.table("pending_events").select("*")
            .eq("replied", False)
            .lte("deadline", _iso(now))
            .order("deadline")
            .execute(),
        )
        return [PendingEvent.from_row(row) for row in result.data or []]

    async def mark_replied(self, event_id: int) -> None:
        """Mark an event as replied."""
        self._run(
            "mark replied",
            lambda: self.client.table("pending_events").update({
                "replied": True,
                "updated_at": _iso(datetime.now(timezone.utc)),
            }).eq("id", event_id).eq("replied", False).execute(),
        )
        logger.info(f"Marked event {event_id} as replied")

    async def get_max_message_id(self) -> Optional[int]:
        """Largest message id with a recorded event, or None when empty."""
        result = self._run(
            "get max message id",
            lambda: self.client.table("pending_events").select("source_message_id")
            .order("source_message_id", desc=True)
            .limit(1)
            .execute(),
        )
        if not result.data:
            return None
        return int(result.data[0]["source_message_id"])

    async def get_pending_count(self) -> int:
        """Count of events not yet replied to."""
        result = self._run(
            "get pending count",
            lambda: self.client.table("pending_events").select("id", count="exact")
            .eq("replied", False)
            .execute(),
        )
        return result.count or 0

    # =========================================================================
    # Ignored Messages
    # =========================================================================

    async def is_message_ignored(self, message_id: int) -> bool:
        """Check whether a message already received a disambiguation reply."""
        result = self._run(
            "check ignored message",
            lambda: self.client.table("ignored_messages").select("id", count="exact")
            .eq("source_message_id", message_id)
            .execute(),
        )
        return (result.count or 0) > 0

    async def mark_message_ignored(self, message_id: int) -> None:
        """Record that a message was answered. Idempotent."""
        self._run(
            "mark ignored message",
            lambda: self.client.table("ignored_messages").upsert(
                {"source_message_id": message_id},
                on_conflict="source_message_id",
                ignore_duplicates=True,
            ).execute(),
        )
        logger.info(f"Marked message {message_id} as ignored")
