"""
Deferred Reply Scheduler - Posts round-trip replies once they are due.

Each run sweeps the store once:

    ┌─────────────────────────────────────────────────────────────┐
    │  1. Query events where replied = false AND deadline <= now  │
    │  2. For each due event:                                     │
    │     a. Format the round-trip time                           │
    │     b. Post it as a reply to the original mention           │
    │     c. Only on success, mark the event replied              │
    └─────────────────────────────────────────────────────────────┘

A failed post leaves the event unreplied; it is retried on the next run.
There is no retry limit and no expiry.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from src.events import PendingEvent
from src.exceptions import CelestialEchoError, StoreError
from src.round_trip import format_round_trip

logger = logging.getLogger(__name__)


async def process_due_events(store, poster, now: Optional[datetime] = None) -> int:
    """
    Reply to every unreplied event whose deadline has passed.

    Args:
        store: SQLiteDatabase or Database.
        poster: Object with `async post_reply(message_id, text)`.
        now: Sweep time. Defaults to the current UTC time.

    Returns:
        Number of events marked replied.

    Raises:
        StoreError: If the due events cannot be loaded.
    """
    now = now or datetime.now(timezone.utc)
    due = await store.get_due_events(now)

    if not due:
        logger.debug("No due events")
        return 0

    logger.info(f"Processing {len(due)} due event(s)")
    replied = 0

    for event in due:
        if await _reply_to_event(event, store, poster):
            replied += 1

    logger.info(f"Reply sweep complete: {replied}/{len(due)} replied")
    return replied


async def _reply_to_event(event: PendingEvent, store, poster) -> bool:
    """
    Post the round-trip reply for one event and mark it replied.

    Returns:
        True if the event is now replied, False otherwise.
    """
    text = format_round_trip(event.round_trip_seconds)

    try:
        await poster.post_reply(event.source_message_id, text)
    except CelestialEchoError as e:
        logger.error(f"Failed to reply for event {event.id} (message {event.source_message_id}), will retry: {e}")
        return False

    try:
        await store.mark_replied(event.id)
    except StoreError as e:
        logger.error(
            f"Replied to message {event.source_message_id} but could not mark event {event.id}: {e}"
        )
        return False

    event.replied = True
    logger.info(f"Replied to message {event.source_message_id} ({event.celestial_body}): {text}")
    return True
