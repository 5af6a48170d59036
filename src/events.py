"""
Event Record Builder - Pending reply obligations.

A PendingEvent is created for every mention whose location resolved to a
distance. It stays unreplied until its deadline passes and the deferred
round-trip reply is posted.

State machine:
    Created(replied=False) ── deadline elapsed AND post succeeds ──> Replied
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from src.exceptions import ParseError
from src.round_trip import calculate_deadline, round_trip_seconds


@dataclass
class PendingEvent:
    """One deferred round-trip reply."""
    source_message_id: int
    celestial_body: str
    deadline: datetime
    round_trip_seconds: float
    replied: bool = False
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "PendingEvent":
        """Build an event from a store row dict."""
        created_at = row.get("created_at")
        updated_at = row.get("updated_at")
        return cls(
            id=row.get("id"),
            source_message_id=int(row["source_message_id"]),
            celestial_body=row["celestial_body"],
            replied=bool(row["replied"]),
            deadline=_parse_timestamp(row["deadline"]),
            round_trip_seconds=float(row["round_trip_seconds"]),
            created_at=_parse_timestamp(created_at) if created_at else None,
            updated_at=_parse_timestamp(updated_at) if updated_at else None,
        )


def to_utc_naive(value: datetime) -> datetime:
    """Stores keep naive UTC timestamps; aware values are converted."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value))
    return to_utc_naive(value)


def extract_query(text: str, bot_handle: str) -> str:
    """
    Pull the celestial body query out of a mention.

    Strips surrounding whitespace and one leading @bot_handle token.

    Example:
        >>> extract_query("@celestial_echo  Mars ", "celestial_echo")
        'Mars'
    """
    body = text.strip()
    handle_token = re.compile(rf"@{re.escape(bot_handle)}\b", re.IGNORECASE)
    match = handle_token.match(body)
    if match:
        body = body[match.end():].strip()
    return body


def build_event(
    message_id: int,
    celestial_body: str,
    observation_time: datetime,
    distance_light_minutes: float,
) -> PendingEvent:
    """
    Assemble a PendingEvent for a resolved lookup.

    Args:
        message_id: Id of the originating mention.
        celestial_body: Query text already stripped of the bot mention.
        observation_time: Creation time of the mention.
        distance_light_minutes: One-way distance from the lookup.

    Returns:
        Unreplied PendingEvent due at observation_time + round trip.

    Raises:
        ParseError: If the deadline falls outside the datetime range.
    """
    delay = round_trip_seconds(distance_light_minutes)
    try:
        deadline = calculate_deadline(observation_time, delay)
    except (OverflowError, ValueError) as e:
        raise ParseError(f"Distance {distance_light_minutes!r} gives no representable deadline: {e}") from e

    return PendingEvent(
        source_message_id=message_id,
        celestial_body=celestial_body,
        replied=False,
        deadline=deadline,
        round_trip_seconds=delay,
    )
