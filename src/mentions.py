"""
Mention Processor - One ingestion pass over new mentions.

Flow per mention:
    ┌─────────────────────────────────────────────────────────────┐
    │  1. Extract the query (strip @celestial_echo)               │
    │  2. Ephemeris lookup + classification                       │
    │  3a. Resolved     → build PendingEvent → record in store    │
    │  3b. Unrecognized → dedup guard → reply → mark ignored      │
    │      / Ambiguous                                            │
    └─────────────────────────────────────────────────────────────┘

Errors for a single mention (gateway, parse, post, store) are logged with
the mention id and never stop the pass. Only FatalRunError propagates.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Union

from config import settings, WriteFailurePolicy
from src.classifier import Ambiguous, Resolved, Unrecognized, classify
from src.dedup import DedupGuard
from src.ephemeris import EphemerisGateway
from src.events import PendingEvent, build_event, extract_query
from src.exceptions import (
    CelestialEchoError,
    FatalRunError,
    PostError,
    StoreError,
)

logger = logging.getLogger(__name__)


@dataclass
class Mention:
    """
    An inbound message addressed to the bot.

    This provides a common format independent of the client library.
    """
    id: int
    text: str
    author_handle: str
    created_at: datetime

    # Raw tweet object for later use
    raw_tweet: Optional[object] = field(default=None, repr=False)

    @classmethod
    def from_twikit_tweet(cls, tweet) -> "Mention":
        """
        Create a Mention from a Twikit Tweet object.

        Args:
            tweet: Twikit Tweet object

        Returns:
            Mention with an integer id and aware creation time
        """
        return cls(
            id=int(tweet.id),
            text=tweet.text or "",
            author_handle=tweet.user.screen_name if tweet.user else "unknown",
            created_at=tweet.created_at_datetime,
            raw_tweet=tweet,
        )


@dataclass(frozen=True)
class RecordEvent:
    """Resolution outcome: store a deferred reply."""
    event: PendingEvent


@dataclass(frozen=True)
class SendReply:
    """Resolution outcome: answer right away (disambiguation or rejection)."""
    text: str


MentionOutcome = Union[RecordEvent, SendReply]


@dataclass
class ProcessingStats:
    """Counters for one ingestion pass."""
    seen: int = 0
    recorded: int = 0
    replied: int = 0
    suppressed: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict:
        return {
            "seen": self.seen,
            "recorded": self.recorded,
            "replied": self.replied,
            "suppressed": self.suppressed,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class MentionProcessor:
    """Resolves mentions into pending events or immediate replies."""

    def __init__(
        self,
        gateway: EphemerisGateway,
        store,
        poster,
        dedup: Optional[DedupGuard] = None,
        bot_handle: Optional[str] = None,
        event_write_policy: Optional[WriteFailurePolicy] = None,
    ) -> None:
        """
        Args:
            gateway: Ephemeris lookup.
            store: SQLiteDatabase or Database.
            poster: Object with `async post_reply(message_id, text)`.
            dedup: Guard for disambiguation replies. Built from store if omitted.
            bot_handle: Handle stripped from mention text. Defaults to config.
            event_write_policy: What to do when recording an event fails.
        """
        self.gateway = gateway
        self.store = store
        self.poster = poster
        self.dedup = dedup or DedupGuard(store)
        self.bot_handle = bot_handle or settings.bot_handle
        self.event_write_policy = event_write_policy or settings.event_write_failure_policy

    async def resolve(self, mention: Mention, query: str) -> MentionOutcome:
        """
        Look up and classify a query.

        Raises:
            GatewayError, UnrecognizedExitCode, ParseError
        """
        result = await self.gateway.lookup(mention.created_at, query)
        outcome = classify(result.exit_code, result.stdout)

        if isinstance(outcome, Resolved):
            event = build_event(
                message_id=mention.id,
                celestial_body=query,
                observation_time=mention.created_at,
                distance_light_minutes=outcome.distance_light_minutes,
            )
            return RecordEvent(event)

        if isinstance(outcome, Ambiguous):
            logger.info(f"Mention {mention.id}: {query!r} is ambiguous ({len(outcome.candidates)} candidates)")
        elif isinstance(outcome, Unrecognized):
            logger.info(f"Mention {mention.id}: {query!r} not recognized")
        return SendReply(outcome.message)

    async def handle(self, mention: Mention, stats: ProcessingStats) -> None:
        """Process a single mention. Per-message errors propagate to process()."""
        if mention.author_handle.lower() == self.bot_handle.lower():
            logger.debug(f"Skipping own message {mention.id}")
            stats.skipped += 1
            return

        query = extract_query(mention.text, self.bot_handle)
        if not query:
            logger.info(f"Mention {mention.id} has no query, skipping")
            stats.skipped += 1
            return

        outcome = await self.resolve(mention, query)

        if isinstance(outcome, RecordEvent):
            await self._record(outcome.event, stats)
            return

        if await self.dedup.is_ignored(mention.id):
            logger.info(f"Mention {mention.id} already answered, not replying again")
            stats.suppressed += 1
            return

        await self.poster.post_reply(mention.id, outcome.text)
        stats.replied += 1
        await self.dedup.mark_ignored(mention.id)

    async def _record(self, event: PendingEvent, stats: ProcessingStats) -> None:
        try:
            if await self.store.record_event(event):
                stats.recorded += 1
                logger.info(
                    f"Mention {event.source_message_id}: {event.celestial_body!r} "
                    f"round trip {event.round_trip_seconds:.3f}s, due {event.deadline}"
                )
        except StoreError as e:
            if self.event_write_policy == WriteFailurePolicy.RAISE:
                raise FatalRunError(f"Could not record event for message {event.source_message_id}: {e}") from e
            logger.error(f"Error inserting event for message {event.source_message_id}: {e}")
            stats.failed += 1

    async def process(self, mentions: Iterable[Mention]) -> ProcessingStats:
        """
        Run one ingestion pass in ascending message id order.

        Returns:
            ProcessingStats for the pass.

        Raises:
            FatalRunError: When a RAISE failure policy triggers.
        """
        stats = ProcessingStats()
        for mention in sorted(mentions, key=lambda m: m.id):
            stats.seen += 1
            try:
                await self.handle(mention, stats)
            except FatalRunError:
                raise
            except PostError as e:
                logger.error(f"Error replying to mention {mention.id}: {e}")
                stats.failed += 1
            except CelestialEchoError as e:
                logger.error(f"Error processing mention {mention.id} ({type(e).__name__}): {e}")
                stats.failed += 1

        logger.info(f"Ingestion pass complete: {stats.as_dict()}")
        return stats
