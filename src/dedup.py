"""
Dedup Guard - At-most-once disambiguation and rejection replies.

Mentions that received a "Pick a number" or "I don't recognize that"
reply never produce a pending event, so the high-water mark does not move
past them and they are fetched again on the next run. The guard records
every such mention after a successful reply and is consulted before
replying again.

Failure Policies (configurable, see config.settings):
    lookup failure:
        SUPPRESS (default) - answer "ignored"; a reply may be lost
        REPLY              - answer "not ignored"; a reply may be duplicated
    mark failure:
        LOG (default)      - log and continue; a reply may be duplicated later
        RAISE              - abort the run
"""

import logging
from typing import Optional

from config import settings, LookupFailurePolicy, WriteFailurePolicy
from src.exceptions import FatalRunError, StoreError

logger = logging.getLogger(__name__)


class DedupGuard:
    """Tracks message ids already answered with a disambiguation reply."""

    def __init__(
        self,
        store,
        lookup_failure_policy: Optional[LookupFailurePolicy] = None,
        mark_failure_policy: Optional[WriteFailurePolicy] = None,
    ) -> None:
        self.store = store
        self.lookup_failure_policy = lookup_failure_policy or settings.dedup_lookup_failure_policy
        self.mark_failure_policy = mark_failure_policy or settings.dedup_mark_failure_policy

    async def is_ignored(self, message_id: int) -> bool:
        """True iff the message was already answered (or the lookup failed under SUPPRESS)."""
        try:
            return await self.store.is_message_ignored(message_id)
        except StoreError as e:
            suppress = self.lookup_failure_policy == LookupFailurePolicy.SUPPRESS
            logger.error(
                f"Ignored-message lookup failed for {message_id}: {e} "
                f"({'suppressing reply' if suppress else 'replying anyway'})"
            )
            return suppress

    async def mark_ignored(self, message_id: int) -> None:
        """Record a successful disambiguation reply."""
        try:
            await self.store.mark_message_ignored(message_id)
        except StoreError as e:
            if self.mark_failure_policy == WriteFailurePolicy.RAISE:
                raise FatalRunError(f"Could not mark message {message_id} as ignored: {e}") from e
            logger.error(f"Could not mark message {message_id} as ignored, a duplicate reply is possible: {e}")
