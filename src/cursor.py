"""
Ingestion Cursor - Where mention fetching resumes.

"Already processed" is defined by the largest message id recorded as a
pending event. The interface keeps that rule in one place so it can be
replaced by a persisted cursor.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class IngestionCursor(ABC):
    """Source of the high-water mark for mention fetching."""

    @abstractmethod
    async def high_water_mark(self) -> Optional[int]:
        """Largest processed message id, or None to fetch from the start."""
        pass


class StoreMaxIdCursor(IngestionCursor):
    """High-water mark derived from the max message id in the store."""

    def __init__(self, store) -> None:
        self.store = store

    async def high_water_mark(self) -> Optional[int]:
        max_id = await self.store.get_max_message_id()
        logger.debug(f"Ingestion high-water mark: {max_id}")
        return max_id
