"""
Main orchestrator for Celestial Echo.

This module wires the components together and runs a single cycle.
It is meant to be invoked periodically by an external scheduler
(cron, systemd timer), not to stay resident.

Flow:
    ┌─────────────────────────────────────────────────────────────┐
    │  1. Validate configuration, open the store, log in to X     │
    │  2. Fetch mentions newer than the high-water mark           │
    │  3. Resolve each mention (HORIZONS lookup)                  │
    │     → record a pending event, or reply "pick a number"      │
    │  4. Sweep due events and post their round-trip replies      │
    └─────────────────────────────────────────────────────────────┘

Exit codes:
    0 - Cycle completed (per-message errors are logged, not fatal)
    1 - Configuration, store or authentication failure, or an
        aborting failure policy triggered

Entry Point:
    python -m src.bot [--skip-mentions] [--skip-replies]
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from config import settings
from src.cursor import IngestionCursor, StoreMaxIdCursor
from src.dedup import DedupGuard
from src.ephemeris import EphemerisGateway
from src.exceptions import AuthenticationError, FatalRunError, FetchError, StoreError
from src.mentions import MentionProcessor
from src.reply_worker import process_due_events

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=level or settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Suppress noisy HTTP logs
    logging.getLogger("httpx").setLevel(logging.WARNING)


class CelestialEchoBot:
    """
    Orchestrator that ties all components together.

    This class handles:
    - Component initialization
    - One mention ingestion pass
    - One deferred reply sweep
    """

    def __init__(self, store=None, x_client=None, gateway=None, cursor: Optional[IngestionCursor] = None) -> None:
        """Components may be injected; missing ones are built in initialize()."""
        self.store = store
        self.x = x_client
        self.gateway = gateway
        self.cursor = cursor
        self.processor: Optional[MentionProcessor] = None

    def _validate_config(self) -> None:
        """
        Validate required configuration at startup.

        Raises:
            ValueError: If required configuration is missing.
        """
        missing = settings.missing_credentials()
        if missing and not settings.cookie_file.exists():
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")
        logger.info("Configuration validation passed")

    async def _open_store(self):
        """Open Supabase when configured and healthy, otherwise SQLite."""
        from src.database_sqlite import SQLiteDatabase

        if settings.use_supabase:
            try:
                from src.database import Database
                db = Database()
                if not await db.health_check():
                    raise StoreError("Supabase health check failed")
                logger.info("Database initialized (Supabase)")
                return db
            except StoreError as e:
                logger.warning(f"Supabase unavailable ({e}), falling back to SQLite")

        db = SQLiteDatabase()
        logger.info("Database initialized (SQLite)")
        return db

    async def initialize(self) -> bool:
        """
        Initialize all components.

        Returns:
            True if all components initialized successfully, False otherwise.
        """
        logger.info("Initializing components...")

        try:
            if self.x is None:
                self._validate_config()

            if self.store is None:
                self.store = await self._open_store()

            if self.x is None:
                from src.x_client import XClient
                self.x = XClient()
                await self.x.login()
                logger.info("X client authenticated")

            if self.gateway is None:
                self.gateway = EphemerisGateway()

            if self.cursor is None:
                self.cursor = StoreMaxIdCursor(self.store)

            self.processor = MentionProcessor(
                gateway=self.gateway,
                store=self.store,
                poster=self.x,
                dedup=DedupGuard(self.store),
            )

            logger.info("All components initialized successfully")
            return True

        except (ValueError, StoreError, AuthenticationError) as e:
            logger.error(f"Failed to initialize components: {e}")
            return False

    async def process_new_mentions(self) -> dict:
        """Fetch and resolve mentions above the high-water mark."""
        since_id = await self.cursor.high_water_mark()
        mentions = await self.x.fetch_mentions(since_id)
        stats = await self.processor.process(mentions)
        return stats.as_dict()

    async def send_replies(self) -> int:
        """Post round-trip replies for every due event."""
        return await process_due_events(self.store, self.x)

    async def run_once(self, mentions: bool = True, replies: bool = True) -> dict:
        """
        Run one ingestion pass followed by one reply sweep.

        A mention fetch failure does not prevent the reply sweep; it is
        reported under "mentions_error".

        Returns:
            Summary of the cycle.

        Raises:
            FatalRunError: When a failure policy aborts the run.
            StoreError: When the store cannot be read outside the per-message loop.
        """
        summary: dict = {}
        if mentions:
            try:
                summary["mentions"] = await self.process_new_mentions()
            except FetchError as e:
                logger.error(f"Mention ingestion failed: {e}")
                summary["mentions_error"] = str(e)
        if replies:
            summary["replied"] = await self.send_replies()
        logger.info(f"Cycle complete: {summary}")
        return summary

    def close(self) -> None:
        if self.store is not None:
            self.store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="celestial-echo",
        description="Answer mentions with light round-trip times to celestial bodies.",
    )
    parser.add_argument("--skip-mentions", action="store_true", help="do not fetch or resolve new mentions")
    parser.add_argument("--skip-replies", action="store_true", help="do not post due round-trip replies")
    return parser


async def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for one bot cycle.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    logger.info("=" * 60)
    logger.info(f"Starting Celestial Echo (@{settings.bot_handle})")
    logger.info("=" * 60)

    bot = CelestialEchoBot()
    try:
        if not await bot.initialize():
            logger.error("Failed to initialize bot - exiting")
            return 1

        summary = await bot.run_once(mentions=not args.skip_mentions, replies=not args.skip_replies)
    except (FatalRunError, StoreError) as e:
        logger.error(f"Run aborted: {e}")
        return 1
    finally:
        bot.close()

    return 1 if "mentions_error" in summary else 0


def cli() -> None:
    """Console script entry point."""
    configure_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
