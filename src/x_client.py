"""
X Client - Twikit adapter for mentions and replies.

This module is the only place that talks to X/Twitter.

Responsibilities:
    1. Authenticate the bot account, reusing saved session cookies
    2. Fetch mentions newer than the ingestion high-water mark
    3. Post replies to a given message

Session Cookies:
    Cookies are saved to COOKIE_FILE after a fresh login. When
    COOKIE_ENCRYPTION_KEY is set they are encrypted with Fernet, so a
    leaked file does not leak the session.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import httpx
from cryptography.fernet import Fernet, InvalidToken
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
from twikit import Client
from twikit.errors import (
    BadRequest,
    Forbidden,
    TooManyRequests,
    TwitterException,
    Unauthorized,
)

from config import settings
from src.exceptions import AuthenticationError, FetchError, PostError
from src.mentions import Mention

logger = logging.getLogger(__name__)


class XClient:
    """
    Fetches mentions of the bot and posts replies.

    Usage:
        x = XClient()
        await x.login()
        mentions = await x.fetch_mentions(since_id=1234)
        await x.post_reply(mentions[0].id, "Round trip time: 9m 0.0s")
    """

    def __init__(
        self,
        client: Optional[Client] = None,
        handle: Optional[str] = None,
        cookie_file: Optional[Path] = None,
        encryption_key: Optional[str] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> None:
        self.client = client or Client(language="en-US")
        self.handle = (handle or settings.bot_handle).lstrip("@")
        self.cookie_file = Path(cookie_file or settings.cookie_file)
        key = encryption_key if encryption_key is not None else settings.cookie_encryption_key
        self._fernet: Optional[Fernet] = Fernet(key.encode()) if key else None
        self.page_size = min(max(1, page_size or settings.mention_page_size), 20)
        self.max_pages = max_pages or settings.max_mention_pages
        self._is_authenticated = False

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    # =========================================================================
    # Authentication
    # =========================================================================

    def _load_cookies(self) -> Optional[dict]:
        """Read saved cookies, decrypting them when a key is configured."""
        if not self.cookie_file.exists():
            return None

        raw = self.cookie_file.read_bytes()
        if self._fernet:
            try:
                raw = self._fernet.decrypt(raw)
            except InvalidToken:
                logger.warning(f"Cannot decrypt {self.cookie_file}, ignoring saved cookies")
                return None

        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"{self.cookie_file} is not valid cookie JSON, ignoring it")
            return None

    def _save_cookies(self) -> None:
        """Persist the current session cookies."""
        data = json.dumps(self.client.get_cookies()).encode()
        if self._fernet:
            data = self._fernet.encrypt(data)
        self.cookie_file.write_bytes(data)
        logger.info(f"Saved session cookies to {self.cookie_file}")

    async def login(self) -> None:
        """
        Authenticate the bot account.

        Raises:
            AuthenticationError: If neither saved cookies nor credentials work.
        """
        cookies = self._load_cookies()
        if cookies:
            self.client.set_cookies(cookies)
            self._is_authenticated = True
            logger.info("Restored X session from saved cookies")
            return

        if not (settings.x_username and settings.x_password):
            raise AuthenticationError("No saved session and no X credentials configured")

        try:
            await self.client.login(
                auth_info_1=settings.x_username,
                auth_info_2=settings.x_email or None,
                password=settings.x_password,
            )
        except (TwitterException, httpx.HTTPError) as e:
            raise AuthenticationError(f"X login failed: {e}") from e

        self._save_cookies()
        self._is_authenticated = True
        logger.info(f"Logged in as @{self.handle}")

    # =========================================================================
    # Mentions
    # =========================================================================

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception_type((TooManyRequests, httpx.TransportError)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _fetch_page(self, previous=None):
        """Fetch the first search page, or the page after `previous`."""
        if previous is None:
            return await self.client.search_tweet(
                query=f"@{self.handle}",
                product="Latest",
                count=self.page_size,
            )
        return await previous.next()

    async def fetch_mentions(self, since_id: Optional[int] = None) -> list[Mention]:
        """
        Fetch mentions newer than since_id.

        Pages are read newest first until a page is empty, a page reaches
        an already processed id, or max_pages is hit.

        Args:
            since_id: High-water mark. None fetches up to max_pages.

        Returns:
            Mentions with id > since_id in ascending id order.

        Raises:
            FetchError: If a page cannot be fetched after retries.
        """
        found: dict[int, Mention] = {}
        page = None

        for _ in range(self.max_pages):
            try:
                page = await self._fetch_page(page)
            except (TwitterException, httpx.HTTPError) as e:
                if isinstance(e, Unauthorized):
                    self._is_authenticated = False
                raise FetchError(f"Could not fetch mentions of @{self.handle}: {e}") from e
            tweets = list(page)
            if not tweets:
                break

            reached_seen = False
            for tweet in tweets:
                if getattr(tweet, "retweeted_tweet", None):
                    continue
                mention = Mention.from_twikit_tweet(tweet)
                if since_id is not None and mention.id <= since_id:
                    reached_seen = True
                    continue
                found[mention.id] = mention

            if reached_seen:
                break
        else:
            logger.warning(f"Stopped fetching mentions after {self.max_pages} pages")

        mentions = sorted(found.values(), key=lambda m: m.id)
        logger.info(f"Fetched {len(mentions)} new mention(s) since {since_id}")
        return mentions

    # =========================================================================
    # Replies
    # =========================================================================

    async def post_reply(self, message_id: int, text: str) -> None:
        """
        Post text as a reply to message_id.

        Raises:
            PostError: If X rejects the reply or the request fails.
        """
        try:
            await self.client.create_tweet(text=text, reply_to=str(message_id))
        except TooManyRequests as e:
            raise PostError(f"Rate limited by X while replying to {message_id}: {e}") from e
        except Unauthorized as e:
            self._is_authenticated = False
            raise PostError(f"Session expired while replying to {message_id}: {e}") from e
        except Forbidden as e:
            raise PostError(f"Not allowed to reply to {message_id}: {e}") from e
        except BadRequest as e:
            if "duplicate" in str(e).lower():
                raise PostError(f"Duplicate reply to {message_id} rejected by X") from e
            raise PostError(f"Bad request replying to {message_id}: {e}") from e
        except (TwitterException, httpx.HTTPError) as e:
            raise PostError(f"X API error replying to {message_id}: {e}") from e

        logger.info(f"Replied to {message_id} ({len(text)} chars)")
