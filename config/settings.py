"""
Centralized configuration for Celestial Echo.

This module uses Pydantic Settings to load and validate environment variables.
All bot configuration is centralized here to avoid scattered config files.

Usage:
    from config import settings
    print(settings.bot_handle)

Environment Variables:
    See .env.example for all available configuration options.
"""

import logging
import shlex
from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class LookupFailurePolicy(str, Enum):
    """What the dedup guard answers when the ignored-message lookup fails."""
    SUPPRESS = "suppress"  # treat as already ignored, drop the reply
    REPLY = "reply"        # treat as not ignored, risk a duplicate


class WriteFailurePolicy(str, Enum):
    """What happens when a best-effort store write fails."""
    LOG = "log"
    RAISE = "raise"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # X/Twitter account
    # =========================================================================
    bot_handle: str = "celestial_echo"
    x_username: str = ""
    x_email: str = ""
    x_password: str = ""
    cookie_file: Path = Path("cookies.json")

    # Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    # Leave unset to keep cookies as plain JSON (local development only).
    cookie_encryption_key: Optional[str] = None

    # =========================================================================
    # Mention ingestion
    # =========================================================================
    mention_page_size: int = Field(default=20, ge=1, le=20)
    max_mention_pages: int = Field(default=10, ge=1)

    # =========================================================================
    # Ephemeris tool (JPL HORIZONS via expect)
    # =========================================================================
    ephemeris_command: str = "expect horizons"
    reply_character_limit: int = Field(default=280, ge=1)

    # =========================================================================
    # Storage
    # =========================================================================
    database_path: Path = Path("celestial_echo.db")
    # Supabase is used instead of SQLite when both are set
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # =========================================================================
    # Failure policies
    # =========================================================================
    dedup_lookup_failure_policy: LookupFailurePolicy = LookupFailurePolicy.SUPPRESS
    dedup_mark_failure_policy: WriteFailurePolicy = WriteFailurePolicy.LOG
    event_write_failure_policy: WriteFailurePolicy = WriteFailurePolicy.LOG

    # =========================================================================
    # Logging
    # =========================================================================
    log_level: str = "INFO"

    @field_validator("bot_handle")
    @classmethod
    def _strip_at(cls, value: str) -> str:
        return value.strip().lstrip("@")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return value

    @property
    def ephemeris_argv(self) -> List[str]:
        """The gateway command split into argv form."""
        return shlex.split(self.ephemeris_command)

    @property
    def use_supabase(self) -> bool:
        """Whether the Supabase backend is configured."""
        return bool(self.supabase_url and self.supabase_key)

    def missing_credentials(self) -> List[str]:
        """Names of required settings that are empty."""
        required = [
            ("X_USERNAME", self.x_username),
            ("X_EMAIL", self.x_email),
            ("X_PASSWORD", self.x_password),
            ("BOT_HANDLE", self.bot_handle),
        ]
        return [name for name, value in required if not value]


# Singleton instance for global settings
settings = Settings()
