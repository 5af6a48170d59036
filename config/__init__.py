"""
Configuration package for Celestial Echo.

Modules:
    settings: Centralized configuration using Pydantic Settings
    messages: Fixed reply texts sent to requesters
"""

from config.settings import (
    settings,
    Settings,
    LookupFailurePolicy,
    WriteFailurePolicy,
)

__all__ = ["settings", "Settings", "LookupFailurePolicy", "WriteFailurePolicy"]
