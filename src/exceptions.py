"""
Exception hierarchy for Celestial Echo.

Per-message errors (gateway, parse, post, store) are caught at the
ingestion loop boundary and logged. FatalRunError aborts the whole run.
"""

from typing import Optional


class CelestialEchoError(Exception):
    """Base class for all bot errors."""
    pass


class GatewayError(CelestialEchoError):
    """The ephemeris lookup process could not be run."""
    pass


class UnrecognizedExitCode(GatewayError):
    """The ephemeris lookup exited with a status outside {0, 1, 2}."""

    def __init__(self, exit_code: Optional[int], stdout: str = ""):
        self.exit_code = exit_code
        self.stdout = stdout
        super().__init__(f"Unrecognized exit code: {exit_code}")


class ParseError(CelestialEchoError):
    """Ephemeris output did not match the shape expected for its exit code."""
    pass


class StoreError(CelestialEchoError):
    """A read or write against the persisted store failed."""
    pass


class PostError(CelestialEchoError):
    """Posting a reply failed."""
    pass


class FatalRunError(CelestialEchoError):
    """A failure that must abort the whole invocation."""
    pass


class AuthenticationError(CelestialEchoError):
    """Logging in to X failed."""
    pass


class FetchError(CelestialEchoError):
    """Fetching mentions failed."""
    pass
