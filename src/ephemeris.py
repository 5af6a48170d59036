"""
Ephemeris Gateway - Runs the external HORIZONS lookup process.

The lookup is an `expect` script driving JPL HORIZONS. It is called with
two arguments appended to the configured command:

    expect horizons "2020-01-01 00:00:00" "Mars"

Exit Status Protocol:
    0: Resolved; first stdout line carries the distance in light-minutes
    1: Location not recognized
    2: Ambiguous; one candidate per stdout line

Any other status (or death by signal) raises UnrecognizedExitCode.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from config import settings
from src.exceptions import GatewayError, UnrecognizedExitCode

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
RECOGNIZED_EXIT_CODES = frozenset({0, 1, 2})


@dataclass(frozen=True)
class EphemerisResult:
    """Raw outcome of one lookup."""
    exit_code: int
    stdout: str


def format_observation_time(observation_time: datetime) -> str:
    """Format a timestamp for the lookup tool, converting aware times to UTC."""
    if observation_time.tzinfo is not None:
        observation_time = observation_time.astimezone(timezone.utc)
    return observation_time.strftime(TIME_FORMAT)


class EphemerisGateway:
    """
    Invokes the ephemeris lookup process.

    Recognized exit codes are returned to the caller for classification,
    they are never treated as errors here.
    """

    def __init__(self, command: Optional[Sequence[str]] = None) -> None:
        """
        Args:
            command: argv prefix of the lookup tool. Defaults to config.
        """
        self.command: List[str] = list(command if command is not None else settings.ephemeris_argv)
        if not self.command:
            raise ValueError("Ephemeris command must not be empty")

    async def lookup(self, observation_time: datetime, location_query: str) -> EphemerisResult:
        """
        Run one lookup.

        Args:
            observation_time: Time of observation (the mention's creation time).
            location_query: Raw celestial body query.

        Returns:
            EphemerisResult with exit code in {0, 1, 2} and decoded stdout.

        Raises:
            GatewayError: If the process cannot be started.
            UnrecognizedExitCode: If the exit code is outside {0, 1, 2}.
        """
        argv = [*self.command, format_observation_time(observation_time), location_query]
        logger.debug(f"Running ephemeris lookup: {argv}")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
            raw_stdout, _ = await process.communicate()
        except OSError as e:
            raise GatewayError(f"Failed to start ephemeris lookup {self.command[0]!r}: {e}") from e

        stdout = raw_stdout.decode("utf-8", errors="replace")
        exit_code = process.returncode

        if exit_code not in RECOGNIZED_EXIT_CODES:
            logger.warning(f"Ephemeris lookup for {location_query!r} exited with {exit_code}")
            raise UnrecognizedExitCode(exit_code, stdout)

        logger.info(f"Ephemeris lookup for {location_query!r} exited with {exit_code}")
        return EphemerisResult(exit_code=exit_code, stdout=stdout)
