"""
Round-Trip Calculator - Light-travel delay and reply formatting.

A signal to a body D light-minutes away and back takes D * 60 * 2 seconds.
The deferred reply is due at observation time + that delay.

Reply precision adapts to magnitude (r = round-trip seconds):

    r < 2s        "0.8312s"       4 decimals
    r < 10s       "2.563s"        3 decimals
    r < 60s       "12.66s"        2 decimals
    < 10 minutes  "9m 3.2s"
    < 60 minutes  "43m 12s"
    otherwise     "2h 41m"
"""

import math
from datetime import datetime, timedelta

from config.messages import ROUND_TRIP_PREFIX

SECONDS_PER_LIGHT_MINUTE = 60.0


def round_trip_seconds(distance_light_minutes: float) -> float:
    """Round-trip delay in seconds for a one-way distance in light-minutes."""
    return distance_light_minutes * SECONDS_PER_LIGHT_MINUTE * 2.0


def calculate_deadline(observation_time: datetime, delay_seconds: float) -> datetime:
    """
    Absolute time at which the deferred reply becomes due.

    The delay is truncated to whole milliseconds before being added;
    the unrounded value is kept elsewhere for display.
    """
    return observation_time + timedelta(milliseconds=int(delay_seconds * 1000.0))


def format_round_trip(seconds: float) -> str:
    """
    Human-readable round-trip time for the deferred reply.

    Under ten minutes the seconds keep one decimal, so 540 s reads
    "9m 0.0s" rather than "9m 0s".

    Example:
        >>> format_round_trip(540.0)
        'Round trip time: 9m 0.0s'
    """
    if seconds < 2.0:
        return f"{ROUND_TRIP_PREFIX}{seconds:.4f}s"
    if seconds < 10.0:
        return f"{ROUND_TRIP_PREFIX}{seconds:.3f}s"
    if seconds < 60.0:
        return f"{ROUND_TRIP_PREFIX}{seconds:.2f}s"

    total_minutes = math.floor(seconds / 60)
    hours = math.floor(seconds / 3600)
    minutes = total_minutes % 60
    remainder = seconds % 60

    if total_minutes < 10:
        return f"{ROUND_TRIP_PREFIX}{minutes}m {remainder:.1f}s"
    if total_minutes < 60:
        return f"{ROUND_TRIP_PREFIX}{minutes}m {int(remainder)}s"
    return f"{ROUND_TRIP_PREFIX}{hours}h {minutes}m"
