"""
Reply texts for Celestial Echo.

This module centralizes the fixed texts the bot sends back to requesters.
Modify these to adjust the wording of replies.

Structure:
    UNRECOGNIZED_LOCATION: Sent when HORIZONS does not know the location
    DISAMBIGUATION_HEADER: First line of a "pick a number" reply
    ROUND_TRIP_PREFIX: Prefix of the deferred round-trip reply
"""

# =============================================================================
# Rejection
# =============================================================================
# Sent when the ephemeris tool exits with status 1.

HORIZONS_URL = "https://ssd.jpl.nasa.gov/?horizons"

UNRECOGNIZED_LOCATION = f"""Sorry, I don't recognize that location.

Consult JPL HORIZONS for valid options: {HORIZONS_URL}
"""

# =============================================================================
# Disambiguation
# =============================================================================
# Variables: {id}, {label}

DISAMBIGUATION_HEADER = "Pick a number:\n"
DISAMBIGUATION_LINE = "{id}: {label}\n"

# =============================================================================
# Round trip
# =============================================================================

ROUND_TRIP_PREFIX = "Round trip time: "
