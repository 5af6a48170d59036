"""
Response Classifier - Turns ephemeris output into a tagged outcome.

The lookup tool's exit code selects one of three unrelated output shapes.
classify() is the only place that branches on it:

    ┌──────┬──────────────┬─────────────────────────────────────────┐
    │ code │ outcome      │ stdout                                  │
    ├──────┼──────────────┼─────────────────────────────────────────┤
    │  0   │ Resolved     │ "<x> <y> <light-minutes> ..."           │
    │  1   │ Unrecognized │ ignored                                 │
    │  2   │ Ambiguous    │ one "<id> <label>" candidate per line   │
    └──────┴──────────────┴─────────────────────────────────────────┘
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from config import settings
from config.messages import (
    DISAMBIGUATION_HEADER,
    DISAMBIGUATION_LINE,
    UNRECOGNIZED_LOCATION,
)
from src.exceptions import ParseError, UnrecognizedExitCode

logger = logging.getLogger(__name__)

CANDIDATE_PATTERN = re.compile(r"\s*(-?\d+)\s*(.*?)(\(|  |$)")


@dataclass(frozen=True)
class Candidate:
    """One entry of an ambiguous lookup."""
    id: int
    label: str


@dataclass(frozen=True)
class Resolved:
    """The location resolved to a one-way distance."""
    distance_light_minutes: float


@dataclass(frozen=True)
class Unrecognized:
    """The location is unknown to HORIZONS."""
    message: str = UNRECOGNIZED_LOCATION


@dataclass(frozen=True)
class Ambiguous:
    """The location matched several bodies; message lists them."""
    candidates: Tuple[Candidate, ...]
    message: str
    omitted: Tuple[Candidate, ...] = field(default=())


Classification = Union[Resolved, Unrecognized, Ambiguous]


def parse_distance(stdout: str) -> float:
    """
    Read the distance in light-minutes from a resolved lookup.

    Raises:
        ParseError: If the first line or its third field is missing or not a finite float.
    """
    lines = stdout.strip().splitlines()
    if not lines:
        raise ParseError("HORIZONS response missing distance line")

    line = lines[0]
    fields = line.split()
    if len(fields) < 3:
        raise ParseError(f"Missing distance field: {line!r}")

    try:
        distance = float(fields[2])
    except ValueError as e:
        raise ParseError(f"Invalid distance {fields[2]!r} in {line!r}") from e

    if not math.isfinite(distance):
        raise ParseError(f"Invalid distance {fields[2]!r} in {line!r}")
    return distance


def parse_candidates(stdout: str) -> List[Candidate]:
    """
    Parse every line of an ambiguous lookup.

    Raises:
        ParseError: If any line does not look like a candidate.
    """
    candidates = []
    for line in stdout.strip().splitlines():
        match = CANDIDATE_PATTERN.match(line)
        if match is None:
            raise ParseError(f"No match found in {line!r}")
        candidates.append(Candidate(id=int(match.group(1)), label=match.group(2).strip()))
    return candidates


def build_disambiguation(
    candidates: List[Candidate],
    limit: Optional[int] = None,
) -> Tuple[str, List[Candidate], List[Candidate]]:
    """
    Build the "Pick a number" reply.

    Candidates that would push the message past the limit are dropped
    whole; later, shorter ones may still fit.

    Returns:
        (message, included candidates, omitted candidates)
    """
    limit = limit if limit is not None else settings.reply_character_limit
    message = DISAMBIGUATION_HEADER
    included, omitted = [], []

    for candidate in candidates:
        line = DISAMBIGUATION_LINE.format(id=candidate.id, label=candidate.label)
        if len(message) + len(line) <= limit:
            message += line
            included.append(candidate)
        else:
            omitted.append(candidate)

    if omitted:
        logger.debug(f"Dropped {len(omitted)} candidate(s) to stay within {limit} characters")
    return message, included, omitted


def classify(exit_code: Optional[int], stdout: str) -> Classification:
    """
    Classify one lookup result.

    Args:
        exit_code: Exit status of the lookup process.
        stdout: Decoded standard output.

    Returns:
        Resolved, Unrecognized or Ambiguous.

    Raises:
        ParseError: If stdout does not match the shape for its exit code.
        UnrecognizedExitCode: If exit_code is not 0, 1 or 2.
    """
    if exit_code == 0:
        return Resolved(distance_light_minutes=parse_distance(stdout))

    if exit_code == 1:
        return Unrecognized()

    if exit_code == 2:
        candidates = parse_candidates(stdout)
        message, included, omitted = build_disambiguation(candidates)
        return Ambiguous(candidates=tuple(included), message=message, omitted=tuple(omitted))

    raise UnrecognizedExitCode(exit_code, stdout)
