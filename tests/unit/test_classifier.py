"""
Tests for the Response Classifier.

These tests verify that the classifier correctly:
- Reads the distance from resolved lookups
- Returns the fixed rejection for unknown locations
- Builds disambiguation replies within the character limit
- Rejects malformed output and unknown exit codes
"""

import pytest

from config.messages import UNRECOGNIZED_LOCATION
from src.classifier import (
    Ambiguous,
    Candidate,
    Resolved,
    Unrecognized,
    build_disambiguation,
    classify,
    parse_candidates,
    parse_distance,
)
from src.exceptions import GatewayError, ParseError, UnrecognizedExitCode


class TestResolved:
    """Exit code 0."""

    def test_third_field_is_distance(self):
        assert classify(0, "foo bar 4.5\n") == Resolved(distance_light_minutes=4.5)

    def test_uses_first_non_empty_line(self):
        stdout = "\n\n  2020-Jan-01 00:00 12.75 extra\nsecond 1 2\n"
        assert parse_distance(stdout) == 12.75

    def test_scientific_notation(self):
        assert parse_distance("a b 1.5e2") == 150.0

    def test_empty_output_raises(self):
        with pytest.raises(ParseError, match="missing distance line"):
            classify(0, "  \n")

    def test_missing_field_raises(self):
        with pytest.raises(ParseError, match="Missing distance field"):
            classify(0, "only two\n")

    def test_non_numeric_field_raises(self):
        with pytest.raises(ParseError, match="Invalid distance"):
            classify(0, "foo bar baz\n")

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", "1e999"])
    def test_non_finite_distance_raises(self, value):
        with pytest.raises(ParseError, match="Invalid distance"):
            classify(0, f"foo bar {value}\n")

    def test_huge_finite_distance_accepted(self):
        assert parse_distance("a b 1e300") == 1e300


class TestUnrecognized:
    """Exit code 1."""

    def test_fixed_message(self):
        outcome = classify(1, "whatever the tool printed")
        assert isinstance(outcome, Unrecognized)
        assert outcome.message == UNRECOGNIZED_LOCATION

    def test_message_points_to_horizons(self):
        assert "https://ssd.jpl.nasa.gov/?horizons" in classify(1, "").message


class TestAmbiguous:
    """Exit code 2."""

    def test_candidates_and_message(self):
        outcome = classify(2, "1 Mars (\n2 Mars II  \n")

        assert isinstance(outcome, Ambiguous)
        assert outcome.candidates == (Candidate(1, "Mars"), Candidate(2, "Mars II"))
        assert outcome.message == "Pick a number:\n1: Mars\n2: Mars II\n"

    def test_label_stops_at_double_space(self):
        candidates = parse_candidates("  499  Mars  (planet)  Barycenter\n")
        assert candidates == [Candidate(499, "Mars")]

    def test_negative_ids(self):
        candidates = parse_candidates("-82 Cassini (spacecraft)\n")
        assert candidates == [Candidate(-82, "Cassini")]

    def test_label_runs_to_end_of_line(self):
        assert parse_candidates("4 Mars Express") == [Candidate(4, "Mars Express")]

    def test_any_unmatched_line_fails_whole_parse(self):
        with pytest.raises(ParseError, match="No match found"):
            classify(2, "1 Mars\nnot a candidate\n2 Phobos\n")

    def test_empty_output_gives_bare_header(self):
        outcome = classify(2, "")
        assert outcome.candidates == ()
        assert outcome.message == "Pick a number:\n"

    def test_message_never_exceeds_limit(self):
        stdout = "".join(f"{i} {'X' * 30}\n" for i in range(50))
        outcome = classify(2, stdout)

        assert len(outcome.message) <= 280
        assert outcome.omitted
        assert len(outcome.candidates) + len(outcome.omitted) == 50

    def test_long_candidate_skipped_not_truncated(self):
        candidates = [
            Candidate(1, "A" * 250),
            Candidate(2, "B" * 40),
            Candidate(3, "C"),
        ]
        message, included, omitted = build_disambiguation(candidates, limit=280)

        assert message == "Pick a number:\n1: " + "A" * 250 + "\n3: C\n"
        assert [c.id for c in included] == [1, 3]
        assert [c.id for c in omitted] == [2]

    def test_every_included_line_matches_a_candidate(self):
        stdout = "10 Io  (satellite)\n11 Europa (\n12 Ganymede\n"
        outcome = classify(2, stdout)
        lines = outcome.message.splitlines()[1:]
        assert lines == ["10: Io", "11: Europa", "12: Ganymede"]


class TestUnknownExitCode:
    """Exit codes outside {0, 1, 2}."""

    @pytest.mark.parametrize("code", [7, -9, 3, None])
    def test_raises_unrecognized_exit_code(self, code):
        with pytest.raises(UnrecognizedExitCode) as exc_info:
            classify(code, "")
        assert exc_info.value.exit_code == code

    def test_is_a_gateway_error(self):
        with pytest.raises(GatewayError):
            classify(7, "")
