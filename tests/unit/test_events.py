"""
Tests for the Event Record Builder.

These tests verify:
- Query extraction from mention text
- Event construction from a resolved lookup
- Row parsing and UTC normalization
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.events import PendingEvent, build_event, extract_query, to_utc_naive
from src.exceptions import ParseError


class TestExtractQuery:
    """Tests for extract_query."""

    @pytest.mark.parametrize("text,expected", [
        ("@celestial_echo Mars", "Mars"),
        ("  @celestial_echo   Mars  ", "Mars"),
        ("@Celestial_Echo Jupiter Barycenter", "Jupiter Barycenter"),
        ("@celestial_echo\nVoyager 1\n", "Voyager 1"),
        ("Mars", "Mars"),
        ("@celestial_echo", ""),
        ("   ", ""),
    ])
    def test_extracts_body(self, text, expected):
        assert extract_query(text, "celestial_echo") == expected

    def test_only_leading_handle_is_removed(self):
        assert extract_query("Mars @celestial_echo", "celestial_echo") == "Mars @celestial_echo"

    def test_longer_handle_is_not_stripped(self):
        text = "@celestial_echoes Mars"
        assert extract_query(text, "celestial_echo") == text

    def test_other_handle_kept(self):
        assert extract_query("@someone Mars", "celestial_echo") == "@someone Mars"


class TestBuildEvent:
    """Tests for build_event."""

    def test_mars_scenario(self):
        event = build_event(
            message_id=42,
            celestial_body="Mars",
            observation_time=datetime(2020, 1, 1),
            distance_light_minutes=4.5,
        )

        assert event.source_message_id == 42
        assert event.celestial_body == "Mars"
        assert event.replied is False
        assert event.round_trip_seconds == 540.0
        assert event.deadline == datetime(2020, 1, 1, 0, 9, 0)
        assert event.id is None

    def test_deadline_keeps_timezone_of_observation(self):
        start = datetime(2020, 1, 1, tzinfo=timezone.utc)
        event = build_event(1, "Moon", start, 0.025)

        assert event.deadline == start + timedelta(seconds=3)
        assert event.deadline.tzinfo is timezone.utc

    @pytest.mark.parametrize("distance", [1e300, 1e306, -1e300])
    def test_unrepresentable_deadline_raises_parse_error(self, distance):
        with pytest.raises(ParseError, match="no representable deadline"):
            build_event(1, "Far away", datetime(2020, 1, 1), distance)


class TestFromRow:
    """Tests for PendingEvent.from_row."""

    def test_sqlite_row(self):
        row = {
            "id": 3,
            "source_message_id": 1234567890123456789,
            "celestial_body": "Mars",
            "replied": 0,
            "deadline": "2020-01-01 00:09:00.000",
            "round_trip_seconds": 540.0,
            "created_at": "2020-01-01 00:00:01",
            "updated_at": "2020-01-01 00:00:01",
        }
        event = PendingEvent.from_row(row)

        assert event.id == 3
        assert event.source_message_id == 1234567890123456789
        assert event.replied is False
        assert event.deadline == datetime(2020, 1, 1, 0, 9)
        assert event.created_at == datetime(2020, 1, 1, 0, 0, 1)

    def test_supabase_row_with_offset(self):
        row = {
            "id": 7,
            "source_message_id": "99",
            "celestial_body": "Moon",
            "replied": True,
            "deadline": "2020-01-01T02:00:00+02:00",
            "round_trip_seconds": "2.5",
        }
        event = PendingEvent.from_row(row)

        assert event.source_message_id == 99
        assert event.replied is True
        assert event.round_trip_seconds == 2.5
        assert event.deadline == datetime(2020, 1, 1, 0, 0)
        assert event.created_at is None
        assert event.updated_at is None


def test_to_utc_naive():
    aware = datetime(2020, 1, 1, 5, 30, tzinfo=timezone(timedelta(hours=5, minutes=30)))
    assert to_utc_naive(aware) == datetime(2020, 1, 1)
    assert to_utc_naive(datetime(2020, 1, 1)) == datetime(2020, 1, 1)
