"""Tests for input validation helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from utils.validators import is_valid_email, parse_datetime, sanitize_input, validate_event_data, validate_password

NOW = datetime(2026, 5, 1, 12, 0)


def _event(**overrides):
    data = {
        "title": "Board Games",
        "description": "Bring your favourite games",
        "date": "2026-06-01 18:00",
        "location": {"name": "Cafeteria"},
        "maxSeats": 30,
    }
    data.update(overrides)
    return data


class TestSanitize:

    def test_operator_keys_are_removed_recursively(self):
        dirty = {"title": "x", "$where": "1", "location": {"name": "y", "$gt": ""}, "tags": [{"$ne": 1, "a": 2}]}
        assert sanitize_input(dirty) == {"title": "x", "location": {"name": "y"}, "tags": [{"a": 2}]}

    def test_scalars_untouched(self):
        assert sanitize_input("$literal") == "$literal"


class TestEmailAndPassword:

    @pytest.mark.parametrize("email, valid", [
        ("a@b.co", True),
        ("first.last@campus.edu", True),
        ("no-at-sign", False),
        ("two@@signs.com", False),
        ("space in@mail.com", False),
        ("", False),
        (None, False),
    ])
    def test_email(self, email, valid):
        assert is_valid_email(email) is valid

    def test_strong_password(self):
        assert validate_password("Abcdefg1") is None

    def test_missing_password(self):
        assert validate_password(None) == "Password must be at least 8 characters long"


class TestParseDatetime:

    def test_naive_iso(self):
        assert parse_datetime("2026-05-01 18:30") == datetime(2026, 5, 1, 18, 30)

    def test_datetime_passthrough(self):
        assert parse_datetime(NOW) is NOW

    def test_zulu_is_converted_to_local_naive(self):
        parsed = parse_datetime("2026-05-01T18:30:00Z")
        expected = datetime(2026, 5, 1, 18, 30, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parsed == expected
        assert parsed.tzinfo is None

    @pytest.mark.parametrize("value", ["tomorrow", "", None, 12])
    def test_unparseable(self, value):
        assert parse_datetime(value) is None


class TestValidateEvent:

    def test_valid(self):
        assert validate_event_data(_event(), now=NOW) == []

    def test_every_error_is_reported(self):
        errors = validate_event_data({}, now=NOW)
        assert errors == [
            "Title must be at least 3 characters long",
            "Description must be at least 10 characters long",
            "Valid date is required",
            "Location name is required",
            "Maximum seats must be at least 1",
        ]

    def test_past_date(self):
        past = (NOW - timedelta(hours=1)).isoformat()
        assert validate_event_data(_event(date=past), now=NOW) == ["Event date cannot be in the past"]

    @pytest.mark.parametrize("seats, error", [
        (0, "Maximum seats must be at least 1"),
        ("-4", "Maximum seats must be at least 1"),
        ("many", "Maximum seats must be an integer"),
        (2.5, "Maximum seats must be an integer"),
        (True, "Maximum seats must be an integer"),
    ])
    def test_seats(self, seats, error):
        assert validate_event_data(_event(maxSeats=seats), now=NOW) == [error]

    def test_numeric_seat_strings_accepted(self):
        assert validate_event_data(_event(maxSeats="12"), now=NOW) == []

    def test_location_must_be_a_mapping(self):
        assert validate_event_data(_event(location="Hall"), now=NOW) == ["Location name is required"]
