"""
Tests for core coercion helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.utils import as_list, parse_timestamp, safe_get, to_float


class TestAsList:

    def test_none(self):
        assert as_list(None) == []

    def test_scalar_wrapped(self):
        assert as_list("hiking") == ["hiking"]
        assert as_list({"a": 1}) == [{"a": 1}]
        assert as_list(7) == [7]

    def test_iterables_copied(self):
        source = ["a", "b"]
        result = as_list(source)
        assert result == source
        assert result is not source
        assert as_list(("x",)) == ["x"]


class TestSafeGet:

    def test_nested_dict(self):
        assert safe_get({"a": {"b": 1}}, "a", "b") == 1

    def test_missing_returns_default(self):
        assert safe_get({"a": {}}, "a", "b", default=0) == 0
        assert safe_get(None, "a") is None

    def test_attributes(self):
        class Point:
            lat = 1.5

        assert safe_get(Point(), "lat") == 1.5


class TestToFloat:

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        ("2.5", 2.5),
        (" -7 ", -7.0),
        (0, 0.0),
    ])
    def test_parses(self, value, expected):
        assert to_float(value) == expected

    @pytest.mark.parametrize("value", [None, True, False, "", "abc", "nan", "inf", float("nan"), [], {}])
    def test_rejects(self, value):
        assert to_float(value) is None


class TestParseTimestamp:

    def test_iso_with_z(self):
        assert parse_timestamp("2025-06-14T09:00:00Z") == datetime(2025, 6, 14, 9, tzinfo=timezone.utc)

    def test_offset_normalized_to_utc(self):
        parsed = parse_timestamp("2025-06-14T19:00:00+10:00")
        assert parsed == datetime(2025, 6, 14, 9, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_read_as_utc(self):
        assert parse_timestamp(datetime(2025, 1, 1)) == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_epoch_seconds(self):
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", True, [], {"at": 1}])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None
