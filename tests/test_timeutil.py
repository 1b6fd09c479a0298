"""Tests for audit time normalisation."""

from __future__ import annotations

import pytest

from timetabler.clashes import (
    NormalizedSlot,
    normalize_time,
    normalize_time_slot,
    parse_minutes,
    time_slots_overlap,
)


class TestNormalizeTime:
    """Tests for normalize_time."""

    @pytest.mark.parametrize("raw,expected", [
        ("09:00", "09:00"),
        ("9:00", "09:00"),
        (" 9:30 ", "09:30"),
        ("0900", "09:00"),
        ("930", "09:30"),
        ("1430", "14:30"),
        ("2:15 PM", "14:15"),
        ("2:15pm", "14:15"),
        ("11am", "11:00"),
        ("12:00 PM", "12:00"),
        ("12:30 AM", "00:30"),
        ("1030 am", "10:30"),
    ])
    def test_formats(self, raw, expected):
        assert normalize_time(raw) == expected

    def test_empty(self):
        assert normalize_time(None) is None
        assert normalize_time("") is None
        assert normalize_time("   ") is None

    def test_unparseable_passes_through(self):
        assert normalize_time("noon") == "noon"

    @pytest.mark.parametrize("raw", ["9:00", "0930", "2:15 PM", "11am", "23:59"])
    def test_idempotent(self, raw):
        once = normalize_time(raw)
        assert normalize_time(once) == once


class TestParseMinutes:
    """Tests for parse_minutes."""

    def test_canonical(self):
        assert parse_minutes("00:00") == 0
        assert parse_minutes("09:30") == 570

    def test_rejects_non_canonical(self):
        assert parse_minutes(None) is None
        assert parse_minutes("9:30") is None
        assert parse_minutes("09:75") is None
        assert parse_minutes("noon") is None


class TestNormalizedSlot:
    """Tests for NormalizedSlot."""

    def test_normalises_fields(self):
        slot = normalize_time_slot("Monday", "9:00", "1030")
        assert slot == NormalizedSlot("monday", "09:00", "10:30")
        assert slot.duration == 90
        assert str(slot) == "monday 09:00-10:30"

    def test_valid_range(self):
        assert normalize_time_slot("monday", "09:00", "10:00").is_valid_range
        assert not normalize_time_slot("monday", "10:00", "09:00").is_valid_range
        assert not normalize_time_slot("monday", "10:00", "10:00").is_valid_range
        assert not normalize_time_slot("monday", "noon", "13:00").is_valid_range
        assert not normalize_time_slot("monday", "23:00", "25:00").is_valid_range

    def test_to_dict(self):
        assert normalize_time_slot("monday", "9:00", "10:00").to_dict() == {
            "day": "monday", "startTime": "09:00", "endTime": "10:00",
        }


class TestTimeSlotsOverlap:
    """Tests for time_slots_overlap."""

    def slot(self, day, start, end):
        return normalize_time_slot(day, start, end)

    def test_partial_overlap(self):
        a = self.slot("monday", "09:00", "10:00")
        b = self.slot("monday", "09:30", "10:30")
        assert time_slots_overlap(a, b)
        assert time_slots_overlap(b, a)

    def test_containment(self):
        a = self.slot("monday", "09:00", "12:00")
        b = self.slot("monday", "10:00", "11:00")
        assert time_slots_overlap(a, b) and time_slots_overlap(b, a)

    def test_touching_slots_do_not_overlap(self):
        a = self.slot("monday", "09:00", "10:00")
        b = self.slot("monday", "10:00", "11:00")
        assert not time_slots_overlap(a, b)

    def test_different_days(self):
        a = self.slot("monday", "09:00", "10:00")
        b = self.slot("tuesday", "09:00", "10:00")
        assert not time_slots_overlap(a, b)

    def test_mixed_formats(self):
        a = self.slot("monday", "9:00", "10:00")
        b = self.slot("monday", "0930", "10:30 AM")
        assert time_slots_overlap(a, b)

    def test_unparseable_never_overlaps(self):
        a = self.slot("monday", "noon", "13:00")
        b = self.slot("monday", "12:00", "13:00")
        assert not time_slots_overlap(a, b)
        assert not time_slots_overlap(b, a)
