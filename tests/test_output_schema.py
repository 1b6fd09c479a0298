"""Tests for output schema."""

from __future__ import annotations

import json

import pytest

from timetabler.data.models import ScheduleEntry
from timetabler.output.schema import (
    GenerationResult,
    TeacherLoad,
    TimetableViews,
    create_views,
    sort_entries,
)


@pytest.fixture
def entries() -> list[ScheduleEntry]:
    """Create entries out of week order."""
    return [
        ScheduleEntry(day="tuesday", start_time="09:00", end_time="10:00",
                      course_code="CS101", teacher_id="T1", teacher_name="Dr. Ada",
                      room_id="R1", room_number="A101"),
        ScheduleEntry(day="monday", start_time="11:00", end_time="12:00",
                      course_code="MA101", teacher_id="T2", room_number="B201"),
        ScheduleEntry(day="monday", start_time="09:00", end_time="10:00",
                      course_code="CS101", teacher_id="T1", teacher_name="Dr. Ada",
                      room_id="R1", room_number="A101"),
    ]


class TestSortEntries:
    """Tests for sort_entries."""

    def test_week_order_then_time(self, entries):
        ordered = sort_entries(entries)
        assert [(e.day, e.start_time) for e in ordered] == [
            ("monday", "09:00"), ("monday", "11:00"), ("tuesday", "09:00"),
        ]

    def test_unknown_day_sorts_last(self, entries):
        odd = ScheduleEntry(day="someday", start_time="08:00", end_time="09:00")
        assert sort_entries([odd] + entries)[-1] is odd


class TestCreateViews:
    """Tests for create_views."""

    def test_by_teacher(self, entries):
        views = create_views(entries, teacher_names={"T2": "Dr. Gauss"})

        assert set(views.by_teacher) == {"T1", "T2"}
        ada = views.by_teacher["T1"]
        assert ada.name == "Dr. Ada"
        assert [e.day for e in ada.entries] == ["monday", "tuesday"]
        assert set(ada.by_day) == {"monday", "tuesday"}
        assert views.by_teacher["T2"].name == "Dr. Gauss"

    def test_by_room_falls_back_to_room_number(self, entries):
        views = create_views(entries)

        assert set(views.by_room) == {"R1", "B201"}
        assert views.by_room["R1"].name == "A101"
        assert len(views.by_room["R1"].entries) == 2

    def test_by_day(self, entries):
        views = create_views(entries)

        assert list(views.by_day) == ["monday", "tuesday"]
        assert views.by_day["monday"].day_name == "Monday"
        assert [e.start_time for e in views.by_day["monday"].entries] == ["09:00", "11:00"]

    def test_empty(self):
        views = create_views([])
        assert views == TimetableViews()


class TestTeacherLoad:
    """Tests for TeacherLoad."""

    def test_overloaded(self):
        load = TeacherLoad(teacher_id="T1", name="Dr. Ada", sessions=12, hours=21.0, max_hours=20)
        assert load.is_overloaded

    def test_at_limit_is_not_overloaded(self):
        load = TeacherLoad(teacher_id="T1", name="Dr. Ada", sessions=10, hours=20.0, max_hours=20)
        assert not load.is_overloaded


class TestGenerationResult:
    """Tests for GenerationResult serialization."""

    def test_to_json_uses_aliases(self, entries):
        result = GenerationResult(
            success=True,
            algorithm="greedy",
            execution_time_ms=12,
            schedule=entries,
            views=create_views(entries),
        )

        data = json.loads(result.to_json())

        assert data["executionTimeMs"] == 12
        assert data["schedule"][0]["courseCode"] == "CS101"
        assert "byTeacher" in data["views"]

    def test_round_trip(self, entries):
        result = GenerationResult(success=True, algorithm="greedy", schedule=entries)

        restored = GenerationResult.model_validate(result.to_dict())

        assert restored.schedule == result.schedule
        assert restored.errors == []
