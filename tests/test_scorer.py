"""Tests for assignment scoring."""

from __future__ import annotations

import pytest

from timetabler.data.models import Course, Room, Teacher
from timetabler.scheduling import (
    DEFAULT_WEIGHTS,
    ScheduleBook,
    ScoreWeights,
    build_schedule_entry,
    score_assignment,
)
from timetabler.slots import TimeSlot


MON_9 = TimeSlot("monday", "09:00", "10:00", 60)
MON_10 = TimeSlot("monday", "10:00", "11:00", 60)
MON_12 = TimeSlot("monday", "12:00", "13:00", 60)


@pytest.fixture
def course() -> Course:
    return Course(course_code="CS101", credits=3, department="CS", max_students=30)


@pytest.fixture
def teacher() -> Teacher:
    return Teacher(teacher_id="T1", name="Dr. A", department="CS")


@pytest.fixture
def big_room() -> Room:
    # 30 / 100 = 30% utilisation, outside the good-fit band
    return Room(room_number="A101", capacity=100)


class TestScoreAssignment:
    """Tests for score_assignment."""

    def test_base_score(self, course, teacher, big_room):
        assert score_assignment(course, teacher, big_room, MON_9, ScheduleBook()) == 50

    def test_preferred_department(self, course, big_room):
        teacher = Teacher(
            teacher_id="T1", name="Dr. A", department="CS",
            preferences={"departments": ["CS"]},
        )
        assert score_assignment(course, teacher, big_room, MON_9, ScheduleBook()) == 70

    def test_preferred_slot(self, course, big_room):
        teacher = Teacher(
            teacher_id="T1", name="Dr. A", department="CS",
            preferences={"time_slots": [{"day": "monday", "start_time": "09:00"}]},
        )
        assert score_assignment(course, teacher, big_room, MON_9, ScheduleBook()) == 65
        assert score_assignment(course, teacher, big_room, MON_10, ScheduleBook()) == 50

    @pytest.mark.parametrize("capacity,expected", [
        (43, 50),   # 69.8%
        (42, 60),   # 71.4%
        (34, 60),   # 88.2%
        (33, 50),   # 90.9%
    ])
    def test_capacity_fit_band(self, course, teacher, capacity, expected):
        room = Room(room_number="R", capacity=capacity)
        assert score_assignment(course, teacher, room, MON_9, ScheduleBook()) == expected

    def test_equipment_per_item(self, teacher):
        course = Course(
            course_code="CS101", credits=3, department="CS", max_students=10,
            required_equipment=["projector", "computers"],
        )
        room = Room(room_number="L1", capacity=100, equipment=["projector", "computers"])
        assert score_assignment(course, teacher, room, MON_9, ScheduleBook()) == 60

    def test_same_day_bonus_is_flat(self, course, teacher, big_room):
        book = ScheduleBook()
        book.add(build_schedule_entry(course, teacher, big_room, MON_9, 1))
        other_room = Room(room_number="B1", capacity=100)
        assert score_assignment(course, teacher, other_room, MON_10, book) == 55

        book.add(build_schedule_entry(course, teacher, big_room, MON_10, 2))
        late = TimeSlot("monday", "16:00", "17:00", 60)
        assert score_assignment(course, teacher, other_room, late, book) == 55

    def test_lunch_penalty(self, course, teacher, big_room):
        assert score_assignment(course, teacher, big_room, MON_12, ScheduleBook()) == 40

    def test_terms_are_additive(self, course):
        teacher = Teacher(
            teacher_id="T1", name="Dr. A", department="CS",
            preferences={
                "departments": ["CS"],
                "time_slots": [{"day": "monday", "start_time": "12:00"}],
            },
        )
        room = Room(room_number="R", capacity=40)  # 75%
        # 50 + 20 + 15 + 10 - 10
        assert score_assignment(course, teacher, room, MON_12, ScheduleBook()) == 85

    def test_custom_weights(self, course, teacher, big_room):
        weights = ScoreWeights(base=100, lunch_time=0)
        assert score_assignment(course, teacher, big_room, MON_12, ScheduleBook(), weights) == 100
        assert DEFAULT_WEIGHTS.base == 50
