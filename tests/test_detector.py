"""Tests for clash detection."""

from __future__ import annotations

import itertools

import pytest

from timetabler.clashes import (
    ClashDetector,
    ConflictType,
    Severity,
    detect_clashes,
)
from timetabler.data.models import AuditPolicy, ScheduleEntry


def entry(**fields) -> dict:
    """A weekday 09:00-10:00 entry with the given overrides."""
    data = {"day": "monday", "startTime": "09:00", "endTime": "10:00"}
    data.update(fields)
    return data


class TestTeacherConflicts:
    """Tests for teacher double-booking."""

    def test_overlapping_sessions(self):
        entries = [
            entry(teacherId="T1", teacherName="Dr. Ada", roomId="A101", courseCode="CS101"),
            entry(teacherId="T1", teacherName="Dr. Ada", roomId="B202", courseCode="CS102",
                  startTime="09:30", endTime="10:30"),
        ]

        report = detect_clashes(entries)

        assert report.summary.total == 1
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.TEACHER_CONFLICT
        assert conflict.severity == Severity.CRITICAL
        assert conflict.affected_entries == [0, 1]
        assert conflict.details["teacher"]["id"] == "T1"
        assert len(conflict.details["conflictingSlots"]) == 2
        assert conflict.resolution.suggestions
        assert report.can_proceed is False
        assert report.requires_review is True

    def test_different_days(self):
        report = detect_clashes([
            entry(teacherId="T1"),
            entry(teacherId="T1", day="tuesday"),
        ])
        assert report.summary.total == 0
        assert report.can_proceed

    def test_back_to_back(self):
        report = detect_clashes([
            entry(teacherId="T1"),
            entry(teacherId="T1", startTime="10:00", endTime="11:00"),
        ])
        assert report.summary.total == 0

    def test_partial_overlap_with_mixed_formats(self):
        report = detect_clashes([
            entry(teacherId="T1", startTime="9:00 AM", endTime="10:00 AM"),
            entry(teacherId="T1", startTime="0930", endTime="1030"),
        ])
        assert len(report.conflicts_of(ConflictType.TEACHER_CONFLICT)) == 1

    def test_every_overlapping_pair_is_reported(self):
        report = detect_clashes([entry(teacherId="T1") for _ in range(3)])
        teacher = report.conflicts_of(ConflictType.TEACHER_CONFLICT)
        assert sorted(c.affected_entries for c in teacher) == [[0, 1], [0, 2], [1, 2]]

    def test_count_is_independent_of_order(self):
        entries = [
            entry(teacherId="T1", roomId="A"),
            entry(teacherId="T1", roomId="B", startTime="09:30", endTime="10:30"),
            entry(teacherId="T1", roomId="C", startTime="10:15", endTime="11:00"),
            entry(teacherId="T2", roomId="A", startTime="09:45", endTime="10:45"),
        ]
        counts = set()
        for perm in itertools.permutations(entries):
            report = detect_clashes(list(perm))
            counts.add((report.by_type[ConflictType.TEACHER_CONFLICT],
                        report.by_type[ConflictType.ROOM_CONFLICT]))
        assert counts == {(2, 1)}


class TestRoomConflicts:
    """Tests for room double-booking."""

    def test_double_booked(self):
        report = detect_clashes([
            entry(teacherId="T1", roomId="R1", roomNumber="101"),
            entry(teacherId="T2", roomId="R1", roomNumber="101"),
        ])
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.ROOM_CONFLICT
        assert conflict.severity == Severity.HIGH
        assert conflict.details["room"]["id"] == "R1"
        assert report.can_proceed
        assert report.requires_review

    def test_room_number_used_without_id(self):
        report = detect_clashes([
            entry(roomNumber="101"),
            entry(roomNumber="101", startTime="09:15"),
        ])
        assert len(report.conflicts_of(ConflictType.ROOM_CONFLICT)) == 1

    def test_legacy_room_key(self):
        report = detect_clashes([
            {"dayOfWeek": "monday", "timeSlot": {"startTime": "09:00", "endTime": "10:00"},
             "instructor": "T1", "room": "R1"},
            {"dayOfWeek": "monday", "timeSlot": {"startTime": "09:00", "endTime": "10:00"},
             "instructor": "T2", "room": "R1"},
        ])
        assert report.by_type[ConflictType.ROOM_CONFLICT] == 1
        assert report.conflicts[0].details["room"]["id"] == "R1"


class TestStudentConflicts:
    """Tests for student double-enrolment."""

    def test_shared_student(self):
        report = detect_clashes([
            entry(courseCode="A", enrolledStudents=["s1", "s2"]),
            entry(courseCode="B", enrolledStudents=[{"student": "s2"}, "s3"]),
        ])
        students = report.conflicts_of(ConflictType.STUDENT_CONFLICT)
        assert len(students) == 1
        assert students[0].details["student"]["id"] == "s2"
        assert students[0].severity == Severity.HIGH

    def test_duplicate_ids_in_one_entry(self):
        report = detect_clashes([
            entry(enrolledStudents=["s1", "s1"]),
            entry(enrolledStudents=["s1"], day="tuesday"),
        ])
        assert report.conflicts_of(ConflictType.STUDENT_CONFLICT) == []


class TestTimeConflicts:
    """Tests for time sanity checks."""

    def test_short_duration(self):
        report = detect_clashes([entry(startTime="09:00", endTime="09:20")])

        assert report.summary.total == 1
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.TIME_CONFLICT
        assert conflict.severity == Severity.MEDIUM
        assert conflict.details["issue"] == "Duration too short"
        assert conflict.details["duration"] == 20

    def test_long_duration(self):
        report = detect_clashes([entry(startTime="09:00", endTime="13:00")])
        assert report.conflicts[0].details["issue"] == "Duration too long"

    def test_duration_bounds_are_inclusive(self):
        report = detect_clashes([
            entry(startTime="09:00", endTime="09:30"),
            entry(startTime="12:00", endTime="15:00", day="tuesday"),
        ])
        assert report.summary.total == 0

    def test_weekend(self):
        report = detect_clashes([entry(day="saturday")])

        assert report.summary.total == 1
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.TIME_CONFLICT
        assert conflict.severity == Severity.LOW
        assert report.can_proceed
        assert not report.requires_review

    def test_weekend_allowed_by_policy(self):
        report = detect_clashes([entry(day="sunday")], policy=AuditPolicy(allow_weekends=True))
        assert report.summary.total == 0

    def test_inverted_range(self):
        report = detect_clashes([entry(startTime="11:00", endTime="10:00")])
        conflict = report.conflicts[0]
        assert conflict.severity == Severity.HIGH
        assert conflict.description == "Invalid time range detected"
        assert len(report.conflicts) == 1

    def test_unparseable_time(self):
        report = detect_clashes([entry(startTime="noon", endTime="13:00")])
        assert report.conflicts[0].details["timeSlot"]["startTime"] == "noon"

    def test_missing_end_time(self):
        report = detect_clashes([
            {"day": "monday", "timeSlot": {"startTime": "09:00", "endTime": None}, "teacherId": "T1"},
        ])

        assert report.summary.total == 1
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.TIME_CONFLICT
        assert conflict.severity == Severity.HIGH
        assert conflict.details["timeSlot"]["endTime"] is None

    def test_missing_times_never_overlap(self):
        report = detect_clashes([
            {"day": "monday", "teacherId": "T1"},
            {"day": "monday", "teacherId": "T1"},
        ])
        assert report.conflicts_of(ConflictType.TEACHER_CONFLICT) == []
        assert len(report.conflicts_of(ConflictType.TIME_CONFLICT)) == 2


class TestCapacityConflicts:
    """Tests for capacity and enrollment checks."""

    def test_overflow(self):
        report = detect_clashes([entry(currentEnrollment=45, roomCapacity=40, roomNumber="101")])
        conflict = report.conflicts[0]
        assert conflict.type == ConflictType.CAPACITY_CONFLICT
        assert conflict.severity == Severity.HIGH
        assert conflict.details["enrollment"]["overflow"] == 5

    def test_enrollment_from_student_list(self):
        report = detect_clashes([entry(enrolledStudents=["a", "b", "c"], roomCapacity=2)])
        assert report.summary.high == 1
        assert report.summary.medium == 1  # also below the default minimum of 5

    def test_low_enrollment(self):
        report = detect_clashes([entry(currentEnrollment=3)])
        conflict = report.conflicts[0]
        assert conflict.severity == Severity.MEDIUM
        assert conflict.details["enrollment"] == {"current": 3, "minimum": 5, "shortage": 2}

    def test_entry_minimum_overrides_policy(self):
        report = detect_clashes([entry(currentEnrollment=8, minEnrollment=10)])
        assert report.conflicts[0].details["enrollment"]["minimum"] == 10

        report = detect_clashes([entry(currentEnrollment=3, minEnrollment=0)])
        assert report.summary.total == 0

    def test_unknown_enrollment_skipped(self):
        report = detect_clashes([entry(roomCapacity=10)])
        assert report.summary.total == 0


class TestResourceConflicts:
    """Tests for shared equipment."""

    def test_shared_resource(self):
        report = detect_clashes([
            entry(requiredResources=["microscope", "projector"], roomId="A"),
            entry(requiredResources=["microscope"], roomId="B", startTime="09:30", endTime="10:30"),
        ])
        resources = report.conflicts_of(ConflictType.RESOURCE_CONFLICT)
        assert len(resources) == 1
        assert resources[0].details["resource"] == "microscope"
        assert resources[0].severity == Severity.MEDIUM


class TestClashDetector:
    """Tests for the detector API."""

    def test_existing_entries_come_first(self):
        existing = [entry(teacherId="T1", courseCode="OLD")]
        new = [entry(teacherId="T1", courseCode="NEW")]

        report = ClashDetector().detect_clashes(new, existing)

        assert report.conflicts[0].affected_entries == [0, 1]
        assert report.summary.total_schedules == 2

    def test_accepts_models_and_dicts(self):
        model = ScheduleEntry(day="monday", start_time="09:00", end_time="10:00", teacher_id="T1")
        report = detect_clashes([model, entry(teacherId="T1")])
        assert report.summary.critical == 1

    def test_results_are_not_shared_between_calls(self):
        detector = ClashDetector()
        clash = [entry(teacherId="T1"), entry(teacherId="T1")]

        first = detector.detect_clashes(clash)
        second = detector.detect_clashes([entry(teacherId="T1")])

        assert first.summary.total == 1
        assert second.summary.total == 0

    def test_validate_single_entry(self):
        existing = [entry(teacherId="T1"), entry(teacherId="T2", day="tuesday")]
        report = ClashDetector().validate_single_entry(entry(teacherId="T2"), existing)
        assert report.summary.total == 0

        report = ClashDetector().validate_single_entry(entry(teacherId="T1"), existing)
        assert report.summary.critical == 1
        assert report.conflicts[0].affected_entries == [0, 2]

    def test_get_conflicting_entries(self):
        schedule = [
            entry(teacherId="T1", roomId="A", courseCode="X"),
            entry(teacherId="T2", roomId="B", courseCode="Y"),
            entry(teacherId="T3", roomId="B", courseCode="Z"),
            entry(teacherId="T1", roomId="C", courseCode="W", day="friday"),
        ]
        target = entry(teacherId="T1", roomId="B", courseCode="NEW")

        conflicting = ClashDetector().get_conflicting_entries(target, schedule)

        # Y and Z clash with each other too, but only clashes with the target count
        assert [e.course_code for e in conflicting] == ["X", "Y", "Z"]

    def test_get_conflicting_entries_none(self):
        schedule = [entry(teacherId="T1", roomId="B")]
        target = entry(teacherId="T2", roomId="A")
        assert ClashDetector().get_conflicting_entries(target, schedule) == []

    def test_report_sorted_by_severity(self):
        report = detect_clashes([
            entry(day="saturday", roomId="R1", teacherId="T1"),
            entry(day="saturday", roomId="R1", teacherId="T1", startTime="09:10", endTime="09:30"),
        ])
        ranks = [c.severity.rank for c in report.conflicts]
        assert ranks == sorted(ranks, reverse=True)
        assert report.conflicts[0].severity == Severity.CRITICAL

    @pytest.mark.parametrize("entries", [[], [entry()]])
    def test_clean_schedule(self, entries):
        report = detect_clashes(entries)
        assert report.summary.total == 0
        assert report.can_proceed
        assert not report.requires_review
        assert report.recommendations == []
