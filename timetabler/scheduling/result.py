"""Scheduler output types shared by every algorithm."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from timetabler.data.models import (
    Course,
    Room,
    ScheduleEntry,
    Teacher,
    UnscheduledSession,
)
from timetabler.slots import TimeSlot


REASON_NO_VALID_SLOT = "no valid slot found"
REASON_BUDGET_EXHAUSTED = "search budget exhausted"
REASON_CANCELLED = "cancelled"


class ScheduleStatus(str, Enum):
    """Outcome of a scheduling run."""
    COMPLETE = "complete"
    PARTIAL = "partial"
    BUDGET_EXHAUSTED = "budget_exhausted"
    CANCELLED = "cancelled"


@dataclass
class SchedulerResult:
    """Best-effort schedule plus the sessions that could not be placed."""
    schedule: list[ScheduleEntry]
    unscheduled: list[UnscheduledSession]
    status: ScheduleStatus
    iterations: int = 0
    execution_time_ms: int = 0
    details: dict[str, int] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return self.status == ScheduleStatus.COMPLETE


def build_schedule_entry(
    course: Course,
    teacher: Teacher,
    room: Room,
    slot: TimeSlot,
    session_number: int,
) -> ScheduleEntry:
    """Create the entry for one placed session."""
    return ScheduleEntry(
        day=slot.day,
        start_time=slot.start_time,
        end_time=slot.end_time,
        course_code=course.course_code,
        course_name=course.display_name,
        course_id=course.course_id,
        teacher_id=teacher.teacher_id,
        teacher_name=teacher.name,
        room_id=room.key,
        room_number=room.room_number,
        building=room.building,
        department=course.department,
        session_type=course.session_type.value,
        session_number=session_number,
        credits=course.credits,
        duration=slot.duration,
        max_enrollment=course.max_students,
        current_enrollment=course.enrollment,
        room_capacity=room.capacity,
    )


def final_status(unscheduled: list[UnscheduledSession], stop: ScheduleStatus | None) -> ScheduleStatus:
    """Status for a finished run."""
    if stop is not None:
        return stop
    return ScheduleStatus.PARTIAL if unscheduled else ScheduleStatus.COMPLETE
