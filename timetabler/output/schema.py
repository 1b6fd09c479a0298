"""
Output schema for generated timetables.

This module defines the JSON-serializable result of a generation run,
including pre-computed views of the schedule by teacher, room and day.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field

from timetabler.clashes.report import ConflictReport
from timetabler.data.models import ScheduleEntry, UnscheduledSession, day_index, day_name


# =============================================================================
# Quality and Statistics
# =============================================================================

class QualityMetrics(BaseModel):
    """Overall quality of a generated schedule."""
    quality_score: float = Field(alias="qualityScore")  # 0-100
    scheduling_rate: float = Field(alias="schedulingRate")  # % of courses with a session
    conflict_count: int = Field(alias="conflictCount")
    scheduled_courses: int = Field(alias="scheduledCourses")
    total_courses: int = Field(alias="totalCourses")
    total_sessions: int = Field(alias="totalSessions")
    grade: str
    improvement_areas: list[str] = Field(default_factory=list, alias="improvementAreas")

    model_config = {"populate_by_name": True}


class TeacherLoad(BaseModel):
    """Weekly teaching load of one teacher."""
    teacher_id: str = Field(alias="teacherId")
    name: str
    sessions: int
    hours: float
    max_hours: int = Field(alias="maxHours")

    model_config = {"populate_by_name": True}

    @property
    def is_overloaded(self) -> bool:
        return self.hours > self.max_hours


class Utilization(BaseModel):
    """Share of resources used, as percentages."""
    teachers: float = 0.0
    rooms: float = 0.0
    time_slots: float = Field(default=0.0, alias="timeSlots")

    model_config = {"populate_by_name": True}


class Statistics(BaseModel):
    """Descriptive statistics of a schedule."""
    total_sessions: int = Field(alias="totalSessions")
    total_courses: int = Field(alias="totalCourses")
    total_teachers: int = Field(alias="totalTeachers")
    total_rooms: int = Field(alias="totalRooms")
    utilization: Utilization = Field(default_factory=Utilization)
    by_day: dict[str, int] = Field(default_factory=dict, alias="byDay")
    by_time_slot: dict[str, int] = Field(default_factory=dict, alias="byTimeSlot")
    by_department: dict[str, int] = Field(default_factory=dict, alias="byDepartment")
    by_session_type: dict[str, int] = Field(default_factory=dict, alias="bySessionType")
    teacher_load: dict[str, TeacherLoad] = Field(default_factory=dict, alias="teacherLoad")

    model_config = {"populate_by_name": True}


class GenerationMetadata(BaseModel):
    """Sizes of the problem that was solved."""
    total_courses: int = Field(alias="totalCourses")
    total_teachers: int = Field(alias="totalTeachers")
    total_rooms: int = Field(alias="totalRooms")
    total_time_slots: int = Field(alias="totalTimeSlots")
    sessions_required: int = Field(alias="sessionsRequired")
    working_days: list[str] = Field(alias="workingDays")
    generated_at: str = Field(alias="generatedAt")

    model_config = {"populate_by_name": True}


# =============================================================================
# Views
# =============================================================================

class DaySchedule(BaseModel):
    """Schedule for a single day."""
    day: str
    day_name: str = Field(alias="dayName")
    entries: list[ScheduleEntry]

    model_config = {"populate_by_name": True}


class EntitySchedule(BaseModel):
    """Schedule for an entity (teacher or room)."""
    id: str
    name: str
    entries: list[ScheduleEntry]
    by_day: dict[str, list[ScheduleEntry]] = Field(default_factory=dict, alias="byDay")

    model_config = {"populate_by_name": True}


class TimetableViews(BaseModel):
    """Pre-computed views of the schedule for convenience."""
    by_teacher: dict[str, EntitySchedule] = Field(default_factory=dict, alias="byTeacher")
    by_room: dict[str, EntitySchedule] = Field(default_factory=dict, alias="byRoom")
    by_day: dict[str, DaySchedule] = Field(default_factory=dict, alias="byDay")

    model_config = {"populate_by_name": True}


# =============================================================================
# Complete Output
# =============================================================================

class GenerationResult(BaseModel):
    """Complete result of a generation run."""
    success: bool
    algorithm: str
    status: Optional[str] = None
    execution_time_ms: int = Field(default=0, alias="executionTimeMs")
    iterations: int = 0
    schedule: list[ScheduleEntry] = Field(default_factory=list)
    unscheduled: list[UnscheduledSession] = Field(default_factory=list)
    conflicts: Optional[ConflictReport] = None
    statistics: Optional[Statistics] = None
    quality: Optional[QualityMetrics] = None
    metadata: Optional[GenerationMetadata] = None
    errors: list[str] = Field(default_factory=list)
    views: Optional[TimetableViews] = None

    model_config = {"populate_by_name": True}

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# View Construction
# =============================================================================

def sort_entries(entries: Sequence[ScheduleEntry]) -> list[ScheduleEntry]:
    """Sort entries by week day, then start time."""
    return sorted(entries, key=lambda e: (day_index(e.day), e.start_time or ""))


def _group_by_day(entries: list[ScheduleEntry]) -> dict[str, list[ScheduleEntry]]:
    """Group already sorted entries by day."""
    by_day: dict[str, list[ScheduleEntry]] = {}
    for entry in entries:
        by_day.setdefault(entry.day, []).append(entry)
    return by_day


def _entity_schedules(
    groups: dict[str, list[ScheduleEntry]],
    names: dict[str, str],
    fallback_name,
) -> dict[str, EntitySchedule]:
    schedules = {}
    for entity_id, group in groups.items():
        sorted_entries = sort_entries(group)
        schedules[entity_id] = EntitySchedule(
            id=entity_id,
            name=names.get(entity_id) or fallback_name(group[0]) or entity_id,
            entries=sorted_entries,
            by_day=_group_by_day(sorted_entries),
        )
    return schedules


def create_views(
    entries: Sequence[ScheduleEntry],
    teacher_names: dict[str, str] | None = None,
    room_names: dict[str, str] | None = None,
) -> TimetableViews:
    """
    Create pre-computed views from schedule entries.

    Args:
        entries: Schedule entries
        teacher_names: Optional mapping of teacher_id to name
        room_names: Optional mapping of room_id to display name

    Returns:
        TimetableViews grouped by teacher, room and day
    """
    teacher_names = teacher_names or {}
    room_names = room_names or {}

    by_teacher: dict[str, list[ScheduleEntry]] = {}
    by_room: dict[str, list[ScheduleEntry]] = {}

    for entry in entries:
        if entry.teacher_id:
            by_teacher.setdefault(entry.teacher_id, []).append(entry)
        room = entry.room_id or entry.room_number
        if room:
            by_room.setdefault(room, []).append(entry)

    day_schedules = {
        day: DaySchedule(day=day, day_name=day_name(day), entries=day_entries)
        for day, day_entries in _group_by_day(sort_entries(entries)).items()
    }

    return TimetableViews(
        by_teacher=_entity_schedules(by_teacher, teacher_names, lambda e: e.teacher_name),
        by_room=_entity_schedules(by_room, room_names, lambda e: e.room_number),
        by_day=day_schedules,
    )
