"""
Pydantic models for the course timetabler data model.

Time conventions:
- Clock times are zero-padded 24h strings ('HH:MM')
- Internally, times are compared as minutes from midnight (0-1439)
- Days are lowercase English weekday names ('monday' ... 'sunday')

Example times:
- 9:00 AM = '09:00' = 540
- 12:30 PM = '12:30' = 750
- 3:15 PM = '15:15' = 915
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

if TYPE_CHECKING:
    from timetabler.slots import TimeSlot


# =============================================================================
# Constants and Enums
# =============================================================================

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
WEEKEND_DAYS = frozenset({"saturday", "sunday"})
DEFAULT_WORKING_DAYS = WEEKDAYS[:5]

LUNCH_START = "12:00"
LUNCH_END = "13:00"


class SessionType(str, Enum):
    """Kind of teaching session."""
    LECTURE = "lecture"
    LAB = "lab"
    TUTORIAL = "tutorial"
    SEMINAR = "seminar"


class Algorithm(str, Enum):
    """Selectable scheduling algorithm."""
    GREEDY = "greedy"
    GENETIC = "genetic"
    CONSTRAINT_SATISFACTION = "constraint_satisfaction"


# Legacy course-type labels found in institution exports
_SESSION_TYPE_ALIASES = {
    "practical": SessionType.LAB.value,
    "laboratory": SessionType.LAB.value,
    "theory": SessionType.LECTURE.value,
}

ClockTime = Annotated[
    str,
    Field(pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="Clock time as 'HH:MM'"),
]


# =============================================================================
# Helper Functions
# =============================================================================

def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    h, m = map(int, time_str.split(":"))
    return h * 60 + m


def day_index(day: str) -> int:
    """Position of a day in the week; unknown names sort last."""
    try:
        return WEEKDAYS.index(day.lower())
    except ValueError:
        return len(WEEKDAYS)


def day_name(day: str) -> str:
    """Display name for a day ('monday' -> 'Monday')."""
    return day[:1].upper() + day[1:].lower() if day else day


def _normalize_day(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


# =============================================================================
# Preference and Availability Models
# =============================================================================

class PreferredSlot(BaseModel):
    """A (day, start time) a teacher would like to teach in."""
    model_config = ConfigDict(extra="forbid")

    day: str = Field(min_length=1, description="Weekday name")
    start_time: ClockTime

    @field_validator("day", mode="before")
    @classmethod
    def lower_day(cls, value: Any) -> Any:
        return _normalize_day(value)


class TeacherPreferences(BaseModel):
    """Department and time-slot affinities of a teacher."""
    model_config = ConfigDict(extra="forbid")

    departments: list[str] = Field(default_factory=list, description="Preferred departments")
    time_slots: list[PreferredSlot] = Field(default_factory=list, description="Preferred slots")

    def prefers_department(self, department: str) -> bool:
        return department in self.departments

    def prefers_slot(self, day: str, start_time: str) -> bool:
        return any(p.day == day and p.start_time == start_time for p in self.time_slots)


class DayAvailability(BaseModel):
    """Availability of a teacher on a single day."""
    model_config = ConfigDict(extra="forbid")

    available: bool = Field(default=True, description="Whether the teacher works this day")
    start_time: Optional[ClockTime] = Field(default=None, description="Earliest start")
    end_time: Optional[ClockTime] = Field(default=None, description="Latest end")

    @model_validator(mode="after")
    def validate_time_range(self) -> "DayAvailability":
        """Ensure start time is before end time."""
        if self.start_time and self.end_time:
            if time_to_minutes(self.start_time) >= time_to_minutes(self.end_time):
                raise ValueError(
                    f"start_time ({self.start_time}) must be before end_time ({self.end_time})"
                )
        return self

    def covers(self, start_time: str, end_time: str) -> bool:
        """Whether a window falls entirely inside this day's availability."""
        if not self.available:
            return False
        if self.start_time and time_to_minutes(start_time) < time_to_minutes(self.start_time):
            return False
        if self.end_time and time_to_minutes(end_time) > time_to_minutes(self.end_time):
            return False
        return True


# =============================================================================
# Core Entity Models
# =============================================================================

class Course(BaseModel):
    """Course whose weekly sessions must be placed."""
    model_config = ConfigDict(extra="forbid")

    course_code: str = Field(min_length=1, description="Unique course code")
    course_name: Optional[str] = Field(default=None, description="Course title")
    credits: float = Field(gt=0, description="Credit value")
    department: str = Field(min_length=1, description="Owning department")
    max_students: int = Field(default=30, ge=1, description="Maximum class size")
    hours_per_week: Optional[int] = Field(default=None, ge=1, le=40, description="Contact hours")
    sessions_per_week: Optional[int] = Field(default=None, ge=1, le=20, description="Sessions per week")
    session_type: SessionType = Field(default=SessionType.LECTURE, description="Session type")
    required_equipment: list[str] = Field(default_factory=list, description="Equipment the room must have")
    is_required: bool = Field(default=False, description="Core (required) course")
    enrollment: Optional[int] = Field(default=None, ge=0, description="Current enrollment")
    course_id: Optional[str] = Field(default=None, description="External identifier")

    @field_validator("session_type", mode="before")
    @classmethod
    def normalize_session_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return _SESSION_TYPE_ALIASES.get(lowered, lowered)
        return value

    @property
    def sessions_needed(self) -> int:
        """Sessions to schedule: explicit count, else weekly hours, else credits."""
        if self.sessions_per_week:
            return self.sessions_per_week
        if self.hours_per_week:
            return self.hours_per_week
        return math.ceil(self.credits)

    @property
    def priority(self) -> float:
        """Scheduling priority; larger, heavier courses are placed first."""
        return self.credits * self.max_students

    @property
    def is_lab_course(self) -> bool:
        return self.session_type == SessionType.LAB

    @property
    def display_name(self) -> str:
        return self.course_name or self.course_code

    def __str__(self) -> str:
        return f"{self.display_name} ({self.course_code})"


class Teacher(BaseModel):
    """Teacher entity."""
    model_config = ConfigDict(extra="forbid")

    teacher_id: str = Field(min_length=1, description="Unique identifier")
    name: str = Field(min_length=1, description="Full name")
    department: str = Field(min_length=1, description="Home department")
    specialization: list[str] = Field(default_factory=list, description="Specialization tokens")
    max_hours: int = Field(default=20, ge=1, le=60, description="Max teaching hours per week")
    preferences: TeacherPreferences = Field(default_factory=TeacherPreferences)
    availability: dict[str, DayAvailability] = Field(
        default_factory=dict,
        description="Per-day availability; days not listed are fully available",
    )

    @field_validator("specialization", mode="before")
    @classmethod
    def split_specialization(cls, value: Any) -> Any:
        if isinstance(value, str):
            tokens = value.replace(",", ";").split(";")
            return [t.strip() for t in tokens if t.strip()]
        return value

    @field_validator("availability", mode="before")
    @classmethod
    def lower_availability_days(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {_normalize_day(k): v for k, v in value.items()}
        return value

    def is_available(self, day: str, start_time: str, end_time: str) -> bool:
        """Whether the teacher can teach in the given window."""
        window = self.availability.get(day)
        if window is None:
            return True
        return window.covers(start_time, end_time)

    def __str__(self) -> str:
        return f"{self.name} ({self.teacher_id})"


class Room(BaseModel):
    """Room/facility."""
    model_config = ConfigDict(extra="forbid")

    room_number: str = Field(min_length=1, description="Room number")
    room_id: Optional[str] = Field(default=None, description="Identifier (defaults to room_number)")
    capacity: int = Field(ge=1, description="Seats")
    is_lab: bool = Field(default=False, description="Laboratory room")
    room_type: Optional[str] = Field(default=None, description="Free-text room type")
    equipment: list[str] = Field(default_factory=list, description="Available equipment")
    building: Optional[str] = Field(default=None, description="Building name")

    @model_validator(mode="after")
    def derive_lab_flag(self) -> "Room":
        """Rooms typed as a lab/laboratory are labs."""
        if self.room_type and self.room_type.strip().lower() in ("lab", "laboratory"):
            self.is_lab = True
        return self

    @property
    def key(self) -> str:
        """Identity used for double-booking checks."""
        return self.room_id or self.room_number

    def has_equipment(self, items: list[str]) -> bool:
        return all(item in self.equipment for item in items)

    def __str__(self) -> str:
        kind = "lab" if self.is_lab else "room"
        return f"{self.room_number} ({kind}, {self.capacity} seats)"


# =============================================================================
# Configuration Models
# =============================================================================

class WorkingHours(BaseModel):
    """Daily teaching window."""
    model_config = ConfigDict(extra="forbid")

    start: ClockTime = Field(default="08:00")
    end: ClockTime = Field(default="18:00")

    @model_validator(mode="after")
    def validate_window(self) -> "WorkingHours":
        """Ensure the day starts before it ends."""
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError(f"working hours start ({self.start}) must be before end ({self.end})")
        return self


class SchedulingConfig(BaseModel):
    """Generation run configuration."""
    model_config = ConfigDict(extra="forbid")

    algorithm: Algorithm = Field(default=Algorithm.GREEDY, description="Scheduling algorithm")
    working_days: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WORKING_DAYS),
        min_length=1,
        description="Teaching days in week order",
    )
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    time_slot_duration: int = Field(default=60, ge=5, le=480, description="Slot length in minutes")
    break_duration: int = Field(default=15, ge=0, le=240, description="Gap between slots in minutes")
    max_iterations: int = Field(default=1000, ge=1, description="Session searches allowed per run")
    population_size: int = Field(default=50, ge=1, description="Accepted for compatibility; unused")
    time_limit_seconds: Optional[float] = Field(default=None, gt=0, description="Wall-clock budget")

    @field_validator("working_days", mode="before")
    @classmethod
    def lower_working_days(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [_normalize_day(d) for d in value]
        return value

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: list[str]) -> list[str]:
        unknown = [d for d in value if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown working day(s): {', '.join(unknown)}")
        if len(set(value)) != len(value):
            raise ValueError("working days must not repeat")
        return value

    def time_slots(self) -> list[TimeSlot]:
        """Materialize the candidate slots for this configuration."""
        from timetabler.slots import generate_time_slots

        return generate_time_slots(
            self.working_days,
            self.working_hours.start,
            self.working_hours.end,
            self.time_slot_duration,
            self.break_duration,
        )


class AuditPolicy(BaseModel):
    """Institution policy applied by the clash detector."""
    model_config = ConfigDict(extra="forbid")

    allow_weekends: bool = Field(default=False, description="Weekend sessions need no approval")
    min_enrollment: int = Field(default=5, ge=0, description="Default minimum enrollment")
    min_duration: int = Field(default=30, ge=1, description="Shortest acceptable session (minutes)")
    max_duration: int = Field(default=180, ge=1, description="Longest acceptable session (minutes)")

    @model_validator(mode="after")
    def validate_duration_bounds(self) -> "AuditPolicy":
        if self.min_duration > self.max_duration:
            raise ValueError(
                f"min_duration ({self.min_duration}) must not exceed max_duration ({self.max_duration})"
            )
        return self


# =============================================================================
# Main Input Model
# =============================================================================

class TimetableInput(BaseModel):
    """
    Complete generation input.

    Collections may be empty here; emptiness is reported by
    ``timetabler.data.loader.validate_input`` together with every other
    field-level problem.
    """
    model_config = ConfigDict(extra="forbid")

    config: SchedulingConfig = Field(default_factory=SchedulingConfig)
    audit: AuditPolicy = Field(default_factory=AuditPolicy)

    courses: list[Course] = Field(default_factory=list, description="Courses to schedule")
    teachers: list[Teacher] = Field(default_factory=list, description="Teaching staff")
    rooms: list[Room] = Field(default_factory=list, description="Rooms")

    # Lookup caches (populated after validation)
    _course_map: dict[str, Course] = {}
    _teacher_map: dict[str, Teacher] = {}
    _room_map: dict[str, Room] = {}

    def model_post_init(self, __context: Any) -> None:
        """Build lookup maps after model initialization."""
        self._course_map = {c.course_code: c for c in self.courses}
        self._teacher_map = {t.teacher_id: t for t in self.teachers}
        self._room_map = {r.key: r for r in self.rooms}

    # -------------------------------------------------------------------------
    # Lookup Methods
    # -------------------------------------------------------------------------

    def get_course(self, course_code: str) -> Optional[Course]:
        return self._course_map.get(course_code)

    def get_teacher(self, teacher_id: str) -> Optional[Teacher]:
        return self._teacher_map.get(teacher_id)

    def get_room(self, room_key: str) -> Optional[Room]:
        return self._room_map.get(room_key)

    def get_department_courses(self, department: str) -> list[Course]:
        return [c for c in self.courses if c.department == department]

    def get_labs(self) -> list[Room]:
        return [r for r in self.rooms if r.is_lab]

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    @property
    def total_sessions_needed(self) -> int:
        """Total number of sessions to place per week."""
        return sum(c.sessions_needed for c in self.courses)

    def summary(self) -> dict[str, Any]:
        """Get a summary of the input data."""
        slots = self.config.time_slots()
        return {
            "algorithm": self.config.algorithm.value,
            "courses": len(self.courses),
            "teachers": len(self.teachers),
            "rooms": len(self.rooms),
            "labs": len(self.get_labs()),
            "working_days": len(self.config.working_days),
            "time_slots": len(slots),
            "total_sessions_needed": self.total_sessions_needed,
            "total_room_slots": len(slots) * len(self.rooms),
        }


# =============================================================================
# Schedule Entry
# =============================================================================

class ScheduleEntry(BaseModel):
    """
    One placed session.

    Produced by the schedulers and consumed by the clash detector, which also
    accepts entries assembled by other systems. Immutable once created.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    day: str
    # Always 'HH:MM' when produced here; audited entries may omit them
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")

    course_code: Optional[str] = Field(default=None, alias="courseCode")
    course_name: Optional[str] = Field(default=None, alias="courseName")
    course_id: Optional[str] = Field(default=None, alias="courseId")
    teacher_id: Optional[str] = Field(default=None, alias="teacherId")
    teacher_name: Optional[str] = Field(default=None, alias="teacherName")
    room_id: Optional[str] = Field(default=None, alias="roomId")
    room_number: Optional[str] = Field(default=None, alias="roomNumber")
    building: Optional[str] = None
    department: Optional[str] = None

    session_type: Optional[str] = Field(default=None, alias="sessionType")
    session_number: Optional[int] = Field(default=None, alias="sessionNumber")
    credits: Optional[float] = None
    duration: Optional[int] = None
    max_enrollment: Optional[int] = Field(default=None, alias="maxEnrollment")
    current_enrollment: Optional[int] = Field(default=None, alias="currentEnrollment")
    room_capacity: Optional[int] = Field(default=None, alias="roomCapacity")

    # Audit-only inputs
    enrolled_students: Optional[list[str]] = Field(default=None, alias="enrolledStudents")
    required_resources: list[str] = Field(default_factory=list, alias="requiredResources")
    min_enrollment: Optional[int] = Field(default=None, alias="minEnrollment")

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_shape(cls, data: Any) -> Any:
        """Flatten the nested ``timeSlot`` shape and legacy key names."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        time_slot = data.pop("timeSlot", None) or data.pop("time_slot", None)
        if isinstance(time_slot, dict):
            data.setdefault("startTime", time_slot.get("startTime", time_slot.get("start_time")))
            data.setdefault("endTime", time_slot.get("endTime", time_slot.get("end_time")))
        legacy_keys = {
            "dayOfWeek": "day",
            "instructor": "teacherId",
            "instructorName": "teacherName",
            "room": "roomId",
            "courseTitle": "courseName",
            "capacity": "roomCapacity",
            "equipment": "requiredResources",
        }
        for old, new in legacy_keys.items():
            if old in data:
                value = data.pop(old)
                data.setdefault(new, value)
        return data

    @field_validator("day", mode="before")
    @classmethod
    def lower_day(cls, value: Any) -> Any:
        return _normalize_day(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def stringify_time(cls, value: Any) -> Any:
        # HHMM times arrive as numbers from spreadsheets
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("enrolled_students", mode="before")
    @classmethod
    def extract_student_ids(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        ids = []
        for item in value:
            if isinstance(item, dict):
                student_id = item.get("student") or item.get("studentId") or item.get("student_id")
                if student_id:
                    ids.append(str(student_id))
            elif item is not None:
                ids.append(str(item))
        return ids

    @property
    def label(self) -> str:
        """Short description used in conflict details."""
        return f"{self.day} {self.start_time}-{self.end_time}"


class UnscheduledSession(BaseModel):
    """A required session for which no legal assignment was found."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    course_code: str = Field(alias="courseCode")
    session_number: int = Field(alias="sessionNumber")
    reason: str
